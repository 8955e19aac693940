"""Capabilities the import engine needs from the local content store."""

from typing import Protocol

from feed_mirror.models import Attachment, LocalItem, Term, TermKind

GUID_META_KEY = "_autoblogapi_guid"
FLAG_META_KEY = "AUTO_BLOG_API"


class ContentStore(Protocol):
    """Local persistence for items, terms, users and media.

    Implementations raise InsertError, TermCreationError and
    MediaDownloadError for rejected writes.
    """

    def find_items_by_meta(self, key: str, value: str) -> list[int]: ...

    def find_item_by_title(self, title: str, item_type: str = "post") -> int | None: ...

    def insert_item(self, item: LocalItem) -> int: ...

    def get_item(self, item_id: int) -> LocalItem | None: ...

    def delete_item(self, item_id: int) -> None: ...

    def add_item_meta(self, item_id: int, key: str, value: str, unique: bool = True) -> bool: ...

    def update_item_meta(self, item_id: int, key: str, value: str) -> None: ...

    def get_item_meta(self, item_id: int, key: str) -> str | None: ...

    def set_item_terms(self, item_id: int, term_ids: list[int], kind: TermKind) -> None: ...

    def get_item_terms(self, item_id: int, kind: TermKind) -> list[Term]: ...

    def get_term_by_slug(self, slug: str, kind: TermKind) -> Term | None: ...

    def insert_term(self, name: str, kind: TermKind, slug: str) -> Term: ...

    def get_term(self, term_id: int) -> Term | None: ...

    def get_admin_user_ids(self) -> list[int]: ...

    def store_attachment(
        self,
        item_id: int,
        filename: str,
        content: bytes,
        content_type: str,
        source_url: str | None = None,
    ) -> Attachment: ...

    def set_thumbnail(self, item_id: int, attachment_id: int) -> None: ...

    def get_thumbnail(self, item_id: int) -> Attachment | None: ...
