"""Tests for the SQLite content store."""

from datetime import datetime, timezone

import pytest

from feed_mirror.errors import InsertError, TermCreationError
from feed_mirror.models import LocalItem, TermKind, User
from feed_mirror.store import GUID_META_KEY


def test_insert_and_get_item(store):
    item_id = store.insert_item(
        LocalItem(
            title="Hello",
            slug="hello",
            status="publish",
            date=datetime(2026, 2, 13, 11, 0),
            date_gmt=datetime(2026, 2, 13, 10, 0, tzinfo=timezone.utc),
        )
    )

    item = store.get_item(item_id)
    assert item.title == "Hello"
    assert item.status == "publish"
    assert item.date == datetime(2026, 2, 13, 11, 0)
    assert item.date_gmt == datetime(2026, 2, 13, 10, 0, tzinfo=timezone.utc)
    assert store.get_item(item_id + 100) is None


def test_insert_empty_item_is_rejected(store):
    with pytest.raises(InsertError):
        store.insert_item(LocalItem(title=""))


def test_find_item_by_title_any_status(store):
    draft_id = store.insert_item(LocalItem(title="Same", status="draft"))
    store.insert_item(LocalItem(title="Same", status="publish"))
    store.insert_item(LocalItem(title="Same", item_type="page"))

    assert store.find_item_by_title("Same") == draft_id
    assert store.find_item_by_title("Other") is None


def test_guid_meta_is_unique_across_items(store):
    first = store.insert_item(LocalItem(title="One"))
    second = store.insert_item(LocalItem(title="Two"))

    assert store.add_item_meta(first, GUID_META_KEY, "abc") is True
    assert store.add_item_meta(second, GUID_META_KEY, "abc") is False
    assert store.find_items_by_meta(GUID_META_KEY, "abc") == [first]


def test_delete_item_releases_guid_and_terms(store):
    item_id = store.insert_item(LocalItem(title="One"))
    store.add_item_meta(item_id, GUID_META_KEY, "abc-123")
    term = store.insert_term("News", TermKind.CATEGORY, "news")
    store.set_item_terms(item_id, [term.id], TermKind.CATEGORY)

    store.delete_item(item_id)

    assert store.get_item(item_id) is None
    assert store.find_items_by_meta(GUID_META_KEY, "abc-123") == []
    assert store.get_item_terms(item_id, TermKind.CATEGORY) == []
    assert store.get_term(term.id) is not None

    other_id = store.insert_item(LocalItem(title="Two"))
    assert store.add_item_meta(other_id, GUID_META_KEY, "abc-123")

def test_empty_guid_is_not_unique(store):
    first = store.insert_item(LocalItem(title="One"))
    second = store.insert_item(LocalItem(title="Two"))

    assert store.add_item_meta(first, GUID_META_KEY, "")
    assert store.add_item_meta(second, GUID_META_KEY, "")


def test_add_unique_meta_keeps_first_value(store):
    item_id = store.insert_item(LocalItem(title="One"))

    store.add_item_meta(item_id, "flag", "1")
    assert store.add_item_meta(item_id, "flag", "2") is False
    assert store.get_item_meta(item_id, "flag") == "1"

    store.update_item_meta(item_id, "flag", "3")
    assert store.get_item_meta(item_id, "flag") == "3"


def test_terms_are_unique_by_kind_and_slug(store):
    news = store.insert_term("News", TermKind.CATEGORY, "news")
    tag = store.insert_term("News", TermKind.TAG, "news")

    assert news.id != tag.id
    assert store.get_term_by_slug("news", TermKind.CATEGORY).id == news.id
    assert store.get_term(tag.id).kind is TermKind.TAG

    with pytest.raises(TermCreationError):
        store.insert_term("Headlines", TermKind.CATEGORY, "news")


def test_set_item_terms_replaces(store):
    item_id = store.insert_item(LocalItem(title="One"))
    a = store.insert_term("A", TermKind.CATEGORY, "a")
    b = store.insert_term("B", TermKind.CATEGORY, "b")
    t = store.insert_term("T", TermKind.TAG, "t")

    store.set_item_terms(item_id, [a.id, b.id, a.id], TermKind.CATEGORY)
    store.set_item_terms(item_id, [t.id], TermKind.TAG)
    assert [x.name for x in store.get_item_terms(item_id, TermKind.CATEGORY)] == ["A", "B"]

    store.set_item_terms(item_id, [b.id], TermKind.CATEGORY)
    assert [x.name for x in store.get_item_terms(item_id, TermKind.CATEGORY)] == ["B"]
    assert [x.name for x in store.get_item_terms(item_id, TermKind.TAG)] == ["T"]


def test_store_attachment_and_thumbnail(store, tmp_path):
    item_id = store.insert_item(LocalItem(title="One"))

    first = store.store_attachment(item_id, "photo.png", b"one", "image/png")
    second = store.store_attachment(item_id, "photo.png", b"two", "image/png")

    assert first.path != second.path
    assert (tmp_path / "uploads" / f"{item_id}-photo.png").read_bytes() == b"one"
    assert second.url == f"/uploads/{item_id}-photo-1.png"

    assert store.get_thumbnail(item_id) is None
    store.set_thumbnail(item_id, first.id)
    store.set_thumbnail(item_id, second.id)
    assert store.get_thumbnail(item_id).id == second.id
    assert store.get_item(item_id).thumbnail_id == second.id


def test_admin_user_ids_are_ascending(store):
    store.add_user(User(login="editor", role="editor"))
    later = store.add_user(User(login="root", role="administrator"))
    store.add_user(User(login="other-admin", role="administrator"))

    assert store.get_admin_user_ids()[0] == later.id
    assert len(store.get_admin_user_ids()) == 2
