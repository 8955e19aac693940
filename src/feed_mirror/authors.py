"""Choosing the local author for imported content."""

from feed_mirror.store import ContentStore

DEFAULT_USER_ID = 1


def resolve_author(store: ContentStore, current_user_id: int | None = None) -> int:
    """Return the lowest administrator id.

    Imported content is never attributed to the remote author. Without any
    administrator, fall back to the calling user, then to the first account.
    """
    admins = store.get_admin_user_ids()
    if admins:
        return admins[0]
    if current_user_id:
        return current_user_id
    return DEFAULT_USER_ID
