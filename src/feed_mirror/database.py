"""SQLite implementation of the local content store."""

import sqlite3
from datetime import datetime
from pathlib import Path

from feed_mirror.errors import InsertError, MediaDownloadError, TermCreationError
from feed_mirror.models import Attachment, LocalItem, Term, TermKind, User
from feed_mirror.store import GUID_META_KEY

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    login TEXT UNIQUE NOT NULL,
    role TEXT NOT NULL DEFAULT 'subscriber'
);

CREATE TABLE IF NOT EXISTS items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    excerpt TEXT NOT NULL DEFAULT '',
    slug TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'draft',
    item_type TEXT NOT NULL DEFAULT 'post',
    author_id INTEGER,
    date TEXT,
    date_gmt TEXT,
    thumbnail_id INTEGER,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS item_meta (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    item_id INTEGER NOT NULL REFERENCES items(id) ON DELETE CASCADE,
    meta_key TEXT NOT NULL,
    meta_value TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS terms (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL,
    name TEXT NOT NULL,
    slug TEXT NOT NULL,
    UNIQUE(kind, slug)
);

CREATE TABLE IF NOT EXISTS item_terms (
    item_id INTEGER NOT NULL REFERENCES items(id) ON DELETE CASCADE,
    term_id INTEGER NOT NULL REFERENCES terms(id) ON DELETE CASCADE,
    kind TEXT NOT NULL,
    position INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (item_id, term_id)
);

CREATE TABLE IF NOT EXISTS attachments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    item_id INTEGER REFERENCES items(id) ON DELETE SET NULL,
    path TEXT NOT NULL,
    url TEXT NOT NULL,
    content_type TEXT NOT NULL,
    source_url TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_items_title ON items(item_type, title);
CREATE INDEX IF NOT EXISTS idx_item_meta_item ON item_meta(item_id, meta_key);
CREATE INDEX IF NOT EXISTS idx_item_meta_value ON item_meta(meta_key, meta_value);
CREATE INDEX IF NOT EXISTS idx_item_terms_kind ON item_terms(item_id, kind);

CREATE UNIQUE INDEX IF NOT EXISTS idx_item_meta_guid
    ON item_meta(meta_value)
    WHERE meta_key = '{GUID_META_KEY}' AND meta_value != '';
"""


class SqliteStore:
    """SQLite-backed content store for imported items, terms and media."""

    def __init__(
        self,
        db_path: str,
        uploads_dir: str = "uploads",
        uploads_url: str = "/uploads",
    ):
        self.db_path = db_path
        self.uploads_dir = Path(uploads_dir)
        self.uploads_url = uploads_url.rstrip("/")
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open database connection and initialize schema."""
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    # --- User operations ---

    def add_user(self, user: User) -> User:
        """Insert a user and return it with its assigned id."""
        cursor = self.conn.execute(
            "INSERT INTO users (login, role) VALUES (?, ?)",
            (user.login, user.role),
        )
        self.conn.commit()
        user.id = cursor.lastrowid
        return user

    def get_admin_user_ids(self) -> list[int]:
        """Return administrator ids, lowest first."""
        rows = self.conn.execute(
            "SELECT id FROM users WHERE role = 'administrator' ORDER BY id ASC"
        ).fetchall()
        return [r["id"] for r in rows]

    # --- Item operations ---

    def insert_item(self, item: LocalItem) -> int:
        """Insert a new item and return its id.

        Raises:
            InsertError: If the item is empty or the write is rejected.
        """
        if not (item.title or item.content or item.excerpt):
            raise InsertError("Content, title, and excerpt are empty.")

        try:
            cursor = self.conn.execute(
                """INSERT INTO items (title, content, excerpt, slug, status,
                   item_type, author_id, date, date_gmt, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    item.title,
                    item.content,
                    item.excerpt,
                    item.slug,
                    item.status,
                    item.item_type,
                    item.author_id,
                    _dt_to_str(item.date),
                    _dt_to_str(item.date_gmt),
                    _dt_to_str(item.created_at),
                ),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise InsertError(f"Could not insert item {item.title!r}: {e}") from e

        item.id = cursor.lastrowid
        return item.id

    def get_item(self, item_id: int) -> LocalItem | None:
        """Look up an item by its id."""
        row = self.conn.execute(
            "SELECT * FROM items WHERE id = ?", (item_id,)
        ).fetchone()
        return _row_to_item(row) if row else None

    def delete_item(self, item_id: int) -> None:
        """Delete an item together with its meta and term links."""
        try:
            self.conn.execute("DELETE FROM items WHERE id = ?", (item_id,))
            self.conn.commit()
        except sqlite3.Error:
            self.conn.rollback()
            raise

    def count_items(self, item_type: str = "post") -> int:
        """Count stored items of a type."""
        row = self.conn.execute(
            "SELECT COUNT(*) as cnt FROM items WHERE item_type = ?", (item_type,)
        ).fetchone()
        return row["cnt"] if row else 0

    def find_items_by_meta(self, key: str, value: str) -> list[int]:
        """Return ids of items carrying the given meta value."""
        rows = self.conn.execute(
            """SELECT DISTINCT item_id FROM item_meta
               WHERE meta_key = ? AND meta_value = ?
               ORDER BY item_id""",
            (key, value),
        ).fetchall()
        return [r["item_id"] for r in rows]

    def find_item_by_title(self, title: str, item_type: str = "post") -> int | None:
        """Return the oldest item of a type with exactly this title, any status."""
        row = self.conn.execute(
            """SELECT id FROM items WHERE item_type = ? AND title = ?
               ORDER BY id LIMIT 1""",
            (item_type, title),
        ).fetchone()
        return row["id"] if row else None

    # --- Meta operations ---

    def add_item_meta(self, item_id: int, key: str, value: str, unique: bool = True) -> bool:
        """Add a meta value. With unique=True an existing key is left alone.

        Returns True if a row was written.
        """
        if unique and self.get_item_meta(item_id, key) is not None:
            return False
        try:
            self.conn.execute(
                "INSERT INTO item_meta (item_id, meta_key, meta_value) VALUES (?, ?, ?)",
                (item_id, key, value),
            )
            self.conn.commit()
        except sqlite3.IntegrityError:
            # Guid already claimed by another item
            self.conn.rollback()
            return False
        return True

    def update_item_meta(self, item_id: int, key: str, value: str) -> None:
        """Set a meta value, replacing any previous values for the key."""
        try:
            self.conn.execute(
                "DELETE FROM item_meta WHERE item_id = ? AND meta_key = ?",
                (item_id, key),
            )
            self.conn.execute(
                "INSERT INTO item_meta (item_id, meta_key, meta_value) VALUES (?, ?, ?)",
                (item_id, key, value),
            )
            self.conn.commit()
        except sqlite3.Error:
            self.conn.rollback()
            raise

    def get_item_meta(self, item_id: int, key: str) -> str | None:
        """Return the first meta value for a key, or None."""
        row = self.conn.execute(
            """SELECT meta_value FROM item_meta WHERE item_id = ? AND meta_key = ?
               ORDER BY id LIMIT 1""",
            (item_id, key),
        ).fetchone()
        return row["meta_value"] if row else None

    # --- Term operations ---

    def get_term_by_slug(self, slug: str, kind: TermKind) -> Term | None:
        row = self.conn.execute(
            "SELECT * FROM terms WHERE kind = ? AND slug = ?",
            (kind.value, slug),
        ).fetchone()
        return _row_to_term(row) if row else None

    def get_term(self, term_id: int) -> Term | None:
        row = self.conn.execute(
            "SELECT * FROM terms WHERE id = ?", (term_id,)
        ).fetchone()
        return _row_to_term(row) if row else None

    def insert_term(self, name: str, kind: TermKind, slug: str) -> Term:
        """Create a term.

        Raises:
            TermCreationError: If the name is empty or (kind, slug) is taken.
        """
        if not name.strip():
            raise TermCreationError("A name is required for this term.")
        try:
            cursor = self.conn.execute(
                "INSERT INTO terms (kind, name, slug) VALUES (?, ?, ?)",
                (kind.value, name, slug),
            )
            self.conn.commit()
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise TermCreationError(
                f"A term with slug {slug!r} already exists in {kind.value}"
            ) from e
        return Term(kind=kind, name=name, slug=slug, id=cursor.lastrowid)

    def count_terms(self, kind: TermKind | None = None) -> int:
        if kind is None:
            row = self.conn.execute("SELECT COUNT(*) as cnt FROM terms").fetchone()
        else:
            row = self.conn.execute(
                "SELECT COUNT(*) as cnt FROM terms WHERE kind = ?", (kind.value,)
            ).fetchone()
        return row["cnt"] if row else 0

    def set_item_terms(self, item_id: int, term_ids: list[int], kind: TermKind) -> None:
        """Replace an item's terms of one kind with exactly term_ids."""
        try:
            self.conn.execute(
                "DELETE FROM item_terms WHERE item_id = ? AND kind = ?",
                (item_id, kind.value),
            )
            seen: set[int] = set()
            for position, term_id in enumerate(term_ids):
                if term_id in seen:
                    continue
                seen.add(term_id)
                self.conn.execute(
                    """INSERT INTO item_terms (item_id, term_id, kind, position)
                       VALUES (?, ?, ?, ?)""",
                    (item_id, term_id, kind.value, position),
                )
            self.conn.commit()
        except sqlite3.Error:
            self.conn.rollback()
            raise

    def get_item_terms(self, item_id: int, kind: TermKind) -> list[Term]:
        rows = self.conn.execute(
            """SELECT terms.* FROM item_terms
               JOIN terms ON terms.id = item_terms.term_id
               WHERE item_terms.item_id = ? AND item_terms.kind = ?
               ORDER BY item_terms.position""",
            (item_id, kind.value),
        ).fetchall()
        return [_row_to_term(r) for r in rows]

    # --- Media operations ---

    def store_attachment(
        self,
        item_id: int,
        filename: str,
        content: bytes,
        content_type: str,
        source_url: str | None = None,
    ) -> Attachment:
        """Write media bytes to the uploads directory and record them.

        Raises:
            MediaDownloadError: If the file cannot be written.
        """
        try:
            self.uploads_dir.mkdir(parents=True, exist_ok=True)
            path = _unique_path(self.uploads_dir / f"{item_id}-{filename}")
            path.write_bytes(content)
        except OSError as e:
            raise MediaDownloadError(f"Could not write {filename}: {e}", source_url) from e

        url = f"{self.uploads_url}/{path.name}"
        cursor = self.conn.execute(
            """INSERT INTO attachments (item_id, path, url, content_type, source_url)
               VALUES (?, ?, ?, ?, ?)""",
            (item_id, str(path), url, content_type, source_url),
        )
        self.conn.commit()
        return Attachment(
            id=cursor.lastrowid,
            item_id=item_id,
            path=str(path),
            url=url,
            content_type=content_type,
            source_url=source_url,
        )

    def set_thumbnail(self, item_id: int, attachment_id: int) -> None:
        """Make an attachment the item's featured image, replacing any other."""
        self.conn.execute(
            "UPDATE items SET thumbnail_id = ? WHERE id = ?",
            (attachment_id, item_id),
        )
        self.conn.commit()

    def get_thumbnail(self, item_id: int) -> Attachment | None:
        row = self.conn.execute(
            """SELECT attachments.* FROM items
               JOIN attachments ON attachments.id = items.thumbnail_id
               WHERE items.id = ?""",
            (item_id,),
        ).fetchone()
        return _row_to_attachment(row) if row else None


# --- Helper functions ---


def _unique_path(path: Path) -> Path:
    """Append -1, -2, ... to the stem until the path is free."""
    candidate = path
    counter = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.stem}-{counter}{path.suffix}")
        counter += 1
    return candidate


def _dt_to_str(dt: datetime | None) -> str | None:
    """Convert datetime to ISO string for storage."""
    return dt.isoformat() if dt else None


def _str_to_dt(s: str | None) -> datetime | None:
    """Convert stored ISO string back to datetime."""
    if not s:
        return None
    return datetime.fromisoformat(s)


def _row_to_item(row: sqlite3.Row) -> LocalItem:
    """Convert a database row to a LocalItem dataclass."""
    return LocalItem(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        excerpt=row["excerpt"],
        slug=row["slug"],
        status=row["status"],
        item_type=row["item_type"],
        author_id=row["author_id"],
        date=_str_to_dt(row["date"]),
        date_gmt=_str_to_dt(row["date_gmt"]),
        created_at=_str_to_dt(row["created_at"]) or datetime.utcnow(),
        thumbnail_id=row["thumbnail_id"],
    )


def _row_to_term(row: sqlite3.Row) -> Term:
    return Term(
        id=row["id"],
        kind=TermKind(row["kind"]),
        name=row["name"],
        slug=row["slug"],
    )


def _row_to_attachment(row: sqlite3.Row) -> Attachment:
    return Attachment(
        id=row["id"],
        item_id=row["item_id"],
        path=row["path"],
        url=row["url"],
        content_type=row["content_type"],
        source_url=row["source_url"],
    )
