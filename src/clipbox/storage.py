import logging
import os
import sqlite3
from datetime import datetime
from pathlib import Path

from clipbox.config import Settings
from clipbox.exceptions import BufferOutOfRangeError, EntryNotFoundError, IconError, InvalidEntryIdError
from clipbox.icons import IconStore, detect_format
from clipbox.models import BUFFER_COUNT, MAX_CONTENT_SIZE, ClipboardEntry
from clipbox.preview import render_preview
from clipbox.utils import ensure_dirs, strip_content

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

SCHEMA = """
CREATE TABLE IF NOT EXISTS clipboard (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    buffer_id  INTEGER NOT NULL CHECK(buffer_id IN (1, 2, 3, 4, 5)),
    is_pinned  INTEGER DEFAULT 0,
    preview    TEXT NOT NULL DEFAULT '',
    content    BLOB NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS current_buffer (
    id        INTEGER PRIMARY KEY CHECK(id = 1),
    buffer_id INTEGER DEFAULT 1
);

CREATE INDEX IF NOT EXISTS idx_buffer_pinned ON clipboard(buffer_id, is_pinned DESC);
CREATE INDEX IF NOT EXISTS idx_buffer_id ON clipboard(buffer_id);
CREATE INDEX IF NOT EXISTS idx_pinned ON clipboard(is_pinned);
CREATE INDEX IF NOT EXISTS idx_content ON clipboard(content);

DELETE FROM current_buffer WHERE id != 1;
INSERT OR IGNORE INTO current_buffer (id, buffer_id) VALUES (1, 1);
"""


def _check_entry_id(entry_id: int) -> None:
    if entry_id <= 0:
        raise InvalidEntryIdError(f"invalid id: {entry_id}")


def _check_buffer_id(buffer_id: int) -> None:
    if not 1 <= buffer_id <= BUFFER_COUNT:
        raise BufferOutOfRangeError(buffer_id, BUFFER_COUNT)


class StorageManager:
    """Clipboard history persisted in SQLite.

    The manager keeps a single connection, so every read and write of one
    process is serialized through it. Icons live in an IconStore next to the
    database and are removed together with their entries.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        settings: Settings | None = None,
        icons: IconStore | None = None,
    ):
        self._settings = settings or Settings()
        self._db_path = str(db_path) if db_path else str(self._settings.resolved_db_path())
        if self._db_path != MEMORY_DB:
            ensure_dirs(Path(self._db_path).parent)
        if icons is None:
            icons_dir = self._settings.icons_dir() if db_path is None else Path(self._db_path).parent / "icons"
            icons = IconStore(icons_dir)
        self._icons = icons
        self._conn = sqlite3.connect(self._db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self.init_db()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def icons(self) -> IconStore:
        return self._icons

    def init_db(self) -> None:
        self._conn.executescript(SCHEMA)
        self._conn.commit()

    def current_buffer(self) -> int:
        try:
            row = self._conn.execute("SELECT buffer_id FROM current_buffer LIMIT 1").fetchone()
        except sqlite3.Error as exc:
            logger.warning("Failed to read current buffer: %s, using buffer 1", exc)
            return 1
        if row is None or row["buffer_id"] is None or not 1 <= row["buffer_id"] <= BUFFER_COUNT:
            if row is not None:
                logger.warning("Invalid current buffer %r, using buffer 1", row["buffer_id"])
            return 1
        return row["buffer_id"]

    def switch_buffer(self, buffer_id: int) -> int:
        _check_buffer_id(buffer_id)
        self._conn.execute(
            "INSERT OR REPLACE INTO current_buffer (id, buffer_id) VALUES (1, ?)",
            (buffer_id,),
        )
        self._conn.commit()
        return buffer_id

    def next_buffer(self) -> int:
        return self.switch_buffer(self.current_buffer() % BUFFER_COUNT + 1)

    def previous_buffer(self) -> int:
        return self.switch_buffer((self.current_buffer() - 2) % BUFFER_COUNT + 1)

    def put(self, content: bytes | str, buffer_id: int | None = None) -> ClipboardEntry | None:
        """Store new clipboard content.

        Oversized, blank and too-short content is ignored and None is
        returned. Unpinned copies of the same bytes among the most recent
        ``max_dedupe_search`` unpinned entries of the buffer are replaced by
        the new entry, and the buffer is then trimmed to ``max_items``
        unpinned entries.

        Args:
            content: Raw clipboard bytes.
            buffer_id: Target buffer, the current buffer when omitted.

        Returns:
            The stored entry, or None when nothing was stored.
        """
        if isinstance(content, str):
            content = content.encode("utf-8")
        if len(content) > MAX_CONTENT_SIZE:
            logger.debug("Ignoring %d byte clip above the size limit", len(content))
            return None

        stripped = strip_content(content)
        if not stripped:
            return None
        min_length = self._settings.min_store_length
        if min_length > 0 and len(stripped) < min_length:
            return None

        if buffer_id is None:
            buffer_id = self.current_buffer()
        else:
            _check_buffer_id(buffer_id)

        self._remove_duplicates(buffer_id, content)

        cursor = self._conn.execute(
            "INSERT INTO clipboard (buffer_id, content, preview) VALUES (?, ?, '')",
            (buffer_id, content),
        )
        entry_id = cursor.lastrowid

        icon_path = None
        if self._settings.show_image_icons:
            icon_path = self._create_icon(entry_id, content)

        preview = render_preview(entry_id, content, False, icon_path, self._settings)
        self._conn.execute("UPDATE clipboard SET preview = ? WHERE id = ?", (preview, entry_id))

        if self._settings.max_items > 0:
            self.purge_old(buffer_id, self._settings.max_items)

        self._conn.commit()
        logger.debug("Stored entry %d in buffer %d", entry_id, buffer_id)
        return self.get_entry(entry_id)

    def _remove_duplicates(self, buffer_id: int, content: bytes) -> list[int]:
        window = self._settings.max_dedupe_search
        if window <= 0:
            return []
        rows = self._conn.execute(
            """SELECT id FROM (
                   SELECT id, content FROM clipboard
                   WHERE buffer_id = ? AND is_pinned = 0
                   ORDER BY id DESC
                   LIMIT ?
               )
               WHERE content = ?""",
            (buffer_id, window, content),
        ).fetchall()
        duplicate_ids = [row["id"] for row in rows]
        self._delete_rows(duplicate_ids)
        return duplicate_ids

    def _delete_rows(self, entry_ids: list[int]) -> None:
        if not entry_ids:
            return
        placeholders = ",".join("?" * len(entry_ids))
        self._conn.execute(f"DELETE FROM clipboard WHERE id IN ({placeholders})", entry_ids)
        for entry_id in entry_ids:
            self._delete_icon(entry_id)

    def _create_icon(self, entry_id: int, content: bytes) -> str | None:
        _, is_image = detect_format(content)
        if not is_image:
            return None
        try:
            return self._icons.generate_icon(entry_id, content)
        except IconError as exc:
            logger.warning("Failed to process image icon for id %d: %s", entry_id, exc)
            return None

    def _delete_icon(self, entry_id: int) -> None:
        try:
            self._icons.delete_icon(entry_id)
        except OSError as exc:
            logger.warning("Failed to delete icon for id %d: %s", entry_id, exc)

    def purge_old(self, buffer_id: int, keep_count: int) -> int:
        """Delete the oldest unpinned entries of a buffer beyond keep_count.

        Pinned entries are neither counted nor deleted.
        """
        rows = self._conn.execute(
            """SELECT id FROM clipboard
               WHERE buffer_id = ? AND is_pinned = 0
               ORDER BY id DESC
               LIMIT -1 OFFSET ?""",
            (buffer_id, keep_count),
        ).fetchall()
        entry_ids = [row["id"] for row in rows]
        self._delete_rows(entry_ids)
        if entry_ids:
            self._conn.commit()
        return len(entry_ids)

    def get_entry(self, entry_id: int) -> ClipboardEntry | None:
        row = self._conn.execute("SELECT * FROM clipboard WHERE id = ?", (entry_id,)).fetchone()
        return self._row_to_entry(row) if row else None

    def get_content(self, entry_id: int) -> bytes:
        _check_entry_id(entry_id)
        row = self._conn.execute("SELECT content FROM clipboard WHERE id = ?", (entry_id,)).fetchone()
        if row is None:
            raise EntryNotFoundError(entry_id)
        return bytes(row["content"])

    def toggle_pin(self, entry_id: int) -> ClipboardEntry:
        _check_entry_id(entry_id)
        row = self._conn.execute(
            "SELECT is_pinned, content FROM clipboard WHERE id = ?", (entry_id,)
        ).fetchone()
        if row is None:
            raise EntryNotFoundError(entry_id)

        pinned = not row["is_pinned"]
        content = bytes(row["content"])
        icon_path = self._icons.icon_path(entry_id) if self._settings.show_image_icons else None
        preview = render_preview(entry_id, content, pinned, icon_path, self._settings)
        self._conn.execute(
            "UPDATE clipboard SET is_pinned = ?, preview = ? WHERE id = ?",
            (int(pinned), preview, entry_id),
        )
        self._conn.commit()
        return self.get_entry(entry_id)

    def delete_entry(self, entry_id: int) -> None:
        _check_entry_id(entry_id)
        cursor = self._conn.execute("DELETE FROM clipboard WHERE id = ?", (entry_id,))
        if cursor.rowcount == 0:
            self._conn.rollback()
            raise EntryNotFoundError(entry_id)
        self._conn.commit()
        self._delete_icon(entry_id)

    def get_recent(self, buffer_id: int | None = None, limit: int = 25) -> list[ClipboardEntry]:
        if buffer_id is None:
            buffer_id = self.current_buffer()
        rows = self._conn.execute(
            "SELECT * FROM clipboard WHERE buffer_id = ? ORDER BY id DESC LIMIT ?",
            (buffer_id, limit),
        ).fetchall()
        return [self._row_to_entry(r) for r in rows]

    def get_previews(self, buffer_id: int, limit: int, pinned_only: bool = False) -> list[str]:
        """Cached rofi rows of a buffer, newest first."""
        query = "SELECT preview FROM clipboard WHERE buffer_id = ?"
        if pinned_only:
            query += " AND is_pinned = 1"
        query += " ORDER BY id DESC LIMIT ?"
        rows = self._conn.execute(query, (buffer_id, limit)).fetchall()
        return [row["preview"] for row in rows]

    def count(self, buffer_id: int | None = None, pinned: bool | None = None) -> int:
        query = "SELECT COUNT(*) AS cnt FROM clipboard WHERE 1 = 1"
        params: list = []
        if buffer_id is not None:
            query += " AND buffer_id = ?"
            params.append(buffer_id)
        if pinned is not None:
            query += " AND is_pinned = ?"
            params.append(int(pinned))
        return self._conn.execute(query, params).fetchone()["cnt"]

    def rebuild_previews(self) -> int:
        """Re-render every cached preview from the current settings.

        Missing icons are generated for image entries when icons are enabled.
        """
        rows = self._conn.execute("SELECT id, is_pinned FROM clipboard ORDER BY id").fetchall()
        updated = 0
        for row in rows:
            entry_id = row["id"]
            content = self.get_content(entry_id)
            icon_path = None
            if self._settings.show_image_icons:
                icon_path = self._icons.icon_path(entry_id) or self._create_icon(entry_id, content)
            preview = render_preview(entry_id, content, bool(row["is_pinned"]), icon_path, self._settings)
            self._conn.execute("UPDATE clipboard SET preview = ? WHERE id = ?", (preview, entry_id))
            updated += 1
        self._conn.commit()
        logger.debug("Updated %d previews", updated)
        return updated

    def _db_size(self) -> int:
        if self._db_path == MEMORY_DB:
            return 0
        return os.path.getsize(self._db_path)

    def vacuum(self) -> tuple[int, int]:
        """Rebuild the database file to reclaim free pages.

        Returns:
            Database file size in bytes before and after the VACUUM.
        """
        self._conn.commit()
        self._conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
        size_before = self._db_size()
        self._conn.execute("VACUUM")
        self._conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
        size_after = self._db_size()
        return size_before, size_after

    def close(self) -> None:
        self._conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> ClipboardEntry:
        created_at = row["created_at"]
        return ClipboardEntry(
            id=row["id"],
            buffer_id=row["buffer_id"],
            content=bytes(row["content"]),
            preview=row["preview"],
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(),
            pinned=bool(row["is_pinned"]),
        )
