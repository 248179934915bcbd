from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Note:
    id: int
    text: str
    created_at: str | None = None


def _row_to_note(row: sqlite3.Row) -> Note:
    return Note(id=int(row["id"]), text=row["text"], created_at=row["created_at"])


class NoteStore:
    """SQLite table of notes. The row id is the key the vector index uses."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = str(db_path)

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init_schema(self) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS notes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    text TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

    def insert_note(self, text: str) -> Optional[Note]:
        with self.connect() as conn:
            rows = conn.execute(
                "INSERT INTO notes (text) VALUES (?) RETURNING *", (text,)
            ).fetchall()
        if not rows:
            return None
        return _row_to_note(rows[0])

    def get_notes(self, ids: Iterable[str | int]) -> List[Note]:
        keys: List[int] = []
        for raw in ids:
            try:
                keys.append(int(raw))
            except (TypeError, ValueError):
                logger.warning("Skipping non-integer note id %r", raw)
        if not keys:
            return []

        placeholders = ", ".join("?" for _ in keys)
        with self.connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM notes WHERE id IN ({placeholders})", keys
            ).fetchall()
        return [_row_to_note(row) for row in rows]

    def delete_note(self, note_id: int) -> bool:
        with self.connect() as conn:
            cursor = conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))
        return cursor.rowcount > 0

    def count_notes(self) -> int:
        with self.connect() as conn:
            (count,) = conn.execute("SELECT COUNT(*) FROM notes").fetchone()
        return int(count)


__all__ = ["Note", "NoteStore"]
