from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from .resolver import TYPE_BOOKMARK, Node

_ROOT_GUID_TO_NAME = {
    "menu________": "menu",
    "toolbar_____": "toolbar",
    "tags________": "tags",
    "unfiled_____": "unfiled",
    "mobile______": "mobile",
}


@dataclass(frozen=True)
class LeafRow:
    id: int
    parent_id: int
    title: Optional[str]
    url: str
    date_added_us: Optional[int]


class PlacesDB:
    """Read-only view over a ``places.sqlite`` file (normally a private copy)."""

    def __init__(self, db_path: Path | str, *, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self.conn: sqlite3.Connection | None = None
        self.root_ids: Dict[str, int] = {}

    def __enter__(self) -> "PlacesDB":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        # A copy with a -wal sidecar needs write access so SQLite can replay it.
        mode = "ro" if self.readonly else "rw"
        self.conn = sqlite3.connect(f"file:{self.db_path.as_posix()}?mode={mode}", uri=True)
        self.conn.row_factory = sqlite3.Row
        try:
            self.root_ids = self._discover_root_ids()
        except sqlite3.DatabaseError:
            self.close()
            raise

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def read_nodes(self) -> List[Node]:
        rows = self._cursor().execute(
            "SELECT id, parent, title, type FROM moz_bookmarks ORDER BY id"
        ).fetchall()
        return [
            Node(
                id=int(r["id"]),
                parent=int(r["parent"] or 0),
                title=_clean_title(r["title"]),
                type=int(r["type"] or 0),
            )
            for r in rows
        ]

    def read_leaves(self) -> List[LeafRow]:
        rows = self._cursor().execute(
            """
            SELECT b.id, b.parent, b.title, b.dateAdded, p.url
            FROM moz_bookmarks b
            JOIN moz_places p ON p.id = b.fk
            WHERE b.type = ?
            ORDER BY b.id
            """,
            (TYPE_BOOKMARK,),
        ).fetchall()
        out: List[LeafRow] = []
        for r in rows:
            url = (r["url"] or "").strip()
            if not url or url.startswith("place:"):
                continue
            date_added = r["dateAdded"]
            out.append(
                LeafRow(
                    id=int(r["id"]),
                    parent_id=int(r["parent"] or 0),
                    title=_clean_title(r["title"]),
                    url=url,
                    date_added_us=int(date_added) if date_added is not None else None,
                )
            )
        return out

    def _discover_root_ids(self) -> Dict[str, int]:
        c = self._cursor()
        out: Dict[str, int] = {}
        if self._has_table("moz_bookmarks_roots"):
            for r in c.execute("SELECT root_name, folder_id FROM moz_bookmarks_roots").fetchall():
                out[str(r["root_name"])] = int(r["folder_id"])
        if not out and self._has_column("moz_bookmarks", "guid"):
            # Newer desktop profiles lack moz_bookmarks_roots; roots have stable GUIDs.
            for r in c.execute("SELECT id, guid FROM moz_bookmarks WHERE guid IS NOT NULL").fetchall():
                name = _ROOT_GUID_TO_NAME.get(str(r["guid"]))
                if name:
                    out[name] = int(r["id"])
        return out

    def _has_table(self, name: str) -> bool:
        row = self._cursor().execute(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name=? LIMIT 1",
            (name,),
        ).fetchone()
        return row is not None

    def _has_column(self, table_name: str, column_name: str) -> bool:
        rows = self._cursor().execute(f"PRAGMA table_info({table_name})").fetchall()
        return any(str(r[1]) == column_name for r in rows)

    def _cursor(self) -> sqlite3.Cursor:
        if self.conn is None:
            raise RuntimeError("PlacesDB is not open")
        return self.conn.cursor()


def _clean_title(value) -> Optional[str]:
    return (value or "").strip() or None
