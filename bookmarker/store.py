from __future__ import annotations

import os
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import SourceNotFound, SourceReadError
from .log import get_logger, log_elapsed
from .model import Bookmark
from .places_db import LeafRow, PlacesDB
from .resolver import MAX_DEPTH, descends_from, index_nodes, resolve_path
from .snapshot import working_copy

log = get_logger(__name__)


class BookmarkStore:
    """The bookmark collection of one ``places.sqlite`` snapshot.

    The source is checked when the store is built but read only on the
    first call to :meth:`bookmarks`; the result is cached for the life of
    the store. Build a new store to pick up a newer snapshot.
    """

    def __init__(
        self,
        db_path: Path | str,
        *,
        max_depth: int = MAX_DEPTH,
        include_tag_entries: bool = True,
    ):
        self.db_path = Path(db_path)
        self.max_depth = max_depth
        self.include_tag_entries = include_tag_entries
        self._bookmarks: Optional[Tuple[Bookmark, ...]] = None
        self._lock = threading.Lock()
        self._validate()

    def bookmarks(self) -> Tuple[Bookmark, ...]:
        """All bookmarks, newest first; bookmarks without a date come last."""
        cached = self._bookmarks
        if cached is not None:
            return cached
        with self._lock:
            if self._bookmarks is None:
                self._bookmarks = self._materialize()
            return self._bookmarks

    def count(self) -> int:
        return len(self.bookmarks())

    def search(self, term: str) -> List[Bookmark]:
        """Case-insensitive substring match on title, URL or full path."""
        needle = term.casefold()
        return [
            b
            for b in self.bookmarks()
            if needle in (b.title or "").casefold()
            or needle in b.url.casefold()
            or needle in b.full_path.casefold()
        ]

    def folders(self) -> List[str]:
        return sorted({b.folder for b in self.bookmarks() if b.folder})

    def by_folder(self, name: str) -> List[Bookmark]:
        # Any level counts, so a parent folder also lists its subfolders' bookmarks.
        return [b for b in self.bookmarks() if b.folder == name or name in b.path]

    def _validate(self) -> None:
        if not self.db_path.is_file() or not os.access(self.db_path, os.R_OK):
            raise SourceNotFound(self.db_path)

    def _materialize(self) -> Tuple[Bookmark, ...]:
        with log_elapsed(log, f"Reading {self.db_path}"):
            try:
                with working_copy(self.db_path) as copy, PlacesDB(copy) as db:
                    nodes = index_nodes(db.read_nodes())
                    leaves = db.read_leaves()
                    tags_root = db.root_ids.get("tags")
            except (sqlite3.DatabaseError, OSError) as e:
                raise SourceReadError(f"Cannot read bookmarks from {self.db_path}: {e}") from e

        out: List[Bookmark] = []
        skipped = 0
        for leaf in leaves:
            if (
                not self.include_tag_entries
                and tags_root is not None
                and descends_from(leaf.parent_id, tags_root, nodes, max_depth=self.max_depth)
            ):
                # Opt-in: tag containers hold a duplicate row per tagged bookmark.
                skipped += 1
                continue
            out.append(self._to_bookmark(leaf, resolve_path(leaf.parent_id, nodes, max_depth=self.max_depth)))
        if skipped:
            log.debug("Skipped %d tag-container entries", skipped)

        out.sort(key=_newest_first)
        log.info("Loaded %d bookmarks from %s", len(out), self.db_path)
        return tuple(out)

    @staticmethod
    def _to_bookmark(leaf: LeafRow, path: List[str]) -> Bookmark:
        return Bookmark(
            id=leaf.id,
            title=leaf.title,
            url=leaf.url,
            folder=path[-1] if path else None,
            path=tuple(path),
            date_added=moz_time_to_datetime(leaf.date_added_us),
        )


def moz_time_to_datetime(value: Optional[int]) -> Optional[datetime]:
    # Firefox PRTime is microseconds since the Unix epoch.
    if value is None:
        return None
    return datetime.fromtimestamp(int(value) // 1_000_000, tz=timezone.utc)


def _newest_first(b: Bookmark):
    if b.date_added is None:
        return (1, 0.0)
    return (0, -b.date_added.timestamp())
