import os
import sqlite3
import sys
from pathlib import Path

import pytest

# Allow `import bookmarker` without installing the package.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

_SCHEMA = """
CREATE TABLE moz_places (
  id INTEGER PRIMARY KEY,
  url LONGVARCHAR,
  title LONGVARCHAR,
  hidden INTEGER DEFAULT 0 NOT NULL,
  guid TEXT,
  foreign_count INTEGER DEFAULT 0 NOT NULL
);
CREATE TABLE moz_bookmarks (
  id INTEGER PRIMARY KEY,
  type INTEGER,
  fk INTEGER DEFAULT NULL,
  parent INTEGER,
  position INTEGER,
  title LONGVARCHAR,
  dateAdded INTEGER,
  lastModified INTEGER,
  guid TEXT
);
"""

BASE_TS = 1_700_000_000_000_000
_MISSING = object()


def default_bookmarks():
    return [
        {"title": f"Bookmark {i}", "url": f"https://example.com/{i}", "parent": 2 if i <= 15 else 3}
        for i in range(1, 31)
    ]


def write_places_db(path: Path, *, bookmarks=None, extra_folders=(), roots=None) -> Path:
    """Build a minimal places.sqlite: root(1) -> menu(2), toolbar(3), plus extras.

    Bookmark i (0-based) gets id 100 + i and place id i + 1; dateAdded falls by
    one second per bookmark unless given explicitly (None stores NULL).
    """
    bookmarks = default_bookmarks() if bookmarks is None else bookmarks
    conn = sqlite3.connect(path)
    try:
        conn.executescript(_SCHEMA)
        conn.executemany(
            "INSERT INTO moz_bookmarks(id,type,parent,position,title) VALUES(?,2,?,?,?)",
            [(1, 0, 0, "root"), (2, 1, 0, "menu"), (3, 1, 1, "toolbar")],
        )
        for f in extra_folders:
            conn.execute(
                "INSERT INTO moz_bookmarks(id,type,parent,position,title,guid) VALUES(?,2,?,?,?,?)",
                (f["id"], f["parent"], f.get("position", 0), f.get("title"), f.get("guid")),
            )
        for i, bm in enumerate(bookmarks):
            conn.execute(
                "INSERT INTO moz_places(id,url,title) VALUES(?,?,?)",
                (i + 1, bm["url"], bm.get("title")),
            )
            date = bm.get("date_added", _MISSING)
            if date is _MISSING:
                date = BASE_TS - i * 1_000_000
            conn.execute(
                "INSERT INTO moz_bookmarks(id,type,fk,parent,position,title,dateAdded) VALUES(?,1,?,?,?,?,?)",
                (100 + i, i + 1, bm.get("parent", 2), i, bm.get("title"), date),
            )
        if roots:
            conn.execute("CREATE TABLE moz_bookmarks_roots (root_name TEXT PRIMARY KEY, folder_id INTEGER)")
            conn.executemany("INSERT INTO moz_bookmarks_roots(root_name, folder_id) VALUES(?, ?)", list(roots.items()))
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def make_places_db(tmp_path):
    counter = {"n": 0}

    def _make(**kwargs) -> Path:
        counter["n"] += 1
        d = tmp_path / f"profile{counter['n']}"
        d.mkdir()
        return write_places_db(d / "places.sqlite", **kwargs)

    return _make


@pytest.fixture
def places_db(make_places_db) -> Path:
    return make_places_db()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Host settings must not leak into tests."""
    for key in list(os.environ):
        if key.startswith("BOOKMARKER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
