import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path

import pytest

import bookmarker.store as store_mod
from bookmarker.errors import DataIntegrityError, SourceNotFound, SourceReadError
from bookmarker.model import Bookmark
from bookmarker.store import BookmarkStore, moz_time_to_datetime


def test_missing_source_fails_at_construction():
    with pytest.raises(SourceNotFound, match="Database not found"):
        BookmarkStore("/nonexistent/places.sqlite")


def test_directory_is_not_a_valid_source(tmp_path: Path):
    with pytest.raises(SourceNotFound):
        BookmarkStore(tmp_path)


def test_construction_does_not_read(places_db: Path, monkeypatch):
    calls = []
    monkeypatch.setattr(store_mod, "working_copy", lambda p: calls.append(p))
    BookmarkStore(places_db)
    assert calls == []


def test_bookmarks_extracts_fields(places_db: Path):
    db = BookmarkStore(places_db)
    bms = db.bookmarks()
    assert all(isinstance(b, Bookmark) for b in bms)
    bm = next(b for b in bms if b.title == "Bookmark 1")
    assert bm.id == 100
    assert bm.url == "https://example.com/1"
    assert bm.folder == "menu"
    assert bm.path == ("menu",)
    assert bm.date_added == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)


def test_bookmarks_are_newest_first_with_undated_last(make_places_db):
    path = make_places_db(bookmarks=[
        {"title": "old", "url": "https://a.example/", "date_added": 1_000_000},
        {"title": "undated", "url": "https://b.example/", "date_added": None},
        {"title": "new", "url": "https://c.example/", "date_added": 9_000_000},
    ])
    titles = [b.title for b in BookmarkStore(path).bookmarks()]
    assert titles == ["new", "old", "undated"]


def test_bookmarks_are_cached(places_db: Path, monkeypatch):
    db = BookmarkStore(places_db)
    first = db.bookmarks()

    def _boom(_path):
        raise AssertionError("source read twice")

    monkeypatch.setattr(store_mod, "working_copy", _boom)
    assert db.bookmarks() is first
    assert db.count() == 30


def test_concurrent_first_access_materializes_once(places_db: Path, monkeypatch):
    db = BookmarkStore(places_db)
    real = db._materialize
    calls = []

    def _counting():
        calls.append(1)
        return real()

    monkeypatch.setattr(db, "_materialize", _counting)
    results = []
    threads = [threading.Thread(target=lambda: results.append(db.bookmarks())) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(calls) == 1
    assert all(r is results[0] for r in results)


def test_source_file_is_not_modified(places_db: Path):
    before = places_db.read_bytes()
    BookmarkStore(places_db).bookmarks()
    assert places_db.read_bytes() == before


def test_place_urls_are_excluded(make_places_db):
    path = make_places_db(bookmarks=[
        {"title": "Smart", "url": "place:type=7&sort=8"},
        {"title": "Real", "url": "https://example.com/"},
    ])
    assert [b.title for b in BookmarkStore(path).bookmarks()] == ["Real"]


def test_folders_are_sorted_unique(places_db: Path):
    assert BookmarkStore(places_db).folders() == ["menu", "toolbar"]


def test_by_folder_immediate_parent(places_db: Path):
    results = BookmarkStore(places_db).by_folder("toolbar")
    assert len(results) == 15
    assert all(b.folder == "toolbar" for b in results)
    assert BookmarkStore(places_db).by_folder("nonexistent") == []


def test_nested_path_and_hierarchy_aware_folder_filter(make_places_db):
    path = make_places_db(
        bookmarks=[
            {"title": "Deep Bookmark", "url": "https://rubygems.org/", "parent": 11},
            {"title": "Shallow", "url": "https://ruby-lang.org/", "parent": 10},
        ],
        extra_folders=[
            {"id": 10, "parent": 3, "title": "ruby"},
            {"id": 11, "parent": 10, "title": "gems"},
        ],
    )
    db = BookmarkStore(path)
    deep = next(b for b in db.bookmarks() if b.title == "Deep Bookmark")
    assert deep.path == ("toolbar", "ruby", "gems")
    assert deep.folder == "gems"
    assert deep.full_path == "toolbar > ruby > gems"

    assert {b.title for b in db.by_folder("ruby")} == {"Deep Bookmark", "Shallow"}
    assert {b.title for b in db.by_folder("toolbar")} == {"Deep Bookmark", "Shallow"}
    assert [b.title for b in db.by_folder("gems")] == ["Deep Bookmark"]
    assert db.folders() == ["gems", "ruby"]


def test_orphan_bookmark_has_no_folder(make_places_db):
    path = make_places_db(bookmarks=[{"title": "Orphan", "url": "https://example.com/orphan", "parent": 999}])
    db = BookmarkStore(path)
    bm = db.bookmarks()[0]
    assert bm.folder is None
    assert bm.path == ()
    assert bm.formatted(1) == "1. Orphan\n   https://example.com/orphan"
    assert db.search("orphan") == [bm]
    assert db.search("nonexistent_folder") == []


def test_untitled_bookmark_and_null_date(make_places_db):
    path = make_places_db(bookmarks=[{"title": None, "url": "https://example.com/notitle", "date_added": None}])
    bm = BookmarkStore(path).bookmarks()[0]
    assert bm.title is None
    assert bm.date_added is None


def test_search_matches_title_url_and_path_case_insensitively(places_db: Path):
    db = BookmarkStore(places_db)
    assert "Bookmark 1" in [b.title for b in db.search("Bookmark 1")]
    assert [b.url for b in db.search("example.com/5")] == ["https://example.com/5"]
    assert len(db.search("toolbar")) == 15
    assert db.search("bookmark 1") == db.search("BOOKMARK 1") == db.search("Bookmark 1")
    assert db.search("zzz_nonexistent") == []


def test_search_term_is_matched_verbatim(places_db: Path):
    db = BookmarkStore(places_db)
    # The empty string is a substring of everything.
    assert db.search("") == list(db.bookmarks())
    # Every title is "Bookmark N", so a single space matches them all.
    assert len(db.search(" ")) == 30
    # Surrounding whitespace is part of the term, not trimmed away.
    assert db.search(" Bookmark 1") == []
    assert db.search("Bookmark 1 ") == []
    assert db.search("Bookmark 1") != []


def test_cycle_in_hierarchy_propagates_from_bookmarks(make_places_db):
    path = make_places_db(
        bookmarks=[{"title": "Loop", "url": "https://loop.example/", "parent": 10}],
        extra_folders=[
            {"id": 10, "parent": 11, "title": "a"},
            {"id": 11, "parent": 10, "title": "b"},
        ],
    )
    db = BookmarkStore(path, max_depth=16)
    with pytest.raises(DataIntegrityError):
        db.bookmarks()


def _tagged_places(make_places_db, **kw):
    return make_places_db(
        bookmarks=[
            {"title": "Camera", "url": "https://fstoppers.com/", "parent": 3},
            {"title": "Camera [tag copy]", "url": "https://fstoppers.com/", "parent": 30},
        ],
        extra_folders=[
            {"id": 4, "parent": 1, "title": "tags"},
            {"id": 30, "parent": 4, "title": "video"},
        ],
        **kw,
    )


def test_tag_container_entries_are_kept_by_default(make_places_db):
    db = BookmarkStore(_tagged_places(make_places_db, roots={"menu": 2, "toolbar": 3, "tags": 4}))
    assert db.count() == 2
    assert {b.full_path for b in db.bookmarks()} == {"toolbar", "tags > video"}
    assert db.folders() == ["toolbar", "video"]
    assert [b.title for b in db.by_folder("video")] == ["Camera [tag copy]"]


def test_tag_container_entries_can_be_skipped(make_places_db):
    path = _tagged_places(make_places_db, roots={"menu": 2, "toolbar": 3, "tags": 4})
    db = BookmarkStore(path, include_tag_entries=False)
    assert [b.title for b in db.bookmarks()] == ["Camera"]
    assert db.by_folder("video") == []


def test_tags_root_detected_by_guid_without_roots_table(make_places_db):
    path = make_places_db(
        bookmarks=[{"title": "Tagged", "url": "https://x.example/", "parent": 30}],
        extra_folders=[
            {"id": 4, "parent": 1, "title": "tags", "guid": "tags________"},
            {"id": 30, "parent": 4, "title": "video"},
        ],
    )
    assert BookmarkStore(path, include_tag_entries=False).bookmarks() == ()
    assert len(BookmarkStore(path).bookmarks()) == 1


def test_non_database_file_raises_read_error(tmp_path: Path):
    bogus = tmp_path / "places.sqlite"
    bogus.write_text("not a database", encoding="utf-8")
    with pytest.raises(SourceReadError):
        BookmarkStore(bogus).bookmarks()


def test_wal_sidecar_changes_are_visible(tmp_path: Path, make_places_db):
    path = make_places_db(bookmarks=[])
    conn = sqlite3.connect(path)
    try:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA wal_autocheckpoint=0")
        conn.execute("INSERT INTO moz_places(id,url,title) VALUES(1,'https://wal.example/','wal')")
        conn.execute(
            "INSERT INTO moz_bookmarks(id,type,fk,parent,position,title,dateAdded) VALUES(100,1,1,2,0,'From WAL',1)"
        )
        conn.commit()
        assert Path(str(path) + "-wal").exists()
        assert [b.title for b in BookmarkStore(path).bookmarks()] == ["From WAL"]
    finally:
        conn.close()


def test_moz_time_to_datetime():
    assert moz_time_to_datetime(None) is None
    assert moz_time_to_datetime(1_700_000_000_123_456) == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)
