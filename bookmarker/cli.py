from __future__ import annotations

import argparse
import sys
from contextlib import ExitStack
from typing import List, Sequence, TextIO

from . import __version__
from .color import Palette
from .config import INPUT_MODES, Settings, load_settings
from .errors import BookmarkerError, ConfigError, DataIntegrityError
from .exporter import FORMATS, exporter_for
from .log import LogConfig, get_logger, setup_logging
from .model import Bookmark
from .profiles import ProfileFinder
from .store import BookmarkStore
from .terminal import TerminalKeys

log = get_logger(__name__)


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid positive integer: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value!r}")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bookmarker",
        description="Browse, search and export Firefox bookmarks from the terminal.",
    )
    p.add_argument("-V", "--version", action="store_true", help="Show version and exit.")
    p.add_argument("--config", default=None, help="YAML config file (optional). Env vars override defaults.")
    p.add_argument("-d", "--database", default=None, help="Path to places.sqlite (default: detected Firefox profile).")
    p.add_argument("-s", "--search", default=None, metavar="TERM", help="Search bookmarks by title, URL, or folder.")
    p.add_argument("-f", "--folder", default=None, metavar="NAME", help="Show bookmarks in a folder (any depth).")
    p.add_argument("--folders", action="store_true", help="List all bookmark folders.")
    p.add_argument("-n", "--per-page", type=_positive_int, default=None, metavar="NUM", help="Bookmarks per page (default: 25).")
    p.add_argument("--profiles", action="store_true", help="List Firefox profiles that have a bookmarks database.")
    p.add_argument("-c", "--count", action="store_true", help="Show total bookmark count and exit.")
    p.add_argument("-e", "--export", default="stdout", choices=sorted(FORMATS), help="Output format (default: interactive pager).")
    p.add_argument("--input-mode", default=None, choices=INPUT_MODES, help="Pager input: single keys, whole lines, or auto.")
    p.add_argument("--log-level", default=None, help="DEBUG/INFO/WARNING/ERROR (overrides env/config).")
    p.add_argument("--no-color", action="store_true", help="Disable colored output.")
    return p


def main(
    argv: Sequence[str] | None = None,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    args = build_parser().parse_args(argv)
    try:
        cfg = load_settings(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=stderr)
        return 1
    if args.log_level:
        cfg.log_level = args.log_level
    if args.no_color:
        cfg.no_color = True
    if args.per_page:
        cfg.per_page = args.per_page
    if args.input_mode:
        cfg.input_mode = args.input_mode
    if args.database:
        cfg.database = args.database
    setup_logging(LogConfig(level=cfg.log_level, no_color=cfg.no_color), stderr)

    try:
        return _run(args, cfg, stdin, stdout)
    except DataIntegrityError as e:
        log.error("Bookmark hierarchy is corrupt: %s", e)
        print(f"Error: {e}", file=stderr)
        return 1
    except BookmarkerError as e:
        print(f"Error: {e}", file=stderr)
        return 1


def _run(args, cfg: Settings, stdin: TextIO, stdout: TextIO) -> int:
    if args.version:
        print(f"bookmarker {__version__}", file=stdout)
        return 0
    if args.profiles:
        return _list_profiles(stdout)

    db_path = cfg.database or ProfileFinder().default_database()
    store = BookmarkStore(db_path, max_depth=cfg.max_depth, include_tag_entries=cfg.include_tag_entries)

    if args.count:
        print(f"Total bookmarks: {store.count()}", file=stdout)
        return 0
    if args.folders:
        return _list_folders(store, stdout)

    bookmarks = _select(store, args)
    if args.export != "stdout":
        exporter_for(args.export, bookmarks, output=stdout).export()
        return 0
    return _page(bookmarks, cfg, stdin, stdout)


def _select(store: BookmarkStore, args) -> Sequence[Bookmark]:
    if args.search is not None:
        return store.search(args.search)
    if args.folder is not None:
        return store.by_folder(args.folder)
    return store.bookmarks()


def _page(bookmarks: Sequence[Bookmark], cfg: Settings, stdin: TextIO, stdout: TextIO) -> int:
    palette = Palette.detect(stdout, no_color=cfg.no_color)
    with ExitStack() as stack:
        source = stdin
        if _use_keys(cfg.input_mode, stdin):
            source = stack.enter_context(TerminalKeys(stdin))
        exporter = exporter_for("stdout", bookmarks, output=stdout, source=source, page_size=cfg.per_page, palette=palette)
        try:
            end = exporter.export()
        except KeyboardInterrupt:
            print(file=stdout)
            return 130
    log.debug("Pager session ended (%s)", end.value)
    return 0


def _use_keys(mode: str, stdin: TextIO) -> bool:
    if mode == "line":
        return False
    supported = TerminalKeys.supported(stdin)
    if mode == "char" and not supported:
        log.warning("Single-key input needs a terminal; falling back to line input.")
    return supported


def _list_profiles(stdout: TextIO) -> int:
    dbs = ProfileFinder().find_databases()
    if not dbs:
        print("No Firefox profiles with bookmarks found.", file=stdout)
        return 0
    print("Firefox bookmark databases:", file=stdout)
    for p in dbs:
        print(f"  {p}", file=stdout)
    return 0


def _list_folders(store: BookmarkStore, stdout: TextIO) -> int:
    folders: List[str] = store.folders()
    if not folders:
        print("No folders found.", file=stdout)
        return 0
    print("Bookmark folders:", file=stdout)
    for f in folders:
        print(f"  {f}", file=stdout)
    return 0
