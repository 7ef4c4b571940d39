from __future__ import annotations

import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .log import get_logger

log = get_logger(__name__)

# Firefox keeps recent writes in the write-ahead log until checkpoint.
_SIDECAR_SUFFIXES = ("-wal",)


@contextmanager
def working_copy(db_path: Path) -> Iterator[Path]:
    """Copy a live SQLite file to a private temp dir so a running browser's lock never blocks us."""
    db_path = Path(db_path)
    tmp_dir = Path(tempfile.mkdtemp(prefix="bookmarker-"))
    try:
        dest = tmp_dir / db_path.name
        shutil.copyfile(db_path, dest)
        for suffix in _SIDECAR_SUFFIXES:
            side = db_path.with_name(db_path.name + suffix)
            if side.exists():
                shutil.copyfile(side, dest.with_name(dest.name + suffix))
        log.debug("Copied %s -> %s", db_path, dest)
        yield dest
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)
