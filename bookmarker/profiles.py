from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import List, Mapping, Optional

from .errors import SourceNotFound, UnsupportedPlatform
from .log import get_logger

log = get_logger(__name__)

DB_NAME = "places.sqlite"


def detect_platform(value: Optional[str] = None) -> str:
    p = (value or sys.platform).lower()
    if p.startswith("darwin"):
        return "darwin"
    if p.startswith("linux"):
        return "linux"
    if p.startswith(("win32", "cygwin", "msys")):
        return "windows"
    return p


class ProfileFinder:
    """Finds Firefox ``places.sqlite`` files for the current user.

    A user may have several profiles; :meth:`default_database` prefers the
    ``default-release`` profile Firefox creates on first run.
    """

    def __init__(
        self,
        platform: Optional[str] = None,
        *,
        home: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        self.platform = detect_platform(platform)
        self.home = Path(home) if home is not None else Path.home()
        self.env = os.environ if env is None else env

    def profiles_dir(self) -> Path:
        if self.platform == "darwin":
            return self.home / "Library" / "Application Support" / "Firefox" / "Profiles"
        if self.platform == "linux":
            return self.home / ".mozilla" / "firefox"
        if self.platform == "windows":
            return Path(self.env.get("APPDATA", "")) / "Mozilla" / "Firefox" / "Profiles"
        raise UnsupportedPlatform(f"Unsupported platform: {self.platform}")

    def find_databases(self) -> List[Path]:
        root = self.profiles_dir()
        if not root.is_dir():
            log.debug("No Firefox profiles directory at %s", root)
            return []
        found = sorted(root.glob(f"*/{DB_NAME}"))
        log.debug("Found %d places databases under %s", len(found), root)
        return found

    def default_database(self) -> Path:
        dbs = self.find_databases()
        if not dbs:
            root = self.profiles_dir()
            raise SourceNotFound(root, f"No Firefox {DB_NAME} found in {root}")
        for p in dbs:
            if "default-release" in p.parent.name:
                return p
        return dbs[0]
