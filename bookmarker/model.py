from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from .color import PLAIN, Palette

PATH_SEPARATOR = " > "
UNTITLED = "(untitled)"


@dataclass(frozen=True)
class Bookmark:
    """One bookmark leaf with its resolved folder path.

    ``path`` runs from the outermost named folder down to the immediate
    parent, so when it is non-empty ``folder == path[-1]``.
    """

    id: int
    title: Optional[str]
    url: str
    folder: Optional[str] = None
    path: Tuple[str, ...] = field(default_factory=tuple)
    date_added: Optional[datetime] = None

    def __post_init__(self) -> None:
        # Lists are accepted for convenience but stored as tuples to stay hashable.
        if not isinstance(self.path, tuple):
            object.__setattr__(self, "path", tuple(self.path or ()))

    @property
    def display_title(self) -> str:
        return UNTITLED if self.title is None else self.title

    @property
    def full_path(self) -> str:
        if self.path:
            return PATH_SEPARATOR.join(self.path)
        return self.folder or ""

    def formatted(self, index: int, palette: Palette = PLAIN) -> str:
        lines = [f"{index}. {palette.wrap(self.display_title, 'bold')}"]
        if len(self.path) > 1:
            lines.append(f"   {palette.wrap('[' + self.full_path + ']', 'path')}")
        lines.append(f"   {palette.wrap(self.url, 'url')}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return f"{self.display_title}\n  {self.url}"
