"""Terminal styling passed explicitly to whatever renders text.

Weight (bold/dim) carries the hierarchy; hue is a secondary channel picked
from colourblind-safe tones, so output still reads correctly in grayscale.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, TextIO

from rich.color import ColorSystem
from rich.style import Style

_WEIGHTS: Dict[str, Style] = {
    "bold": Style(bold=True),
    "dim": Style(dim=True),
}

_SEMANTIC_256: Dict[str, Style] = {
    "url": Style(color="color(74)"),  # steel blue
    "path": Style(color="color(179)"),  # warm gold
    "key": Style(color="color(73)"),  # teal
}

_SEMANTIC_BASIC: Dict[str, Style] = {
    "url": Style(color="cyan"),
    "path": Style(color="yellow"),
    "key": Style(color="green"),
}


@dataclass(frozen=True)
class Palette:
    enabled: bool = False
    depth: str = "basic"  # basic | 256

    @staticmethod
    def detect(stream: TextIO, env: Optional[Mapping[str, str]] = None, *, no_color: bool = False) -> "Palette":
        env = os.environ if env is None else env
        isatty = getattr(stream, "isatty", None)
        enabled = not no_color and "NO_COLOR" not in env and bool(isatty and isatty())
        term = env.get("TERM", "")
        depth = "256" if env.get("COLORTERM", "") or "256color" in term else "basic"
        return Palette(enabled=enabled, depth=depth)

    def wrap(self, text, *styles: str) -> str:
        text = str(text)
        if not self.enabled or not styles:
            return text
        style = Style.combine(self._resolve(s) for s in styles)
        return style.render(text, color_system=self._color_system)

    @property
    def _color_system(self) -> ColorSystem:
        return ColorSystem.EIGHT_BIT if self.depth == "256" else ColorSystem.STANDARD

    def _resolve(self, name: str) -> Style:
        if name in _WEIGHTS:
            return _WEIGHTS[name]
        semantic = _SEMANTIC_256 if self.depth == "256" else _SEMANTIC_BASIC
        return semantic.get(name, Style.null())


PLAIN = Palette()
