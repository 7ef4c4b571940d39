"""Fixed-size paging over an ordered collection, plus an interactive n/p/q loop.

Two input disciplines feed the same command handling: a line reader for
ordinary streams and a key reader for sources that can hand out single
characters (anything with a ``getch()`` method, e.g. ``TerminalKeys``).
"""
from __future__ import annotations

import math
import re
import sys
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, TextIO

from .color import PLAIN, Palette

DEFAULT_PAGE_SIZE = 25

_NEXT = {"n", "next"}
_PREV = {"p", "prev"}
_QUIT = {"q", "quit", "exit"}
_PAGE_NUMBER = re.compile(r"[0-9]+")
_DIGITS = frozenset("0123456789")


class SessionEnd(Enum):
    QUIT = "quit"
    EOF = "eof"


@dataclass(frozen=True)
class Command:
    kind: str  # next | prev | quit | page | unknown
    page: int = 0


def parse_command(text: str) -> Command:
    token = text.strip().lower()
    if token in _NEXT:
        return Command("next")
    if token in _PREV:
        return Command("prev")
    if token in _QUIT:
        return Command("quit")
    if _PAGE_NUMBER.fullmatch(token):
        return Command("page", int(token))
    return Command("unknown")


class LineInput:
    def __init__(self, stream: TextIO):
        self.stream = stream

    def read_command(self, output: TextIO) -> Optional[Command]:
        line = self.stream.readline()
        if not line:
            return None
        return parse_command(line)


class KeyInput:
    """Acts on n/p/q as soon as they are pressed; digits accumulate into a page number."""

    def __init__(self, source):
        self.source = source
        self._pending: Optional[str] = None

    def read_command(self, output: TextIO) -> Optional[Command]:
        while True:
            ch = self._next_char()
            if not ch:
                return None
            if ch.isspace():
                continue
            if ch in _DIGITS:
                return self._read_page_number(ch, output)
            _echo(output, ch + "\n")
            return parse_command(ch)

    def _read_page_number(self, first: str, output: TextIO) -> Command:
        digits = first
        _echo(output, first)
        while True:
            ch = self._next_char()
            if ch and ch in _DIGITS:
                digits += ch
                _echo(output, ch)
                continue
            if ch and not ch.isspace():
                # The key that ended the number is still a command.
                self._pending = ch
            break
        _echo(output, "\n")
        return Command("page", int(digits))

    def _next_char(self) -> str:
        if self._pending is not None:
            ch, self._pending = self._pending, None
            return ch
        return self.source.getch() or ""


def input_reader(source):
    if callable(getattr(source, "getch", None)):
        return KeyInput(source)
    return LineInput(source)


class Pager:
    def __init__(self, items: Sequence, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.items = tuple(items)
        self.page_size = page_size
        self.current_page = 0

    def total_pages(self) -> int:
        if not self.items:
            return 0
        return math.ceil(len(self.items) / self.page_size)

    def current_items(self) -> List:
        start = self.current_page * self.page_size
        return list(self.items[start:start + self.page_size])

    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages() - 1

    def has_prev_page(self) -> bool:
        return self.current_page > 0

    def advance(self) -> bool:
        if not self.has_next_page():
            return False
        self.current_page += 1
        return True

    def go_back(self) -> bool:
        if not self.has_prev_page():
            return False
        self.current_page -= 1
        return True

    def go_to(self, page: int) -> bool:
        """Jump to a zero-based page; out-of-range requests leave the page unchanged."""
        if page < 0 or page >= self.total_pages():
            return False
        self.current_page = page
        return True

    def page_status(self) -> str:
        if not self.items:
            return "No items"
        first = self.current_page * self.page_size + 1
        last = min(first + self.page_size - 1, len(self.items))
        return f"Showing {first}-{last} of {len(self.items)} (page {self.current_page + 1}/{self.total_pages()})"

    def render(self, output: Optional[TextIO] = None, palette: Palette = PLAIN) -> None:
        output = output or sys.stdout
        if not self.items:
            print("No bookmarks found.", file=output)
            return
        offset = self.current_page * self.page_size
        for i, item in enumerate(self.current_items(), start=offset + 1):
            print(item.formatted(i, palette), file=output)
            print(file=output)
        print(palette.wrap(self.page_status(), "dim"), file=output)

    def interactive(
        self,
        source=None,
        output: Optional[TextIO] = None,
        palette: Palette = PLAIN,
    ) -> SessionEnd:
        """Render, prompt, act; repeat until quit or end of input.

        Navigation mistakes print a message and keep the session going.
        """
        output = output or sys.stdout
        reader = input_reader(source if source is not None else sys.stdin)
        while True:
            self.render(output, palette)
            print(file=output)
            _echo(output, self._navigation_prompt(palette))
            command = reader.read_command(output)
            if command is None:
                return SessionEnd.EOF
            if command.kind == "quit":
                return SessionEnd.QUIT
            self._apply(command, output)

    def _apply(self, command: Command, output: TextIO) -> None:
        if command.kind == "next":
            if not self.advance():
                print("Already on last page.", file=output)
        elif command.kind == "prev":
            if not self.go_back():
                print("Already on first page.", file=output)
        elif command.kind == "page":
            if not self.go_to(command.page - 1):
                print(f"Invalid page number. Valid range: 1-{self.total_pages()}", file=output)
        else:
            print("Unknown command. Use n/p/q or a page number.", file=output)

    def _navigation_prompt(self, palette: Palette) -> str:
        def key(k: str, rest: str) -> str:
            return f"[{palette.wrap(k, 'key', 'bold')}]{rest}"

        parts = []
        if self.has_next_page():
            parts.append(key("n", "ext"))
        if self.has_prev_page():
            parts.append(key("p", "rev"))
        parts.append(key("q", "uit"))
        return " | ".join(parts) + " > "


def _echo(output: TextIO, text: str) -> None:
    output.write(text)
    output.flush()
