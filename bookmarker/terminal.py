from __future__ import annotations

from typing import TextIO

try:
    import termios
    import tty
    _HAS_TERMIOS = True
except ImportError:
    # Windows has no termios; callers fall back to line input.
    termios = None  # type: ignore
    tty = None  # type: ignore
    _HAS_TERMIOS = False

_EOT = "\x04"  # Ctrl-D arrives as a plain byte once canonical mode is off


class TerminalKeys:
    """Single keypresses from a TTY, with the terminal in cbreak mode while entered."""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self._fd = stream.fileno()
        self._saved = None

    @staticmethod
    def supported(stream) -> bool:
        if not _HAS_TERMIOS:
            return False
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    def __enter__(self) -> "TerminalKeys":
        self._saved = termios.tcgetattr(self._fd)
        tty.setcbreak(self._fd)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._saved is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
            self._saved = None

    def getch(self) -> str:
        ch = self.stream.read(1)
        if ch == _EOT:
            return ""
        return ch
