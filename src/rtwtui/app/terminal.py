"""ANSI terminal session for the interactive front end.

Switches to the alternate screen with a hidden cursor and puts stdin in
cbreak mode so single key presses arrive without Enter. Everything is
restored on exit, including after an exception.
"""

from __future__ import annotations

import os
import select
import shutil
import sys
import termios
import tty
from typing import TextIO

_ESCAPE_KEYS = {
    "\x1b[A": "UP",
    "\x1b[B": "DOWN",
    "\x1b[C": "RIGHT",
    "\x1b[D": "LEFT",
    "\x1b[Z": "BACKTAB",
}


class TerminalSession:
    """Context manager owning the terminal while the app runs."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._out = stream if stream is not None else sys.stdout
        self._active = False
        self._stdin_fd: int | None = None
        self._termios_before: list | None = None

    def __enter__(self) -> TerminalSession:
        # Alternate screen, clear, hide cursor
        self._out.write("\033[?1049h\033[2J\033[?25l")
        self._out.flush()
        self._active = True

        if sys.stdin.isatty():
            fd = sys.stdin.fileno()
            try:
                self._termios_before = termios.tcgetattr(fd)
                tty.setcbreak(fd)
                self._stdin_fd = fd
            except termios.error:
                self._termios_before = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def restore(self) -> None:
        if self._active:
            self._out.write("\033[0m\033[?25h\033[?1049l")
            self._out.flush()
            self._active = False

        if self._stdin_fd is not None and self._termios_before is not None:
            termios.tcsetattr(self._stdin_fd, termios.TCSADRAIN, self._termios_before)
        self._stdin_fd = None
        self._termios_before = None

    def size(self) -> tuple[int, int]:
        """Return (columns, lines) of the terminal."""
        size = shutil.get_terminal_size(fallback=(80, 24))
        return size.columns, size.lines

    def draw(self, text: str) -> None:
        """Write pre-positioned ANSI text and flush."""
        self._out.write(text)
        self._out.flush()

    def clear(self) -> None:
        self.draw("\033[0m\033[2J")

    def status(self, message: str, line: int) -> None:
        """Replace the contents of a 1-based screen line."""
        columns, _ = self.size()
        self.draw(f"\033[{line};1H\033[0m\033[2K{message[:columns]}")

    def poll_keys(self, timeout: float = 0.0) -> list[str]:
        """Return the keys pressed since the last call.

        Arrow keys come back as ``"UP"`` and friends and a lone escape as
        ``"ESC"``. Waits up to ``timeout`` seconds for the first key.
        """
        if self._stdin_fd is None:
            return []

        keys: list[str] = []
        wait = timeout
        while self._readable(wait):
            wait = 0.0
            char = self._read_char()
            if char is None:
                break
            if char == "\x03":
                raise KeyboardInterrupt
            if char == "\x1b":
                keys.append(self._read_escape())
            elif char:
                keys.append(char)
        return keys

    def _readable(self, timeout: float) -> bool:
        readable, _, _ = select.select([self._stdin_fd], [], [], timeout)
        return bool(readable)

    def _read_char(self) -> str | None:
        data = os.read(self._stdin_fd, 1)
        if not data:
            return None
        return data.decode("utf-8", errors="ignore")

    def _read_escape(self) -> str:
        sequence = "\x1b"
        while self._readable(0.01):
            char = self._read_char()
            if not char:
                break
            sequence += char
            if char.isalpha() or char == "~":
                break
        if sequence == "\x1b":
            return "ESC"
        return _ESCAPE_KEYS.get(sequence, sequence)
