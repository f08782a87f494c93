"""Frame sinks: where rendered animation frames are written."""

from __future__ import annotations

import sys
import threading
from typing import Protocol, TextIO

HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"
ERASE_LINE = "\033[2K"
CURSOR_UP = "\033[1A"


class FrameSink(Protocol):
    def __call__(self, frame: str) -> None: ...


class LineRewriter:
    """Writes each frame over the previous one.

    The cursor is moved back up over the lines of the last frame and those
    lines are erased before the next frame is written, so an animation
    plays in place below whatever was on screen before it.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._previous_lines = 0
        self._cursor_hidden = False
        self._lock = threading.Lock()

    def _erase(self) -> str:
        if not self._previous_lines:
            return ""
        return "\r" + ERASE_LINE + (CURSOR_UP + ERASE_LINE) * self._previous_lines

    def __call__(self, frame: str) -> None:
        if not frame.endswith("\n"):
            frame += "\n"

        with self._lock:
            prefix = self._erase()
            if not self._cursor_hidden:
                prefix = HIDE_CURSOR + prefix
                self._cursor_hidden = True

            self._stream.write(prefix + frame)
            self._stream.flush()
            self._previous_lines = frame.count("\n")

    def clear(self) -> None:
        """Erase the last frame written."""
        with self._lock:
            self._stream.write(self._erase())
            self._stream.flush()
            self._previous_lines = 0

    def done(self) -> None:
        """Keep the last frame on screen and start afresh below it."""
        with self._lock:
            if self._cursor_hidden:
                self._stream.write(SHOW_CURSOR)
                self._stream.flush()
                self._cursor_hidden = False
            self._previous_lines = 0
