from __future__ import annotations

from typing import Any


class TerminalImageError(Exception):
    """Base class for errors raised by terminal_image."""


class InvalidDimension(TerminalImageError, ValueError):
    """A width or height option is neither a cell count nor a percentage in (0%, 100%]."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"{value!r} is not a valid dimension value")
        self.value = value
