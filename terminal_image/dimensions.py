"""Fitting images into the terminal viewport.

Sizes are tracked in character cells horizontally and in pixel rows
vertically: every character row holds two pixel rows, so heights coming
from the viewport or from the user are doubled before any scaling happens.
"""

from __future__ import annotations

import math
import os
import sys
from dataclasses import dataclass
from typing import TextIO, Union

from .errors import InvalidDimension

DEFAULT_COLUMNS = 80
DEFAULT_ROWS = 24

# Rows kept free below the image for the prompt / status line.
ROW_OFFSET = 2


@dataclass(frozen=True)
class Viewport:
    """Usable terminal area in character cells."""

    columns: int = DEFAULT_COLUMNS
    rows: int = DEFAULT_ROWS

    @classmethod
    def detect(cls, stream: TextIO | None = None) -> Viewport:
        """Read the live terminal size, falling back to 80x24 when there is none."""
        stream = stream if stream is not None else sys.stdout
        try:
            size = os.get_terminal_size(stream.fileno())
        except (AttributeError, ValueError, OSError):
            return cls()

        columns = size.columns or DEFAULT_COLUMNS
        rows = size.lines - ROW_OFFSET if size.lines > ROW_OFFSET else DEFAULT_ROWS
        return cls(columns=columns, rows=rows)


@dataclass(frozen=True)
class Absolute:
    """A raw character-cell count."""

    value: float

    def resolve(self, base: int) -> float:
        return self.value


@dataclass(frozen=True)
class Percentage:
    """A share of the viewport, in (0, 100]."""

    value: float

    def resolve(self, base: int) -> int:
        return math.floor(self.value / 100 * base)


Dimension = Union[Absolute, Percentage]
DimensionValue = Union[int, float, str, Absolute, Percentage]


def parse_dimension(value: DimensionValue) -> Dimension:
    """Turn a user supplied width/height into a tagged dimension.

    Numbers are taken as cell counts, ``"<p>%"`` strings as a percentage
    of the viewport. Anything else raises :class:`InvalidDimension`.
    """
    if isinstance(value, (Absolute, Percentage)):
        return value

    if isinstance(value, str) and value.endswith("%"):
        try:
            percentage = float(value[:-1])
        except ValueError:
            raise InvalidDimension(value) from None
        if 0 < percentage <= 100:
            return Percentage(percentage)
        raise InvalidDimension(value)

    # bool is an int subclass but never a meaningful size
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if math.isfinite(value) and value >= 0:
            return Absolute(value)

    raise InvalidDimension(value)


def _is_given(value: DimensionValue | None) -> bool:
    # A zero-cell request is treated the same as no request at all.
    if value is None:
        return False
    if isinstance(value, Absolute):
        return value.value != 0
    return value != 0


def fit_to_box(box_width: float, box_height: float, source_width: float, source_height: float) -> tuple[float, float]:
    """Scale a source rectangle to fit inside a box, keeping its aspect ratio.

    Whichever box side is tighter relative to the source ratio drives the
    scale factor, so the result touches the box on one axis and stays
    inside it on the other.
    """
    if box_width == 0 or box_height == 0:
        return 0.0, 0.0
    ratio = source_width / source_height
    if box_width / box_height > ratio:
        factor = box_height / source_height
    else:
        factor = box_width / source_width
    return factor * source_width, factor * source_height


def _round_half_up(value):
    return math.floor(value + 0.5)


def resolve_size(
    image_width: int,
    image_height: int,
    width: DimensionValue | None = None,
    height: DimensionValue | None = None,
    preserve_aspect_ratio: bool = True,
    viewport: Viewport | None = None,
) -> tuple[int, int]:
    """Compute the render size of an image.

    Args:
        image_width: Intrinsic image width in pixels.
        image_height: Intrinsic image height in pixels.
        width: Requested width, cells or percentage of the viewport columns.
        height: Requested height, character rows or percentage of the viewport rows.
        preserve_aspect_ratio: Only consulted when both width and height are given.
        viewport: Terminal area; detected from stdout when omitted.

    Returns:
        ``(columns, pixel_rows)``. The pixel row count is twice the number of
        character rows the rendered image occupies.

    Raises:
        InvalidDimension: If width or height is not a valid dimension value.
    """
    viewport = viewport if viewport is not None else Viewport.detect()
    columns, rows = viewport.columns, viewport.rows

    has_width, has_height = _is_given(width), _is_given(height)

    if has_width and has_height:
        target_width = parse_dimension(width).resolve(columns)
        target_height = parse_dimension(height).resolve(rows) * 2
        if preserve_aspect_ratio:
            target_width, target_height = fit_to_box(target_width, target_height, image_width, image_height)
    elif has_width:
        target_width = parse_dimension(width).resolve(columns)
        target_height = image_height * target_width / image_width
    elif has_height:
        target_height = parse_dimension(height).resolve(rows) * 2
        target_width = image_width * target_height / image_height
    else:
        target_width, target_height = fit_to_box(columns, rows * 2, image_width, image_height)

    if target_width > columns:
        target_width, target_height = fit_to_box(columns, rows * 2, target_width, target_height)

    return _round_half_up(target_width), _round_half_up(target_height)
