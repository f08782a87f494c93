"""Half-block glyph rendering.

Each output cell is a LOWER HALF BLOCK whose background carries the upper
pixel and whose foreground carries the lower pixel, so one row of text
shows two rows of the image.
"""

from __future__ import annotations

import enum
import os
from collections.abc import Mapping

import numpy as np
from numpy.typing import NDArray
from PIL import Image

# ▄ Lower half
PIXEL = "▄"
RESET = "\033[0m"

# xterm-256 colour cube steps
_CUBE_LEVELS = np.array([0, 95, 135, 175, 215, 255])


class ColorMode(enum.Enum):
    TRUECOLOR = "truecolor"
    ANSI256 = "256"


def detect_color_mode(environ: Mapping[str, str] | None = None) -> ColorMode:
    """Guess the colour depth of the terminal from its environment."""
    environ = os.environ if environ is None else environ
    if environ.get("COLORTERM", "").lower() in ("truecolor", "24bit"):
        return ColorMode.TRUECOLOR
    if "256color" in environ.get("TERM", ""):
        return ColorMode.ANSI256
    return ColorMode.TRUECOLOR


def rgb_to_ansi256(r: int, g: int, b: int) -> int:
    """Nearest xterm-256 palette index for an RGB colour."""
    if r == g == b:
        # greyscale ramp 232-255 covers 8..238, the ends map onto the cube
        if r < 8:
            return 16
        if r > 248:
            return 231
        return round((r - 8) / 247 * 24) + 232

    cube = [int(np.abs(_CUBE_LEVELS - channel).argmin()) for channel in (r, g, b)]
    return 16 + 36 * cube[0] + 6 * cube[1] + cube[2]


def _style(top: NDArray[np.uint8], bottom: NDArray[np.uint8], mode: ColorMode) -> str:
    r, g, b = (int(c) for c in top[:3])
    r2, g2, b2 = (int(c) for c in bottom[:3])
    if mode is ColorMode.ANSI256:
        return f"\033[48;5;{rgb_to_ansi256(r, g, b)}m\033[38;5;{rgb_to_ansi256(r2, g2, b2)}m"
    return f"\033[48;2;{r};{g};{b}m\033[38;2;{r2};{g2};{b2}m"


def render_glyphs(
    img: Image.Image,
    width: int,
    height: int,
    color_mode: ColorMode = ColorMode.TRUECOLOR,
) -> str:
    """Render an image as rows of coloured half-block glyphs.

    Args:
        img: Decoded image, any Pillow mode.
        width: Target width in pixels, one pixel per column.
        height: Target height in pixels, two pixels per row of text.
        color_mode: Escape sequence flavour for the colours.

    Returns:
        One line per pair of pixel rows. A trailing odd pixel row is dropped.
    """
    if width < 1 or height < 2:
        return ""

    if img.size != (width, height):
        img = img.resize((width, height))
    pixels = np.asarray(img.convert("RGBA"))

    response = ""

    for y in range(0, height - 1, 2):
        for x in range(width):
            top = pixels[y, x]
            bottom = pixels[y + 1, x]

            # transparent pixels are left blank whatever lies below them
            if top[3] == 0:
                response += RESET + " "
            else:
                response += _style(top, bottom, color_mode) + PIXEL

        response += RESET + "\n"

    return response
