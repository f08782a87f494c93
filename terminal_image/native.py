"""Native terminal image protocols.

Terminals that can draw real bitmaps get the encoded image instead of
half-block glyphs. iTerm2 uses its OSC 1337 inline image sequence and
kitty its graphics protocol; every other terminal falls back to glyphs.
"""

from __future__ import annotations

import base64
import os
from collections.abc import Callable, Mapping
from io import BytesIO
from typing import TypeVar

from loguru import logger
from PIL import Image

from .dimensions import DimensionValue, Percentage, Viewport, parse_dimension, resolve_size

ITERM2 = "iterm2"
KITTY = "kitty"

# kitty recommends chunks of 4096 bytes
KITTY_CHUNK_SIZE = 4096

T = TypeVar("T")


def detect_protocol(environ: Mapping[str, str] | None = None) -> str | None:
    """Name of the native image protocol the terminal speaks, if any."""
    environ = os.environ if environ is None else environ

    if environ.get("TERM_PROGRAM") == "iTerm.app":
        major = environ.get("TERM_PROGRAM_VERSION", "").split(".")[0]
        if major.isdigit() and int(major) >= 3:
            return ITERM2

    if environ.get("TERM") == "xterm-kitty" or environ.get("KITTY_WINDOW_ID"):
        return KITTY

    return None


def _iterm2_size(value: DimensionValue | None) -> str:
    if value is None:
        return "auto"
    dimension = parse_dimension(value)
    number = dimension.value
    # whole numbers are written out in full, never in exponent form
    text = str(int(number)) if float(number).is_integer() else f"{number:f}".rstrip("0")
    if isinstance(dimension, Percentage):
        return f"{text}%"
    return text


def iterm2_sequence(
    buffer: bytes,
    width: DimensionValue | None = None,
    height: DimensionValue | None = None,
    preserve_aspect_ratio: bool = True,
) -> str:
    """OSC 1337 inline image. iTerm2 decodes the original bytes itself."""
    args = [
        "inline=1",
        f"width={_iterm2_size(width)}",
        f"height={_iterm2_size(height)}",
    ]
    if not preserve_aspect_ratio:
        args.append("preserveAspectRatio=0")

    payload = base64.standard_b64encode(buffer).decode("ascii")
    return f"\033]1337;File={';'.join(args)}:{payload}\a"


def _as_png(buffer: bytes) -> bytes:
    if buffer[:8] == b"\x89PNG\r\n\x1a\n":
        return buffer
    with Image.open(BytesIO(buffer)) as img:
        output = BytesIO()
        img.convert("RGBA").save(output, format="PNG")
    return output.getvalue()


def kitty_sequence(buffer: bytes, columns: int | None = None, rows: int | None = None) -> str:
    """Kitty graphics command transmitting and displaying a PNG.

    The base64 payload is split into chunks; every chunk but the last
    carries ``m=1``.
    """
    b64_data = base64.standard_b64encode(_as_png(buffer)).decode("ascii")
    chunks = [b64_data[i:i + KITTY_CHUNK_SIZE] for i in range(0, len(b64_data), KITTY_CHUNK_SIZE)] or [""]

    result = []
    for i, chunk in enumerate(chunks):
        m_value = 0 if i == len(chunks) - 1 else 1
        if i == 0:
            params = f"a=T,f=100,m={m_value}"
            if columns:
                params += f",c={columns}"
            if rows:
                params += f",r={rows}"
            result.append(f"\033_G{params};{chunk}\033\\")
        else:
            result.append(f"\033_Gm={m_value};{chunk}\033\\")

    return "".join(result) + "\n"


def display(
    buffer: bytes,
    fallback: Callable[[], T],
    width: DimensionValue | None = None,
    height: DimensionValue | None = None,
    preserve_aspect_ratio: bool = True,
    environ: Mapping[str, str] | None = None,
    viewport: Viewport | None = None,
) -> str | T:
    """Render through a native protocol, or call ``fallback`` when there is none."""
    protocol = detect_protocol(environ)

    if protocol == ITERM2:
        logger.debug("Displaying image through iTerm2 inline images.")
        return iterm2_sequence(buffer, width, height, preserve_aspect_ratio)

    if protocol == KITTY:
        # kitty stretches to whatever cell box it is given, so fit it first
        with Image.open(BytesIO(buffer)) as img:
            columns, pixel_rows = resolve_size(img.width, img.height, width, height, preserve_aspect_ratio, viewport)
        rows = (pixel_rows + 1) // 2
        logger.debug("Displaying image through kitty graphics ({}x{} cells).", columns, rows)
        return kitty_sequence(buffer, columns, rows)

    return fallback()
