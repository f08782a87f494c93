"""Display images and animated GIFs in the terminal."""

from loguru import logger

from .dimensions import Absolute, Percentage, Viewport, fit_to_box, parse_dimension, resolve_size
from .errors import InvalidDimension, TerminalImageError
from .glyphs import ColorMode, render_glyphs
from .render import (
    AnimationHandle,
    AnimationOptions,
    RenderOptions,
    render_buffer,
    render_file,
    render_gif_buffer,
    render_gif_file,
    render_image,
    render_video_file,
)
from .sinks import LineRewriter

# Library logging stays silent unless the application opts in.
logger.disable(__name__)

__all__ = [
    "Absolute",
    "AnimationHandle",
    "AnimationOptions",
    "ColorMode",
    "InvalidDimension",
    "LineRewriter",
    "Percentage",
    "RenderOptions",
    "TerminalImageError",
    "Viewport",
    "fit_to_box",
    "parse_dimension",
    "render_buffer",
    "render_file",
    "render_gif_buffer",
    "render_gif_file",
    "render_glyphs",
    "render_image",
    "render_video_file",
    "resolve_size",
]
