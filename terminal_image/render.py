"""Rendering entry points: still images, GIFs and videos."""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Callable
from dataclasses import dataclass
from io import BytesIO
from os import PathLike
from pathlib import Path
from typing import Any, TypeVar, Union

from loguru import logger
from PIL import Image

from . import native
from .dimensions import DimensionValue, Viewport, parse_dimension, resolve_size
from .frames import DEFAULT_FRAME_RATE, FrameSource, GifFrameSource, VideoFrameSource
from .glyphs import ColorMode, detect_color_mode, render_glyphs
from .sinks import FrameSink, LineRewriter

StrPath = Union[str, PathLike]

# Upper bound on how long stop() waits for the frame being rendered
STOP_TIMEOUT = 2.0


@dataclass(frozen=True)
class RenderOptions:
    """Options for rendering a single image.

    ``width`` and ``height`` are cell counts or percentage strings such as
    ``"50%"`` of the terminal size. ``viewport`` pins the terminal size
    instead of reading it from stdout on every render.
    """

    width: DimensionValue | None = "100%"
    height: DimensionValue | None = "100%"
    preserve_aspect_ratio: bool = True
    color_mode: ColorMode | None = None
    native: bool = True
    viewport: Viewport | None = None


@dataclass(frozen=True)
class AnimationOptions(RenderOptions):
    """Options for playing an animation.

    ``render_frame`` receives every rendered frame and defaults to a
    :class:`LineRewriter` on stdout. If it has a ``done()`` method, that is
    called once when playback is stopped.
    """

    render_frame: FrameSink | None = None
    maximum_frame_rate: float = DEFAULT_FRAME_RATE
    frame_source: FrameSource | None = None


OptionsT = TypeVar("OptionsT", bound=RenderOptions)


def _merge(cls: type[OptionsT], options: OptionsT | None, overrides: dict[str, Any]) -> OptionsT:
    options = options if options is not None else cls()
    if overrides:
        options = dataclasses.replace(options, **overrides)

    # reject bad sizes before decoding anything
    for value in (options.width, options.height):
        if value is not None:
            parse_dimension(value)

    return options


class AnimationHandle:
    """Controls a running animation.

    Playback happens on a daemon thread. :meth:`stop` (or calling the
    handle) asks the frame source to stop before its next frame, then
    finalizes the sink. The sink is finalized exactly once.
    """

    def __init__(
        self,
        sink: FrameSink,
        source: FrameSource | None = None,
        render: Callable[[Image.Image], str] | None = None,
    ) -> None:
        self._sink = sink
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._finalized = False
        self._error: BaseException | None = None
        self._thread: threading.Thread | None = None

        if source is not None and render is not None:
            self._thread = threading.Thread(
                target=self._run, args=(source, render), daemon=True, name="AnimationPlayback"
            )
            self._thread.start()

    def _run(self, source: FrameSource, render: Callable[[Image.Image], str]) -> None:
        def on_frame(frame: Image.Image) -> None:
            text = render(frame)
            # a frame finished after stop() is dropped, never written past done()
            with self._lock:
                if self._cancel.is_set() or self._finalized:
                    return
                self._sink(text)

        logger.debug("Animation playback started.")
        try:
            source.play(on_frame, self._cancel)
        except Exception as exc:
            logger.exception("Animation playback failed.")
            self._error = exc
        logger.debug("Animation playback finished.")

    @property
    def playing(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._cancel.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until playback ends by itself.

        Returns:
            False if the timeout expired first.

        Raises:
            Exception: Whatever the frame source or the renderer raised.
        """
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                return False
        if self._error is not None:
            raise self._error
        return True

    def stop(self) -> None:
        self._cancel.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(STOP_TIMEOUT)

        with self._lock:
            if self._finalized:
                return
            self._finalized = True

            done = getattr(self._sink, "done", None)
            if done is not None:
                done()

    __call__ = stop

    def __enter__(self) -> AnimationHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def render_image(img: Image.Image, options: RenderOptions | None = None, **overrides: Any) -> str:
    """Render an already decoded image as half-block glyphs."""
    options = _merge(RenderOptions, options, overrides)
    width, height = resolve_size(
        img.width, img.height, options.width, options.height, options.preserve_aspect_ratio, options.viewport
    )
    logger.debug("Rendering {}x{} image at {}x{}.", img.width, img.height, width, height)
    return render_glyphs(img, width, height, options.color_mode or detect_color_mode())


def render_buffer(buffer: bytes, options: RenderOptions | None = None, **overrides: Any) -> str:
    """Render encoded image bytes for the terminal.

    A native image protocol is used when the terminal has one, otherwise
    the image is decoded and drawn with half-block glyphs.

    Raises:
        InvalidDimension: For a bad width or height, before any decoding.
        PIL.UnidentifiedImageError: If the bytes are not a known image format.
    """
    options = _merge(RenderOptions, options, overrides)

    def fallback() -> str:
        with Image.open(BytesIO(buffer)) as img:
            return render_image(img, options)

    if not options.native:
        return fallback()

    return native.display(
        buffer,
        fallback,
        options.width,
        options.height,
        options.preserve_aspect_ratio,
        viewport=options.viewport,
    )


def render_file(path: StrPath, options: RenderOptions | None = None, **overrides: Any) -> str:
    return render_buffer(Path(path).read_bytes(), options, **overrides)


def _play(source: FrameSource, sink: FrameSink, options: AnimationOptions) -> AnimationHandle:
    # per-frame output always goes through glyphs
    frame_options = dataclasses.replace(options, native=False)

    def render(frame: Image.Image) -> str:
        return render_image(frame, frame_options)

    return AnimationHandle(sink, source, render)


def render_gif_buffer(buffer: bytes, options: AnimationOptions | None = None, **overrides: Any) -> AnimationHandle:
    """Play an animated GIF in the terminal.

    Terminals with a native image protocol show the GIF once through it.
    Elsewhere every frame is rendered with glyphs and handed to
    ``options.render_frame``.

    Returns:
        A handle that stops playback and finalizes the sink.
    """
    options = _merge(AnimationOptions, options, overrides)
    sink = options.render_frame if options.render_frame is not None else LineRewriter()
    source = options.frame_source or GifFrameSource(buffer, options.maximum_frame_rate)

    if options.native:
        preview = native.display(
            buffer,
            lambda: None,
            options.width,
            options.height,
            options.preserve_aspect_ratio,
            viewport=options.viewport,
        )
        if preview:
            sink(preview)
            return AnimationHandle(sink)

    return _play(source, sink, options)


def render_gif_file(path: StrPath, options: AnimationOptions | None = None, **overrides: Any) -> AnimationHandle:
    return render_gif_buffer(Path(path).read_bytes(), options, **overrides)


def render_video_file(path: StrPath, options: AnimationOptions | None = None, **overrides: Any) -> AnimationHandle:
    """Play a video file with glyphs, one rendered frame per video frame."""
    options = _merge(AnimationOptions, options, overrides)
    sink = options.render_frame if options.render_frame is not None else LineRewriter()
    source = options.frame_source or VideoFrameSource(str(path), options.maximum_frame_rate)
    return _play(source, sink, options)
