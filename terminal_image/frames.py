"""Animation frame sources.

A frame source pushes decoded frames to a callback at the pace of the
animation until it runs out of frames or the cancellation event is set.
Only one frame is in flight at a time: the next one is not decoded before
the callback for the current one returns.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from io import BytesIO
from typing import Protocol

import cv2
from loguru import logger
from PIL import Image, ImageSequence

DEFAULT_FRAME_RATE = 30

# GIF frames without a usable delay are shown for 100ms, like browsers do
DEFAULT_FRAME_DURATION = 0.1

FrameCallback = Callable[[Image.Image], None]


class FrameSource(Protocol):
    def play(self, on_frame: FrameCallback, cancel: threading.Event) -> None: ...


def _minimum_delay(maximum_frame_rate: float) -> float:
    if maximum_frame_rate <= 0:
        raise ValueError(f"maximum_frame_rate must be positive, got {maximum_frame_rate!r}")
    return 1.0 / maximum_frame_rate


def _wait_remaining(cancel: threading.Event, start: float, delay: float) -> bool:
    """Sleep out what is left of a frame's delay. True if cancelled meanwhile."""
    return cancel.wait(max(0.0, delay - (time.monotonic() - start)))


class GifFrameSource:
    """Plays the frames of a GIF (or any multi-frame Pillow image)."""

    def __init__(self, buffer: bytes, maximum_frame_rate: float = DEFAULT_FRAME_RATE) -> None:
        self._buffer = buffer
        self._minimum_delay = _minimum_delay(maximum_frame_rate)

    def play(self, on_frame: FrameCallback, cancel: threading.Event) -> None:
        with Image.open(BytesIO(self._buffer)) as img:
            # no loop entry: play once, 0: forever, n: repeat n times
            loop = img.info.get("loop")
            plays = 1 if loop is None else (None if loop == 0 else loop + 1)
            logger.debug("Playing {} frame(s), plays={}.", getattr(img, "n_frames", 1), plays or "forever")

            played = 0
            while plays is None or played < plays:
                for frame in ImageSequence.Iterator(img):
                    if cancel.is_set():
                        return
                    start = time.monotonic()
                    duration = (frame.info.get("duration") or 0) / 1000 or DEFAULT_FRAME_DURATION

                    on_frame(frame.convert("RGBA"))

                    delay = max(duration, self._minimum_delay)
                    logger.debug("Frame {} shown for {:.3f}s.", frame.tell(), delay)
                    if _wait_remaining(cancel, start, delay):
                        return
                played += 1


class VideoFrameSource:
    """Plays a video file through OpenCV, once."""

    def __init__(self, path: str, maximum_frame_rate: float = DEFAULT_FRAME_RATE) -> None:
        self._minimum_delay = _minimum_delay(maximum_frame_rate)
        self._capture = cv2.VideoCapture(path)
        if not self._capture.isOpened():
            self._capture.release()
            raise OSError(f"Cannot open video {path!r}")

        fps = self._capture.get(cv2.CAP_PROP_FPS)
        self._delay = max(1 / fps if fps > 0 else 0.0, self._minimum_delay)

    def play(self, on_frame: FrameCallback, cancel: threading.Event) -> None:
        logger.debug("Playing video, {:.3f}s per frame.", self._delay)
        try:
            while not cancel.is_set():
                start = time.monotonic()

                ret, frame = self._capture.read()
                if not ret:
                    break

                frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                on_frame(Image.fromarray(frame))

                if _wait_remaining(cancel, start, self._delay):
                    break
        finally:
            self._capture.release()
