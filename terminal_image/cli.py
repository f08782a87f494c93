from __future__ import annotations

import argparse
import sys
import tempfile

import yt_dlp
from loguru import logger

from .dimensions import parse_dimension
from .errors import InvalidDimension
from .frames import DEFAULT_FRAME_RATE
from .render import AnimationHandle, AnimationOptions, render_file, render_gif_file, render_video_file

YOUTUBE_PREFIXES = ("https://www.youtube.com/watch?v=", "https://youtu.be/")
VIDEO_EXTENSIONS = (".mp4", ".avi", ".mkv", ".mov", ".webm", ".ogg")


def dimension(value: str) -> int | str:
    """Digits are a cell count, anything else is checked later as a percentage."""
    return int(value) if value.isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="terminal-image", description="Display images, GIFs and videos in the terminal"
    )
    parser.add_argument("media", help="Path to image/GIF/video file or YouTube URL")
    parser.add_argument("-W", "--width", type=dimension, default=None, help="Columns, or a percentage like 50%%")
    parser.add_argument("-H", "--height", type=dimension, default=None, help="Rows, or a percentage like 50%%")
    parser.add_argument("--stretch", action="store_true", help="Do not preserve the aspect ratio")
    parser.add_argument("-f", "--fps", type=float, default=DEFAULT_FRAME_RATE, help="Maximum frame rate")
    parser.add_argument("-nc", "--no-clear", dest="clear", action="store_false", default=True,
                        help="Print frames one after another instead of in place")
    parser.add_argument("--no-native", dest="native", action="store_false", default=True,
                        help="Always draw with text glyphs")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def configure_logging(verbose: bool) -> None:
    logger.enable("terminal_image")
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def download_video(url: str) -> str:
    ydl_opts = {
        "outtmpl": tempfile.gettempdir() + "/%(title)s.%(ext)s",
        "format": "best[height<=720]",
        "quiet": True,
    }
    with yt_dlp.YoutubeDL(ydl_opts) as ydl:
        info = ydl.extract_info(url, download=True)
        return ydl.prepare_filename(info)


def write_frame(frame):
    sys.stdout.write(frame)
    sys.stdout.flush()


def play(handle: AnimationHandle) -> None:
    try:
        handle.wait()
    except KeyboardInterrupt:
        print("\nPlayback stopped by user")
    finally:
        handle.stop()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    sizes = {key: value for key, value in (("width", args.width), ("height", args.height)) if value is not None}
    try:
        for value in sizes.values():
            parse_dimension(value)
    except InvalidDimension as exc:
        parser.error(str(exc))

    options = AnimationOptions(
        preserve_aspect_ratio=not args.stretch,
        native=args.native,
        maximum_frame_rate=args.fps,
        render_frame=None if args.clear else write_frame,
        **sizes,
    )
    media = args.media

    try:
        if media.startswith(YOUTUBE_PREFIXES):
            play(render_video_file(download_video(media), options))
        elif media.lower().endswith(".gif"):
            play(render_gif_file(media, options))
        elif media.lower().endswith(VIDEO_EXTENSIONS):
            play(render_video_file(media, options))
        else:
            sys.stdout.write(render_file(media, options))
            sys.stdout.flush()
    except (OSError, ValueError, yt_dlp.utils.DownloadError) as exc:
        logger.error("Cannot display {}: {}", media, exc)
        return 1

    return 0
