from collections.abc import Callable
from io import BytesIO

import pytest
from PIL import Image

NATIVE_ENV = ("TERM_PROGRAM", "TERM_PROGRAM_VERSION", "KITTY_WINDOW_ID", "COLORTERM")


@pytest.fixture(autouse=True)
def plain_terminal(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test as if in a plain truecolor terminal without image support."""
    for name in NATIVE_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TERM", "xterm")
    monkeypatch.setenv("COLORTERM", "truecolor")


@pytest.fixture
def solid_image() -> Callable[..., Image.Image]:
    def make(width: int, height: int, color: tuple[int, int, int, int] = (255, 0, 0, 255)) -> Image.Image:
        return Image.new("RGBA", (width, height), color)

    return make


@pytest.fixture
def png_bytes(solid_image: Callable[..., Image.Image]) -> Callable[..., bytes]:
    def make(width: int = 4, height: int = 4, color: tuple[int, int, int, int] = (255, 0, 0, 255)) -> bytes:
        output = BytesIO()
        solid_image(width, height, color).save(output, format="PNG")
        return output.getvalue()

    return make


@pytest.fixture
def gif_bytes() -> Callable[..., bytes]:
    def make(frames: int = 3, size: tuple[int, int] = (4, 4), **params) -> bytes:
        palette = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0), (0, 255, 255)]
        images = [Image.new("RGB", size, palette[i % len(palette)]) for i in range(frames)]
        output = BytesIO()
        images[0].save(
            output,
            format="GIF",
            save_all=True,
            append_images=images[1:],
            duration=10,
            **params,
        )
        return output.getvalue()

    return make
