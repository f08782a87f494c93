from unittest.mock import Mock

import pytest

from terminal_image import cli
from terminal_image.glyphs import PIXEL


def test_dimension_argument() -> None:
    assert cli.dimension("40") == 40
    assert cli.dimension("50%") == "50%"


def test_invalid_width_is_a_usage_error(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["image.png", "--width", "150%"])

    assert excinfo.value.code == 2
    assert "not a valid dimension value" in capsys.readouterr().err


def test_image_is_printed(tmp_path, png_bytes, capsys) -> None:
    path = tmp_path / "red.png"
    path.write_bytes(png_bytes(8, 8))

    assert cli.main([str(path), "--no-native", "-W", "8"]) == 0
    assert capsys.readouterr().out.count(PIXEL) == 8 * 4


def test_missing_file_exits_with_error(tmp_path) -> None:
    assert cli.main([str(tmp_path / "missing.png"), "--no-native"]) == 1


def test_gif_is_played_until_done(mocker) -> None:
    handle = Mock()
    render_gif_file = mocker.patch("terminal_image.cli.render_gif_file", return_value=handle)

    assert cli.main(["dance.GIF", "-f", "12", "--stretch"]) == 0

    options = render_gif_file.call_args.args[1]
    assert options.maximum_frame_rate == 12
    assert options.preserve_aspect_ratio is False
    handle.wait.assert_called_once_with()
    handle.stop.assert_called_once_with()


def test_keyboard_interrupt_stops_playback(mocker, capsys) -> None:
    handle = Mock()
    handle.wait.side_effect = KeyboardInterrupt
    mocker.patch("terminal_image.cli.render_video_file", return_value=handle)

    assert cli.main(["clip.mp4"]) == 0

    assert "Playback stopped by user" in capsys.readouterr().out
    handle.stop.assert_called_once_with()


def test_no_clear_prints_frames_in_sequence(mocker) -> None:
    render_video_file = mocker.patch("terminal_image.cli.render_video_file", return_value=Mock())

    cli.main(["clip.webm", "-nc"])

    assert render_video_file.call_args.args[1].render_frame is cli.write_frame


def test_youtube_url_is_downloaded_and_played(mocker) -> None:
    download = mocker.patch("terminal_image.cli.download_video", return_value="/tmp/video.mp4")
    render_video_file = mocker.patch("terminal_image.cli.render_video_file", return_value=Mock())

    assert cli.main(["https://youtu.be/abc123"]) == 0

    download.assert_called_once_with("https://youtu.be/abc123")
    assert render_video_file.call_args.args[0] == "/tmp/video.mp4"
