import io

from terminal_image.sinks import CURSOR_UP, ERASE_LINE, HIDE_CURSOR, SHOW_CURSOR, LineRewriter


def test_first_frame_hides_cursor() -> None:
    stream = io.StringIO()
    LineRewriter(stream)("a\nb\n")
    assert stream.getvalue() == HIDE_CURSOR + "a\nb\n"


def test_next_frame_erases_previous_lines() -> None:
    stream = io.StringIO()
    sink = LineRewriter(stream)
    sink("a\nb\n")
    stream.seek(0)
    stream.truncate()

    sink("c\n")

    assert stream.getvalue() == "\r" + ERASE_LINE + (CURSOR_UP + ERASE_LINE) * 2 + "c\n"


def test_frame_without_newline_gets_one() -> None:
    stream = io.StringIO()
    LineRewriter(stream)("a")
    assert stream.getvalue().endswith("a\n")


def test_done_shows_cursor_once_and_keeps_frame() -> None:
    stream = io.StringIO()
    sink = LineRewriter(stream)
    sink("a\n")
    sink.done()
    sink.done()

    assert stream.getvalue().count(SHOW_CURSOR) == 1

    # a frame after done() starts below the kept one
    stream.seek(0)
    stream.truncate()
    sink("b\n")
    assert CURSOR_UP not in stream.getvalue()


def test_clear_erases_last_frame() -> None:
    stream = io.StringIO()
    sink = LineRewriter(stream)
    sink("a\nb\nc\n")
    stream.seek(0)
    stream.truncate()

    sink.clear()

    assert stream.getvalue().count(CURSOR_UP) == 3
