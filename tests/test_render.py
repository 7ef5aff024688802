from krill.address import Address
from krill.fetcher import FetchTimeout
from krill.page import Page
from krill.render import DisplayState, layout, render, to_ansi, to_plain
from krill.search import SearchState

MENU = (
    b"iWelcome to the hole\t\texample.com\t70\r\n"
    b"1Home\t/home\texample.com\t70\r\n"
    b"0About\t/about\texample.com\t70\r\n"
    b"7Search\t/search\texample.com\t70\r\n"
)


def menu_page() -> Page:
    return Page.from_response(Address("example.com", 70, "1", ""), MENU)


def plain(lines) -> list:
    return [to_plain(line) for line in lines]


def test_menu_lines_are_numbered_and_selection_marked() -> None:
    lines = plain(render(menu_page(), DisplayState(cols=80), selected=1))

    assert lines == [
        "       Welcome to the hole",
        "    1. Home",
        "*   2. About",
        "    3. Search",
    ]


def test_emoji_mode_adds_type_glyphs() -> None:
    lines = plain(render(menu_page(), DisplayState(emoji_mode=True), selected=0))

    assert lines[1].endswith("📁 Home")
    assert lines[2].endswith("📄 About")


def test_narrow_mode_truncates_menus_and_wraps_text() -> None:
    display = DisplayState(cols=10)
    assert all(len(line) <= 10 for line in plain(render(menu_page(), display)))

    text = Page.from_response(Address("example.com", 70, "0", "/t"), b"0123456789abcdef\r\n")
    assert plain(render(text, display)) == ["0123456789", "abcdef"]


def test_wide_mode_disables_truncation() -> None:
    text = Page.from_response(Address("example.com", 70, "0", "/t"), b"0123456789abcdef\r\n")

    assert plain(render(text, DisplayState(cols=10, wide_mode=True))) == ["0123456789abcdef"]


def test_wide_characters_count_double() -> None:
    text = Page.from_response(Address("example.com", 70, "0", "/t"), "日本語テキスト".encode())

    assert plain(render(text, DisplayState(cols=6))) == ["日本語", "テキス", "ト"]


def test_viewport_window() -> None:
    lines = plain(render(menu_page(), DisplayState(), scroll=1, rows=2))

    assert lines == ["    1. Home", "    2. About"]


def test_search_highlights_matches_and_cursor() -> None:
    page = menu_page()
    search = SearchState([item.display for item in page.link_items], selected=0)
    search.set_query("o")  # Home, About

    styles = [line[-1].style for line in layout(page, DisplayState(), selected=2, search=search)]

    assert styles == ["info", "search_cursor", "match", "selected"]


def test_binary_pages_never_show_bytes() -> None:
    page = Page.from_response(Address("example.com", 70, "9", "/f.bin"), b"\x00\x01\x02secret")

    lines = plain(render(page, DisplayState()))

    assert lines[0] == "Binary file (9 bytes): gopher://example.com/9/f.bin"
    assert "secret" not in "".join(lines)


def test_control_characters_are_stripped() -> None:
    text = Page.from_response(Address("example.com", 70, "0", "/t"), b"\x1b[2Jhi\r\n")

    assert plain(render(text, DisplayState())) == ["[2Jhi"]


def test_error_pages_render_the_error() -> None:
    page = Page.from_error(Address("example.com"), FetchTimeout(8))

    lines = plain(render(page, DisplayState()))

    assert lines[0] == "Error loading gopher://example.com/"
    assert "timed out after 8s" in lines


def test_ansi_and_plain_output() -> None:
    line = render(menu_page(), DisplayState(), selected=0)[1]

    assert "\x1b[" in to_ansi(line)
    assert "\x1b[" not in to_plain(line)
