"""
Rendering pages into styled terminal lines.

`render` is a pure function: given a page, the session-wide DisplayState and the
page-scoped selection/scroll (plus an optional search), it returns the visible
lines as lists of Segments. Segments carry a style name; the curses screen and
the ANSI printer each map style names to their own attributes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from wcwidth import wcwidth

from krill.page import BINARY, MENU
from krill.transport import TransportMode


class Segment(NamedTuple):
    text: str
    style: str = "plain"


@dataclass
class DisplayState:
    """Session-wide display settings. Lives as long as the session, not the page."""
    wide_mode: bool = False
    emoji_mode: bool = False
    color: bool = True
    transport_mode: TransportMode = TransportMode.PLAIN
    rows: int = 24
    cols: int = 80


TYPE_STYLES = {
    "0": "text",
    "1": "menu",
    "+": "menu",
    "2": "text",
    "3": "error",
    "7": "search",
    "8": "telnet",
    "T": "telnet",
    "h": "html",
    "i": "info",
}

EMOJI = {
    "0": "📄",
    "1": "📁",
    "+": "📁",
    "2": "📇",
    "3": "❌",
    "7": "🔍",
    "8": "📞",
    "T": "📞",
    "h": "🌐",
    "g": "📷",
    "I": "📷",
    "s": "🔈",
    "d": "📝",
}
DEFAULT_EMOJI = "💾"

ANSI_STYLES = {
    "plain": "0",
    "info": "93",
    "text": "92",
    "menu": "94",
    "search": "95",
    "html": "96",
    "telnet": "90",
    "binary": "91",
    "error": "91",
    "number": "95",
    "marker": "90;1",
    "selected": "1;4",
    "match": "30;43",
    "search_cursor": "30;46;1",
}

NUMBER_WIDTH = 7  # "* 123. "


def style_for(item_type: str) -> str:
    return TYPE_STYLES.get(item_type, "binary")


def sanitize(text: str) -> str:
    """Expand tabs and drop control characters so server content can't drive the terminal."""
    text = text.expandtabs(8)
    return "".join(ch for ch in text if ch >= " " and ch != "\x7f")


def char_width(ch: str) -> int:
    return max(0, wcwidth(ch))


def text_width(text: str) -> int:
    return sum(char_width(ch) for ch in text)


def truncate(line: list, cols: int) -> list:
    """Cut a styled line so it fits in `cols` terminal columns."""
    out = []
    used = 0
    for segment in line:
        kept = ""
        for ch in segment.text:
            width = char_width(ch)
            if used + width > cols:
                if kept:
                    out.append(Segment(kept, segment.style))
                return out
            kept += ch
            used += width
        out.append(Segment(kept, segment.style))
    return out


def wrap(text: str, cols: int) -> list[str]:
    """Hard-wrap `text` at `cols` terminal columns."""
    if cols <= 0 or text_width(text) <= cols:
        return [text]
    rows = []
    current = ""
    used = 0
    for ch in text:
        width = char_width(ch)
        if used + width > cols and current:
            rows.append(current)
            current, used = "", 0
        current += ch
        used += width
    rows.append(current)
    return rows


def _menu_lines(page, display: DisplayState, selected, search) -> list:
    matches = set(search.matches) if search else set()
    cursor = search.current if search else None
    lines = []
    link = 0
    for item in page.items:
        text = sanitize(item.display)
        if not item.is_link:
            pad = " " * (NUMBER_WIDTH + (3 if display.emoji_mode else 0))
            lines.append([Segment(pad), Segment(text, style_for(item.item_type))])
            continue
        style = style_for(item.item_type)
        if link == cursor:
            style = "search_cursor"
        elif link in matches:
            style = "match"
        elif link == selected:
            style = "selected"
        marker = Segment("*" if link == selected else " ", "marker")
        line = [marker, Segment(f" {link + 1:>3}. ", "number")]
        if display.emoji_mode:
            line.append(Segment(EMOJI.get(item.item_type, DEFAULT_EMOJI) + " "))
        line.append(Segment(text, style))
        lines.append(line)
        link += 1
    return lines


def layout(page, display: DisplayState, selected=None, search=None) -> list:
    """Every line of `page` as it would be drawn, before scrolling is applied."""
    wide = display.wide_mode or page.wide
    if page.kind == BINARY:
        return [[Segment(f"Binary file ({len(page.raw)} bytes): {page.url}", "info")],
                [Segment("Press s to save it to disk.", "info")]]
    if page.kind == MENU:
        lines = _menu_lines(page, display, selected, search)
        if wide:
            return lines
        return [truncate(line, display.cols) for line in lines]
    style = "error" if page.error else "plain"
    lines = []
    for text in page.lines:
        text = sanitize(text)
        rows = [text] if wide else wrap(text, display.cols)
        lines.extend([Segment(row, style)] for row in rows)
    return lines


def render(page, display: DisplayState, selected=None, scroll: int = 0, search=None,
           rows: int | None = None) -> list:
    """The visible window of `page`: `rows` lines starting at `scroll` (all lines if rows is None)."""
    lines = layout(page, display, selected, search)
    if rows is None:
        return lines[scroll:]
    return lines[scroll:scroll + rows]


def line_count(page, display: DisplayState) -> int:
    return len(layout(page, display))


def to_plain(line: list) -> str:
    return "".join(segment.text for segment in line).rstrip()


def to_ansi(line: list) -> str:
    out = []
    for segment in line:
        code = ANSI_STYLES.get(segment.style, "0")
        if code == "0":
            out.append(segment.text)
        else:
            out.append(f"\x1b[{code}m{segment.text}\x1b[0m")
    return "".join(out)
