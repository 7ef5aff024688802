"""
krill/ui/screen.py

Implements all UI-drawing functionality for krill: the page area, the status bar
with mode, url and transport segments, the command-line dialog and the prompt box.
Page content comes from krill.render as styled segments; this module only maps
style names to curses attributes.
"""

import curses
import time

from wcwidth import wcswidth

from krill import logger
from krill.render import render, text_width

CMD_ARROW = ">"
SPINNER = "|/-\\"

# style name -> (foreground, extra attributes); pair numbers are assigned in order
STYLE_COLORS = {
    "plain": (-1, 0),
    "info": (curses.COLOR_YELLOW, 0),
    "text": (curses.COLOR_GREEN, 0),
    "menu": (curses.COLOR_BLUE, curses.A_BOLD),
    "search": (curses.COLOR_MAGENTA, 0),
    "html": (curses.COLOR_CYAN, 0),
    "telnet": (curses.COLOR_WHITE, curses.A_DIM),
    "binary": (curses.COLOR_RED, 0),
    "error": (curses.COLOR_RED, curses.A_BOLD),
    "number": (curses.COLOR_MAGENTA, 0),
    "marker": (curses.COLOR_WHITE, curses.A_BOLD),
    "selected": (-1, curses.A_BOLD | curses.A_UNDERLINE),
}

# styles drawn on a colored background
HIGHLIGHT_COLORS = {
    "match": (curses.COLOR_BLACK, curses.COLOR_YELLOW, 0),
    "search_cursor": (curses.COLOR_BLACK, curses.COLOR_CYAN, curses.A_BOLD),
    "status": (curses.COLOR_WHITE, curses.COLOR_BLUE, 0),
    "status_mode": (curses.COLOR_BLACK, curses.COLOR_CYAN, curses.A_BOLD),
    "status_error": (curses.COLOR_WHITE, curses.COLOR_RED, curses.A_BOLD),
}

MONO_ATTRS = {
    "selected": curses.A_BOLD | curses.A_UNDERLINE,
    "marker": curses.A_BOLD,
    "match": curses.A_REVERSE,
    "search_cursor": curses.A_REVERSE | curses.A_BOLD,
    "status": curses.A_REVERSE,
    "status_mode": curses.A_REVERSE | curses.A_BOLD,
    "status_error": curses.A_REVERSE | curses.A_BOLD,
}


def init_colors(context):
    """
    Build context.style_attrs, the curses attribute for every style name.
    Without color support (or with color turned off) styles fall back to
    bold/underline/reverse so selection and matches stay visible.
    """
    attrs = {}
    if context.display.color and curses.has_colors():
        curses.start_color()
        try:
            curses.use_default_colors()
            background = -1
        except curses.error:
            background = curses.COLOR_BLACK
        pair = 1
        for style, (fg, extra) in STYLE_COLORS.items():
            if fg < 0 and background != -1:
                fg = curses.COLOR_WHITE
            curses.init_pair(pair, fg, background)
            attrs[style] = curses.color_pair(pair) | extra
            pair += 1
        for style, (fg, bg, extra) in HIGHLIGHT_COLORS.items():
            curses.init_pair(pair, fg, bg)
            attrs[style] = curses.color_pair(pair) | extra
            pair += 1
        attrs["plain"] = 0
    else:
        attrs = dict(MONO_ATTRS)
    context.style_attrs = attrs


def style_attr(context, style: str) -> int:
    return context.style_attrs.get(style, 0)


def draw_segment(context, y, x, text, style):
    """Draw a styled text segment and return the column after it."""
    logger.safe_addstr(context.stdscr, y, x, text, style_attr(context, style))
    return x + text_width(text)


def pad_line(text, width):
    """Pad or trim a string to match the visual width."""
    visual_width = wcswidth(text)
    if visual_width < 0:
        visual_width = text_width(text)
    if visual_width >= width:
        return text[:width]
    return text + " " * (width - visual_width)


def draw_page(context, rows):
    nav = context.nav
    lines = render(nav.page, context.display, nav.selected, nav.scroll, context.search, rows)
    for y, line in enumerate(lines):
        x = 0
        for segment in line:
            if x >= context.display.cols:
                break
            x = draw_segment(context, y, x, segment.text, segment.style)


def draw_status_bar(context):
    """
    Draw the status bar on the last row: a mode segment, then the search query,
    the status message or the current url, and the transport mode flush right.
    """
    y = context.display.rows - 1
    width = context.display.cols
    logger.safe_addstr(context.stdscr, y, 0, " " * (width - 1), style_attr(context, "status"))

    mode = context.mode
    if mode == "fetching":
        mode = f"loading {SPINNER[int(time.time() * 4) % len(SPINNER)]}"
    x = draw_segment(context, y, 0, f" {mode.upper()} ", "status_mode")

    if context.mode == "search" and context.search is not None:
        found = len(context.search.matches)
        text = f" /{context.search.query}  ({found} match{'es' if found != 1 else ''})"
        style = "status" if found or not context.search.query else "status_error"
    elif context.status_message:
        text = f" {context.status_message}"
        style = "status_error" if context.status_message.startswith("error") else "status"
    else:
        text = f" {context.nav.page.url}"
        style = "status"

    transport = f" {context.display.transport_mode.value} "
    if context.display.wide_mode:
        transport = " wide" + transport
    room = max(0, width - x - text_width(transport) - 1)
    draw_segment(context, y, x, pad_line(text, room), style)
    draw_segment(context, y, max(x, width - text_width(transport) - 1), transport, "status_mode")


def draw_centered_cmdline(context):
    """
    Draw a centered command-line dialog box.
    """
    height, width = context.display.rows, context.display.cols
    box_width = min(width, max(40, len(context.command_buffer) + 10))
    box_height = 3
    start_y = max(0, (height - box_height) // 2)
    start_x = max(0, (width - box_width) // 2)

    title = " cmdline "
    title_start = max(0, (box_width - 2 - len(title)) // 2)
    top_line = ("┌" + "─" * title_start + title +
                "─" * max(0, box_width - 2 - title_start - len(title)) + "┐")
    bottom_border = "└" + "─" * (box_width - 2) + "┘"

    content = f"{CMD_ARROW} {context.command_buffer}"
    content = content[-(box_width - 4):].ljust(box_width - 4)
    content_line = "│ " + content + " │"

    attr = style_attr(context, "status_mode")
    logger.safe_addstr(context.stdscr, start_y, start_x, top_line, attr)
    logger.safe_addstr(context.stdscr, start_y + 1, start_x, content_line, attr)
    logger.safe_addstr(context.stdscr, start_y + 2, start_x, bottom_border, attr)


def display(context):
    """
    Re-draw the entire screen: page area, status bar, and command-line dialog (if active).
    """
    rows, cols = context.stdscr.getmaxyx()
    context.resize(rows, cols)
    context.stdscr.erase()
    draw_page(context, context.content_rows)
    draw_status_bar(context)
    if context.mode == "command":
        draw_centered_cmdline(context)
    context.stdscr.refresh()


def set_cursor(visibility):
    try:
        curses.curs_set(visibility)
    except curses.error:
        pass  # terminal can't change cursor visibility


def prompt_input(context, prompt: str) -> str:
    """
    Prompt the user for input on the status line.
    Returns the entered string, or an empty string if canceled.
    """
    saved_timeout = getattr(context, "input_timeout", -1)
    context.stdscr.timeout(-1)
    typed = ""
    set_cursor(1)
    try:
        while True:
            y = context.display.rows - 1
            line = f"{prompt} {typed}"
            logger.safe_addstr(context.stdscr, y, 0, pad_line(line, context.display.cols - 1),
                               style_attr(context, "status"))
            try:
                context.stdscr.move(y, min(context.display.cols - 1, text_width(line)))
            except curses.error:
                pass
            context.stdscr.refresh()
            key = context.stdscr.get_wch()
            if key in ("\n", "\r", curses.KEY_ENTER):
                return typed.strip()
            elif key == "\x1b":
                return ""
            elif key in ("\x08", "\x7f", curses.KEY_BACKSPACE):
                typed = typed[:-1]
            elif key == "\x15":  # ctrl-u
                typed = ""
            elif isinstance(key, str) and key.isprintable():
                typed += key
    finally:
        set_cursor(0)
        context.stdscr.timeout(saved_timeout)
