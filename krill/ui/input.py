"""
Input handling for krill.

Processes key events for each mode (normal, search, command, fetching) and updates
the context accordingly. Keys arrive from curses get_wch(): printable keys as str,
special keys as int curses.KEY_* codes.
"""
import curses
import time

from krill import commands
from krill.page import BINARY

ESC = "\x1b"
ENTER = ("\n", "\r", curses.KEY_ENTER)
BACKSPACE = ("\x08", "\x7f", curses.KEY_BACKSPACE)
CTRL_C = "\x03"


def handle_normal_mode(context, key):
    """Handle a key press in normal mode."""
    # ESC clears the status line and any partial number
    if key == ESC:
        context.normal_number_buffer = ""
        context.status_message = ""
        return

    # Digits select a link by number; several digits typed quickly form one number
    if isinstance(key, str) and key.isdigit():
        if time.time() - context.last_digit_time > context.normal_number_timeout:
            context.normal_number_buffer = ""
        context.normal_number_buffer += key
        context.last_digit_time = time.time()
        context.select_number(int(context.normal_number_buffer))
        return
    context.normal_number_buffer = ""

    if key in ENTER:
        context.open_selected()
        return
    if key in (curses.KEY_UP, "k"):
        context.previous_link()
        return
    if key in (curses.KEY_DOWN, "j"):
        context.next_link()
        return
    if key in (curses.KEY_LEFT, "h") or key in BACKSPACE:
        context.go_back()
        return
    if key in (curses.KEY_RIGHT, "l"):
        context.go_forward()
        return
    if key in (curses.KEY_NPAGE, " "):
        context.page_down()
        return
    if key in (curses.KEY_PPAGE, "-"):
        context.page_up()
        return
    if key == curses.KEY_HOME:
        context.scroll(-context.total_lines())
        return
    if key == curses.KEY_END:
        context.scroll(context.total_lines())
        return
    if key == "/":
        context.start_search()
        return
    if key == ":":
        context.mode = "command"
        context.command_buffer = ""
        return
    if key == "g":
        url = context.prompt("go to url:")
        if url:
            context.open_url(url)
        return
    if key == "r":
        context.view_source()
        return
    if key == "R":
        context.reload()
        return
    if key == "u":
        context.show_url()
        return
    if key == "y":
        context.copy_url()
        return
    if key == "s":
        if context.nav.page.kind == BINARY:
            context.save_download()
        else:
            context.add_bookmark()
        return
    if key == "b":
        context.open_url("gopher://help/1/bookmarks")
        return
    if key == "H":
        context.open_url("gopher://help/1/history")
        return
    if key == "w":
        context.toggle_wide()
        return
    if key == "e":
        context.toggle_emoji()
        return
    if key == "?":
        context.open_url("gopher://help/1/keys")
        return
    if key in ("q", CTRL_C):
        context.graceful_exit()
        return


def handle_search_mode(context, key):
    """
    Handle a key press in search (/) mode.
    Typing narrows the matches, Tab/Down and Up move between them,
    Enter selects the match under the cursor and Esc restores the old selection.
    """
    search = context.search
    if key in ENTER:
        context.confirm_search()
    elif key in (ESC, CTRL_C):
        context.cancel_search()
    elif key in ("\t", curses.KEY_DOWN):
        search.next()
    elif key in (curses.KEY_BTAB, curses.KEY_UP):
        search.previous()
    elif key in BACKSPACE:
        if not search.query:
            context.cancel_search()
        else:
            search.backspace()
    elif isinstance(key, str) and key.isprintable():
        search.type(key)


def handle_command_mode(context, key):
    """Handle a key press in command (:) mode."""
    if key in (ESC, CTRL_C):
        context.mode = "normal"
        context.command_buffer = ""
        return
    if key in ENTER:
        cmd = context.command_buffer.strip()
        context.mode = "normal"
        context.command_buffer = ""
        commands.process_command(context, cmd)
        return

    # Basic text input in command mode
    if key in BACKSPACE:
        context.command_buffer = context.command_buffer[:-1]
    elif isinstance(key, str) and key.isprintable():
        context.command_buffer += key


def handle_fetching_mode(context, key):
    """While a page loads the only thing to do is cancel it (or quit)."""
    if key in (ESC, CTRL_C):
        context.cancel_fetch()
    elif key == "q":
        context.graceful_exit()
