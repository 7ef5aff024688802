"""
Command parsing and execution for krill.

This module handles parsing of command-line mode input (':' mode) and dispatches
to the appropriate actions on the browser context.
"""
from krill import logger


def process_command(context, command: str):
    """Parse and execute a command-line (':' mode) command string."""
    cmd = command.strip()
    if not cmd:
        return
    name, _, arg = cmd.partition(" ")
    name = name.lower()
    arg = arg.strip()
    logger.log(f"command: {cmd}")

    if name in ("quit", "q"):
        context.graceful_exit()
        return

    if name in ("go", "g", "open"):
        if not arg:
            context.status_message = "go where? usage: go <url>"
            return
        context.open_url(arg)
        return

    if name in ("back", "b"):
        context.go_back()
        return

    if name in ("forward", "f"):
        context.go_forward()
        return

    if name == "wide":
        context.toggle_wide()
        return

    if name == "emoji":
        context.toggle_emoji()
        return

    if name in ("raw", "source"):
        context.view_source()
        return

    if name in ("reload", "r"):
        context.reload()
        return

    if name == "url":
        context.show_url()
        return

    if name in ("copy", "y"):
        context.copy_url()
        return

    if name in ("bm", "bookmark"):
        context.add_bookmark(arg)
        return

    if name in ("marks", "bookmarks"):
        context.open_url("gopher://help/1/bookmarks")
        return

    if name in ("hist", "history"):
        context.open_url("gopher://help/1/history")
        return

    if name in ("help", "h", "?"):
        context.open_url("gopher://help/1/keys")
        return

    if name in ("save", "s"):
        context.save_download()
        return

    context.status_message = f"unknown command: {name}"
