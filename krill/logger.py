"""
Logger module for the krill gopher client.

Everything krill does over the network (fetches, cancellations, failures) and every
curses drawing error ends up as one timestamped line in the log file. The screen is
owned by curses, so nothing is ever printed while the browser runs.
"""
import curses
import datetime
import os

# Define the log file path
LOG_FILE_PATH = os.path.expanduser("~/.config/krill/krill.log")

def set_log_file(path: str) -> None:
    """Redirect all further log lines to `path`."""
    global LOG_FILE_PATH
    LOG_FILE_PATH = os.path.expanduser(path)

def log(message: str, level: str = "info") -> None:
    """Append a timestamped message to the log file, creating its directory if needed."""
    try:
        directory = os.path.dirname(LOG_FILE_PATH)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(LOG_FILE_PATH, 'a', encoding='utf-8') as f:
            timestamp = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            f.write(f"[{timestamp}] {level}: {message}\n")
    except OSError:
        # An unwritable log must never take the browser down with it.
        pass

def safe_addstr(window, y: int, x: int, text: str, attr: int = 0) -> None:
    """
    Draw `text` at (y, x), clipped to the window's width.
    Writing into the bottom-right cell raises curses.error even though the text is
    drawn, so errors are logged and otherwise ignored.
    """
    _, width = window.getmaxyx()
    if x >= width:
        return
    try:
        window.addstr(y, x, text[:width - x], attr)
    except curses.error:
        log(f"curses.error in addstr at ({y},{x}): {text[:40]!r}", level="debug")
