"""
Builtin pages served from the pseudo host `help`, without touching the network.

Pages are written as gopher menus (`i` lines for text). Links inside them use
`help` as host so they resolve back here.
"""
from __future__ import annotations

from krill import __version__
from krill.address import TYPE_NAMES


def _info(text: str = "") -> str:
    return f"i{text}\t\thelp\t70"


def _link(item_type: str, label: str, selector: str, host: str = "help", port: int = 70) -> str:
    return f"{item_type}{label}\t{selector}\t{host}\t{port}"


HOME = [
    _info(" _        _ _ _"),
    _info("| | ___ _(_) | |"),
    _info("| |/ / '_| | | |"),
    _info("|_\\_\\_| |_|_|_|   a gopher client"),
    _info(),
    _link("1", "Bookmarks", "/bookmarks"),
    _link("1", "History", "/history"),
    _link("1", "Keys", "/keys"),
    _link("1", "Item types", "/types"),
    _link("1", "About krill", "/about"),
    _info(),
    _info("Places to start:"),
    _link("1", "Floodgap", "", "gopher.floodgap.com"),
    _link("7", "Veronica-2 search", "/v2/vs", "gopher.floodgap.com"),
    _link("1", "SDF", "", "sdf.org"),
]

KEYS = [
    _info("Moving around"),
    _info(),
    _info("  up / k         previous link"),
    _info("  down / j       next link"),
    _info("  pgup / pgdn    scroll a page"),
    _info("  space / -      scroll a page"),
    _info("  1-9            select link by number"),
    _info("  enter          open selected link"),
    _info("  left / bksp    back"),
    _info("  right          forward"),
    _info(),
    _info("Searching"),
    _info(),
    _info("  /              search links on this page"),
    _info("  tab / down     next match"),
    _info("  up             previous match"),
    _info("  enter          select match"),
    _info("  esc            cancel search"),
    _info(),
    _info("Everything else"),
    _info(),
    _info("  g              go to url"),
    _info("  r              view page source"),
    _info("  R              reload page"),
    _info("  u              show current url"),
    _info("  y              copy current url"),
    _info("  s              save bookmark (save file on binary pages)"),
    _info("  b              bookmarks"),
    _info("  H              history"),
    _info("  w              toggle wide mode"),
    _info("  e              toggle emoji mode"),
    _info("  :              command line"),
    _info("  esc            cancel loading"),
    _info("  ?              this page"),
    _info("  q              quit"),
]

ABOUT = [
    _info(f"krill {__version__}"),
    _info(),
    _info("A terminal client for gopherspace."),
    _info("Start it with a url to go straight there:"),
    _info(),
    _info("  krill gopher.floodgap.com"),
    _info("  krill -p sdf.org/1/users   (print a page and exit)"),
    _info("  krill -t -s some.onion     (tor + tls)"),
]


def _types() -> list:
    lines = [_info("Gopher item types"), _info()]
    for item_type, name in TYPE_NAMES.items():
        lines.append(_info(f"  {item_type}   {name}"))
    return lines


PAGES = {
    "": HOME,
    "/": HOME,
    "/keys": KEYS,
    "/about": ABOUT,
}


def lookup(selector: str) -> bytes | None:
    """Menu source for a builtin selector, or None if there's no such page."""
    if selector == "/types":
        lines = _types()
    else:
        lines = PAGES.get(selector)
    if lines is None:
        return None
    return ("\r\n".join(lines) + "\r\n.\r\n").encode("utf-8")
