"""
Menu parsing for krill.

Turns the raw bytes of a gopher response into MenuItems (for menus) or display
lines (for text). Parsing never fails: real servers send all sorts of
non-conforming listings, so every rule below degrades instead of rejecting.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from krill import logger
from krill.address import NON_LINK_TYPES, parse_port

LINE_BREAK = re.compile(rb"\r\n|\r|\n")
END_MARKER = "."


@dataclass(frozen=True)
class MenuItem:
    item_type: str
    display: str
    selector: str
    host: str
    port: int

    @property
    def is_link(self) -> bool:
        return self.item_type not in NON_LINK_TYPES

    def to_line(self) -> str:
        """Serialize back into a menu line (without the line terminator)."""
        return f"{self.item_type}{self.display}\t{self.selector}\t{self.host}\t{self.port}"


def split_lines(raw: bytes) -> list[str]:
    """Split on CRLF or bare CR/LF and decode each line, replacing invalid bytes."""
    lines = LINE_BREAK.split(raw)
    if lines and lines[-1] == b"":
        lines.pop()
    return [line.decode("utf-8", errors="replace") for line in lines]


def normalize_selector(selector: str) -> str:
    if selector and not selector.startswith("/") and not selector.startswith("URL:"):
        return "/" + selector
    return selector


def parse_line(line: str, host: str, port: int) -> MenuItem | None:
    """Parse a single menu line. Returns None for lines without a type character."""
    if not line or line[0] == "\t":
        return None
    fields = line.split("\t")
    item_type = fields[0][0]
    display = fields[0][1:]
    selector = fields[1] if len(fields) > 1 else ""
    item_host = fields[2].strip() if len(fields) > 2 else ""
    item_port = parse_port(fields[3], port) if len(fields) > 3 else port
    return MenuItem(
        item_type=item_type,
        display=display,
        selector=normalize_selector(selector),
        host=item_host or host,
        port=item_port,
    )


def parse_menu(raw: bytes, host: str, port: int) -> list[MenuItem]:
    """
    Parse a menu response. Missing selector/host/port fields default to the
    empty selector and the host and port of the page being parsed, so relative
    links resolve against the server the menu came from.
    """
    items = []
    for number, line in enumerate(split_lines(raw), 1):
        if line == END_MARKER:
            break
        item = parse_line(line, host, port)
        if item is None:
            logger.log(f"menu {host}:{port}: skipped line {number} without a type", level="debug")
            continue
        items.append(item)
    return items


def parse_text(raw: bytes) -> list[str]:
    return split_lines(raw)
