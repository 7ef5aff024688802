"""
Bookmark and history files.

Both are append-only logs with one gopher menu line per record, so the files are
themselves browsable menus. History is shown newest first, which is a reversal
done when reading; the file keeps the order records were written in.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from krill import logger
from krill.address import Address
from krill.menu import MenuItem, parse_menu

# Query tabs inside a selector would split the record line, so they are stored
# the way urls carry them.
TAB_ESCAPE = "%09"


class StoreError(Exception):
    """A bookmark/history file could not be read or written."""


@dataclass(frozen=True)
class HistoryRecord:
    label: str
    address: Address

    def to_line(self) -> str:
        label = self.label.replace("\t", " ").replace("\r", " ").replace("\n", " ")
        a = self.address
        selector = a.selector.replace("\t", TAB_ESCAPE)
        return f"{a.item_type}{label}\t{selector}\t{a.host}\t{a.port}\r\n"

    def to_item(self) -> MenuItem:
        a = self.address
        return MenuItem(a.item_type, self.label, a.selector, a.host, a.port)


class Store:
    def __init__(self, path: str, newest_first: bool = False):
        self.path = os.path.expanduser(path)
        self.newest_first = newest_first

    def append(self, record: HistoryRecord) -> None:
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(self.path, "a", encoding="utf-8", newline="") as f:
                f.write(record.to_line())
        except OSError as e:
            logger.log(f"store append failed for {self.path}: {e}", level="error")
            raise StoreError(f"can't write {self.path}: {e.strerror or e}") from e

    def load_all(self) -> list[HistoryRecord]:
        """All records in the order they were appended. A missing file is an empty store."""
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "rb") as f:
                raw = f.read()
        except OSError as e:
            logger.log(f"store read failed for {self.path}: {e}", level="error")
            raise StoreError(f"can't read {self.path}: {e.strerror or e}") from e
        return [
            HistoryRecord(item.display, Address(item.host, item.port, item.item_type,
                                                item.selector.replace(TAB_ESCAPE, "\t")))
            for item in parse_menu(raw, "", 70)
            if item.is_link and item.host
        ]

    def display_order(self) -> list[HistoryRecord]:
        records = self.load_all()
        if self.newest_first:
            records.reverse()
        return records

    def menu_items(self) -> list[MenuItem]:
        """The records in display order as menu links, query tabs intact."""
        return [record.to_item() for record in self.display_order()]

    def as_menu(self) -> bytes:
        """The records in display order as a gopher menu."""
        return "".join(record.to_line() for record in self.display_order()).encode("utf-8")
