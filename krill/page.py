"""
Pages: the immutable result of one fetch.

A Page keeps the raw response next to its interpretation. Whether a response is a
menu, text or binary is decided once, from the item type of the address it was
fetched from, and never re-parsed when the page is drawn.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from krill.address import Address
from krill.menu import MenuItem, parse_menu, parse_text

MENU = "menu"
TEXT = "text"
BINARY = "binary"


@dataclass(frozen=True)
class Page:
    address: Address
    raw: bytes
    kind: str
    items: tuple = ()
    lines: tuple = ()
    title: str = ""
    error: Exception | None = None
    wide: bool = False
    # indexes into `items` of the entries that are links
    links: tuple = field(default=(), init=False)

    def __post_init__(self):
        links = tuple(i for i, item in enumerate(self.items) if item.is_link)
        object.__setattr__(self, "links", links)

    @classmethod
    def from_response(cls, address: Address, raw: bytes, title: str = "") -> "Page":
        if address.is_menu:
            items = parse_menu(raw, address.host, address.port)
            return cls(address, raw, MENU, items=tuple(items), title=title)
        if address.is_download:
            return cls(address, raw, BINARY, title=title)
        return cls(address, raw, TEXT, lines=tuple(parse_text(raw)), title=title)

    @classmethod
    def from_error(cls, address: Address, error: Exception) -> "Page":
        lines = (
            f"Error loading {address.to_url()}",
            "",
            str(error) or error.__class__.__name__,
        )
        return cls(address, b"", TEXT, lines=lines, title="error", error=error)

    @classmethod
    def source_of(cls, page: "Page") -> "Page":
        """A wide text page showing `page`'s raw response."""
        return cls(page.address, page.raw, TEXT, lines=tuple(parse_text(page.raw)),
                   title=f"source of {page.address.to_url()}", wide=True)

    @property
    def url(self) -> str:
        return self.address.to_url()

    @property
    def link_items(self) -> list[MenuItem]:
        return [self.items[i] for i in self.links]

    def link(self, index: int | None) -> MenuItem | None:
        if index is None or not 0 <= index < len(self.links):
            return None
        return self.items[self.links[index]]
