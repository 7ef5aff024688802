"""
Gopher addresses for krill.

An Address is the (host, port, item type, selector) quadruple every fetch is made
against. Addresses are parsed from URL-like strings typed by the user or passed on
the command line, or built from a MenuItem the user opened.
"""
from __future__ import annotations

from dataclasses import dataclass

DEFAULT_PORT = 70
BUILTIN_HOST = "help"

# Item type -> human readable name, in the order the types are listed on the help page
TYPE_NAMES = {
    "0": "text",
    "1": "menu",
    "2": "cso",
    "3": "error",
    "4": "binhex",
    "5": "dos",
    "6": "uuencoded",
    "7": "search",
    "8": "telnet",
    "9": "binary",
    "+": "mirror",
    "g": "gif",
    "T": "tn3270",
    "h": "html",
    "I": "image",
    "i": "info",
    "s": "sound",
    "d": "document",
}

MENU_TYPES = {"1", "7", "+"}
DOWNLOAD_TYPES = {"4", "5", "6", "9", "g", "I", "s", "d"}
NON_LINK_TYPES = {"i", "3"}
EXTERNAL_TYPES = {"8", "T"}


class AddressError(ValueError):
    """Raised when a URL has no host we can isolate."""


@dataclass(frozen=True)
class Address:
    host: str
    port: int = DEFAULT_PORT
    item_type: str = "1"
    selector: str = ""

    @classmethod
    def from_item(cls, item) -> "Address":
        return cls(item.host, item.port, item.item_type, item.selector)

    @property
    def is_builtin(self) -> bool:
        return self.host == BUILTIN_HOST

    @property
    def is_menu(self) -> bool:
        return self.item_type in MENU_TYPES

    @property
    def is_download(self) -> bool:
        return self.item_type in DOWNLOAD_TYPES

    @property
    def external_url(self) -> str | None:
        """The web URL an `h` item points at, or None for a regular selector."""
        if self.item_type == "h" and self.selector.startswith("URL:"):
            return self.selector[4:]
        return None

    def with_query(self, query: str) -> "Address":
        """Address of a search (type 7) request for `query`, answered as a menu."""
        selector = self.selector.split("\t", 1)[0]
        return Address(self.host, self.port, "1", f"{selector}\t{query}")

    def request(self) -> bytes:
        """The bytes sent on the wire for this address."""
        return self.selector.encode("utf-8") + b"\r\n"

    def to_url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        port = "" if self.port == DEFAULT_PORT else f":{self.port}"
        selector = self.selector.replace("\t", "%09")
        if not self.selector and self.item_type == "1":
            return f"gopher://{host}{port}/"
        return f"gopher://{host}{port}/{self.item_type}{selector}"

    def __str__(self) -> str:
        return self.to_url()


def parse_port(text: str, default: int = DEFAULT_PORT) -> int:
    """Parse a port number, falling back to `default` for anything not in 1..65535."""
    try:
        port = int(text.strip())
    except (ValueError, AttributeError):
        return default
    if 0 < port < 65536:
        return port
    return default


def _split_host_port(authority: str) -> tuple[str, int]:
    if authority.startswith("["):
        # [v6::addr]:port
        end = authority.find("]")
        if end == -1:
            return authority[1:], DEFAULT_PORT
        host = authority[1:end]
        rest = authority[end + 1:]
        if rest.startswith(":"):
            return host, parse_port(rest[1:])
        return host, DEFAULT_PORT
    if authority.count(":") == 1:
        host, port = authority.split(":", 1)
        return host, parse_port(port)
    return authority, DEFAULT_PORT


def parse_url(url: str) -> Address:
    """
    Parse a gopher URL into an Address.

    The scheme is optional and ignored. The port falls back to 70 when missing or
    unparseable. The first path character is the item type and the rest is the
    selector; a bare host (or a single trailing slash) means the root menu.
    """
    text = url.strip()
    if "://" in text:
        text = text.split("://", 1)[1]

    if "/" in text:
        authority, path = text.split("/", 1)
    else:
        authority, path = text, ""

    host, port = _split_host_port(authority)
    host = host.strip()
    if not host:
        raise AddressError(f"no host in url: {url!r}")

    path = path.replace("%09", "\t")
    if not path:
        return Address(host, port, "1", "")

    item_type = path[0]
    if item_type not in TYPE_NAMES:
        # No type prefix: treat the whole path as a menu selector
        return Address(host, port, "1", "/" + path)
    return Address(host, port, item_type, path[1:])
