import pytest

from krill.address import Address, AddressError, parse_url
from krill.menu import MenuItem


def test_parse_full_url() -> None:
    address = parse_url("gopher://example.com:7070/0/about.txt")

    assert address == Address("example.com", 7070, "0", "/about.txt")


def test_scheme_is_optional() -> None:
    assert parse_url("example.com/1/home") == Address("example.com", 70, "1", "/home")


def test_bare_host_is_root_menu() -> None:
    for url in ("example.com", "example.com/", "gopher://example.com"):
        assert parse_url(url) == Address("example.com", 70, "1", "")


def test_bad_port_falls_back_to_default() -> None:
    assert parse_url("example.com:notaport/1/x").port == 70
    assert parse_url("example.com:99999/1/x").port == 70
    assert parse_url("example.com:0/1/x").port == 70


def test_missing_host_is_malformed() -> None:
    with pytest.raises(AddressError):
        parse_url("gopher://")
    with pytest.raises(AddressError):
        parse_url(":70/1/home")


def test_unknown_type_character_is_treated_as_menu_path() -> None:
    assert parse_url("example.com/users/bob") == Address("example.com", 70, "1", "/users/bob")


def test_ipv6_host() -> None:
    address = parse_url("gopher://[::1]:7070/1/")
    assert address.host == "::1"
    assert address.port == 7070
    assert address.to_url() == "gopher://[::1]:7070/1/"


@pytest.mark.parametrize("url", [
    "example.com:7070/0/about.txt",
    "example.com/1/home",
    "example.com/",
    "example.com/0",
    "example.com:71/9/files/archive.zip",
    "example.com/7/search%09gopher",
])
def test_round_trip(url: str) -> None:
    address = parse_url(url)

    assert parse_url(address.to_url()) == address


def test_from_menu_item() -> None:
    item = MenuItem("1", "Home", "/home", "example.com", 70)

    assert Address.from_item(item) == Address("example.com", 70, "1", "/home")


def test_search_query_is_sent_after_a_tab() -> None:
    search = Address("example.com", 70, "7", "/search").with_query("gopher holes")

    assert search.item_type == "1"
    assert search.request() == b"/search\tgopher holes\r\n"
    assert "%09" in search.to_url()


def test_external_url() -> None:
    assert Address("example.com", 70, "h", "URL:https://example.org/").external_url == "https://example.org/"
    assert Address("example.com", 70, "h", "/page.html").external_url is None
