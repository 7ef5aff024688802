import pytest

from krill.address import Address
from krill.fetcher import FetchTimeout
from krill.navigation import FETCHING, IDLE, NavigationError, Navigator
from krill.page import Page


def make_page(name: str, links: int = 3) -> Page:
    raw = "".join(f"1{name} link {i}\t/{name}/{i}\texample.com\t70\r\n" for i in range(links))
    return Page.from_response(Address("example.com", 70, "1", f"/{name}"), raw.encode())


def navigate(nav: Navigator, page: Page) -> None:
    nav.begin(page.address)
    nav.commit(page)


def test_back_back_forward_then_new_link_clears_forward() -> None:
    a, b, c, d = make_page("a"), make_page("b"), make_page("c"), make_page("d")
    nav = Navigator(a)
    navigate(nav, b)
    navigate(nav, c)

    assert nav.back()
    assert nav.back()
    assert nav.page is a

    assert nav.forward()
    assert nav.page is b
    assert [v.page for v in nav.forward_stack] == [c]

    navigate(nav, d)
    assert nav.page is d
    assert nav.forward_stack == []
    assert [v.page for v in nav.back_stack] == [a, b]


def test_cancel_rolls_back_history() -> None:
    a, b = make_page("a"), make_page("b")
    nav = Navigator(a)
    navigate(nav, b)
    nav.back()
    forward_before = list(nav.forward_stack)

    nav.begin(Address("example.com", 70, "1", "/slow"))
    assert nav.state == FETCHING
    nav.rollback()

    assert nav.state == IDLE
    assert nav.page is a
    assert nav.back_stack == []
    assert nav.forward_stack == forward_before


def test_failed_fetch_becomes_a_visitable_error_page() -> None:
    a = make_page("a")
    nav = Navigator(a)
    target = Address("example.com", 70, "1", "/down")

    nav.begin(target)
    nav.fail(FetchTimeout(8))

    assert nav.page.error is not None
    assert nav.page.address == target
    assert nav.back()
    assert nav.page is a
    assert nav.forward()
    assert nav.page.error is not None


def test_only_one_fetch_at_a_time() -> None:
    nav = Navigator(make_page("a"))
    nav.begin(Address("example.com"))

    with pytest.raises(NavigationError):
        nav.begin(Address("example.com"))
    assert not nav.back()


def test_commit_resets_selection_and_scroll() -> None:
    nav = Navigator(make_page("a", links=10))
    nav.select(7, rows=3)
    assert nav.scroll == 5

    navigate(nav, make_page("b"))

    assert nav.selected == 0
    assert nav.scroll == 0


def test_back_restores_selection() -> None:
    nav = Navigator(make_page("a"))
    nav.select(2)
    navigate(nav, make_page("b"))

    nav.back()

    assert nav.selected == 2


def test_page_without_links_has_no_selection() -> None:
    text = Page.from_response(Address("example.com", 70, "0", "/t"), b"just text\r\n")
    nav = Navigator(text)

    assert nav.selected is None
    assert not nav.select_next()
    assert nav.selected_item() is None


def test_selection_moves_without_fetching() -> None:
    nav = Navigator(make_page("a", links=3))

    assert nav.select_next()
    assert nav.select_next()
    assert not nav.select_next()
    assert nav.selected == 2
    assert nav.select_previous()
    assert nav.selected == 1
    assert nav.select_number(1)
    assert nav.selected == 0
    assert not nav.select_number(9)
    assert nav.state == IDLE


def test_scrolling_moves_selection_into_view() -> None:
    nav = Navigator(make_page("a", links=20))

    nav.scroll_by(10, rows=5, total=20)

    assert nav.scroll == 10
    assert nav.selected == 10
    nav.scroll_by(100, rows=5, total=20)
    assert nav.scroll == 15


def test_reload_replaces_current_without_history_push() -> None:
    a, b = make_page("a"), make_page("b")
    nav = Navigator(a)
    navigate(nav, b)
    nav.select(1)

    nav.begin(b.address, replace=True)
    nav.commit(make_page("b"))

    assert nav.selected == 1
    assert [v.page for v in nav.back_stack] == [a]
