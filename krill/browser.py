"""
Browser session for krill.

BrowserContext holds the state of one interactive session: the navigator, the
session-wide display settings, the search in progress, the outstanding fetch and
the status line. It knows nothing about curses; the ui package draws it and feeds
it key presses.
"""
from __future__ import annotations

import os
import webbrowser

import pyperclip

from krill import help, logger
from krill.address import Address, AddressError, EXTERNAL_TYPES, parse_url
from krill.config import HOME_URL
from krill.fetcher import FetchCancelled, FetchError, FetchWorker, fetch
from krill.navigation import Navigator
from krill.page import BINARY, MENU, Page
from krill.render import DisplayState, line_count
from krill.search import SearchState
from krill.store import HistoryRecord, Store, StoreError


class BrowserContext:
    """
    Holds the state of the browser and provides methods for every user action.
    Navigation, search and display state are kept apart so that changing page
    never resets session-wide settings like wide mode.
    """
    def __init__(self, config, fetch_func=fetch, prompt=None):
        self.config = config
        self.fetch_func = fetch_func
        # Callable used to ask the user for a line of text; the curses UI installs one.
        self.prompt = prompt or (lambda text: "")

        self.display = DisplayState(
            wide_mode=config.wide,
            emoji_mode=config.emoji,
            color=config.color,
            transport_mode=config.transport_mode,
        )
        self.history = Store(config.history_file, newest_first=True)
        self.bookmarks = Store(config.bookmarks_file)

        # Browser modes: "normal", "search", "command", "fetching"
        self.mode = "normal"
        self.search = None
        self.worker = None
        self.fetch_title = ""

        # Input states
        self.normal_number_buffer = ""
        self.last_digit_time = 0
        self.normal_number_timeout = 0.5
        self.command_buffer = ""
        self.status_message = ""

        home = parse_url(HOME_URL)
        self.nav = Navigator(self.builtin_page(home))
        self.exit_flag = False

    # --- helpers ---------------------------------------------------------
    @property
    def content_rows(self) -> int:
        """Rows available for the page; the last screen row is the status bar."""
        return max(1, self.display.rows - 1)

    def resize(self, rows: int, cols: int):
        self.display.rows = rows
        self.display.cols = cols

    def set_status(self, message: str):
        self.status_message = message

    def builtin_page(self, address: Address) -> Page:
        """Pages served by krill itself under gopher://help/."""
        menu_address = Address(address.host, address.port, "1", address.selector)
        stores = {"/history": self.history, "/bookmarks": self.bookmarks}
        if address.selector in stores:
            # built from the records so query selectors keep their tab
            store = stores[address.selector]
            return Page(menu_address, store.as_menu(), MENU, items=tuple(store.menu_items()))
        source = help.lookup(address.selector)
        if source is None:
            return Page.from_error(address, AddressError(f"no help page {address.selector!r}"))
        return Page.from_response(menu_address, source)

    # --- navigation ------------------------------------------------------
    def open_url(self, url: str):
        try:
            address = parse_url(url)
        except AddressError as e:
            self.set_status(str(e))
            return
        self.open_address(address, title=url)

    def open_selected(self):
        item = self.nav.selected_item()
        if item is None:
            return
        self.search = None
        self.open_address(Address.from_item(item), title=item.display)

    def open_address(self, address: Address, title: str = "", replace: bool = False):
        """Start navigating to `address`. Network fetches run on a FetchWorker."""
        if self.nav.fetching:
            self.set_status("still loading, press esc to cancel.")
            return
        if address.external_url:
            url = address.external_url
            try:
                webbrowser.open(url)
                self.set_status(f"opened {url} in web browser.")
            except webbrowser.Error as e:
                self.set_status(f"can't open {url}: {e}")
            return
        if address.item_type in EXTERNAL_TYPES:
            self.set_status(f"telnet sessions aren't supported: {address.host}:{address.port}")
            return
        if address.item_type == "7" and "\t" not in address.selector:
            query = self.prompt(f"search {title or address.host}:")
            if not query:
                self.set_status("search cancelled.")
                return
            address = address.with_query(query)

        if address.is_builtin:
            try:
                page = self.builtin_page(address)
            except StoreError as e:
                self.set_status(str(e))
                return
            if replace:
                self.nav.replace(page)
            else:
                self.nav.open(page)
            return

        self.nav.begin(address, replace=replace)
        self.fetch_title = title
        self.worker = FetchWorker(
            address,
            self.fetch_func,
            mode=self.display.transport_mode,
            timeout=self.config.timeout,
            verify=self.config.verify_tls,
            proxy=self.config.proxy,
        ).start()
        self.mode = "fetching"
        self.set_status(f"loading {address.to_url()} ...")

    def poll_fetch(self, wait: float = 0.0) -> bool:
        """Apply the outstanding fetch's outcome if it has one. Returns True when it finished."""
        if self.worker is None:
            return False
        outcome = self.worker.poll(wait)
        if outcome is None:
            return False
        self.finish_fetch(outcome)
        return True

    def finish_fetch(self, outcome):
        address = self.worker.address
        self.worker = None
        self.mode = "normal"
        if isinstance(outcome, FetchCancelled):
            self.nav.rollback()
            logger.log(f"fetch cancelled: {address}")
            self.set_status("cancelled.")
        elif isinstance(outcome, FetchError):
            self.nav.fail(outcome)
            logger.log(f"fetch failed: {address}: {outcome}", level="error")
            self.set_status(f"error: {outcome}")
        else:
            page = Page.from_response(address, outcome, title=self.fetch_title)
            self.nav.commit(page)
            logger.log(f"fetch done: {address} ({len(outcome)} bytes)")
            self.set_status("")
            self.record_history(page)

    def cancel_fetch(self):
        """Abandon the outstanding fetch right away; its late result is discarded."""
        if self.worker is None:
            return
        self.worker.cancel()
        self.finish_fetch(FetchCancelled())

    def record_history(self, page: Page):
        if page.address.is_builtin or page.error:
            return
        try:
            self.history.append(HistoryRecord(page.title or page.url, page.address))
        except StoreError as e:
            self.set_status(str(e))

    def go_back(self):
        if not self.nav.back():
            self.set_status("nothing to go back to.")

    def go_forward(self):
        if not self.nav.forward():
            self.set_status("nothing to go forward to.")

    def reload(self):
        self.open_address(self.nav.page.address, title=self.nav.page.title, replace=True)

    def view_source(self):
        self.nav.open(Page.source_of(self.nav.page))

    # --- selection and scrolling ------------------------------------------
    def total_lines(self) -> int:
        return line_count(self.nav.page, self.display)

    def next_link(self):
        if self.nav.selected is None:
            self.scroll(1)
        elif not self.nav.select_next(self.content_rows):
            self.scroll(1)

    def previous_link(self):
        if self.nav.selected is None:
            self.scroll(-1)
        elif not self.nav.select_previous(self.content_rows):
            self.scroll(-1)

    def scroll(self, delta: int):
        self.nav.scroll_by(delta, self.content_rows, self.total_lines())

    def page_down(self):
        self.scroll(self.content_rows)

    def page_up(self):
        self.scroll(-self.content_rows)

    def select_number(self, number: int):
        if not self.nav.select_number(number, self.content_rows):
            self.set_status(f"no link {number}.")

    # --- search ----------------------------------------------------------
    def start_search(self):
        names = [item.display for item in self.nav.page.link_items]
        if not names:
            self.set_status("no links to search.")
            return
        self.search = SearchState(names, self.nav.selected)
        self.mode = "search"

    def confirm_search(self):
        if self.search is not None:
            index = self.search.confirm()
            if index is not None:
                self.nav.select(index, self.content_rows)
        self.search = None
        self.mode = "normal"

    def cancel_search(self):
        self.search = None
        self.mode = "normal"

    # --- session-wide toggles --------------------------------------------
    def toggle_wide(self):
        self.display.wide_mode = not self.display.wide_mode
        self.nav.visit.scroll = min(self.nav.scroll, max(0, self.total_lines() - self.content_rows))
        self.set_status(f"wide mode {'on' if self.display.wide_mode else 'off'}.")

    def toggle_emoji(self):
        self.display.emoji_mode = not self.display.emoji_mode
        self.set_status(f"emoji {'on' if self.display.emoji_mode else 'off'}.")

    # --- url, clipboard, bookmarks, downloads ----------------------------
    def show_url(self):
        self.set_status(self.nav.page.url)

    def copy_url(self):
        url = self.nav.page.url
        try:
            pyperclip.copy(url)
        except pyperclip.PyperclipException as e:
            logger.log(f"clipboard error: {e}")
            self.set_status(f"clipboard error: {e}")
            return
        self.set_status(f"copied {url} to clipboard.")

    def add_bookmark(self, label: str = ""):
        page = self.nav.page
        label = label or self.prompt("bookmark label:") or page.title or page.url
        try:
            self.bookmarks.append(HistoryRecord(label, page.address))
        except StoreError as e:
            self.set_status(str(e))
            return
        self.set_status(f"saved bookmark: {label}")

    def save_download(self):
        page = self.nav.page
        if page.kind != BINARY:
            self.set_status("only binary pages can be saved.")
            return
        directory = os.path.expanduser(self.config.download_dir)
        if not os.path.isdir(directory):
            directory = os.getcwd()
        name = os.path.basename(page.address.selector.rstrip("/")) or page.address.host
        path = os.path.join(directory, name)
        try:
            with open(path, "wb") as f:
                f.write(page.raw)
        except OSError as e:
            logger.log(f"save failed: {path}: {e}", level="error")
            self.set_status(f"can't save {path}: {e.strerror or e}")
            return
        self.set_status(f"saved {len(page.raw)} bytes to {path}")

    def graceful_exit(self):
        """Stop the main loop, dropping any fetch still in flight."""
        if self.worker is not None:
            self.worker.cancel()
        logger.log("krill exited.")
        self.exit_flag = True


def fetch_page(address: Address, config, fetch_func=fetch) -> Page:
    """Fetch one page outside the interactive loop. Failures come back as error pages."""
    if address.is_builtin:
        try:
            return BrowserContext(config, fetch_func).builtin_page(address)
        except StoreError as e:
            return Page.from_error(address, e)
    worker = FetchWorker(
        address,
        fetch_func,
        mode=config.transport_mode,
        timeout=config.timeout,
        verify=config.verify_tls,
        proxy=config.proxy,
    ).start()
    outcome = worker.wait()
    if isinstance(outcome, FetchError):
        logger.log(f"fetch failed: {address}: {outcome}", level="error")
        return Page.from_error(address, outcome)
    return Page.from_response(address, outcome)
