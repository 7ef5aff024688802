"""
Navigation state machine for krill.

The Navigator owns the back and forward stacks, the current visit and the link
selection. Network navigation is two-phase: `begin` tentatively pushes the page
being left onto the back stack and enters FETCHING, then exactly one of `commit`
(success), `fail` (error page) or `rollback` (cancel) returns to IDLE.
"""
from __future__ import annotations

from dataclasses import dataclass

from krill.page import Page

IDLE = "idle"
FETCHING = "fetching"


class NavigationError(RuntimeError):
    """An action was requested in a state that does not allow it."""


@dataclass
class Visit:
    """A page as it is being viewed: the page plus its page-scoped selection and scroll."""
    page: Page
    selected: int | None = None
    scroll: int = 0

    @classmethod
    def start(cls, page: Page) -> "Visit":
        return cls(page, 0 if page.links else None, 0)


@dataclass
class Pending:
    target: object
    previous: Visit
    forward: list
    replace: bool = False


class Navigator:
    def __init__(self, page: Page):
        self.back_stack: list[Visit] = []
        self.forward_stack: list[Visit] = []
        self.visit = Visit.start(page)
        self.state = IDLE
        self.pending: Pending | None = None

    # --- accessors -------------------------------------------------------
    @property
    def page(self) -> Page:
        return self.visit.page

    @property
    def selected(self) -> int | None:
        return self.visit.selected

    @property
    def scroll(self) -> int:
        return self.visit.scroll

    @property
    def fetching(self) -> bool:
        return self.state == FETCHING

    def selected_item(self):
        return self.page.link(self.visit.selected)

    # --- two-phase navigation -------------------------------------------
    def begin(self, target, replace: bool = False):
        """
        Idle -> Fetching. Tentatively push the current visit and clear forward.
        With `replace` (reload) the stacks are left alone and the result takes
        the current visit's place.
        """
        if self.state != IDLE:
            raise NavigationError("a fetch is already in progress")
        self.pending = Pending(target, self.visit, list(self.forward_stack), replace)
        if not replace:
            self.back_stack.append(self.visit)
            self.forward_stack.clear()
        self.state = FETCHING

    def commit(self, page: Page):
        """Fetching -> Idle with the fetched page as current."""
        if self.state != FETCHING:
            raise NavigationError("no fetch in progress")
        if self.pending.replace:
            self.replace(page)
        else:
            self.visit = Visit.start(page)
        self.pending = None
        self.state = IDLE

    def fail(self, error: Exception):
        """Fetching -> Idle with an error page, which stays on the history stacks."""
        if self.state != FETCHING:
            raise NavigationError("no fetch in progress")
        self.commit(Page.from_error(self.pending.target, error))

    def rollback(self):
        """Fetching -> Idle as if the navigation never happened."""
        if self.state != FETCHING:
            raise NavigationError("no fetch in progress")
        if not self.pending.replace:
            self.back_stack.pop()
        self.forward_stack = self.pending.forward
        self.visit = self.pending.previous
        self.pending = None
        self.state = IDLE

    def open(self, page: Page):
        """Navigate to a page that needs no fetch (builtin pages, page source)."""
        self.begin(page.address)
        self.commit(page)

    def replace(self, page: Page):
        """Swap the current page in place, keeping history. Used by reload."""
        selected = self.visit.selected
        if selected is None or selected >= len(page.links):
            selected = 0 if page.links else None
        self.visit = Visit(page, selected, 0)

    # --- history replay --------------------------------------------------
    def back(self) -> bool:
        if self.state != IDLE or not self.back_stack:
            return False
        self.forward_stack.append(self.visit)
        self.visit = self.back_stack.pop()
        return True

    def forward(self) -> bool:
        if self.state != IDLE or not self.forward_stack:
            return False
        self.back_stack.append(self.visit)
        self.visit = self.forward_stack.pop()
        return True

    # --- selection and scrolling (never fetches) ---------------------------
    def ensure_visible(self, rows: int):
        selected = self.visit.selected
        if selected is None or rows <= 0:
            return
        line = self.page.links[selected]
        if line < self.visit.scroll:
            self.visit.scroll = line
        elif line >= self.visit.scroll + rows:
            self.visit.scroll = line - rows + 1

    def select(self, index: int, rows: int = 0) -> bool:
        if not 0 <= index < len(self.page.links):
            return False
        self.visit.selected = index
        self.ensure_visible(rows)
        return True

    def select_next(self, rows: int = 0) -> bool:
        if self.visit.selected is None:
            return False
        return self.select(self.visit.selected + 1, rows)

    def select_previous(self, rows: int = 0) -> bool:
        if self.visit.selected is None:
            return False
        return self.select(self.visit.selected - 1, rows)

    def select_number(self, number: int, rows: int = 0) -> bool:
        """Select link `number`, counting from 1 as links are numbered on screen."""
        return self.select(number - 1, rows)

    def scroll_by(self, delta: int, rows: int, total: int):
        """
        Scroll the viewport, clamped to the page length. On menus a selection that
        scrolled out of view moves to the first visible link.
        """
        limit = max(0, total - rows)
        self.visit.scroll = min(limit, max(0, self.visit.scroll + delta))
        selected = self.visit.selected
        if selected is None:
            return
        top, bottom = self.visit.scroll, self.visit.scroll + rows
        if not top <= self.page.links[selected] < bottom:
            for index, line in enumerate(self.page.links):
                if line >= top:
                    self.visit.selected = index
                    break
            self.ensure_visible(rows)
