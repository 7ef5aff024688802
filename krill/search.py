"""
Incremental link search.

Matches are computed against the display text of the current page's links with a
case-insensitive substring test, in link order. The search only moves the link
selection when it is confirmed; cancelling leaves the selection untouched.
"""
from __future__ import annotations


def find_matches(names, query: str) -> list[int]:
    """Indexes of the names containing `query`, ignoring case."""
    needle = query.lower()
    return [i for i, name in enumerate(names) if needle in name.lower()]


class SearchState:
    """State of one search session, discarded once it is confirmed or cancelled."""

    def __init__(self, names, selected: int | None):
        self.names = list(names)
        self.origin = selected
        self.query = ""
        self.matches: list[int] = []
        self.cursor = 0

    def set_query(self, query: str):
        self.query = query
        self.matches = find_matches(self.names, query) if query else []
        self.cursor = 0
        start = self.origin or 0
        for i, index in enumerate(self.matches):
            if index >= start:
                self.cursor = i
                break

    def type(self, ch: str):
        self.set_query(self.query + ch)

    def backspace(self):
        self.set_query(self.query[:-1])

    def next(self):
        if self.matches:
            self.cursor = (self.cursor + 1) % len(self.matches)

    def previous(self):
        if self.matches:
            self.cursor = (self.cursor - 1) % len(self.matches)

    @property
    def current(self) -> int | None:
        """The link index under the cursor, if there is a match."""
        if not self.matches:
            return None
        return self.matches[self.cursor]

    def confirm(self) -> int | None:
        """Selection to apply once search ends: the cursor match, else the original one."""
        current = self.current
        return self.origin if current is None else current
