"""Filter State — in-memory filter set + search query with snapshot notifications.

Invariants:
    - toggle(t) twice in a row restores the previous active set (symmetric difference)
    - Empty, whitespace-only, or non-string tokens are ignored — no change, no notification
    - set_search stores the query verbatim (no trimming); "" means no text filter
    - clear() resets set AND query in one step — subscribers see exactly one change
    - Subscribers receive immutable FilterCriteria snapshots, never the live state
    - Nothing here fails; a raising subscriber propagates to the mutating caller

Design Decisions:
    - Explicitly owned instance passed to collaborators, not a module-level store
    - Insertion order kept for display; identity (equality, cache keys) is order-free
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from courtside.core.domain_types import is_product_type


@dataclass(frozen=True)
class FilterCriteria:
    """Immutable filter snapshot. Equality ignores token insertion order."""

    active_filters: tuple[str, ...] = ()
    search_query: str = ""
    # Set view used for equality/hash so insertion order never matters
    token_set: frozenset[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "token_set", frozenset(self.active_filters))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterCriteria):
            return NotImplemented
        return (
            self.token_set == other.token_set
            and self.search_query == other.search_query
        )

    def __hash__(self) -> int:
        return hash((self.token_set, self.search_query))

    @property
    def is_empty(self) -> bool:
        return not self.active_filters and self.search_query == ""

    @property
    def sorted_filters(self) -> list[str]:
        return sorted(self.token_set)

    @property
    def type_filters(self) -> list[str]:
        return [t for t in self.sorted_filters if is_product_type(t)]

    @property
    def tag_filters(self) -> list[str]:
        return [t for t in self.sorted_filters if not is_product_type(t)]


FilterListener = Callable[[FilterCriteria], None]


class FilterState:
    """Active filter tokens and search query, with subscriber notification."""

    def __init__(self) -> None:
        self._filters: list[str] = []
        self._search: str = ""
        self._listeners: list[FilterListener] = []

    @property
    def active_filters(self) -> tuple[str, ...]:
        return tuple(self._filters)

    @property
    def search_query(self) -> str:
        return self._search

    @property
    def snapshot(self) -> FilterCriteria:
        return FilterCriteria(tuple(self._filters), self._search)

    def toggle(self, token: str) -> FilterCriteria:
        """Add the token if absent, remove it if present."""
        if not isinstance(token, str) or not token.strip():
            return self.snapshot
        if token in self._filters:
            self._filters.remove(token)
        else:
            self._filters.append(token)
        return self._publish()

    def set_search(self, query: str) -> FilterCriteria:
        self._search = query
        return self._publish()

    def clear(self) -> FilterCriteria:
        self._filters = []
        self._search = ""
        return self._publish()

    def subscribe(self, listener: FilterListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> FilterCriteria:
        snapshot = self.snapshot
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot
