"""Navigator state: views, input modes, list selection and live search."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable


class View(Enum):
    COUNTRIES = "countries"
    CITIES = "cities"
    CONNECTION = "connection"


class InputMode(Enum):
    NORMAL = "Normal"
    SEARCH = "Search"

    def __str__(self) -> str:
        return self.value


@dataclass
class ConnectionOutcome:
    """Connection flag and backend output of the last connect/disconnect/status call.

    Replaced wholesale on every backend call, never merged.
    """

    connected: bool = False
    output_lines: list[str] = field(default_factory=list)


@dataclass
class ListContext:
    """Ordered display strings plus a clamped selection index.

    For a non-empty list `0 <= index < len(items)`; an empty list keeps
    `index == 0` and has no selection.
    """

    items: list[str] = field(default_factory=list)
    index: int = 0

    def __post_init__(self) -> None:
        self.clamp()

    def __len__(self) -> int:
        return len(self.items)

    def clamp(self) -> None:
        if not self.items:
            self.index = 0
        else:
            self.index = max(0, min(self.index, len(self.items) - 1))

    @property
    def selected(self) -> str | None:
        if not self.items:
            return None
        return self.items[self.index]

    def replace(self, items: list[str], keep: str | None = None) -> None:
        """Swap in new items, moving the index onto `keep` when it is present.

        Otherwise the current index is kept (clamped).
        """
        self.items = list(items)
        if keep is not None and keep in self.items:
            self.index = self.items.index(keep)
        self.clamp()


def filter_items(source: list[str], query: str) -> list[str]:
    """Case-insensitive substring filter; an empty query returns `source` as-is."""
    if not query:
        return list(source)
    needle = query.casefold()
    return [item for item in source if needle in item.casefold()]


class SearchFilter:
    """Incremental search over a tier.

    The unfiltered source of the bound tier is kept untouched, so the displayed
    list is always `filter_items(source, query)` and backspace can bring back
    items that a longer query hid.
    """

    def __init__(self):
        self.query: str = ""
        self._source: list[str] = []
        self._context: ListContext | None = None

    def bind(self, context: ListContext | None, source: list[str] | None = None) -> None:
        """Point the filter at a tier's list (None for views without a list)."""
        self._context = context
        self._source = list(source) if source is not None else []

    @property
    def source(self) -> list[str]:
        return list(self._source)

    def push(self, char: str) -> None:
        self.query += char
        self.apply()

    def pop(self) -> None:
        self.query = self.query[:-1]
        self.apply()

    def apply(self) -> None:
        """Recompute the displayed list from the source and select the first row."""
        if self._context is None:
            return
        self._context.items = filter_items(self._source, self.query)
        self._context.index = 0

    def clear(self) -> None:
        """Drop the query and restore the full source, keeping the selected item."""
        self.query = ""
        if self._context is None:
            return
        keep = self._context.selected
        self._context.replace(self._source, keep=keep)


class SelectionModel:
    """Cursor movement over a ListContext, including the two-key `gg` gesture.

    `gesture_timeout` is the number of seconds the second `g` may lag behind
    the first; 0 means no limit.
    """

    def __init__(
        self,
        context: ListContext | None = None,
        gesture_timeout: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.context = context
        self.gesture_timeout = gesture_timeout
        self._clock = clock
        self.pending_g: bool = False
        self._pending_since: float = 0.0

    @property
    def highlighted(self) -> int | None:
        if self.context is None or not self.context.items:
            return None
        return self.context.index

    def move_down(self) -> None:
        ctx = self.context
        if ctx is None or not ctx.items:
            return
        if ctx.index < len(ctx.items) - 1:
            ctx.index += 1

    def move_up(self) -> None:
        ctx = self.context
        if ctx is None or not ctx.items:
            return
        if ctx.index > 0:
            ctx.index -= 1

    def jump_last(self) -> None:
        ctx = self.context
        if ctx is None or not ctx.items:
            return
        ctx.index = len(ctx.items) - 1

    def jump_first(self) -> None:
        if self.context is not None:
            self.context.index = 0

    def press_g(self) -> bool:
        """Feed one `g` press. Returns True when it completed `gg`."""
        now = self._clock()
        if self.pending_g and not self._expired(now):
            self.jump_first()
            self.cancel_gesture()
            return True
        self.pending_g = True
        self._pending_since = now
        return False

    def cancel_gesture(self) -> None:
        self.pending_g = False
        self._pending_since = 0.0

    def _expired(self, now: float) -> bool:
        if self.gesture_timeout <= 0:
            return False
        return now - self._pending_since > self.gesture_timeout
