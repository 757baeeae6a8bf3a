"""Shared selection logic for the list-backed views (peers, apps)."""

from __future__ import annotations

from typing import Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")


class KeyedListModel(Generic[T]):
    """Records kept in first-seen order, unique by key, with a circular cursor.

    Upserting an existing key replaces the record in place. Removal only
    shrinks the collection; a selection left past the end is revalidated by
    the next navigation call and ignored by :meth:`selected_item`.
    """

    def __init__(self, key: Callable[[T], str]) -> None:
        self._key = key
        self.items: List[T] = []
        self.selected: Optional[int] = None

    def __len__(self) -> int:
        return len(self.items)

    def index_of(self, key: str) -> Optional[int]:
        for index, item in enumerate(self.items):
            if self._key(item) == key:
                return index
        return None

    def upsert(self, item: T) -> None:
        index = self.index_of(self._key(item))
        if index is None:
            self.items.append(item)
        else:
            self.items[index] = item

    def remove(self, key: str) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if self._key(item) != key]
        if not self.items:
            self.selected = None
        return len(self.items) != before

    def select_next(self) -> None:
        if not self.items:
            self.selected = None
            return
        if self.selected is None or self.selected >= len(self.items) - 1:
            self.selected = 0
        else:
            self.selected += 1

    def select_previous(self) -> None:
        if not self.items:
            self.selected = None
            return
        if self.selected is None:
            self.selected = 0
        elif self.selected == 0 or self.selected >= len(self.items):
            self.selected = len(self.items) - 1
        else:
            self.selected -= 1

    def selected_index(self) -> Optional[int]:
        if self.selected is None or self.selected >= len(self.items):
            return None
        return self.selected

    def selected_item(self) -> Optional[T]:
        index = self.selected_index()
        return None if index is None else self.items[index]


def visible_window(count: int, selected: Optional[int], rows: int) -> range:
    """Slice of ``count`` rows to draw so that ``selected`` stays on screen."""
    rows = max(rows, 1)
    start = 0
    if selected is not None and selected >= rows:
        start = selected - rows + 1
    return range(start, min(count, start + rows))
