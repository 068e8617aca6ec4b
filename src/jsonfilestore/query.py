from __future__ import annotations

from typing import Any, Callable, Iterable, List, Literal, Optional

Record = dict[str, Any]
Predicate = Callable[[Record], bool]
SortOrder = Literal["asc", "desc"]

_ORDERS = ("asc", "desc")


class QueryBuilder:
    """Chainable in-memory pipeline over a snapshot of records.

    The builder owns a private working list copied from the snapshot. Each
    step narrows or reorders that list in place and returns the same builder,
    so a chain reads left to right::

        recent = (await store.query()).filter(lambda t: not t["done"]).sort("createdAt", "desc").limit(5).exec()

    Because steps mutate the builder, one builder cannot be branched into two
    different pipelines; call ``store.query()`` again for each.
    """

    def __init__(self, records: Iterable[Record]) -> None:
        self._items: List[Record] = list(records)

    # Pipeline construction ---------------------------------------------
    def filter(self, predicate: Predicate) -> "QueryBuilder":
        self._items = [item for item in self._items if predicate(item)]
        return self

    def sort(self, key: str, order: SortOrder = "asc") -> "QueryBuilder":
        """Stable sort on ``record[key]``.

        Records without the key, or with ``None`` under it, always come last.
        """
        if order not in _ORDERS:
            raise ValueError(f"order must be 'asc' or 'desc', got {order!r}")
        present = [item for item in self._items if item.get(key) is not None]
        missing = [item for item in self._items if item.get(key) is None]
        present.sort(key=lambda item: item[key], reverse=order == "desc")
        self._items = present + missing
        return self

    def limit(self, n: int) -> "QueryBuilder":
        if n < 0:
            raise ValueError("limit expects a non-negative integer")
        self._items = self._items[:n]
        return self

    # Materialization ---------------------------------------------------
    def exec(self) -> List[Record]:
        return list(self._items)

    def first(self) -> Optional[Record]:
        return self._items[0] if self._items else None

    def count(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(<{len(self._items)} records>)"
