from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional

import pandas as pd

from .dimension import limit
from .reducers import CountReducer, Reducer, SumReducer

if TYPE_CHECKING:
    from .dimension import Dimension


class Group:
    """
    Bins of one dimension plus a reducer, kept up to date incrementally.

    Every record is assigned a bin once, at creation. Accumulators only see
    records that pass the predicates of every *other* dimension: the owning
    CrossfilterIndex calls `_add` / `_remove` with the records whose
    membership changed, so a filter change costs O(changed records).

    Bins are created in record order and never dropped, so ordering and
    tie-breaks are stable for the lifetime of the group.
    """

    def __init__(
            self,
            dimension: Dimension,
            grouping_fn: Optional[Callable[[Any], Any]] = None,
            reducer: Optional[Reducer] = None,
    ) -> None:
        self.dimension = dimension
        self._grouping_fn = grouping_fn
        self._reducer: Reducer = reducer or CountReducer()
        self._bins: List[Any] = self._assign_bins()
        self._acc: Dict[Any, Any] = {}

        self._index = dimension._index
        self._index._register_group(self)

    def _assign_bins(self) -> List[Any]:
        label = self.dimension.missing_label
        bins: List[Any] = []
        for position, key in enumerate(self.dimension.keys.tolist()):
            if self.dimension.is_missing_at(position):
                bins.append(label)
                continue
            value = self._grouping_fn(key) if self._grouping_fn is not None else key
            bins.append(label if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)) else value)
        return bins

    # ------------------------------------------------------------------
    # Maintenance hooks (called by CrossfilterIndex)
    # ------------------------------------------------------------------
    def _rebuild(self, members: Iterable[int]) -> None:
        self._acc = {b: self._reducer.initial() for b in dict.fromkeys(self._bins)}
        self._add(members)

    def _add(self, positions: Iterable[int]) -> None:
        records = self._index.dataset.records
        for i in positions:
            b = self._bins[i]
            self._acc[b] = self._reducer.add(self._acc[b], records[i])

    def _remove(self, positions: Iterable[int]) -> None:
        records = self._index.dataset.records
        for i in positions:
            b = self._bins[i]
            self._acc[b] = self._reducer.remove(self._acc[b], records[i])

    # ------------------------------------------------------------------
    # Reducer configuration
    # ------------------------------------------------------------------
    def reduce(self, reducer: Reducer) -> Group:
        """Swap the reducer and recompute every bin from the current inclusion."""
        self._reducer = reducer
        self._index._refresh_group(self)
        return self

    def reduce_count(self) -> Group:
        return self.reduce(CountReducer())

    def reduce_sum(self, field: str) -> Group:
        return self.reduce(SumReducer(field))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def _rows(self) -> List[Dict[str, Any]]:
        return [{"key": k, "value": self._reducer.value(acc)} for k, acc in self._acc.items()]

    def size(self) -> int:
        return len(self._acc)

    def all(self) -> List[Dict[str, Any]]:
        """
        Every bin ordered by key ascending, the sentinel bin last.
        Falls back to encounter order when keys aren't mutually comparable.
        """
        rows = self._rows()
        label = self.dimension.missing_label
        try:
            return sorted(rows, key=lambda r: (r["key"] == label, r["key"]))
        except TypeError:
            return rows

    def top(self, n: Optional[float] = None) -> List[Dict[str, Any]]:
        """The n largest bins by value, descending; ties keep encounter order."""
        rows = sorted(self._rows(), key=lambda r: r["value"], reverse=True)
        return rows[: limit(n)]

    def bottom(self, n: Optional[float] = None) -> List[Dict[str, Any]]:
        """The n smallest bins by value, ascending; ties keep encounter order."""
        rows = sorted(self._rows(), key=lambda r: r["value"])
        return rows[: limit(n)]

    def __repr__(self) -> str:
        return f"Group(dimension={self.dimension.name!r}, reducer={type(self._reducer).__name__}, bins={self.size()})"
