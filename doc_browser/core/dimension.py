from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from doc_browser.exceptions import InvalidPredicateError
from .predicate import EMPTY_SELECTION, NO_FILTER, ExactPredicate, Predicate, RangePredicate
from .reducers import Reducer

if TYPE_CHECKING:
    from .crossfilter import CrossfilterIndex
    from .group import Group

logger = logging.getLogger(__name__)

KeySpec = Union[str, Callable[[Mapping[str, Any]], Any]]


def missing_mask(values: pd.Series) -> np.ndarray:
    """True where a value is None, NaN/NaT/NA or the empty string."""
    empty_string = values.astype(object).map(lambda v: isinstance(v, str) and v == "")
    return (values.isna() | empty_string).to_numpy(dtype=bool)


def limit(n: Optional[float]) -> Optional[int]:
    """Normalise a top/bottom count: None and infinity mean 'everything'."""
    if n is None or n == math.inf:
        return None
    return max(int(n), 0)


class Dimension:
    """
    Named projection of every record onto a filterable key.

    - The key is either a field name or a callable `record -> key`
    - Keys are projected once, at registration; records that have no value
      (None, NaN, "" or a KeyError from the callable) get the sentinel label
    - At most one predicate is active; setting one replaces the previous one

    Filtering goes through the owning CrossfilterIndex so that every group
    on the other dimensions is kept consistent incrementally.
    """

    def __init__(self, index: CrossfilterIndex, name: str, key: KeySpec, missing_label: str):
        self._index = index
        self.name = name
        self.key = key
        self.missing_label = missing_label
        self._predicate: Predicate = NO_FILTER

        raw = self._project()
        self._missing = missing_mask(raw)
        self._keys = raw.astype(object).where(~self._missing, missing_label)
        self._key_list: List[Any] = self._keys.tolist()

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------
    def _project(self) -> pd.Series:
        dataset = self._index.dataset

        if isinstance(self.key, str):
            column = dataset.column(self.key)
            if column is None:
                logger.warning(
                    "Dimension '%s': field '%s' not in dataset; every record goes to '%s'",
                    self.name,
                    self.key,
                    self.missing_label,
                    extra={"dimension": self.name, "field": self.key},
                )
                return pd.Series([None] * len(dataset), dtype=object)
            return column.reset_index(drop=True)

        values = []
        for record in dataset.records:
            try:
                values.append(self.key(record))
            except KeyError:
                values.append(None)
        return pd.Series(values, dtype=object)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def predicate(self) -> Predicate:
        return self._predicate

    @property
    def has_filter(self) -> bool:
        return self._predicate.is_filtering

    @property
    def keys(self) -> pd.Series:
        """Normalised keys, one per record (sentinel included)."""
        return self._keys.copy()

    @property
    def missing(self) -> np.ndarray:
        return self._missing.copy()

    def is_missing_at(self, position: int) -> bool:
        return bool(self._missing[position])

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------
    def filter_range(self, bounds: Sequence[Any]) -> Dimension:
        """
        Restrict to keys in [low, high). A malformed range selects nothing.
        """
        try:
            low, high = bounds
            predicate: Predicate = RangePredicate(low, high)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Dimension '%s': invalid range %r, selecting no records (%s)",
                self.name,
                bounds,
                exc,
                extra={"dimension": self.name},
            )
            predicate = EMPTY_SELECTION
        return self._set_predicate(predicate)

    def filter_exact(self, value: Any) -> Dimension:
        return self._set_predicate(ExactPredicate(value))

    def filter_all(self) -> Dimension:
        return self._set_predicate(NO_FILTER)

    def _set_predicate(self, predicate: Predicate) -> Dimension:
        try:
            mask = predicate.mask(self._keys, self._missing)
        except InvalidPredicateError as exc:
            logger.warning(
                "Dimension '%s': %s; selecting no records",
                self.name,
                exc,
                extra={"dimension": self.name},
            )
            predicate = EMPTY_SELECTION
            mask = predicate.mask(self._keys, self._missing)

        self._predicate = predicate
        logger.debug(
            "Dimension filter changed",
            extra={"dimension": self.name, "predicate": repr(predicate)},
        )
        self._index._update_mask(self.name, mask)
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def group(
            self,
            grouping_fn: Optional[Callable[[Any], Any]] = None,
            reducer: Optional[Reducer] = None,
    ) -> Group:
        """
        Group this dimension's keys into bins (identity if no grouping_fn).

        The group aggregates the records passing every predicate except
        this dimension's own.
        """
        from .group import Group

        return Group(self, grouping_fn=grouping_fn, reducer=reducer)

    def _ordered_positions(self, descending: bool) -> List[int]:
        selected = np.flatnonzero(self._index.included_mask() & ~self._missing)
        return sorted(selected.tolist(), key=self._key_list.__getitem__, reverse=descending)

    def top(self, n: Optional[float] = None) -> List[Dict[str, Any]]:
        """
        Included records with the largest keys first. Sentinel records are
        left out since they have no comparable key.
        """
        positions = self._ordered_positions(descending=True)[: limit(n)]
        return self._index.dataset.take(positions)

    def bottom(self, n: Optional[float] = None) -> List[Dict[str, Any]]:
        """Included records with the smallest keys first."""
        positions = self._ordered_positions(descending=False)[: limit(n)]
        return self._index.dataset.take(positions)

    def extent(self) -> Optional[Tuple[Any, Any]]:
        """(min, max) of the non-sentinel keys over the unfiltered dataset."""
        present = [k for k, m in zip(self._key_list, self._missing) if not m]
        if not present:
            return None
        return min(present), max(present)

    def __repr__(self) -> str:
        return f"Dimension(name={self.name!r}, predicate={self._predicate!r})"
