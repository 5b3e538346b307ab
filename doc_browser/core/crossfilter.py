from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from .dataset import Dataset
from .dimension import Dimension, KeySpec
from doc_browser.exceptions import DuplicateDimensionError, UnknownDimensionError
from .group import Group

logger = logging.getLogger(__name__)

DimensionRef = Union[str, Dimension]


class CrossfilterIndex:
    """
    Inclusion bookkeeping over one Dataset and its Dimensions.

    State:
    - `_pass[name]`: boolean mask, "record satisfies this dimension's predicate"
    - `_fail_count`: per record, how many dimensions it currently fails

    A record is globally included when its fail count is 0. A group on
    dimension E aggregates records whose fail count, ignoring E's own bit,
    is 0, which is exactly "every predicate except E's own".

    Changing one predicate only touches the records whose bit flipped, and
    only feeds those records to the groups whose membership they change.
    """

    def __init__(self, dataset: Dataset, missing_label: str = "n.a."):
        self.dataset = dataset
        self.missing_label = missing_label
        self._dimensions: Dict[str, Dimension] = {}
        self._pass: Dict[str, np.ndarray] = {}
        self._fail_count = np.zeros(len(dataset), dtype=np.int64)
        self._groups: List[Group] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def add_dimension(self, name: str, key: Optional[KeySpec] = None) -> Dimension:
        """
        Register a filterable projection. The key defaults to the field named `name`.

        Raises:
            DuplicateDimensionError: if `name` is already registered
        """
        if name in self._dimensions:
            raise DuplicateDimensionError(f"Dimension '{name}' already registered")

        dimension = Dimension(self, name, key if key is not None else name, self.missing_label)
        self._pass[name] = np.ones(len(self.dataset), dtype=bool)
        self._dimensions[name] = dimension

        logger.info(
            "Dimension registered",
            extra={"dimension": name, "n_missing": int(dimension.missing.sum())},
        )
        return dimension

    def dimension(self, name: str) -> Dimension:
        try:
            return self._dimensions[name]
        except KeyError:
            raise UnknownDimensionError(f"Dimension '{name}' not found")

    @property
    def dimensions(self) -> List[Dimension]:
        return list(self._dimensions.values())

    def _resolve(self, dim: DimensionRef) -> Dimension:
        if isinstance(dim, Dimension):
            if self._dimensions.get(dim.name) is not dim:
                raise UnknownDimensionError(f"Dimension '{dim.name}' does not belong to this index")
            return dim
        return self.dimension(dim)

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------
    def filter_range(self, dim: DimensionRef, bounds: Sequence[Any]) -> None:
        self._resolve(dim).filter_range(bounds)

    def filter_exact(self, dim: DimensionRef, value: Any) -> None:
        self._resolve(dim).filter_exact(value)

    def filter_all(self, dim: DimensionRef) -> None:
        self._resolve(dim).filter_all()

    def filter_all_dimensions(self) -> None:
        """Clear every predicate (full reset of the filter state)."""
        for dimension in self._dimensions.values():
            dimension.filter_all()

    # ------------------------------------------------------------------
    # Inclusion queries
    # ------------------------------------------------------------------
    def included_mask(self) -> np.ndarray:
        return self._fail_count == 0

    def included_except(self, name: str) -> np.ndarray:
        """Records passing every predicate except the one on `name`."""
        own_fail = (~self._pass[name]).astype(np.int64)
        return (self._fail_count - own_fail) == 0

    def included_positions(self) -> np.ndarray:
        return np.flatnonzero(self._fail_count == 0)

    def included_count(self) -> int:
        return int(np.count_nonzero(self._fail_count == 0))

    def is_included(self, position: int) -> bool:
        return bool(self._fail_count[position] == 0)

    def currently_included(self) -> List[Dict[str, Any]]:
        """Records satisfying every active predicate, in store order."""
        return self.dataset.take(self.included_positions().tolist())

    # ------------------------------------------------------------------
    # Incremental maintenance
    # ------------------------------------------------------------------
    def _register_group(self, group: Group) -> None:
        self._groups.append(group)
        self._refresh_group(group)

    def _refresh_group(self, group: Group) -> None:
        group._rebuild(np.flatnonzero(self.included_except(group.dimension.name)).tolist())

    def _update_mask(self, name: str, new_mask: np.ndarray) -> None:
        old_mask = self._pass[name]
        changed = np.flatnonzero(old_mask != new_mask)
        if changed.size == 0:
            self._pass[name] = new_mask
            return

        old_fail = self._fail_count[changed]
        new_fail = (
            old_fail
            + (~new_mask[changed]).astype(np.int64)
            - (~old_mask[changed]).astype(np.int64)
        )

        for group in self._groups:
            other = group.dimension.name
            if other == name:
                # a dimension never filters its own groups
                continue
            own_fail = (~self._pass[other][changed]).astype(np.int64)
            was_in = (old_fail - own_fail) == 0
            now_in = (new_fail - own_fail) == 0
            group._add(changed[now_in & ~was_in].tolist())
            group._remove(changed[was_in & ~now_in].tolist())

        self._fail_count[changed] = new_fail
        self._pass[name] = new_mask

        logger.debug(
            "Inclusion updated",
            extra={"dimension": name, "n_changed": int(changed.size), "n_included": self.included_count()},
        )
