from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from doc_browser.exceptions import InvalidPredicateError


class Predicate(ABC):
    """
    Filter condition held by a Dimension.

    A predicate turns the dimension's normalised keys into a boolean mask
    (one entry per record). Records whose key is missing are flagged in
    `missing` so that predicates can decide whether the sentinel matches.
    """

    @abstractmethod
    def mask(self, keys: pd.Series, missing: np.ndarray) -> np.ndarray:
        raise NotImplementedError()

    @property
    def is_filtering(self) -> bool:
        return True


@dataclass(frozen=True)
class AllPredicate(Predicate):
    """No restriction: every record passes."""

    def mask(self, keys: pd.Series, missing: np.ndarray) -> np.ndarray:
        return np.ones(len(keys), dtype=bool)

    @property
    def is_filtering(self) -> bool:
        return False


@dataclass(frozen=True)
class EmptyPredicate(Predicate):
    """Selects nothing. Used in place of an invalid range."""

    def mask(self, keys: pd.Series, missing: np.ndarray) -> np.ndarray:
        return np.zeros(len(keys), dtype=bool)


@dataclass(frozen=True)
class RangePredicate(Predicate):
    """
    Inclusive-low, exclusive-high range.

    Sentinel (missing) records never fall inside a range.

    Raises:
        InvalidPredicateError: if a bound is None, low > high, or the bounds
        cannot be compared with each other / with the keys
    """
    low: Any
    high: Any

    def __post_init__(self) -> None:
        if self.low is None or self.high is None:
            raise InvalidPredicateError(f"Range bounds must not be None: {self.low!r}, {self.high!r}")
        try:
            inverted = self.low > self.high
        except TypeError as exc:
            raise InvalidPredicateError(
                f"Range bounds are not comparable: {self.low!r}, {self.high!r}"
            ) from exc
        if inverted:
            raise InvalidPredicateError(f"Range low {self.low!r} is above high {self.high!r}")

    def mask(self, keys: pd.Series, missing: np.ndarray) -> np.ndarray:
        result = np.zeros(len(keys), dtype=bool)
        present = ~missing
        if not present.any():
            return result

        values = keys.to_numpy(dtype=object)[present]
        try:
            inside = (values >= self.low) & (values < self.high)
        except TypeError as exc:
            raise InvalidPredicateError(
                f"Range {self.low!r}..{self.high!r} is not comparable with the keys"
            ) from exc

        result[present] = inside.astype(bool)
        return result


@dataclass(frozen=True)
class ExactPredicate(Predicate):
    """Equality match on the normalised key (the sentinel label included)."""
    value: Any

    def mask(self, keys: pd.Series, missing: np.ndarray) -> np.ndarray:
        return np.fromiter((k == self.value for k in keys), dtype=bool, count=len(keys))


NO_FILTER = AllPredicate()
EMPTY_SELECTION = EmptyPredicate()
