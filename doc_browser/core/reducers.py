from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from typing import Any, Mapping

import pandas as pd


class Reducer(ABC):
    """
    Incremental aggregation used by a Group.

    Contract:
    - `initial()` returns a fresh accumulator for an empty bin
    - `add(acc, record)` / `remove(acc, record)` return the updated accumulator
      and must run in O(1) (amortised) so membership changes stay cheap
    - `value(acc)` returns the comparable value shown to consumers
      and used for `top()` / `bottom()` ordering

    Accumulators may be immutable (ints) or mutable containers; callers
    always store the returned object.
    """

    @abstractmethod
    def initial(self) -> Any:
        raise NotImplementedError()

    @abstractmethod
    def add(self, acc: Any, record: Mapping[str, Any]) -> Any:
        raise NotImplementedError()

    @abstractmethod
    def remove(self, acc: Any, record: Mapping[str, Any]) -> Any:
        raise NotImplementedError()

    def value(self, acc: Any) -> Any:
        return acc


class CountReducer(Reducer):
    """Number of included records per bin."""

    def initial(self) -> int:
        return 0

    def add(self, acc: int, record: Mapping[str, Any]) -> int:
        return acc + 1

    def remove(self, acc: int, record: Mapping[str, Any]) -> int:
        return acc - 1


class SumReducer(Reducer):
    """Sum of a numeric field; missing values contribute nothing."""

    def __init__(self, field: str):
        self.field = field

    def _number(self, record: Mapping[str, Any]) -> float:
        raw = record.get(self.field)
        if raw is None or pd.isna(raw):
            return 0
        return raw

    def initial(self) -> float:
        return 0

    def add(self, acc: float, record: Mapping[str, Any]) -> float:
        return acc + self._number(record)

    def remove(self, acc: float, record: Mapping[str, Any]) -> float:
        return acc - self._number(record)


class ExtentReducer(Reducer):
    """
    Collects the extrema of a field.

    The accumulator is a multiset (Counter) of values so a removal never
    forces a rescan of the bin; `value()` reports `(min, max)`, or `()`
    for a bin with no values.
    """

    def __init__(self, field: str):
        self.field = field

    def _key(self, record: Mapping[str, Any]) -> Any:
        raw = record.get(self.field)
        if raw is None or pd.isna(raw):
            return None
        return raw

    def initial(self) -> Counter:
        return Counter()

    def add(self, acc: Counter, record: Mapping[str, Any]) -> Counter:
        key = self._key(record)
        if key is not None:
            acc[key] += 1
        return acc

    def remove(self, acc: Counter, record: Mapping[str, Any]) -> Counter:
        key = self._key(record)
        if key is not None:
            acc[key] -= 1
            if acc[key] <= 0:
                del acc[key]
        return acc

    def value(self, acc: Counter) -> tuple:
        if not acc:
            return ()
        return min(acc), max(acc)
