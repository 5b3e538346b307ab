from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd


class Dataset:
    """
    The record store behind a crossfilter session.

    Includes:
    - the opaque `basic_information` header from the payload
    - a column-oriented pandas frame of the parsed documents
    - an immutable, row-ordered tuple of record dicts handed to reducers and views

    Records are parsed once by the loader and never mutated afterwards.
    Dimensions and groups refer to records by position, never by copy.
    """

    def __init__(
        self,
        frame: pd.DataFrame,
        basic_information: Optional[Mapping[str, Any]] = None,
        name: str = "documents",
    ) -> None:
        self.name = name
        self.basic_information: Dict[str, Any] = dict(basic_information or {})
        self.frame = frame.reset_index(drop=True)
        self._records: Tuple[Dict[str, Any], ...] = tuple(self.frame.to_dict("records"))

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Tuple[Dict[str, Any], ...]:
        return self._records

    @property
    def columns(self) -> List[str]:
        return [str(c) for c in self.frame.columns]

    def column(self, name: str) -> Optional[pd.Series]:
        """Return a column of the parsed frame, or None if the field doesn't exist."""
        if name not in self.frame.columns:
            return None
        return self.frame[name]

    def take(self, positions: Sequence[int]) -> List[Dict[str, Any]]:
        """Records at the given positions, in the order given."""
        return [self._records[i] for i in positions]
