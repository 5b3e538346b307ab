from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Optional, Sequence, Tuple

# dimension name -> SearchState field
RANGE_FIELDS = {
    "date": "date_range",
    "text_length": "length_range",
    "latitude": "latitude_range",
    "longitude": "longitude_range",
}


def _as_range(bounds: Optional[Sequence[Any]]) -> Optional[Tuple[Any, Any]]:
    if bounds is None:
        return None
    return tuple(bounds)


@dataclass
class SearchState:
    """
    Snapshot of the active predicate per dimension.

    Fields:

    - date_range / length_range / latitude_range / longitude_range: (low, high) or None
    - language: selected language (the missing-value label included) or None
    - cluster: selected cluster id or None

    Pure data: every setter/clearer touches its own field only and is
    idempotent. Views read it to render "filter active" affordances;
    hosts serialise it with `to_dict()` to share or restore a selection.
    """

    date_range: Optional[Tuple[Any, Any]] = None
    length_range: Optional[Tuple[Any, Any]] = None
    latitude_range: Optional[Tuple[Any, Any]] = None
    longitude_range: Optional[Tuple[Any, Any]] = None
    language: Optional[str] = None
    cluster: Optional[int] = None

    # Generic range access keyed by dimension name
    def range_for(self, dimension: str) -> Optional[Tuple[Any, Any]]:
        return getattr(self, RANGE_FIELDS[dimension])

    def set_range(self, dimension: str, bounds: Sequence[Any]) -> None:
        setattr(self, RANGE_FIELDS[dimension], _as_range(bounds))

    def clear_range(self, dimension: str) -> None:
        setattr(self, RANGE_FIELDS[dimension], None)

    def set_date_range(self, bounds: Sequence[Any]) -> None:
        self.set_range("date", bounds)

    def clear_date_range(self) -> None:
        self.clear_range("date")

    def set_length_range(self, bounds: Sequence[Any]) -> None:
        self.set_range("text_length", bounds)

    def clear_length_range(self) -> None:
        self.clear_range("text_length")

    def set_latitude_range(self, bounds: Sequence[Any]) -> None:
        self.set_range("latitude", bounds)

    def clear_latitude_range(self) -> None:
        self.clear_range("latitude")

    def set_longitude_range(self, bounds: Sequence[Any]) -> None:
        self.set_range("longitude", bounds)

    def clear_longitude_range(self) -> None:
        self.clear_range("longitude")

    def select_language(self, language: str) -> None:
        self.language = language

    def clear_language(self) -> None:
        self.language = None

    def select_cluster(self, cluster: int) -> None:
        self.cluster = cluster

    def clear_cluster(self) -> None:
        self.cluster = None

    def clear_all(self) -> None:
        for f in fields(self):
            setattr(self, f.name, None)

    def active_filters(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]

    def is_empty(self) -> bool:
        return not self.active_filters()

    def copy_from(self, other: SearchState) -> None:
        """Overwrite every field with `other`'s, keeping this object's identity."""
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SearchState:
        return cls(
            date_range=_as_range(data.get("date_range")),
            length_range=_as_range(data.get("length_range")),
            latitude_range=_as_range(data.get("latitude_range")),
            longitude_range=_as_range(data.get("longitude_range")),
            language=data.get("language"),
            cluster=data.get("cluster"),
        )
