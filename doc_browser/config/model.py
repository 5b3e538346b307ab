from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict

from doc_browser.exceptions import ConfigError


@dataclass(frozen=True)
class BrowserConfig:
    """
    Tunables for the crossfilter coordination layer.

    Fields:

    - length_bins: number of buckets for the text-length histogram
    - cluster_top_n: how many of the largest clusters the cluster view receives
    - missing_label: bucket label for records with no value on a dimension
    - date_format: strptime format of the document `date` field
    """

    length_bins: int = 10
    cluster_top_n: int = 20
    missing_label: str = "n.a."
    date_format: str = "%Y-%m-%d"

    def __post_init__(self) -> None:
        if self.length_bins <= 0:
            raise ConfigError(f"length_bins must be positive, got {self.length_bins}")
        if self.cluster_top_n <= 0:
            raise ConfigError(f"cluster_top_n must be positive, got {self.cluster_top_n}")
        if not self.missing_label:
            raise ConfigError("missing_label must be a non-empty string")

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> BrowserConfig:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in raw.items() if k in known})
