from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from .dimension import Dimension
from .group import Group


class LinearBinning:
    """
    Bucket a continuous dimension into a fixed number of equal-width bins.

    `minimum` and `span` come from the *unfiltered* extremes of the dimension
    and never change afterwards, so bin indices stay stable while filtering.

        bin = floor((value - minimum) / span * bin_count)

    The maximum value lands in bin `bin_count` (one past the last full-width
    bin). A dimension with a single distinct value puts everything in bin 0.
    """

    def __init__(self, dimension: Dimension, bin_count: int = 10):
        self.dimension = dimension
        self.bin_count = bin_count

        extent = dimension.extent()
        if extent is None:
            self.minimum, self.span = 0, 0
        else:
            self.minimum = extent[0]
            self.span = extent[1] - extent[0]

        self.group: Group = dimension.group(self.bin_of)

    def bin_of(self, value: Any) -> int:
        if not self.span:
            return 0
        return math.floor((value - self.minimum) / self.span * self.bin_count)

    def scaled_key(self, index: int) -> float:
        return self.minimum + index / self.bin_count * self.span

    def rows(self, n: Optional[float] = None) -> List[Dict[str, Any]]:
        """
        Group rows (largest first) carrying both the raw bin index `key`
        and the real-valued `scaled_key` for axis placement. The sentinel
        bin has no position and gets `scaled_key=None`.
        """
        rows = self.group.top(n)
        for row in rows:
            if row["key"] == self.dimension.missing_label:
                row["scaled_key"] = None
            else:
                row["scaled_key"] = self.scaled_key(row["key"])
        return rows
