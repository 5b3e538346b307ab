from __future__ import annotations

import logging
from typing import Any, List, Sequence

import pandas as pd

from doc_browser.core.view_base import BaseView
from doc_browser.core.view_registry import ViewRegistry

logger = logging.getLogger(__name__)


class AggregateTableView(BaseView):
    """
    Headless view that keeps the latest aggregate as a DataFrame.

    Used by the command-line app and by hosts that want tabular output
    (list views, exports) instead of a chart. An empty update leaves an
    empty frame with the expected columns.
    """

    columns: List[str] = ["key", "value"]

    def __init__(self, coordinator=None):
        super().__init__(coordinator)
        self.frame = pd.DataFrame(columns=self.columns)
        self.n_updates = 0

    def prepare(self) -> None:
        self.frame = pd.DataFrame(columns=self.columns)
        self.n_updates = 0

    def update(self, data: Sequence[Any]) -> None:
        rows = list(data)
        if not rows:
            self.frame = pd.DataFrame(columns=self.columns)
        else:
            self.frame = pd.DataFrame.from_records(rows)
        self.n_updates += 1
        logger.debug("Table view updated", extra={"view": self.id, "n_rows": len(self.frame)})

    def to_text(self) -> str:
        if self.frame.empty:
            return f"{self.label}: (no documents under current filters)"
        return f"{self.label}:\n{self.frame.to_string(index=False)}"


class DocumentCountTable(AggregateTableView):
    id = "document_count"
    label = "Documents per year"


class TextLengthTable(AggregateTableView):
    id = "text_length"
    label = "Text length"
    columns = ["key", "value", "scaled_key"]


class WorldMapTable(AggregateTableView):
    id = "world_map"
    label = "Locations"
    columns = ["id", "latitude", "longitude"]

    def update(self, data: Sequence[Any]) -> None:
        rows = [{c: record.get(c) for c in self.columns} for record in data]
        super().update(rows)


class LanguageCountTable(AggregateTableView):
    id = "language_count"
    label = "Languages"


class ClusterCountTable(AggregateTableView):
    id = "cluster_count"
    label = "Clusters"


def register_table_views(registry: ViewRegistry) -> ViewRegistry:
    for view_cls in (DocumentCountTable, TextLengthTable, WorldMapTable, LanguageCountTable, ClusterCountTable):
        registry.register(view_cls)
    return registry
