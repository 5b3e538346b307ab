from __future__ import annotations

import datetime
import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from doc_browser.config.model import BrowserConfig
from doc_browser.core.binning import LinearBinning
from doc_browser.core.crossfilter import CrossfilterIndex
from doc_browser.core.dataset import Dataset
from doc_browser.core.dataset_loader import load_documents
from doc_browser.core.dispatcher import EventDispatcher, EventKind
from doc_browser.core.search_state import RANGE_FIELDS, SearchState
from doc_browser.core.view_base import BaseView, HostShell
from doc_browser.core.view_registry import ViewRegistry

logger = logging.getLogger(__name__)

# data channels, in refresh order
VIEW_CHANNELS = ("document_count", "text_length", "world_map", "language_count", "cluster_count")

# interactive range controls -> the dimensions they drive
RANGE_CONTROLS: Dict[str, Sequence[str]] = {
    "date": ("date",),
    "text_length": ("text_length",),
    "map": ("latitude", "longitude"),
}


class FilterPhase(Enum):
    UNFILTERED = "unfiltered"
    ADJUSTING = "adjusting"
    FILTERED = "filtered"


def year_of(date: datetime.date) -> datetime.date:
    return datetime.date(date.year, 1, 1)


def as_date(value: Any) -> Any:
    """Brush bounds may arrive as datetime / Timestamp; date keys are plain dates."""
    if isinstance(value, (datetime.datetime, np.datetime64)):
        return pd.Timestamp(value).date()
    return value


def as_bounds(value: Any) -> Optional[Tuple[Any, Any]]:
    """(low, high) from a two-item sequence, None for any other payload."""
    if value is None or isinstance(value, (str, bytes)):
        return None
    try:
        low, high = value
    except (TypeError, ValueError):
        return None
    return low, high


class ViewCoordinator:
    """
    Glue between view interactions, the crossfilter index and the views.

    Flow:
        view gesture -> dispatcher event -> SearchState + predicate change
        -> refresh: every view gets its aggregate, host gets the included count

    Range controls follow  UNFILTERED -(start)-> ADJUSTING -(end)-> FILTERED -(clear)-> UNFILTERED.
    'start' clears the predicate silently (live preview), 'end' and 'clear'
    broadcast. Committing a value SearchState already holds is a no-op.
    """

    def __init__(
            self,
            host: HostShell,
            search_state: Optional[SearchState] = None,
            config: Optional[BrowserConfig] = None,
            registry: Optional[ViewRegistry] = None,
    ) -> None:
        self.host = host
        self.search_state = search_state if search_state is not None else SearchState()
        self.config = config or BrowserConfig()
        self.registry = registry or ViewRegistry()

        self.dataset: Optional[Dataset] = None
        self.basic_information: Dict[str, Any] = {}
        self.index: Optional[CrossfilterIndex] = None
        self.dispatch: Optional[EventDispatcher] = None
        self.views: Dict[str, BaseView] = {}
        self.phases: Dict[str, FilterPhase] = {}

    # ------------------------------------------------------------------
    # Dataset lifecycle
    # ------------------------------------------------------------------
    def set_document_data(self, data: Union[Dataset, Mapping[str, Any]]) -> None:
        """
        Load a dataset and rebuild index, dimensions, groups, views and
        event wiring wholesale. Any previous filter state is dropped.

        :param data: a Dataset or a `{basicInformation, documents}` payload
        """
        self.dataset = data if isinstance(data, Dataset) else load_documents(data, self.config)
        self.basic_information = self.dataset.basic_information

        self.dispatch = EventDispatcher()
        self.index = CrossfilterIndex(self.dataset, missing_label=self.config.missing_label)
        self.search_state.clear_all()
        self.phases = {control: FilterPhase.UNFILTERED for control in RANGE_CONTROLS}

        self._create_dimensions_groups()
        self._create_views()
        self._prepare_visualization()
        self.update_visualization()
        self._setup_dispatch()

        logger.info(
            "Coordinator ready",
            extra={"dataset": self.dataset.name, "n_documents": len(self.dataset), "views": list(self.views)},
        )

    def _create_dimensions_groups(self) -> None:
        index = self.index

        self.date_dimension = index.add_dimension("date")
        self.date_count_group = self.date_dimension.group(year_of)

        self.length_dimension = index.add_dimension("text_length")
        self.length_binning = LinearBinning(self.length_dimension, self.config.length_bins)

        self.latitude_dimension = index.add_dimension("latitude")
        self.longitude_dimension = index.add_dimension("longitude")

        # identity; the map lists included documents by descending id
        self.location_dimension = index.add_dimension("id")

        self.language_dimension = index.add_dimension("language")
        self.language_group = self.language_dimension.group()

        self.cluster_dimension = index.add_dimension("cluster")
        self.cluster_group = self.cluster_dimension.group()

    def _create_views(self) -> None:
        self.views = self.registry.create_all(self)
        unknown = [view_id for view_id in self.views if view_id not in VIEW_CHANNELS]
        if unknown:
            logger.warning("Views without a data channel will never be updated", extra={"views": unknown})

    def _prepare_visualization(self) -> None:
        for view in self.views.values():
            view.prepare()

    # ------------------------------------------------------------------
    # Refresh cycle
    # ------------------------------------------------------------------
    def text_length_data(self) -> list:
        """Length histogram rows with both bin index and real-valued scaled_key."""
        return self.length_binning.rows()

    def channel_data(self) -> Dict[str, list]:
        return {
            "document_count": self.date_count_group.all(),
            "text_length": self.text_length_data(),
            "world_map": self.location_dimension.top(),
            "language_count": self.language_group.top(),
            "cluster_count": self.cluster_group.top(self.config.cluster_top_n),
        }

    def update_visualization(self) -> None:
        self._require_dataset()
        data = self.channel_data()
        for view_id, view in self.views.items():
            if view_id in data:
                view.update(data[view_id])

        count = self.index.included_count()
        logger.debug("Views refreshed", extra={"n_included": count})
        self.host.update_selected(count)

    def update_visualization_text(self) -> None:
        self.update_visualization()
        self.host.filter_event()

    def clear(self) -> None:
        """Hand every view an empty sequence."""
        for view in self.views.values():
            view.update([])

    def emit(self, kind: Union[EventKind, str], *payload: Any) -> Any:
        self._require_dataset()
        return self.dispatch.emit(kind, *payload)

    def _require_dataset(self) -> None:
        if self.index is None or self.dispatch is None:
            raise RuntimeError("No dataset loaded; call set_document_data() first.")

    # ------------------------------------------------------------------
    # Range controls
    # ------------------------------------------------------------------
    def _begin_range(self, control: str) -> None:
        for name in RANGE_CONTROLS[control]:
            self.search_state.clear_range(name)
            self.index.filter_all(name)
        self.phases[control] = FilterPhase.ADJUSTING

    def _normalise_bounds(self, name: str, value: Any) -> Optional[Tuple[Any, Any]]:
        bounds = as_bounds(value)
        if bounds is not None and name == "date":
            bounds = (as_date(bounds[0]), as_date(bounds[1]))
        return bounds

    def _commit_range(self, control: str, bounds: Mapping[str, Any]) -> bool:
        """
        Apply `bounds` (dimension name -> (low, high)). Returns False when
        nothing changed.

        A payload that is not a (low, high) pair clears the control.
        """
        names = RANGE_CONTROLS[control]
        normalised = {name: self._normalise_bounds(name, bounds.get(name)) for name in names}

        if any(b is None for b in normalised.values()):
            logger.warning("Malformed range payload; clearing control", extra={"control": control})
            if self.phases[control] is FilterPhase.UNFILTERED:
                return False
            self._clear_range(control)
            return True

        unchanged = self.phases[control] is FilterPhase.FILTERED and all(
            self.search_state.range_for(name) == normalised[name] for name in names
        )
        if unchanged:
            logger.debug("Range unchanged; skipping refresh", extra={"control": control})
            return False

        for name in names:
            self.search_state.set_range(name, normalised[name])
            self.index.filter_range(name, normalised[name])
        self.phases[control] = FilterPhase.FILTERED
        return True

    def _clear_range(self, control: str) -> None:
        for name in RANGE_CONTROLS[control]:
            self.search_state.clear_range(name)
            self.index.filter_all(name)
        self.phases[control] = FilterPhase.UNFILTERED

    def phase(self, control: str) -> FilterPhase:
        return self.phases[control]

    # ------------------------------------------------------------------
    # Event wiring
    # ------------------------------------------------------------------
    def _setup_dispatch(self) -> None:
        on = self.dispatch.on

        def range_handlers(control: str, start: EventKind, end: EventKind, clear: EventKind) -> None:
            def on_end(bounds):
                if self._commit_range(control, {control: bounds}):
                    self.update_visualization_text()

            def on_clear():
                self._clear_range(control)
                self.update_visualization_text()

            on(start, lambda: self._begin_range(control))
            on(end, on_end)
            on(clear, on_clear)

        range_handlers("date", EventKind.DATE_START, EventKind.DATE_END, EventKind.DATE_CLEAR)
        range_handlers("text_length", EventKind.LENGTH_START, EventKind.LENGTH_END, EventKind.LENGTH_CLEAR)

        def on_map_end(ranges):
            ranges = ranges if isinstance(ranges, Mapping) else {}
            bounds = {"latitude": ranges.get("latitude_range"), "longitude": ranges.get("longitude_range")}
            if self._commit_range("map", bounds):
                self.update_visualization_text()

        def on_map_clear():
            self._clear_range("map")
            self.update_visualization_text()

        on(EventKind.MAP_START, lambda: self._begin_range("map"))
        on(EventKind.MAP_END, on_map_end)
        on(EventKind.MAP_CLEAR, on_map_clear)

        on(EventKind.LANGUAGE_SELECTION, self._select_language)
        on(EventKind.LANGUAGE_CLEAR, self._clear_language)
        on(EventKind.CLUSTER_SELECTION, self._select_cluster)
        on(EventKind.CLUSTER_CLEAR, self._clear_cluster)

    def _select_language(self, language: str) -> None:
        if self.search_state.language == language:
            return
        self.language_dimension.filter_exact(language)
        self.search_state.select_language(language)
        self.update_visualization_text()

    def _clear_language(self) -> None:
        self.language_dimension.filter_all()
        self.search_state.clear_language()
        self.update_visualization_text()

    def _select_cluster(self, cluster: int) -> None:
        if self.search_state.cluster == cluster:
            return
        self.cluster_dimension.filter_exact(cluster)
        self.search_state.select_cluster(cluster)
        self.update_visualization_text()

    def _clear_cluster(self) -> None:
        self.cluster_dimension.filter_all()
        self.search_state.clear_cluster()
        self.update_visualization_text()

    # ------------------------------------------------------------------
    # Whole-state operations
    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Clear every predicate and the search state, then broadcast."""
        self._require_dataset()
        self.index.filter_all_dimensions()
        self.search_state.clear_all()
        self.phases = {control: FilterPhase.UNFILTERED for control in RANGE_CONTROLS}
        self.update_visualization_text()

    def restore(self, state: SearchState) -> None:
        """
        Apply a saved SearchState wholesale (e.g. from a shared link) and
        broadcast once.
        """
        self._require_dataset()
        for name in RANGE_FIELDS:
            bounds = self._normalise_bounds(name, state.range_for(name))
            if bounds is None:
                self.index.filter_all(name)
            else:
                self.index.filter_range(name, bounds)

        for name, value in (("language", state.language), ("cluster", state.cluster)):
            if value is None:
                self.index.filter_all(name)
            else:
                self.index.filter_exact(name, value)

        self.search_state.copy_from(state)
        for control, names in RANGE_CONTROLS.items():
            active = any(state.range_for(name) is not None for name in names)
            self.phases[control] = FilterPhase.FILTERED if active else FilterPhase.UNFILTERED

        logger.debug("Search state restored", extra={"active_filters": state.active_filters()})
        self.update_visualization_text()
