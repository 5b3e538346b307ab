from __future__ import annotations

import datetime

import pandas as pd
import pytest

from doc_browser.core.coordinator import FilterPhase, ViewCoordinator
from doc_browser.core.dispatcher import EventKind
from doc_browser.core.search_state import SearchState
from doc_browser.core.view_base import BaseView, HostShell
from doc_browser.core.view_registry import ViewRegistry


class FakeHost(HostShell):
    def __init__(self):
        self.selected = []
        self.filter_events = 0

    def update_selected(self, count: int) -> None:
        self.selected.append(count)

    def filter_event(self) -> None:
        self.filter_events += 1


class RecordingView(BaseView):
    fail = False

    def __init__(self, coordinator=None):
        super().__init__(coordinator)
        self.prepared = 0
        self.updates = []

    def prepare(self) -> None:
        self.prepared += 1

    def update(self, data) -> None:
        if self.fail:
            raise RuntimeError("render failed")
        self.updates.append(list(data))

    @property
    def last(self):
        return self.updates[-1]


class DocumentCountView(RecordingView):
    id = "document_count"


class TextLengthView(RecordingView):
    id = "text_length"


class WorldMapView(RecordingView):
    id = "world_map"


class LanguageCountView(RecordingView):
    id = "language_count"


class ClusterCountView(RecordingView):
    id = "cluster_count"


def _payload():
    """
    Five documents with languages ["en", "en", "fr", "", "de"].
    Text lengths 100..1000 bin to 0, 2, 4, 6, 10.
    """
    rows = [
        ("1", "2015-03-01", 100, 52.0, 4.0, "en", "1"),
        ("2", "2016-05-10", 300, 48.0, 2.0, "en", "2"),
        ("3", "2016-07-01", 500, 40.0, -3.0, "fr", "1"),
        ("4", "2017-01-20", 700, 51.0, 0.0, "", "3"),
        ("5", "2017-11-11", 1000, 45.0, 9.0, "de", "1"),
    ]
    keys = ("id", "date", "textLength", "latitude", "longitude", "language", "cluster")
    return {
        "basicInformation": {"corpus": "tiny"},
        "documents": [dict(zip(keys, row)) for row in rows],
    }


def _make_coordinator(search_state=None):
    registry = ViewRegistry()
    for view_cls in (DocumentCountView, TextLengthView, WorldMapView, LanguageCountView, ClusterCountView):
        registry.register(view_cls)

    host = FakeHost()
    coordinator = ViewCoordinator(host, search_state=search_state, registry=registry)
    coordinator.set_document_data(_payload())
    return coordinator, host


def _by_key(rows):
    return {r["key"]: r["value"] for r in rows}


def _year(y):
    return datetime.date(y, 1, 1)


def test_initial_load_prepares_and_updates_every_view():
    coordinator, host = _make_coordinator()
    views = coordinator.views

    assert all(v.prepared == 1 and len(v.updates) == 1 for v in views.values())
    assert host.selected == [5]
    assert host.filter_events == 0
    assert coordinator.basic_information == {"corpus": "tiny"}

    assert views["language_count"].last == [
        {"key": "en", "value": 2},
        {"key": "fr", "value": 1},
        {"key": "n.a.", "value": 1},
        {"key": "de", "value": 1},
    ]
    assert views["document_count"].last == [
        {"key": _year(2015), "value": 1},
        {"key": _year(2016), "value": 2},
        {"key": _year(2017), "value": 2},
    ]
    assert [r["key"] for r in views["text_length"].last] == [0, 2, 4, 6, 10]
    assert views["text_length"].last[1]["scaled_key"] == pytest.approx(280.0)
    assert views["cluster_count"].last == [
        {"key": 1, "value": 3},
        {"key": 2, "value": 1},
        {"key": 3, "value": 1},
    ]
    assert [r["id"] for r in views["world_map"].last] == [5, 4, 3, 2, 1]


def test_language_selection_end_to_end():
    coordinator, host = _make_coordinator()
    views = coordinator.views

    coordinator.emit(EventKind.LANGUAGE_SELECTION, "en")

    assert host.selected[-1] == 2
    assert host.filter_events == 1
    assert coordinator.search_state.language == "en"

    # own filter is not applied to the language aggregate
    assert _by_key(views["language_count"].last) == {"en": 2, "fr": 1, "n.a.": 1, "de": 1}
    # every other aggregate only sees the two english documents
    assert _by_key(views["document_count"].last) == {_year(2015): 1, _year(2016): 1, _year(2017): 0}
    assert _by_key(views["text_length"].last) == {0: 1, 2: 1, 4: 0, 6: 0, 10: 0}
    assert _by_key(views["cluster_count"].last) == {1: 1, 2: 1, 3: 0}
    assert [r["id"] for r in views["world_map"].last] == [2, 1]


def test_reselecting_the_same_language_is_a_no_op():
    coordinator, host = _make_coordinator()
    coordinator.emit(EventKind.LANGUAGE_SELECTION, "en")
    n_updates = len(coordinator.views["world_map"].updates)

    coordinator.emit(EventKind.LANGUAGE_SELECTION, "en")

    assert host.filter_events == 1
    assert len(coordinator.views["world_map"].updates) == n_updates


def test_language_clear_restores_everything():
    coordinator, host = _make_coordinator()
    coordinator.emit(EventKind.LANGUAGE_SELECTION, "en")

    coordinator.emit(EventKind.LANGUAGE_CLEAR)

    assert host.selected[-1] == 5
    assert host.filter_events == 2
    assert coordinator.search_state.language is None


def test_sentinel_language_can_be_selected():
    coordinator, host = _make_coordinator()

    coordinator.emit(EventKind.LANGUAGE_SELECTION, "n.a.")

    assert [r["id"] for r in coordinator.views["world_map"].last] == [4]


def test_date_range_lifecycle():
    coordinator, host = _make_coordinator()
    views = coordinator.views
    assert coordinator.phase("date") is FilterPhase.UNFILTERED

    coordinator.emit(EventKind.DATE_START)
    assert coordinator.phase("date") is FilterPhase.ADJUSTING
    assert host.filter_events == 0

    bounds = (datetime.date(2016, 1, 1), datetime.date(2017, 1, 1))
    coordinator.emit(EventKind.DATE_END, bounds)
    assert coordinator.phase("date") is FilterPhase.FILTERED
    assert coordinator.search_state.date_range == bounds
    assert host.selected[-1] == 2
    assert host.filter_events == 1
    assert _by_key(views["language_count"].last) == {"en": 1, "fr": 1, "n.a.": 0, "de": 0}

    # committing the same range again changes nothing
    coordinator.emit(EventKind.DATE_END, list(bounds))
    assert host.filter_events == 1

    # re-adjusting drops the filter silently
    coordinator.emit(EventKind.DATE_START)
    assert coordinator.phase("date") is FilterPhase.ADJUSTING
    assert coordinator.search_state.date_range is None
    assert coordinator.index.included_count() == 5
    assert host.selected[-1] == 2
    assert host.filter_events == 1

    coordinator.emit(EventKind.DATE_END, bounds)
    coordinator.emit(EventKind.DATE_CLEAR)
    assert coordinator.phase("date") is FilterPhase.UNFILTERED
    assert host.selected[-1] == 5
    assert host.filter_events == 3


def test_length_range_excludes_own_histogram():
    coordinator, host = _make_coordinator()

    coordinator.emit(EventKind.LENGTH_END, (300, 701))

    assert host.selected[-1] == 3
    assert coordinator.search_state.length_range == (300, 701)
    assert _by_key(coordinator.views["text_length"].last) == {0: 1, 2: 1, 4: 1, 6: 1, 10: 1}
    assert [r["id"] for r in coordinator.views["world_map"].last] == [4, 3, 2]


def test_map_selection_filters_latitude_and_longitude():
    coordinator, host = _make_coordinator()

    coordinator.emit(EventKind.MAP_START)
    coordinator.emit(EventKind.MAP_END, {"latitude_range": (45, 53), "longitude_range": (0, 5)})

    assert [r["id"] for r in coordinator.views["world_map"].last] == [4, 2, 1]
    assert coordinator.search_state.latitude_range == (45, 53)
    assert coordinator.search_state.longitude_range == (0, 5)
    assert coordinator.phase("map") is FilterPhase.FILTERED

    coordinator.emit(EventKind.MAP_CLEAR)
    assert host.selected[-1] == 5
    assert coordinator.search_state.latitude_range is None


def test_cluster_and_language_filters_combine():
    coordinator, host = _make_coordinator()

    coordinator.emit(EventKind.CLUSTER_SELECTION, 1)
    assert host.selected[-1] == 3

    coordinator.emit(EventKind.LANGUAGE_SELECTION, "en")
    assert host.selected[-1] == 1
    assert _by_key(coordinator.views["cluster_count"].last) == {1: 1, 2: 1, 3: 0}
    assert _by_key(coordinator.views["language_count"].last) == {"en": 1, "fr": 1, "n.a.": 0, "de": 1}

    coordinator.emit(EventKind.CLUSTER_CLEAR)
    assert host.selected[-1] == 2
    assert coordinator.search_state.cluster is None


def test_invalid_range_selects_nothing():
    coordinator, host = _make_coordinator()

    coordinator.emit(EventKind.LENGTH_END, (800, 200))

    assert host.selected[-1] == 0
    assert coordinator.views["world_map"].last == []
    # the language aggregate is empty of counts but still lists every bin
    assert _by_key(coordinator.views["language_count"].last) == {"en": 0, "fr": 0, "n.a.": 0, "de": 0}


def test_reset_clears_all_filters():
    coordinator, host = _make_coordinator()
    coordinator.emit(EventKind.LANGUAGE_SELECTION, "en")
    coordinator.emit(EventKind.LENGTH_END, (0, 200))

    coordinator.reset()

    assert host.selected[-1] == 5
    assert coordinator.search_state.is_empty()
    assert coordinator.phase("text_length") is FilterPhase.UNFILTERED


def test_restore_applies_saved_state_and_shares_search_state():
    shared = SearchState()
    coordinator, host = _make_coordinator(search_state=shared)
    coordinator.emit(EventKind.LANGUAGE_SELECTION, "en")
    events = host.filter_events

    saved = SearchState.from_dict({"language": "fr", "length_range": [0, 600]})
    coordinator.restore(saved)

    assert host.selected[-1] == 1
    assert host.filter_events == events + 1
    assert coordinator.search_state is shared
    assert shared == saved
    assert coordinator.phase("text_length") is FilterPhase.FILTERED
    assert coordinator.phase("date") is FilterPhase.UNFILTERED

    coordinator.restore(SearchState(cluster=1))
    assert host.selected[-1] == 3
    assert shared.language is None


def test_handler_failures_propagate_to_emitter():
    coordinator, host = _make_coordinator()
    coordinator.views["cluster_count"].fail = True

    with pytest.raises(RuntimeError, match="render failed"):
        coordinator.emit(EventKind.LANGUAGE_SELECTION, "fr")


def test_emit_before_loading_raises():
    coordinator = ViewCoordinator(FakeHost())

    with pytest.raises(RuntimeError):
        coordinator.emit(EventKind.DATE_CLEAR)


def test_clear_hands_views_empty_data():
    coordinator, _ = _make_coordinator()

    coordinator.clear()

    assert all(v.last == [] for v in coordinator.views.values())


def test_reload_rebuilds_everything():
    coordinator, host = _make_coordinator()
    coordinator.emit(EventKind.LANGUAGE_SELECTION, "en")
    old_views = dict(coordinator.views)

    payload = _payload()
    payload["documents"] = payload["documents"][:2]
    coordinator.set_document_data(payload)

    assert coordinator.search_state.language is None
    assert host.selected[-1] == 2
    assert all(coordinator.views[k] is not old_views[k] for k in old_views)
    assert coordinator.views["language_count"].last == [{"key": "en", "value": 2}]


def test_empty_dataset_renders_empty_state():
    coordinator, host = _make_coordinator()

    coordinator.set_document_data({"basicInformation": {}, "documents": []})

    assert host.selected[-1] == 0
    assert all(v.last == [] for v in coordinator.views.values())


def test_malformed_commit_after_a_valid_one_clears_the_control():
    coordinator, host = _make_coordinator()
    coordinator.emit(EventKind.LENGTH_END, (0, 600))
    assert host.selected[-1] == 3

    coordinator.emit(EventKind.LENGTH_END, None)

    assert coordinator.search_state.length_range is None
    assert coordinator.phase("text_length") is FilterPhase.UNFILTERED
    assert coordinator.index.included_count() == 5
    assert host.selected[-1] == 5
    assert host.filter_events == 2


@pytest.mark.parametrize("payload", [None, 5, "ab", (1, 2, 3)])
def test_malformed_commit_on_a_fresh_control_changes_nothing(payload):
    coordinator, host = _make_coordinator()

    coordinator.emit(EventKind.LENGTH_END, payload)

    assert coordinator.search_state.length_range is None
    assert coordinator.phase("text_length") is FilterPhase.UNFILTERED
    assert coordinator.index.included_count() == 5
    assert host.filter_events == 0


def test_malformed_map_payload_does_not_raise():
    coordinator, host = _make_coordinator()
    coordinator.emit(EventKind.MAP_END, {"latitude_range": (45, 53), "longitude_range": (0, 5)})

    coordinator.emit(EventKind.MAP_END, {"latitude_range": (45, 53)})

    assert coordinator.search_state.latitude_range is None
    assert coordinator.search_state.longitude_range is None
    assert host.selected[-1] == 5


def test_date_range_accepts_datetime_bounds():
    coordinator, host = _make_coordinator()

    coordinator.emit(EventKind.DATE_END, (datetime.datetime(2016, 1, 1), datetime.datetime(2017, 1, 1)))

    assert host.selected[-1] == 2
    assert coordinator.search_state.date_range == (datetime.date(2016, 1, 1), datetime.date(2017, 1, 1))

    # the same range as timestamps is recognised as unchanged
    coordinator.emit(EventKind.DATE_END, (pd.Timestamp("2016-01-01"), pd.Timestamp("2017-01-01")))
    assert host.filter_events == 1


def test_restore_accepts_datetime_bounds():
    coordinator, host = _make_coordinator()

    coordinator.restore(SearchState(date_range=(datetime.datetime(2016, 1, 1), datetime.datetime(2017, 1, 1))))

    assert host.selected[-1] == 2


def test_world_map_lists_documents_by_descending_id():
    coordinator, _ = _make_coordinator()

    assert coordinator.location_dimension.name == "id"
    coordinator.emit(EventKind.CLUSTER_SELECTION, 1)
    assert [r["id"] for r in coordinator.views["world_map"].last] == [5, 3, 1]


def test_string_ids_drive_the_world_map():
    coordinator, _ = _make_coordinator()
    payload = _payload()
    for doc, doc_id in zip(payload["documents"], ("b", "e", "a", "d", "c")):
        doc["id"] = doc_id

    coordinator.set_document_data(payload)

    assert [r["id"] for r in coordinator.views["world_map"].last] == ["e", "d", "c", "b", "a"]


@pytest.mark.parametrize("call", ["reset", "update_visualization", "update_visualization_text"])
def test_refresh_before_loading_raises(call):
    coordinator = ViewCoordinator(FakeHost())

    with pytest.raises(RuntimeError, match="No dataset loaded"):
        getattr(coordinator, call)()


def test_restore_before_loading_raises():
    coordinator = ViewCoordinator(FakeHost())

    with pytest.raises(RuntimeError, match="No dataset loaded"):
        coordinator.restore(SearchState(language="en"))
