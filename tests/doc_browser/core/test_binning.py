import pandas as pd
import pytest

from doc_browser.core.binning import LinearBinning
from doc_browser.core.crossfilter import CrossfilterIndex
from doc_browser.core.dataset import Dataset


def _make_binning(values, bin_count=10):
    frame = pd.DataFrame({"id": list(range(len(values))), "length": values})
    index = CrossfilterIndex(Dataset(frame))
    dimension = index.add_dimension("length")
    return index, LinearBinning(dimension, bin_count)


def test_bin_index_and_scaled_key():
    _, binning = _make_binning([1, 5, 10])

    assert binning.minimum == 1
    assert binning.span == 9
    assert binning.bin_of(5) == 4
    assert binning.scaled_key(4) == pytest.approx(4.6)


def test_maximum_lands_in_last_edge_bin():
    _, binning = _make_binning([1, 5, 10])

    assert binning.bin_of(1) == 0
    assert binning.bin_of(10) == 10


def test_rows_carry_scaled_key():
    _, binning = _make_binning([1, 5, 10])

    rows = {r["key"]: r for r in binning.rows()}

    assert set(rows) == {0, 4, 10}
    assert rows[4]["value"] == 1
    assert rows[4]["scaled_key"] == pytest.approx(4.6)
    assert rows[10]["scaled_key"] == pytest.approx(10)


def test_bins_use_unfiltered_extremes():
    index, binning = _make_binning([1, 5, 10])
    dimension = binning.dimension
    dimension.filter_range((4, 6))

    # a later binning over the same dimension still sees the full extent
    later = LinearBinning(dimension, bin_count=3)
    assert (later.minimum, later.span) == (1, 9)
    assert index.included_count() == 1


def test_constant_values_use_bin_zero():
    _, binning = _make_binning([7, 7, 7])

    assert binning.rows() == [{"key": 0, "value": 3, "scaled_key": 7}]


def test_missing_values_get_sentinel_row():
    _, binning = _make_binning([1.0, None, 10.0], bin_count=2)

    rows = {r["key"]: r for r in binning.rows()}
    assert rows["n.a."] == {"key": "n.a.", "value": 1, "scaled_key": None}
    assert rows[0]["scaled_key"] == pytest.approx(1.0)
