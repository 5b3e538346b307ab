import json

import pytest

from doc_browser.config.loader import load_browser_config
from doc_browser.config.model import BrowserConfig
from doc_browser.exceptions import ConfigError


def test_defaults_without_file(monkeypatch):
    monkeypatch.delenv("DOC_BROWSER_LENGTH_BINS", raising=False)
    monkeypatch.delenv("DOC_BROWSER_CLUSTER_TOP_N", raising=False)

    config = load_browser_config()

    assert config == BrowserConfig()
    assert config.length_bins == 10
    assert config.cluster_top_n == 20
    assert config.missing_label == "n.a."


def test_file_values_and_unknown_keys(tmp_path, monkeypatch):
    monkeypatch.delenv("DOC_BROWSER_LENGTH_BINS", raising=False)
    monkeypatch.delenv("DOC_BROWSER_CLUSTER_TOP_N", raising=False)
    path = tmp_path / "browser.json"
    path.write_text(json.dumps({"length_bins": 5, "missing_label": "unknown", "theme": "dark"}))

    config = load_browser_config(path)

    assert config.length_bins == 5
    assert config.missing_label == "unknown"
    assert config.cluster_top_n == 20


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "browser.json"
    path.write_text(json.dumps({"length_bins": 5}))
    monkeypatch.setenv("DOC_BROWSER_LENGTH_BINS", "12")
    monkeypatch.setenv("DOC_BROWSER_CLUSTER_TOP_N", "3")

    config = load_browser_config(path)

    assert config.length_bins == 12
    assert config.cluster_top_n == 3


def test_invalid_values_raise(tmp_path, monkeypatch):
    monkeypatch.delenv("DOC_BROWSER_CLUSTER_TOP_N", raising=False)
    monkeypatch.setenv("DOC_BROWSER_LENGTH_BINS", "many")
    with pytest.raises(ConfigError):
        load_browser_config()

    monkeypatch.delenv("DOC_BROWSER_LENGTH_BINS")
    path = tmp_path / "browser.json"
    path.write_text(json.dumps({"length_bins": 0}))
    with pytest.raises(ConfigError):
        load_browser_config(path)

    path.write_text(json.dumps([1, 2]))
    with pytest.raises(ConfigError):
        load_browser_config(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_browser_config(tmp_path / "nope.json")
