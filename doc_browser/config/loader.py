from __future__ import annotations

import dataclasses
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from doc_browser.config.model import BrowserConfig
from doc_browser.exceptions import ConfigError

logger = logging.getLogger(__name__)

# env var -> config field
_ENV_OVERRIDES = {
    "DOC_BROWSER_LENGTH_BINS": "length_bins",
    "DOC_BROWSER_CLUSTER_TOP_N": "cluster_top_n",
}


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, field_name in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        try:
            overrides[field_name] = int(raw)
        except ValueError as exc:
            raise ConfigError(f"{env_name} must be an integer, got {raw!r}") from exc
    return overrides


def load_browser_config(path: Optional[Path] = None) -> BrowserConfig:
    """
    Load the browser configuration.

    Selection order (later wins):
        1) BrowserConfig defaults
        2) JSON file at 'path' if provided (unknown keys ignored)
        3) env vars DOC_BROWSER_LENGTH_BINS / DOC_BROWSER_CLUSTER_TOP_N

    :param path: optional path to a JSON config file
    :return: a validated BrowserConfig
    :raises FileNotFoundError: if 'path' is given but doesn't exist
    :raises ConfigError: if the file isn't a JSON object or a value is invalid
    """
    config = BrowserConfig()

    if path is not None:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found at {path}")

        with path.open() as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ConfigError(f"Config at {path} must be a JSON object")
        config = BrowserConfig.from_raw(raw)

    overrides = _env_overrides()
    if overrides:
        config = dataclasses.replace(config, **overrides)

    logger.info(
        "Browser config loaded",
        extra={"config_path": str(path) if path else None, **dataclasses.asdict(config)},
    )
    return config
