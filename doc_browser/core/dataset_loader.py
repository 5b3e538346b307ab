from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

import pandas as pd

from doc_browser.config.model import BrowserConfig
from doc_browser.core.dataset import Dataset
from doc_browser.exceptions import DatasetConfigError, DatasetSchemaError

logger = logging.getLogger(__name__)

# payload field -> dataset column
FIELD_ALIASES = {
    "textLength": "text_length",
}

EXPECTED_FIELDS = ("id", "date", "text_length", "latitude", "longitude", "language", "cluster")


def _frame_from_documents(documents: Any) -> pd.DataFrame:
    if documents is None:
        documents = []
    if not isinstance(documents, list):
        raise DatasetSchemaError(f"'documents' must be a list, got {type(documents).__name__}")
    for i, doc in enumerate(documents):
        if not isinstance(doc, Mapping):
            raise DatasetSchemaError(f"Document {i} is not a mapping: {doc!r}")

    frame = pd.DataFrame.from_records(documents)
    return frame.rename(columns=FIELD_ALIASES)


def _ensure_fields(frame: pd.DataFrame, name: str) -> pd.DataFrame:
    """
    Add any expected field the payload didn't carry, logging what we do.
    Missing values end up in the sentinel bucket of their dimension.
    """
    for field in EXPECTED_FIELDS:
        if field not in frame.columns:
            logger.warning(
                "Documents have no '%s' field; all records will use the missing-value bucket",
                field,
                extra={"dataset": name, "field": field},
            )
            frame[field] = None
    return frame


def _normalise_ids(raw: pd.Series) -> pd.Series:
    """
    Integer ids when every id is integral ("7", 7, 7.0), strings otherwise.
    """
    numeric = pd.to_numeric(raw, errors="coerce")
    if numeric.notna().all() and (numeric % 1 == 0).all():
        return numeric.astype("int64")
    return raw.astype(str)


def _validate_ids(frame: pd.DataFrame, name: str) -> pd.Series:
    if len(frame) == 0:
        return pd.Series([], dtype="int64")

    raw = frame["id"]
    absent = raw.isna() | (raw.astype(str).str.strip() == "")
    if absent.any():
        positions = [int(i) for i in absent.to_numpy().nonzero()[0]]
        msg = f"Dataset '{name}': documents without an id at positions {positions[:5]}"
        logger.error(msg, extra={"dataset": name})
        raise DatasetSchemaError(msg)

    ids = _normalise_ids(raw)
    if not ids.is_unique:
        dupes = sorted(set(ids[ids.duplicated()].tolist()))
        msg = f"Dataset '{name}': duplicate document ids {dupes[:5]}"
        logger.error(msg, extra={"dataset": name})
        raise DatasetSchemaError(msg)
    return ids


def _parse_columns(frame: pd.DataFrame, config: BrowserConfig) -> pd.DataFrame:
    frame["date"] = pd.to_datetime(frame["date"], format=config.date_format, errors="coerce").dt.date
    frame["text_length"] = pd.to_numeric(frame["text_length"], errors="coerce")
    frame["latitude"] = pd.to_numeric(frame["latitude"], errors="coerce").astype("float64")
    frame["longitude"] = pd.to_numeric(frame["longitude"], errors="coerce").astype("float64")
    frame["cluster"] = pd.to_numeric(frame["cluster"], errors="coerce").astype("Int64")
    frame["language"] = frame["language"].astype("object")
    return frame


def load_documents(
        payload: Mapping[str, Any],
        config: Optional[BrowserConfig] = None,
        name: str = "documents",
) -> Dataset:
    """
    Materialise a Dataset from a `{basicInformation, documents}` payload.

    Parsing happens exactly once here:
    - `date` strings -> datetime.date (unparseable -> missing)
    - `id` -> int when every id is integral, str otherwise (required and unique)
    - `cluster` -> nullable int, `textLength` -> numeric `text_length`
    - `latitude` / `longitude` -> float

    :raises DatasetSchemaError: if documents are malformed or ids are missing/duplicated
    """
    config = config or BrowserConfig()

    if not isinstance(payload, Mapping):
        raise DatasetSchemaError(f"Payload must be a mapping, got {type(payload).__name__}")

    frame = _frame_from_documents(payload.get("documents"))

    if len(frame) > 0 and "id" not in frame.columns:
        raise DatasetSchemaError(f"Dataset '{name}': documents carry no 'id' field")

    frame = _ensure_fields(frame, name) if len(frame) > 0 else pd.DataFrame(columns=list(EXPECTED_FIELDS))
    frame["id"] = _validate_ids(frame, name)
    frame = _parse_columns(frame, config)

    dataset = Dataset(frame, basic_information=payload.get("basicInformation"), name=name)

    logger.info(
        "Dataset loaded",
        extra={"dataset": name, "n_documents": len(dataset), "fields": dataset.columns},
    )
    return dataset


def load_dataset_file(path: Path, config: Optional[BrowserConfig] = None) -> Dataset:
    """
    Read a `{basicInformation, documents}` JSON file and load it.

    :raises DatasetConfigError: if the file doesn't exist or isn't valid JSON
    """
    path = Path(path)
    if not path.is_file():
        raise DatasetConfigError(f"Dataset file not found at {path}.")

    try:
        with path.open() as f:
            payload = json.load(f)
    except json.JSONDecodeError as exc:
        raise DatasetConfigError(f"Dataset file {path} is not valid JSON: {exc}") from exc

    return load_documents(payload, config=config, name=path.stem)
