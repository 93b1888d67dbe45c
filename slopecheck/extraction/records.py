"""Load PipeRecords from plain dicts and JSON exports of a host model.

Accepted record shape::

    {
        "id": "316001",
        "start": [0.0, 0.0, 10.0],
        "end": [20.0, 0.0, 9.6],
        "diameter": 0.328084,          # feet
        "slope": 0.02,                 # optional
        "type_name": "PVC - DWV"       # optional
    }

``start_point``/``end_point``/``native_slope`` are accepted as aliases.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from slopecheck.models.pipe import PipeRecord

logger = logging.getLogger(__name__)


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def pipe_from_dict(data: dict[str, Any]) -> PipeRecord:
    """Build a PipeRecord from one exported record.

    Raises
    ------
    ValueError
        If required fields are missing or invalid.
    """
    return PipeRecord(
        id=_first(data, "id", "element_id"),
        start_point=_first(data, "start", "start_point"),
        end_point=_first(data, "end", "end_point"),
        diameter=_first(data, "diameter") or 0.0,
        native_slope=_first(data, "slope", "native_slope"),
        type_name=_first(data, "type_name", "type") or "",
    )


def pipes_from_dicts(items: Iterable[dict[str, Any]]) -> list[PipeRecord]:
    """Convert records, skipping any that are malformed."""
    pipes: list[PipeRecord] = []
    for index, item in enumerate(items):
        try:
            pipes.append(pipe_from_dict(item))
        except (ValidationError, ValueError, TypeError, AttributeError):
            logger.warning("Skipping malformed pipe record #%d", index, exc_info=True)
    return pipes


def load_pipes_json(path: str | Path) -> list[PipeRecord]:
    """Load pipes from a JSON file holding a list or ``{"pipes": [...]}``."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Pipe export not found: {p}")

    data = json.loads(p.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("pipes", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of pipe records in {p}")

    pipes = pipes_from_dicts(data)
    logger.info("Loaded %d of %d pipe records from %s", len(pipes), len(data), p)
    return pipes
