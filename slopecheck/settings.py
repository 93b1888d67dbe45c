"""Settings — runtime configuration merged from files and the environment."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from slopecheck.config import (
    DEFAULT_TOLERANCE_PERCENT,
    SIZE_TOLERANCE_MM,
    VERTICAL_RATIO_THRESHOLD,
)
from slopecheck.compliance.rules import TieBreak

logger = logging.getLogger(__name__)

# Environment variable -> Settings field
_ENV_KEYS: dict[str, str] = {
    "SLOPECHECK_LOG_LEVEL": "log_level",
    "SLOPECHECK_TOLERANCE_PERCENT": "tolerance_percent",
    "SLOPECHECK_SIZE_TOLERANCE_MM": "size_tolerance_mm",
    "SLOPECHECK_VERTICAL_RATIO": "vertical_ratio",
    "SLOPECHECK_TIE_BREAK": "tie_break",
    "SLOPECHECK_WORKERS": "workers",
}


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseModel):
    """Engine and logging settings."""

    log_level: LogLevel = "INFO"
    tolerance_percent: float = Field(default=DEFAULT_TOLERANCE_PERCENT, ge=0, le=100)
    size_tolerance_mm: float = Field(default=SIZE_TOLERANCE_MM, gt=0)
    vertical_ratio: float = Field(default=VERTICAL_RATIO_THRESHOLD, gt=0)
    tie_break: TieBreak = TieBreak.FIRST
    workers: int | None = Field(default=None, ge=1)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


def _read_env_file(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                k, v = line.split("=", 1)
                values[k.strip()] = v.strip()
    except OSError:
        logger.debug("Could not read %s", path, exc_info=True)
    return values


def load_settings(project_path: str | Path | None = None) -> Settings:
    """Load merged settings: defaults -> config.json -> .env -> env vars.

    ``.slopecheck/config.json`` uses Settings field names; ``.env`` and the
    process environment use the ``SLOPECHECK_*`` names.
    """
    merged: dict[str, Any] = {}

    if project_path is not None:
        root = Path(project_path)

        config_json = root / ".slopecheck" / "config.json"
        if config_json.is_file():
            try:
                data = json.loads(config_json.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError):
                logger.debug("Could not read config.json", exc_info=True)
                data = {}
            if isinstance(data, dict):
                merged.update({k: v for k, v in data.items() if k in Settings.model_fields})
            else:
                logger.debug("Ignoring %s: expected a JSON object", config_json)

        env_file = root / ".env"
        if env_file.is_file():
            for key, value in _read_env_file(env_file).items():
                if key in _ENV_KEYS:
                    merged[_ENV_KEYS[key]] = value

    for key, field_name in _ENV_KEYS.items():
        env_val = os.environ.get(key)
        if env_val is not None:
            merged[field_name] = env_val

    return Settings.model_validate(merged)
