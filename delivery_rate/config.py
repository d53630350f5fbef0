"""Engine settings with environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from delivery_rate.errors import ConfigError

ENV_PREFIX = "DELIVERY_RATE_"
PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _int_setting(env: Mapping[str, str], name: str, default: int, minimum: int, maximum: int | None = None) -> int:
    key = f"{ENV_PREFIX}{name}"
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {key}: {raw}", setting=key) from exc
    if value < minimum or (maximum is not None and value > maximum):
        upper = "" if maximum is None else f", {maximum}"
        raise ConfigError(f"{key} must be in [{minimum}{upper}], got {value}", setting=key)
    return value


@dataclass(frozen=True)
class EngineSettings:
    """Thresholds and knobs for one report computation."""

    fiscal_start_month: int = 8
    period_offset: int = 1975
    materiality_days: int = 7
    lead_time_days: int = 30
    magnitude_days: int = 7
    drilldown_limit: int = 200
    log_level: str = "INFO"
    output_dir: Path = field(default_factory=lambda: PROJECT_ROOT / "output")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "EngineSettings":
        if env is None:
            load_dotenv(PROJECT_ROOT / ".env")
            env = os.environ
        log_level = str(env.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO") or "INFO").upper()
        if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ConfigError(f"Invalid {ENV_PREFIX}LOG_LEVEL: {log_level}", setting=f"{ENV_PREFIX}LOG_LEVEL")
        output_dir = env.get(f"{ENV_PREFIX}OUTPUT_DIR")
        return cls(
            fiscal_start_month=_int_setting(env, "FISCAL_START_MONTH", 8, minimum=2, maximum=12),
            period_offset=_int_setting(env, "PERIOD_OFFSET", 1975, minimum=0),
            materiality_days=_int_setting(env, "MATERIALITY_DAYS", 7, minimum=0),
            lead_time_days=_int_setting(env, "LEAD_TIME_DAYS", 30, minimum=0),
            magnitude_days=_int_setting(env, "MAGNITUDE_DAYS", 7, minimum=0),
            drilldown_limit=_int_setting(env, "DRILLDOWN_LIMIT", 200, minimum=0),
            log_level=log_level,
            output_dir=Path(output_dir) if output_dir else PROJECT_ROOT / "output",
        )
