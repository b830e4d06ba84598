"""coinsignal.core.config

Two config surfaces only:
1) `config/default.yaml`
2) Environment variables (`COINSIGNAL_` prefix, `__` for nesting)

Everything else is derived.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from coinsignal.core.exceptions import ConfigError


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


class BacktestConfig(BaseModel):
    initial_capital: float = 10_000.0
    min_history: int = 30
    trade_sample_size: int = 20
    # Fixed convention; not derived from the run's timeframe.
    annualization: int = 252
    # "No losing trades" sentinel for profit factor.
    profit_factor_cap: float = 999.0
    max_workers: int = 4

    @field_validator("initial_capital", "profit_factor_cap")
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("min_history", "trade_sample_size", "annualization", "max_workers")
    @classmethod
    def must_be_at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


class DataConfig(BaseModel):
    base_url: str = "https://api.coingecko.com/api/v3"
    api_key: str = ""
    vs_currency: str = "usd"
    timeout_s: float = 20.0
    max_retries: int = 3
    rate_limit_rps: float = 0.5
    max_backoff_s: float = 8.0
    circuit_breaker_threshold: int = 5
    circuit_breaker_cooldown_s: float = 30.0


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False


class Config(BaseSettings):
    """Root configuration. Single source of truth."""

    config_dir: Path = Path("config")

    backtest: BacktestConfig = Field(default_factory=BacktestConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"env_prefix": "COINSIGNAL_", "env_nested_delimiter": "__"}

    @classmethod
    def from_yaml(cls, path: Path, *, overrides: dict[str, Any] | None = None) -> Config:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config file is not valid YAML: {path}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Config root must be a mapping: {path}")

        if overrides:
            raw = _deep_merge(raw, overrides)
        raw.setdefault("config_dir", path.parent)
        return cls(**raw)

    @classmethod
    def from_repo_defaults(cls, repo_root: Path | None = None) -> Config:
        root = repo_root or Path.cwd()
        return cls.from_yaml(root / "config" / "default.yaml")
