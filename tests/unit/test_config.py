from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from coinsignal.core.config import BacktestConfig, Config
from coinsignal.core.exceptions import ConfigError


def test_repo_default_yaml_loads(test_config: Config) -> None:
    assert test_config.backtest.initial_capital == 10_000.0
    assert test_config.backtest.min_history == 30
    assert test_config.backtest.trade_sample_size == 20
    assert test_config.backtest.annualization == 252
    assert test_config.backtest.profit_factor_cap == 999.0
    assert test_config.data.base_url.startswith("https://")
    assert test_config.logging.level == "INFO"


def test_config_yaml_overrides_and_merge(tmp_path: Path) -> None:
    fp = tmp_path / "default.yaml"
    fp.write_text("backtest:\n  min_history: 50\ndata:\n  max_retries: 1\n")

    cfg = Config.from_yaml(fp, overrides={"backtest": {"trade_sample_size": 5}})
    assert cfg.backtest.min_history == 50
    assert cfg.backtest.trade_sample_size == 5
    assert cfg.backtest.initial_capital == 10_000.0
    assert cfg.data.max_retries == 1
    assert cfg.config_dir == tmp_path


def test_config_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COINSIGNAL_DATA__API_KEY", "secret")
    monkeypatch.setenv("COINSIGNAL_BACKTEST__MIN_HISTORY", "60")
    cfg = Config()  # BaseSettings reads env
    assert cfg.data.api_key == "secret"
    assert cfg.backtest.min_history == 60


def test_config_from_yaml_raises_if_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Config.from_yaml(tmp_path / "missing.yaml")


def test_config_from_yaml_rejects_non_mapping(tmp_path: Path) -> None:
    fp = tmp_path / "default.yaml"
    fp.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        Config.from_yaml(fp)


@pytest.mark.parametrize("field,value", [("initial_capital", 0), ("min_history", 0), ("trade_sample_size", -1)])
def test_backtest_config_validation(field: str, value: float) -> None:
    with pytest.raises(ValidationError):
        BacktestConfig(**{field: value})
