from __future__ import annotations

import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

# pytest may run without installing the project; ensure repo root is importable.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from coinsignal.backtest.types import BacktestParameters  # noqa: E402
from coinsignal.core.config import Config  # noqa: E402


@pytest.fixture()
def params() -> BacktestParameters:
    return BacktestParameters(
        crypto_id="bitcoin",
        strategy_name="SMA Crossover",
        start_date=datetime(2024, 1, 1, tzinfo=UTC),
        end_date=datetime(2024, 3, 1, tzinfo=UTC),
    )


@pytest.fixture()
def test_config(tmp_path: Path) -> Config:
    """Config loaded from the repo default.yaml, copied into a temp dir."""

    cfg_dir = tmp_path / "config"
    cfg_dir.mkdir(parents=True, exist_ok=True)
    (cfg_dir / "default.yaml").write_text((REPO_ROOT / "config" / "default.yaml").read_text())
    return Config.from_yaml(cfg_dir / "default.yaml")


@pytest.fixture()
def anyio_backend() -> str:
    # The client is built on asyncio; run anyio-marked tests on that backend only.
    return "asyncio"
