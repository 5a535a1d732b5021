from __future__ import annotations

import json
from pathlib import Path

import pytest

from cost_dashboard.baseline import DEFAULT_COSTS, build_model
from cost_dashboard.cost_model import CostModel


@pytest.fixture(autouse=True)
def _no_baseline_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("COST_BASELINE_PATH", raising=False)


@pytest.fixture
def model() -> CostModel:
    return build_model()


@pytest.fixture
def write_baseline(tmp_path: Path):
    def _write(payload) -> Path:
        path = tmp_path / "baseline.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def default_payload() -> dict:
    return json.loads(json.dumps(DEFAULT_COSTS))
