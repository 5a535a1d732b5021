"""Unit tests for the adjustable CostModel."""

from __future__ import annotations

import threading
from decimal import Decimal

import pytest

from cost_dashboard.baseline import DEFAULT_COSTS, SERVICE_CATEGORIES, parse_baseline
from cost_dashboard.cost_model import CostModel, EnvironmentBaseline, clamp_percent, to_money
from cost_dashboard.errors import ConfigurationError, NotFound

ENVS = ("Staging", "Oregon", "Virginia")


def test_default_factor_returns_baseline_exactly(model: CostModel) -> None:
    for env in ENVS:
        for category in SERVICE_CATEGORIES:
            assert model.get_adjusted_cost(env, category) == to_money(DEFAULT_COSTS[env][category])


def test_default_totals_match_workbook(model: CostModel) -> None:
    assert model.get_environment_total("Staging") == Decimal("100.34")
    assert model.get_environment_total("Oregon") == Decimal("157.17")
    assert model.get_environment_total("Virginia") == Decimal("102.30")
    assert model.get_grand_total() == Decimal("359.81")


@pytest.mark.parametrize("category", SERVICE_CATEGORIES)
def test_zero_factor_zeroes_category_everywhere(model: CostModel, category: str) -> None:
    model.set_adjustment(category, 0)
    for env in ENVS:
        assert model.get_adjusted_cost(env, category) == Decimal("0.00")


@pytest.mark.parametrize("category", SERVICE_CATEGORIES)
def test_double_factor_doubles_category_everywhere(model: CostModel, category: str) -> None:
    model.set_adjustment(category, 200)
    for env in ENVS:
        expected = Decimal(str(DEFAULT_COSTS[env][category])) * 2
        assert abs(model.get_adjusted_cost(env, category) - expected) <= Decimal("0.01")


def test_set_adjustment_is_idempotent(model: CostModel) -> None:
    model.set_adjustment("API Gateway", 37)
    once = model.snapshot()
    model.set_adjustment("API Gateway", 37)
    assert model.snapshot() == once


@pytest.mark.parametrize("requested, effective", [(500, 200), (-50, 0), (200, 200), (0, 0), (150, 150)])
def test_out_of_range_percent_is_clamped(model: CostModel, requested: int, effective: int) -> None:
    assert model.set_adjustment("Lambda Compute", requested) == effective
    assert model.get_adjustment("Lambda Compute") == effective


def test_clamp_percent_truncates_to_int() -> None:
    assert clamp_percent(99.9) == 99
    assert clamp_percent(1e6) == 200


def test_half_cent_rounds_up() -> None:
    table = {"Solo": EnvironmentBaseline("Solo", {"A": "0.05"}, 0, 0)}
    m = CostModel(table, ["A"])
    m.set_adjustment("A", 50)
    # 0.025 -> 0.03 with half-up, 0.02 with banker's rounding
    assert m.get_adjusted_cost("Solo", "A") == Decimal("0.03")


def test_total_sums_rounded_terms() -> None:
    table = {"Solo": EnvironmentBaseline("Solo", {"A": "0.05", "B": "0.05"}, 0, 0)}
    m = CostModel(table, ["A", "B"])
    m.set_adjustment("A", 50)
    m.set_adjustment("B", 50)
    # unrounded terms would give 0.05, rounded terms give 0.06
    assert m.get_environment_total("Solo") == Decimal("0.06")


def test_staging_scenario(model: CostModel) -> None:
    model.set_adjustment("OpenSearch Indexing", 50)
    assert model.get_adjusted_cost("Staging", "OpenSearch Indexing") == Decimal("12.00")
    assert model.get_environment_total("Staging") == Decimal("88.34")


def test_breakdown_drops_zero_entries(model: CostModel) -> None:
    virginia = [c for c, _ in model.breakdown("Virginia")]
    assert "Lambda Requests" not in virginia
    assert virginia == [c for c in SERVICE_CATEGORIES if c != "Lambda Requests"]


def test_breakdown_keeps_declared_order(model: CostModel) -> None:
    model.set_adjustment("Lambda Compute", 200)
    assert [c for c, _ in model.breakdown("Oregon")] == list(SERVICE_CATEGORIES)


def test_breakdown_drops_category_scaled_to_zero(model: CostModel) -> None:
    model.set_adjustment("OpenSearch Querying", 0)
    assert "OpenSearch Querying" not in dict(model.breakdown("Staging"))


def test_totals_stay_consistent_after_adjustments(model: CostModel) -> None:
    for i, category in enumerate(SERVICE_CATEGORIES):
        model.set_adjustment(category, (i * 37) % 201)
        for env in ENVS:
            expected = sum((model.get_adjusted_cost(env, c) for c in SERVICE_CATEGORIES), Decimal("0"))
            assert model.get_environment_total(env) == expected
        assert model.get_grand_total() == sum(model.get_environment_total(e) for e in ENVS)


def test_projected_range_ignores_adjustments(model: CostModel) -> None:
    before = {env: model.get_projected_range(env) for env in ENVS}
    for category in SERVICE_CATEGORIES:
        model.set_adjustment(category, 0)
    model.set_adjustment("API Gateway", 200)
    assert {env: model.get_projected_range(env) for env in ENVS} == before
    assert before["Virginia"] == (Decimal("422.38"), Decimal("669.56"))


def test_snapshot_matches_point_queries(model: CostModel) -> None:
    model.set_adjustment("Bedrock Embeddings", 150)
    snap = model.snapshot()
    for env in ENVS:
        assert snap[env].custom_monthly_cost == model.get_environment_total(env)
        assert snap[env].costs["Bedrock Embeddings"] == model.get_adjusted_cost(env, "Bedrock Embeddings")


def test_reset_restores_defaults(model: CostModel) -> None:
    model.set_adjustment("API Gateway", 10)
    model.reset()
    assert set(model.adjustments().values()) == {100}
    assert model.get_grand_total() == Decimal("359.81")


def test_instances_do_not_share_state() -> None:
    a = CostModel(parse_baseline(DEFAULT_COSTS), SERVICE_CATEGORIES)
    b = CostModel(parse_baseline(DEFAULT_COSTS), SERVICE_CATEGORIES)
    a.set_adjustment("OpenSearch Querying", 0)
    assert b.get_adjustment("OpenSearch Querying") == 100
    assert b.get_environment_total("Oregon") == Decimal("157.17")


def test_concurrent_updates_leave_consistent_state(model: CostModel) -> None:
    def worker(percent: int) -> None:
        for category in SERVICE_CATEGORIES:
            model.set_adjustment(category, percent)

    threads = [threading.Thread(target=worker, args=(p,)) for p in (0, 50, 150, 200)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snap = model.snapshot()
    for env in ENVS:
        assert snap[env].custom_monthly_cost == sum(snap[env].costs.values(), Decimal("0"))


@pytest.mark.parametrize("env, category", [("Ohio", "API Gateway"), ("Staging", "EC2")])
def test_unknown_lookups_raise_not_found(model: CostModel, env: str, category: str) -> None:
    with pytest.raises(NotFound):
        model.get_adjusted_cost(env, category)


def test_unknown_environment_and_category(model: CostModel) -> None:
    with pytest.raises(NotFound):
        model.get_environment_total("Ohio")
    with pytest.raises(NotFound):
        model.breakdown("Ohio")
    with pytest.raises(NotFound):
        model.get_projected_range("Ohio")
    with pytest.raises(NotFound):
        model.set_adjustment("EC2", 50)


def test_empty_baseline_rejected() -> None:
    with pytest.raises(ConfigurationError):
        CostModel({}, SERVICE_CATEGORIES)


def test_no_categories_rejected() -> None:
    with pytest.raises(ConfigurationError):
        CostModel(parse_baseline(DEFAULT_COSTS), [])


def test_negative_cost_rejected() -> None:
    with pytest.raises(ConfigurationError):
        EnvironmentBaseline("Staging", {"API Gateway": -1.0}, 0, 0)


def test_negative_projection_rejected() -> None:
    with pytest.raises(ConfigurationError):
        EnvironmentBaseline("Staging", {"API Gateway": 1.0}, -5, 10)


def test_missing_category_rejected() -> None:
    table = {"Staging": EnvironmentBaseline("Staging", {"API Gateway": 1.0}, 0, 0)}
    with pytest.raises(ConfigurationError, match="Lambda Compute"):
        CostModel(table, SERVICE_CATEGORIES)


def test_baseline_is_read_only(model: CostModel) -> None:
    row = parse_baseline(DEFAULT_COSTS)["Staging"]
    with pytest.raises(TypeError):
        row.costs["API Gateway"] = Decimal("1")  # type: ignore[index]
