import threading
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .errors import ConfigurationError, NotFound

CENT = Decimal("0.01")
MIN_PERCENT = 0
MAX_PERCENT = 200
DEFAULT_PERCENT = 100


def to_money(value: Any) -> Decimal:
    """Coerce a number to a 2-decimal Decimal, rounding half up.

    Floats go through ``str`` so that 0.1 becomes Decimal("0.1") rather than
    its binary expansion.
    """
    if isinstance(value, bool):
        raise TypeError("boolean is not a monetary amount")
    if isinstance(value, float):
        value = str(value)
    amount = Decimal(value)
    if not amount.is_finite():
        raise ValueError(f"non-finite amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def clamp_percent(percent: Any) -> int:
    return max(MIN_PERCENT, min(MAX_PERCENT, int(percent)))


def _money_field(env: str, label: str, value: Any) -> Decimal:
    try:
        amount = to_money(value)
    except (TypeError, ValueError, InvalidOperation):
        raise ConfigurationError(f"{env}: '{label}' is not a number: {value!r}") from None
    if amount < 0:
        raise ConfigurationError(f"{env}: '{label}' is negative: {amount}")
    return amount


@dataclass(frozen=True)
class EnvironmentBaseline:
    """Baseline monthly costs of one environment.

    ``min_projected`` and ``max_projected`` are fixed estimates and are never
    scaled by adjustment factors.
    """

    name: str
    costs: Mapping[str, Decimal]
    min_projected: Decimal
    max_projected: Decimal

    def __post_init__(self):
        costs = {c: _money_field(self.name, c, v) for c, v in dict(self.costs).items()}
        object.__setattr__(self, "costs", MappingProxyType(costs))
        object.__setattr__(self, "min_projected", _money_field(self.name, "min_projected", self.min_projected))
        object.__setattr__(self, "max_projected", _money_field(self.name, "max_projected", self.max_projected))


@dataclass(frozen=True)
class AdjustedEnvironment:
    name: str
    costs: Dict[str, Decimal] = field(default_factory=dict)
    custom_monthly_cost: Decimal = Decimal("0.00")
    min_projected: Decimal = Decimal("0.00")
    max_projected: Decimal = Decimal("0.00")


BaselineTable = Mapping[str, EnvironmentBaseline]
AdjustedTable = Dict[str, AdjustedEnvironment]


class CostModel:
    """Baseline cost table plus the per-category adjustment sliders.

    Adjusted values are never cached: every read rebuilds them from the
    baseline and the current factors. One factor per category applies to
    every environment. All access goes through an instance lock so slider
    updates arriving from a thread pool are applied one at a time.
    """

    def __init__(self, baseline: BaselineTable, categories: Sequence[str]):
        if not baseline:
            raise ConfigurationError("baseline table is empty")
        ordered = list(dict.fromkeys(categories or ()))
        if not ordered:
            raise ConfigurationError("no service categories declared")

        table: Dict[str, EnvironmentBaseline] = {}
        for env, row in baseline.items():
            if not isinstance(row, EnvironmentBaseline):
                raise ConfigurationError(f"{env}: expected EnvironmentBaseline, got {type(row).__name__}")
            missing = [c for c in ordered if c not in row.costs]
            if missing:
                raise ConfigurationError(f"{env}: missing costs for {', '.join(missing)}")
            table[env] = row

        self._baseline = MappingProxyType(table)
        self._categories: Tuple[str, ...] = tuple(ordered)
        self._factors: Dict[str, int] = {c: DEFAULT_PERCENT for c in ordered}
        self._lock = threading.RLock()

    @property
    def environments(self) -> Tuple[str, ...]:
        return tuple(self._baseline)

    @property
    def categories(self) -> Tuple[str, ...]:
        return self._categories

    def _env(self, env: str) -> EnvironmentBaseline:
        try:
            return self._baseline[env]
        except KeyError:
            raise NotFound(f"unknown environment '{env}'") from None

    def _check_category(self, category: str):
        if category not in self._factors:
            raise NotFound(f"unknown service category '{category}'")

    # -- adjustments -------------------------------------------------------

    def set_adjustment(self, category: str, percent: int) -> int:
        """Store the slider position for ``category``, clamped to [0, 200].

        Returns the effective percentage.
        """
        self._check_category(category)
        effective = clamp_percent(percent)
        with self._lock:
            self._factors[category] = effective
        return effective

    def get_adjustment(self, category: str) -> int:
        self._check_category(category)
        with self._lock:
            return self._factors[category]

    def adjustments(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._factors)

    def reset(self):
        with self._lock:
            for c in self._factors:
                self._factors[c] = DEFAULT_PERCENT

    # -- derived values ----------------------------------------------------

    @staticmethod
    def _scale(amount: Decimal, percent: int) -> Decimal:
        return (amount * percent / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)

    def _adjusted_costs(self, row: EnvironmentBaseline, factors: Mapping[str, int]) -> Dict[str, Decimal]:
        return {c: self._scale(row.costs[c], factors[c]) for c in self._categories}

    def get_adjusted_cost(self, env: str, category: str) -> Decimal:
        row = self._env(env)
        self._check_category(category)
        with self._lock:
            percent = self._factors[category]
        return self._scale(row.costs[category], percent)

    def get_environment_total(self, env: str) -> Decimal:
        row = self._env(env)
        with self._lock:
            costs = self._adjusted_costs(row, self._factors)
        # terms are rounded before summing
        return sum(costs.values(), Decimal("0.00")).quantize(CENT, rounding=ROUND_HALF_UP)

    def get_projected_range(self, env: str) -> Tuple[Decimal, Decimal]:
        row = self._env(env)
        return row.min_projected, row.max_projected

    def get_grand_total(self) -> Decimal:
        with self._lock:
            totals = [self.get_environment_total(env) for env in self._baseline]
        return sum(totals, Decimal("0.00"))

    def breakdown(self, env: str) -> List[Tuple[str, Decimal]]:
        """Adjusted costs in declared category order, zero entries dropped."""
        row = self._env(env)
        with self._lock:
            costs = self._adjusted_costs(row, self._factors)
        return [(c, v) for c, v in costs.items() if v != 0]

    def snapshot(self) -> AdjustedTable:
        """Rebuild the whole adjusted table from the current factors."""
        with self._lock:
            factors = dict(self._factors)
        table: AdjustedTable = {}
        for env, row in self._baseline.items():
            costs = self._adjusted_costs(row, factors)
            table[env] = AdjustedEnvironment(
                name=env,
                costs=costs,
                custom_monthly_cost=sum(costs.values(), Decimal("0.00")).quantize(CENT, rounding=ROUND_HALF_UP),
                min_projected=row.min_projected,
                max_projected=row.max_projected,
            )
        return table
