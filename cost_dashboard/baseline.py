import json, logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .config import baseline_path
from .cost_model import CostModel, EnvironmentBaseline, BaselineTable
from .errors import ConfigurationError

LOG = logging.getLogger(__name__)

SERVICE_CATEGORIES = (
    "OpenSearch Indexing",
    "OpenSearch Querying",
    "OpenSearch Storage",
    "Bedrock Input Tokens",
    "Bedrock Output Tokens",
    "Bedrock Embeddings",
    "API Gateway",
    "Lambda Requests",
    "Lambda Compute",
)

CUSTOM_KEY = "Custom Monthly Cost"
MIN_KEY = "Min Projected Monthly Cost"
MAX_KEY = "Max Projected Monthly Cost"

# Estimated monthly USD figures taken from the operational costs workbook.
# "Custom Monthly Cost" is informational only; totals are always recomputed.
DEFAULT_COSTS: Dict[str, Dict[str, float]] = {
    "Staging": {
        CUSTOM_KEY: 100.34,
        MIN_KEY: 419.21,
        MAX_KEY: 663.23,
        "OpenSearch Indexing": 24.00,
        "OpenSearch Querying": 48.00,
        "OpenSearch Storage": 0.24,
        "Bedrock Input Tokens": 0.06,
        "Bedrock Output Tokens": 0.24,
        "Bedrock Embeddings": 0.10,
        "API Gateway": 17.50,
        "Lambda Requests": 0.20,
        "Lambda Compute": 10.00,
    },
    "Oregon": {
        CUSTOM_KEY: 157.17,
        MIN_KEY: 419.21,
        MAX_KEY: 663.23,
        "OpenSearch Indexing": 24.00,
        "OpenSearch Querying": 120.00,
        "OpenSearch Storage": 2.40,
        "Bedrock Input Tokens": 0.06,
        "Bedrock Output Tokens": 0.24,
        "Bedrock Embeddings": 0.10,
        "API Gateway": 3.50,
        "Lambda Requests": 0.20,
        "Lambda Compute": 6.67,
    },
    "Virginia": {
        CUSTOM_KEY: 102.30,
        MIN_KEY: 422.38,
        MAX_KEY: 669.56,
        "OpenSearch Indexing": 24.00,
        "OpenSearch Querying": 48.00,
        "OpenSearch Storage": 2.40,
        "Bedrock Input Tokens": 0.06,
        "Bedrock Output Tokens": 0.24,
        "Bedrock Embeddings": 0.10,
        "API Gateway": 17.50,
        "Lambda Requests": 0.00,
        "Lambda Compute": 10.00,
    },
}


def parse_baseline(raw: Mapping[str, Any]) -> BaselineTable:
    """Turn the dashboard's nested {env: {label: amount}} shape into a BaselineTable."""
    if not isinstance(raw, Mapping) or not raw:
        raise ConfigurationError("baseline table is missing or empty")
    table: Dict[str, EnvironmentBaseline] = {}
    for env, row in raw.items():
        if not isinstance(row, Mapping):
            raise ConfigurationError(f"{env}: expected an object of costs")
        for key in (MIN_KEY, MAX_KEY):
            if key not in row:
                raise ConfigurationError(f"{env}: missing '{key}'")
        costs = {k: v for k, v in row.items() if k not in (CUSTOM_KEY, MIN_KEY, MAX_KEY)}
        table[env] = EnvironmentBaseline(
            name=env,
            costs=costs,
            min_projected=row[MIN_KEY],
            max_projected=row[MAX_KEY],
        )
    return table


def read_baseline_file(path: str) -> BaselineTable:
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"baseline file not found: {p}")
    try:
        payload = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"cannot read baseline file {p}: {e}") from e
    return parse_baseline(payload)


def load_baseline(path: Optional[str] = None) -> BaselineTable:
    path = path or baseline_path()
    if path:
        LOG.info("Loading baseline costs from %s", path)
        return read_baseline_file(path)
    LOG.info("Using built-in baseline costs")
    return parse_baseline(DEFAULT_COSTS)


def build_model(path: Optional[str] = None) -> CostModel:
    table = load_baseline(path)
    model = CostModel(table, SERVICE_CATEGORIES)
    LOG.info("Cost model ready: %d environments, %d categories",
             len(model.environments), len(model.categories))
    return model
