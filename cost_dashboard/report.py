import argparse, sys
from typing import List, Optional, Sequence, Tuple

from .baseline import build_model
from .config import configure_logging
from .cost_model import CostModel
from .errors import ConfigurationError, NotFound


def parse_adjustment(text: str) -> Tuple[str, int]:
    category, sep, percent = text.rpartition("=")
    if not sep or not category.strip():
        raise argparse.ArgumentTypeError(f"expected CATEGORY=PERCENT, got '{text}'")
    try:
        return category.strip(), int(percent)
    except ValueError:
        raise argparse.ArgumentTypeError(f"percent must be an integer, got '{percent}'") from None


def _money(amount) -> str:
    return f"${amount:,.2f}"


def render_table(model: CostModel) -> str:
    snapshot = model.snapshot()
    envs = list(snapshot)
    width = max(len(c) for c in model.categories + ("Service Category",)) + 2
    lines = ["Service Category".ljust(width) + "".join(e.rjust(12) for e in envs)]
    for c in model.categories:
        lines.append(c.ljust(width) + "".join(_money(snapshot[e].costs[c]).rjust(12) for e in envs))
    lines.append("Total".ljust(width) + "".join(_money(snapshot[e].custom_monthly_cost).rjust(12) for e in envs))
    lines.append("Min Projected".ljust(width) + "".join(_money(snapshot[e].min_projected).rjust(12) for e in envs))
    lines.append("Max Projected".ljust(width) + "".join(_money(snapshot[e].max_projected).rjust(12) for e in envs))
    lines.append("")
    lines.append(f"Total operational cost across all environments: {_money(model.get_grand_total())}")
    return "\n".join(lines)


def render_breakdown(model: CostModel, env: str) -> str:
    items = model.breakdown(env)
    total = model.get_environment_total(env)
    width = max((len(c) for c, _ in items), default=0) + 2
    lines = [f"{env} service cost breakdown"]
    for c, v in items:
        share = (v / total * 100) if total else 0
        lines.append(f"{c.ljust(width)}{_money(v).rjust(12)}  {share:5.1f}%")
    lines.append(f"{'Total'.ljust(width)}{_money(total).rjust(12)}")
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Print adjusted AWS operational cost estimates.")
    parser.add_argument("--baseline", help="JSON baseline file (defaults to $COST_BASELINE_PATH or built-in table)")
    parser.add_argument("--adjust", action="append", type=parse_adjustment, default=[],
                        metavar="CATEGORY=PERCENT", help="scale a service category, 0-200 (repeatable)")
    parser.add_argument("--environment", help="show one environment's breakdown instead of the full table")
    args = parser.parse_args(argv)

    configure_logging()
    adjustments: List[Tuple[str, int]] = args.adjust
    try:
        model = build_model(args.baseline)
        for category, percent in adjustments:
            model.set_adjustment(category, percent)
        if args.environment:
            print(render_breakdown(model, args.environment))
        else:
            print(render_table(model))
    except (ConfigurationError, NotFound) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
