from prometheus_client import Gauge, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
from .cost_model import CostModel


def scrape_metrics(model: CostModel):
    reg = CollectorRegistry()
    env_total = Gauge("cost_environment_total", "Adjusted monthly cost by environment", ["environment"], registry=reg)
    proj_min = Gauge("cost_projected_min", "Minimum projected monthly cost by environment", ["environment"], registry=reg)
    proj_max = Gauge("cost_projected_max", "Maximum projected monthly cost by environment", ["environment"], registry=reg)
    grand = Gauge("cost_grand_total", "Adjusted monthly cost across all environments", registry=reg)
    percent = Gauge("cost_adjustment_percent", "Current adjustment slider by service category", ["category"], registry=reg)

    snapshot = model.snapshot()
    for env, row in snapshot.items():
        env_total.labels(environment=env).set(float(row.custom_monthly_cost))
        proj_min.labels(environment=env).set(float(row.min_projected))
        proj_max.labels(environment=env).set(float(row.max_projected))
    grand.set(float(sum(row.custom_monthly_cost for row in snapshot.values())))
    for category, value in model.adjustments().items():
        percent.labels(category=category).set(value)

    return generate_latest(reg), CONTENT_TYPE_LATEST
