import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Dict, List

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .baseline import build_model
from .config import configure_logging, cors_allow_origins
from .cost_model import CostModel
from .errors import ConfigurationError, NotFound
from .metrics import scrape_metrics
from .schemas import (
    AdjustmentRequest, AdjustmentResponse, BreakdownResponse, BreakdownRow,
    ComparisonRow, CostTableResponse, EnvironmentCosts, EnvironmentSummary,
)

configure_logging()
LOG = logging.getLogger(__name__)

LOAD_FAILURE = "Failed to load cost data"


def load_model(app: FastAPI):
    try:
        app.state.model = build_model()
        app.state.load_error = None
    except ConfigurationError as e:
        LOG.error("%s: %s", LOAD_FAILURE, e)
        app.state.model = None
        app.state.load_error = str(e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    load_model(app)
    yield


app = FastAPI(title="AWS Operational Costs Dashboard API", version="1.0.0", lifespan=lifespan)
app.state.model = None
app.state.load_error = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allow_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFound)
def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def get_model(request: Request) -> CostModel:
    model = request.app.state.model
    if model is None:
        raise HTTPException(status_code=503, detail=LOAD_FAILURE)
    return model


def _f(amount: Decimal) -> float:
    return float(amount)


@app.get("/api/health")
def health(request: Request):
    if request.app.state.model is None:
        return JSONResponse(status_code=503, content={"status": "error", "detail": LOAD_FAILURE})
    return {"status": "ok"}


@app.get("/api/costs", response_model=CostTableResponse)
def get_costs(model: CostModel = Depends(get_model)):
    snapshot = model.snapshot()
    rows = [EnvironmentCosts(environment=env,
                             costs={c: _f(v) for c, v in row.costs.items()},
                             custom_monthly_cost=_f(row.custom_monthly_cost),
                             min_projected=_f(row.min_projected),
                             max_projected=_f(row.max_projected))
            for env, row in snapshot.items()]
    total = sum((row.custom_monthly_cost for row in snapshot.values()), Decimal("0.00"))
    return CostTableResponse(environments=list(model.environments), categories=list(model.categories),
                             rows=rows, adjustments=model.adjustments(), total=_f(total))


@app.get("/api/environments/{env}", response_model=EnvironmentSummary)
def get_environment(env: str, model: CostModel = Depends(get_model)):
    low, high = model.get_projected_range(env)
    return EnvironmentSummary(environment=env, custom_monthly_cost=_f(model.get_environment_total(env)),
                              min_projected=_f(low), max_projected=_f(high))


@app.get("/api/environments/{env}/breakdown", response_model=BreakdownResponse)
def get_breakdown(env: str, model: CostModel = Depends(get_model)):
    items = model.breakdown(env)
    total = sum((v for _, v in items), Decimal("0.00"))
    rows = [BreakdownRow(category=c, cost=_f(v), share=round(float(v / total), 4) if total else 0.0)
            for c, v in items]
    return BreakdownResponse(environment=env, rows=rows, total=_f(total))


@app.get("/api/comparison", response_model=List[ComparisonRow])
def get_comparison(model: CostModel = Depends(get_model)):
    return [ComparisonRow(environment=env, custom_cost=_f(row.custom_monthly_cost),
                          min_cost=_f(row.min_projected), max_cost=_f(row.max_projected))
            for env, row in model.snapshot().items()]


@app.get("/api/adjustments", response_model=Dict[str, int])
def get_adjustments(model: CostModel = Depends(get_model)):
    return model.adjustments()


@app.put("/api/adjustments/{category}", response_model=AdjustmentResponse)
def put_adjustment(category: str, body: AdjustmentRequest, model: CostModel = Depends(get_model)):
    effective = model.set_adjustment(category, body.percent)
    if effective != body.percent:
        LOG.info("Adjustment for %s clamped from %d to %d%%", category, body.percent, effective)
    else:
        LOG.info("Adjustment for %s set to %d%%", category, effective)
    return AdjustmentResponse(category=category, percent=effective)


@app.post("/api/adjustments/reset", response_model=Dict[str, int])
def reset_adjustments(model: CostModel = Depends(get_model)):
    model.reset()
    LOG.info("All adjustments reset to 100%")
    return model.adjustments()


@app.get("/metrics")
def metrics(model: CostModel = Depends(get_model)):
    output, ctype = scrape_metrics(model)
    return Response(content=output, media_type=ctype)
