from pydantic import BaseModel, Field
from typing import Dict, List


class EnvironmentSummary(BaseModel):
    environment: str
    custom_monthly_cost: float
    min_projected: float
    max_projected: float


class EnvironmentCosts(EnvironmentSummary):
    costs: Dict[str, float]


class CostTableResponse(BaseModel):
    environments: List[str]
    categories: List[str]
    rows: List[EnvironmentCosts]
    adjustments: Dict[str, int]
    total: float
    currency: str = "USD"


class BreakdownRow(BaseModel):
    category: str
    cost: float
    share: float


class BreakdownResponse(BaseModel):
    environment: str
    rows: List[BreakdownRow]
    total: float
    currency: str = "USD"


class ComparisonRow(BaseModel):
    environment: str
    custom_cost: float
    min_cost: float
    max_cost: float


class AdjustmentRequest(BaseModel):
    percent: int = Field(..., strict=True)


class AdjustmentResponse(BaseModel):
    category: str
    percent: int
