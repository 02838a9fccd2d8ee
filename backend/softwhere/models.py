from typing import Dict, List, Optional

from pydantic import BaseModel


class EstimateBreakdownOut(BaseModel):
    baseCost: float
    complexityMultiplier: float
    featuresCost: float
    pagesCost: float
    techAdjustmentFactor: float
    totalHours: float
    hourlyRate: float


class EstimateOut(BaseModel):
    developmentCost: int
    deadlineWeeks: int
    supportCost: int
    breakdown: EstimateBreakdownOut
    source: str  # "ai" | "formula"
    reasoning: Optional[str] = None


class EstimateResponse(BaseModel):
    success: bool = True
    data: EstimateOut


class CustomerInfo(BaseModel):
    name: str = "Anonymous"
    email: str = ""
    phone: str = ""


class ProjectDetails(BaseModel):
    projectType: str
    subtype: Optional[str] = None
    complexity: str
    pages: int
    features: List[str] = []
    techStack: List[str] = []
    platforms: List[str] = []


class QuoteOut(BaseModel):
    quoteId: str
    customerInfo: CustomerInfo
    projectDetails: ProjectDetails
    estimate: EstimateOut
    createdAt: Optional[str] = None


class QuoteSaved(BaseModel):
    quoteId: str


class QuoteSaveResponse(BaseModel):
    success: bool = True
    data: QuoteSaved


class QuoteListResponse(BaseModel):
    success: bool = True
    data: List[QuoteOut]


class HealthOut(BaseModel):
    status: str
    details: Optional[Dict[str, str]] = None


class CurrencyRatesOut(BaseModel):
    base: str
    rates: Dict[str, float]
    currencies: List[str]
