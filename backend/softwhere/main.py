import io
import logging
import threading
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from softwhere import catalog, config
from softwhere.currency import SUPPORTED_CURRENCIES, CurrencyRates, CurrencyRatesError
from softwhere.logging_config import setup_logging
from softwhere.models import (
    CurrencyRatesOut,
    EstimateResponse,
    HealthOut,
    QuoteListResponse,
    QuoteOut,
    QuoteSaveResponse,
)
from softwhere.orchestrator import EstimateOrchestrator
from softwhere.quotes import render_quote_pdf
from softwhere.validation import EstimateValidationError

setup_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Softwhere Estimator API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

_orchestrator: Optional[EstimateOrchestrator] = None
_orchestrator_lock = threading.Lock()
_currency_rates = CurrencyRates()


def get_orchestrator() -> EstimateOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        with _orchestrator_lock:
            if _orchestrator is None:
                _orchestrator = EstimateOrchestrator(db_path=config.DB_PATH)
    return _orchestrator


def get_currency_rates() -> CurrencyRates:
    return _currency_rates


@app.exception_handler(EstimateValidationError)
async def validation_error_handler(request, exc: EstimateValidationError):
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


def _request_error_message(errors) -> str:
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = tuple(first.get("loc") or ())
    if loc and loc[0] == "body":
        if first.get("type") == "json_invalid":
            return "Request body must be valid JSON"
        return "Request body must be an object"
    return f"Invalid {loc[-1] if loc else 'request'}: {first.get('msg')}"


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"success": False, "error": _request_error_message(exc.errors())})


def _server_error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "error": message})


@app.get("/", include_in_schema=False)
async def root():
    return {"message": "Softwhere estimator backend running. Open /docs for API docs."}


@app.post("/api/estimate", response_model=EstimateResponse)
def post_estimate(payload: Any = Body(...), orchestrator: EstimateOrchestrator = Depends(get_orchestrator)):
    """
    Formula estimate, replaced by the AI estimate when one is configured and plausible.
    """
    try:
        return {"success": True, "data": orchestrator.get_estimate(payload)}
    except EstimateValidationError:
        raise
    except Exception:
        logger.exception("Estimate calculation failed")
        return _server_error("Failed to process estimate request")


@app.post("/api/estimate/formula", response_model=EstimateResponse)
def post_formula_estimate(payload: Any = Body(...), orchestrator: EstimateOrchestrator = Depends(get_orchestrator)):
    return {"success": True, "data": orchestrator.get_estimate(payload, use_ai=False)}


@app.post("/api/estimate/save", response_model=QuoteSaveResponse)
def save_quote(payload: Any = Body(...), orchestrator: EstimateOrchestrator = Depends(get_orchestrator)):
    """
    payload: estimator fields plus optional { name, email, phone, useAi }
    """
    try:
        return {"success": True, "data": orchestrator.save_quote(payload)}
    except EstimateValidationError:
        raise
    except Exception:
        logger.exception("Quote save failed")
        return _server_error("Failed to save quote")


@app.get("/api/estimate/quotes", response_model=QuoteListResponse)
def list_quotes(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    project_type: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    orchestrator: EstimateOrchestrator = Depends(get_orchestrator),
):
    quotes = orchestrator.list_quotes(start_date=start_date, end_date=end_date, project_type=project_type, source=source)
    return {"success": True, "data": quotes}


def _require_quote(orchestrator: EstimateOrchestrator, quote_id: str) -> Dict[str, Any]:
    quote = orchestrator.get_quote(quote_id)
    if quote is None:
        raise HTTPException(status_code=404, detail="Quote not found")
    return quote


@app.get("/api/estimate/quotes/{quote_id}", response_model=QuoteOut)
def get_quote(quote_id: str, orchestrator: EstimateOrchestrator = Depends(get_orchestrator)):
    return _require_quote(orchestrator, quote_id)


@app.get("/api/estimate/quotes/{quote_id}/pdf")
def get_quote_pdf(quote_id: str, orchestrator: EstimateOrchestrator = Depends(get_orchestrator)):
    quote = _require_quote(orchestrator, quote_id)
    pdf_bytes = render_quote_pdf(quote, title=f"Project Quote {quote_id}")
    return StreamingResponse(io.BytesIO(pdf_bytes), media_type="application/pdf", headers={
        "Content-Disposition": f'attachment; filename="{quote_id}.pdf"'
    })


@app.get("/api/estimate/options")
def get_options(project_type: Optional[str] = Query(None), subtype: Optional[str] = Query(None)):
    """
    Service catalog for the estimator wizard: subtypes, features and tech options.
    """
    if project_type is not None and project_type not in catalog.PROJECT_TYPES:
        raise HTTPException(status_code=400, detail="Invalid projectType")
    return catalog.catalog_snapshot(project_type, subtype)


@app.get("/api/health/db", response_model=HealthOut)
def health_db(orchestrator: EstimateOrchestrator = Depends(get_orchestrator)):
    try:
        orchestrator.quote_store.ping()
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        return JSONResponse(status_code=503, content={"status": "error", "details": {"database": str(e)}})
    return {"status": "ok"}


@app.get("/api/currency/rates", response_model=CurrencyRatesOut)
def currency_rates(rates: CurrencyRates = Depends(get_currency_rates)):
    """
    USD-based exchange rates, cached for a day. Estimates stay in USD; clients convert for display.
    """
    try:
        data = rates.get()
    except CurrencyRatesError as e:
        logger.error("%s", e)
        return JSONResponse(status_code=502, content={"success": False, "error": "Failed to fetch rates"})
    return {**data, "currencies": list(SUPPORTED_CURRENCIES)}
