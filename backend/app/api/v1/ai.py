"""
ai.py — AI Analysis & Assistant Endpoints

- POST /ai/analyze-company {companyId}   → OpenAI assessment of a stored company
- POST /ai/market-analysis {sector, ...} → Perplexity sector analysis
- POST /chat/completions {messages}      → local knowledge-base assistant

Upstream failures surface as `{message, error}` with the upstream status (or 500).
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from app.api.deps import get_storage
from app.core.errors import AppError
from app.services.ai.chat import complete_chat
from app.services.ai.company_analysis import analyze_company
from app.services.ai.market_analysis import analyze_market
from app.services.storage import Storage

router = APIRouter(tags=["ai"])


def _company_id(value: Any) -> int:
    """Accept ints and numeric strings, like the web client sends."""
    if isinstance(value, bool):
        raise AppError("Valid company ID is required", status_code=400)
    try:
        company_id = int(value)
    except (TypeError, ValueError):
        raise AppError("Valid company ID is required", status_code=400)
    if company_id <= 0:
        raise AppError("Valid company ID is required", status_code=400)
    return company_id


@router.post("/ai/analyze-company")
def analyze_company_route(body: Dict[str, Any] = Body(...), storage: Storage = Depends(get_storage)):
    return analyze_company(storage, _company_id(body.get("companyId")))


@router.post("/ai/market-analysis")
def market_analysis_route(body: Dict[str, Any] = Body(...)):
    sector = body.get("sector")
    if not sector:
        raise AppError("Sector is required for market analysis", status_code=400)

    return analyze_market(
        sector,
        industry_group=body.get("industryGroup"),
        location=body.get("location"),
        company_name=body.get("companyName"),
    )


@router.post("/chat/completions")
def chat_completions(body: Dict[str, Any] = Body(...)):
    return complete_chat(body.get("messages"))
