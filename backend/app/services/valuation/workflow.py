"""
workflow.py — Valuation Generation Orchestrator

Sequence (POST /companies/{id}/generate-valuation):
1. Company must exist (404 otherwise; no placeholder here).
2. Financial, employee, technology and owner-intent records must all exist
   (400 "Incomplete data for valuation"; the engine is never invoked).
3. Compute → persist one Valuation.
4. Persist the generated Recommendations and BuyerMatches.
"""

from __future__ import annotations

from typing import Any, Dict

from app.core.errors import IncompleteDataError, NotFoundError
from app.core.logging import get_logger
from app.services.storage.base import Storage
from app.services.valuation.engine import compute_valuation
from app.services.valuation.recommendations import generate_buyer_matches, generate_recommendations

logger = get_logger(__name__)


def generate_company_valuation(storage: Storage, company_id: int) -> Dict[str, Any]:
    """
    Run the full generation for one company.

    Returns:
        {"valuation": ValuationRecord,
         "recommendations": [RecommendationRecord, ...],
         "buyerMatches": [BuyerMatchRecord, ...]}
    """
    company = storage.get_company(company_id)
    if company is None:
        raise NotFoundError("Company not found")

    inputs = {
        "financial": storage.get_financial_by_company_id(company_id),
        "employee": storage.get_employee_by_company_id(company_id),
        "technology": storage.get_technology_by_company_id(company_id),
        "owner_intent": storage.get_owner_intent_by_company_id(company_id),
    }
    missing = [name for name, record in inputs.items() if record is None]
    if missing:
        logger.info("Valuation for company %s blocked; missing %s", company_id, ", ".join(missing))
        raise IncompleteDataError("Incomplete data for valuation")

    result = compute_valuation(**inputs)
    valuation = storage.create_valuation(result.to_create(company_id))

    recommendations = [
        storage.create_recommendation(rec) for rec in generate_recommendations(valuation, inputs)
    ]
    buyer_matches = [
        storage.create_buyer_match(match) for match in generate_buyer_matches(valuation, inputs)
    ]

    logger.info(
        "Generated valuation %s for company %s (median=%s, risk=%s, flags=%s)",
        valuation.id,
        company_id,
        valuation.valuation_median,
        valuation.risk_score,
        valuation.red_flags,
    )

    return {
        "valuation": valuation,
        "recommendations": recommendations,
        "buyerMatches": buyer_matches,
    }
