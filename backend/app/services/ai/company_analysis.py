"""
company_analysis.py — LLM-based assessment of a stored company.

Builds a profile from the company and its wizard records, asks OpenAI for a
short valuation assessment, and keeps the first paragraph as an
"AI Analysis" recommendation.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from openai import OpenAI

from app.core.config import settings
from app.core.errors import NotFoundError, UpstreamServiceError
from app.core.logging import get_logger
from app.schemas.records import RecommendationCreate
from app.services.storage.base import Storage

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a business valuation expert specializing in European small to medium businesses. "
    "Provide insightful analysis of business data to help owners understand their company's value "
    "and potential."
)

ANALYSIS_MAX_TOKENS = 1000
AI_RECOMMENDATION_CATEGORY = "AI Analysis"
AI_RECOMMENDATION_IMPACT = 4
AI_RECOMMENDATION_RANGE = (10, 20)

ANALYSIS_ERROR_MESSAGE = "Error performing AI analysis"


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def build_company_profile(storage: Storage, company_id: int) -> Dict[str, Any]:
    """Profile dict sent to the model; raises NotFoundError for unknown companies."""
    company = storage.get_company(company_id)
    if company is None:
        raise NotFoundError("Company not found")

    financial = storage.get_financial_by_company_id(company_id)
    employee = storage.get_employee_by_company_id(company_id)
    technology = storage.get_technology_by_company_id(company_id)
    owner_intent = storage.get_owner_intent_by_company_id(company_id)

    return {
        "name": company.name,
        "sector": company.sector,
        "location": company.location,
        "yearsInBusiness": company.years_in_business,
        "goal": company.goal,
        "financials": {
            "revenueCurrent": _text(financial.revenue_current),
            "revenuePrevious": _text(financial.revenue_previous),
            "revenueTwoYearsAgo": _text(financial.revenue_two_years_ago),
            "ebitda": _text(financial.ebitda),
            "netMargin": _text(financial.net_margin),
        } if financial else None,
        "employees": {
            "count": employee.count,
            "digitalSystems": employee.digital_systems,
        } if employee else None,
        "technology": {
            "transformationLevel": technology.transformation_level,
            "technologiesUsed": technology.technologies_used,
            "techInvestment": _text(technology.tech_investment_percentage),
        } if technology else None,
        "ownerIntent": {
            "intent": owner_intent.intent,
            "exitTimeline": owner_intent.exit_timeline,
            "idealOutcome": owner_intent.ideal_outcome,
            "valuationExpectations": _text(owner_intent.valuation_expectations),
        } if owner_intent else None,
    }


def _build_user_prompt(profile: Dict[str, Any]) -> str:
    return (
        "Analyze this company data and provide a brief valuation assessment with key strengths, "
        "risks, and 3 specific recommendations to increase value: "
        + json.dumps(profile, separators=(",", ":"))
    )


def request_analysis(profile: Dict[str, Any]) -> str:
    """
    Call the OpenAI Chat Completions API for one profile.

    Raises:
        UpstreamServiceError: API key missing, transport failure or empty answer.
    """
    if not settings.OPENAI_API_KEY:
        raise UpstreamServiceError(
            ANALYSIS_ERROR_MESSAGE,
            error="OpenAI API key not configured. Set OPENAI_API_KEY environment variable.",
        )

    client = OpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.LLM_TIMEOUT_SECONDS)
    logger.info(f"Sending company profile '{profile.get('name')}' to OpenAI for analysis")

    try:
        response = client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": _build_user_prompt(profile)},
            ],
            max_tokens=ANALYSIS_MAX_TOKENS,
        )
    except Exception as e:
        logger.error(f"OpenAI API call failed: {e}")
        raise UpstreamServiceError(ANALYSIS_ERROR_MESSAGE, error=str(e)) from e

    content = response.choices[0].message.content
    if not content:
        raise UpstreamServiceError(ANALYSIS_ERROR_MESSAGE, error="Empty response from LLM")
    return content


def analyze_company(storage: Storage, company_id: int) -> Dict[str, Any]:
    """
    Run the analysis and store its first paragraph as a recommendation.

    A failure to store the recommendation is logged; the analysis is still returned.
    """
    profile = build_company_profile(storage, company_id)
    analysis = request_analysis(profile)
    logger.info("AI analysis completed for company %s", company_id)

    try:
        storage.create_recommendation(RecommendationCreate(
            company_id=company_id,
            category=AI_RECOMMENDATION_CATEGORY,
            impact_potential=AI_RECOMMENDATION_IMPACT,
            suggestions=[analysis.split("\n\n")[0]],
            estimated_value_impact_min=AI_RECOMMENDATION_RANGE[0],
            estimated_value_impact_max=AI_RECOMMENDATION_RANGE[1],
        ))
    except Exception:
        logger.exception("Error saving AI recommendation for company %s", company_id)

    return {
        "companyId": company_id,
        "companyName": profile["name"],
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "analysis": analysis,
    }
