"""
market_analysis.py — Sector market analysis via the Perplexity API.

Single POST to the Perplexity chat completions endpoint (no retries); a non-OK
answer is surfaced with the upstream status and body.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from app.core.config import settings
from app.core.errors import UpstreamServiceError
from app.core.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a financial market analyst specializing in European business sectors. "
    "Provide detailed, fact-based analysis with specific data points and insights that would be "
    "valuable for business valuation."
)

ANALYSIS_AREAS = [
    "Current market size and growth projections",
    "Key trends affecting the sector/industry",
    "Main competitors and market leaders",
    "Typical valuation multiples for similar businesses",
    "Major M&A activity in the past 2 years",
    "Regulatory challenges or opportunities",
    "Technology disruptions impacting the space",
    "European market specifics (if applicable)",
]

UPSTREAM_ERROR_MESSAGE = "Error from market analysis API"
ANALYSIS_ERROR_MESSAGE = "Error performing market analysis"


def build_market_prompt(
    sector: str,
    industry_group: Optional[str] = None,
    location: Optional[str] = None,
    company_name: Optional[str] = None,
) -> str:
    prompt = f"Provide a detailed market analysis for the {sector} sector"
    if industry_group:
        prompt += f", specifically focusing on the {industry_group} industry group"
    if location:
        prompt += f" in {location}"
    if company_name:
        prompt += f'. Consider the positioning of a company named "{company_name}"'

    prompt += ". Cover the following areas:\n"
    prompt += "\n".join(f"{i}. {area}" for i, area in enumerate(ANALYSIS_AREAS, start=1))
    return prompt + "\n"


def _request_body(prompt: str) -> Dict[str, Any]:
    return {
        "model": settings.PERPLEXITY_MODEL,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "temperature": 0.2,
        "max_tokens": 2000,
        "search_domain_filter": ["perplexity.ai"],
        "search_recency_filter": "month",
        "top_p": 0.9,
        "return_related_questions": False,
        "stream": False,
        "frequency_penalty": 1,
    }


def analyze_market(
    sector: str,
    industry_group: Optional[str] = None,
    location: Optional[str] = None,
    company_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Ask Perplexity for a market analysis of `sector`.

    Raises:
        UpstreamServiceError: missing key (500), transport failure (500),
            non-OK answer (upstream status), malformed answer (500).
    """
    if not settings.PERPLEXITY_API_KEY:
        raise UpstreamServiceError(
            ANALYSIS_ERROR_MESSAGE,
            error="Perplexity API key not configured. Set PERPLEXITY_API_KEY environment variable.",
        )

    prompt = build_market_prompt(sector, industry_group, location, company_name)
    logger.info("Requesting market analysis for sector %s", sector)

    try:
        response = requests.post(
            settings.PERPLEXITY_API_URL,
            headers={
                "Authorization": f"Bearer {settings.PERPLEXITY_API_KEY}",
                "Content-Type": "application/json",
            },
            json=_request_body(prompt),
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        logger.error(f"Perplexity request failed: {e}")
        raise UpstreamServiceError(ANALYSIS_ERROR_MESSAGE, error=str(e)) from e

    if not response.ok:
        logger.error(f"Perplexity API error {response.status_code}: {response.text}")
        raise UpstreamServiceError(
            UPSTREAM_ERROR_MESSAGE,
            error=response.text,
            upstream_status=response.status_code,
        )

    try:
        data = response.json()
        analysis = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise UpstreamServiceError(ANALYSIS_ERROR_MESSAGE, error=f"Malformed market analysis response: {e}") from e

    logger.info("Market analysis completed for sector %s", sector)
    return {
        "sector": sector,
        "industryGroup": industry_group or None,
        "location": location or None,
        "companyName": company_name or None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "analysis": analysis,
        "citations": data.get("citations") or [],
        "provider": "Perplexity",
    }
