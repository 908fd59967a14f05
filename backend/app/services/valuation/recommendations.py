"""
recommendations.py — Advisory Content Attached After a Valuation

Purpose:
- `generate_recommendations` → improvement areas (Digital Transformation,
  AI Operations, Financial Health)
- `generate_buyer_matches`   → candidate buyer / investor profiles

Both are pure functions of (valuation, inputs) returning create-payloads. The
content is constant today; callers already pass everything a data-driven
version would need.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from app.schemas.records import BuyerMatchCreate, RecommendationCreate, ValuationCreate, ValuationRecord

# -----------------------------------------------------------------------------
# Content
# -----------------------------------------------------------------------------

RECOMMENDATION_TEMPLATES: List[Dict[str, Any]] = [
    {
        "category": "Digital Transformation",
        "impact_potential": 4,
        "suggestions": [
            "Implement a comprehensive CRM system to improve customer tracking and engagement.",
            "Adopt an ERP solution to streamline operations and provide better financial visibility.",
            "Develop an e-commerce channel to expand market reach and create new revenue streams.",
        ],
        "estimated_value_impact_min": 12,
        "estimated_value_impact_max": 18,
    },
    {
        "category": "AI Operations",
        "impact_potential": 5,
        "suggestions": [
            "Implement AI-powered customer support chatbots to improve response times and reduce costs.",
            "Use AI sales forecasting to optimize inventory and improve cash flow management.",
            "Adopt AI-based analytics to identify customer trends and create targeted marketing campaigns.",
        ],
        "estimated_value_impact_min": 15,
        "estimated_value_impact_max": 22,
    },
    {
        "category": "Financial Health",
        "impact_potential": 3,
        "suggestions": [
            "Restructure existing debt to optimize interest rates and improve debt-to-equity ratio.",
            "Implement margin optimization strategies across product/service lines.",
            "Address tax filing inconsistencies and optimize tax structure.",
        ],
        "estimated_value_impact_min": 8,
        "estimated_value_impact_max": 14,
    },
]

BUYER_PROFILES: List[Dict[str, Any]] = [
    {
        "name": "TechVentures Capital",
        "type": "Private Equity Firm",
        "description": (
            "TechVentures Capital specializes in growth-stage technology companies with strong "
            "digital transformation potential. They typically invest $2-10M for minority stakes "
            "with a 5-7 year growth horizon."
        ),
        "match_percentage": 94,
        "tags": ["Technology Focus", "Digital Transformation", "$2-10M Investment Range", "Minority Stake"],
        "deal_type": "Strategic Investor",
    },
    {
        "name": "GrowthWave Acquisitions",
        "type": "Strategic Buyer",
        "description": (
            "GrowthWave is actively acquiring companies in your sector to expand their portfolio. "
            "They focus on established businesses with proven revenue models and digital growth potential."
        ),
        "match_percentage": 87,
        "tags": ["Full Acquisition", "$1-5M Revenue Target", "Management Transition", "Established Operations"],
        "deal_type": "Full Acquisition",
    },
    {
        "name": "Horizon Partners",
        "type": "Angel Investor Network",
        "description": (
            "Horizon Partners is a network of angel investors focusing on early-stage growth companies. "
            "They typically provide funding alongside strategic guidance and industry connections."
        ),
        "match_percentage": 79,
        "tags": ["Angel Investment", "$250K-$1M Investment", "Strategic Guidance", "Industry Connections"],
        "deal_type": "Angel Investment",
    },
]


# -----------------------------------------------------------------------------
# Generators
# -----------------------------------------------------------------------------

def generate_recommendations(
    valuation: ValuationCreate | ValuationRecord,
    inputs: Optional[Dict[str, Any]] = None,
) -> List[RecommendationCreate]:
    """Recommendations for the valuation's company, in display order."""
    return [
        RecommendationCreate(company_id=valuation.company_id, **{**template, "suggestions": list(template["suggestions"])})
        for template in RECOMMENDATION_TEMPLATES
    ]


def generate_buyer_matches(
    valuation: ValuationCreate | ValuationRecord,
    inputs: Optional[Dict[str, Any]] = None,
) -> List[BuyerMatchCreate]:
    """Buyer matches for the valuation's company, best match first."""
    return [
        BuyerMatchCreate(company_id=valuation.company_id, **{**profile, "tags": list(profile["tags"])})
        for profile in BUYER_PROFILES
    ]
