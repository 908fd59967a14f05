"""
valuations.py — Valuation, Recommendation and Buyer-Match Endpoints

Purpose:
- POST /companies/{id}/generate-valuation → run the engine; 201
  `{valuation, recommendations, buyerMatches}`
- POST /valuations                → store a client-computed valuation (placeholder policy applies)
- GET  /companies/{id}/valuation  → first valuation for the company (404 if none)
- GET  /companies/{id}/valuations → every valuation for the company
- POST /recommendations, /buyer-matches → company must exist (404)
- GET  /companies/{id}/recommendations, /companies/{id}/buyer-matches

Key Interactions:
- app.services.valuation.workflow → prerequisite checks + engine + persistence
"""

from typing import List

from fastapi import APIRouter, Depends, status

from app.api.deps import ensure_company, get_storage
from app.core.errors import NotFoundError
from app.schemas.records import (
    BuyerMatchCreate,
    BuyerMatchRecord,
    RecommendationCreate,
    RecommendationRecord,
    ValuationCreate,
    ValuationRecord,
)
from app.services.storage import Storage
from app.services.valuation.workflow import generate_company_valuation

router = APIRouter(tags=["valuations"])


def _require_company(storage: Storage, company_id: int) -> None:
    if storage.get_company(company_id) is None:
        raise NotFoundError("Company not found")


# -----------------------------------------------------------------------------
# Valuations
# -----------------------------------------------------------------------------

@router.post("/companies/{company_id}/generate-valuation", status_code=status.HTTP_201_CREATED)
def generate_valuation(company_id: int, storage: Storage = Depends(get_storage)):
    """
    POST /companies/{company_id}/generate-valuation

    Sequence (handled inside the workflow):
    1. Company must exist (404).
    2. Financial, employee, technology and owner-intent records must exist (400).
    3. Persist valuation + recommendations + buyer matches.
    """
    return generate_company_valuation(storage, company_id)


@router.post("/valuations", response_model=ValuationRecord, status_code=status.HTTP_201_CREATED)
def create_valuation(payload: ValuationCreate, storage: Storage = Depends(get_storage)):
    ensure_company(storage, payload.company_id)
    return storage.create_valuation(payload)


@router.get("/companies/{company_id}/valuation", response_model=ValuationRecord)
def get_valuation(company_id: int, storage: Storage = Depends(get_storage)):
    valuation = storage.get_valuation_by_company_id(company_id)
    if valuation is None:
        raise NotFoundError("Valuation data not found")
    return valuation


@router.get("/companies/{company_id}/valuations", response_model=List[ValuationRecord])
def list_valuations(company_id: int, storage: Storage = Depends(get_storage)):
    return storage.get_valuations_by_company_id(company_id)


# -----------------------------------------------------------------------------
# Recommendations
# -----------------------------------------------------------------------------

@router.post("/recommendations", response_model=RecommendationRecord, status_code=status.HTTP_201_CREATED)
def create_recommendation(payload: RecommendationCreate, storage: Storage = Depends(get_storage)):
    _require_company(storage, payload.company_id)
    return storage.create_recommendation(payload)


@router.get("/companies/{company_id}/recommendations", response_model=List[RecommendationRecord])
def list_recommendations(company_id: int, storage: Storage = Depends(get_storage)):
    return storage.get_recommendations_by_company_id(company_id)


# -----------------------------------------------------------------------------
# Buyer matches
# -----------------------------------------------------------------------------

@router.post("/buyer-matches", response_model=BuyerMatchRecord, status_code=status.HTTP_201_CREATED)
def create_buyer_match(payload: BuyerMatchCreate, storage: Storage = Depends(get_storage)):
    _require_company(storage, payload.company_id)
    return storage.create_buyer_match(payload)


@router.get("/companies/{company_id}/buyer-matches", response_model=List[BuyerMatchRecord])
def list_buyer_matches(company_id: int, storage: Storage = Depends(get_storage)):
    return storage.get_buyer_matches_by_company_id(company_id)
