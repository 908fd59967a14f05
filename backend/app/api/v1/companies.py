"""
companies.py — Company Onboarding Endpoints

Purpose:
- POST /companies       → create a company for an existing user (404 if the user is unknown)
- GET  /companies/{id}  → fetch one company

Role in System:
- The API layer should NOT contain business logic.
- It transforms request bodies → storage calls → JSON responses.
"""

from fastapi import APIRouter, Depends, status

from app.api.deps import get_storage
from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.schemas.records import CompanyCreate, CompanyRecord
from app.services.storage import Storage

logger = get_logger(__name__)

router = APIRouter(prefix="/companies", tags=["companies"])


@router.post("", response_model=CompanyRecord, status_code=status.HTTP_201_CREATED)
def create_company(payload: CompanyCreate, storage: Storage = Depends(get_storage)):
    """
    POST /companies

    The owning user must exist.
    """
    if storage.get_user(payload.user_id) is None:
        raise NotFoundError("User not found")

    company = storage.create_company(payload)
    logger.info("Created company %s '%s' for user %s", company.id, company.name, company.user_id)
    return company


@router.get("/{company_id}", response_model=CompanyRecord)
def get_company(company_id: int, storage: Storage = Depends(get_storage)):
    """
    GET /companies/{company_id}
    """
    company = storage.get_company(company_id)
    if company is None:
        raise NotFoundError("Company not found")
    return company
