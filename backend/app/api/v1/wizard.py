"""
wizard.py — Business Data Wizard Endpoints

Purpose:
- One POST per wizard step, one GET per step by company:
    • POST /financials    GET /companies/{id}/financials
    • POST /employees     GET /companies/{id}/employees
    • POST /technology    GET /companies/{id}/technology
    • POST /owner-intent  GET /companies/{id}/owner-intent

Placeholder policy:
- Every POST resolves its company through `ensure_company`, so a write to an
  unknown company id creates a placeholder company with that id (unless
  AUTO_CREATE_PLACEHOLDER_COMPANIES is off, then 404).

GET semantics:
- Returns the FIRST record stored for the company; 404 when none exists.
"""

from fastapi import APIRouter, Depends, status

from app.api.deps import ensure_company, get_storage
from app.core.errors import NotFoundError
from app.schemas.records import (
    EmployeeCreate,
    EmployeeRecord,
    FinancialCreate,
    FinancialRecord,
    OwnerIntentCreate,
    OwnerIntentRecord,
    TechnologyCreate,
    TechnologyRecord,
)
from app.services.storage import Storage

router = APIRouter(tags=["wizard"])

# -----------------------------------------------------------------------------
# Financials
# -----------------------------------------------------------------------------

@router.post("/financials", response_model=FinancialRecord, status_code=status.HTTP_201_CREATED)
def create_financial(payload: FinancialCreate, storage: Storage = Depends(get_storage)):
    ensure_company(storage, payload.company_id)
    return storage.create_financial(payload)


@router.get("/companies/{company_id}/financials", response_model=FinancialRecord)
def get_financials(company_id: int, storage: Storage = Depends(get_storage)):
    financial = storage.get_financial_by_company_id(company_id)
    if financial is None:
        raise NotFoundError("Financial data not found")
    return financial


# -----------------------------------------------------------------------------
# Employees
# -----------------------------------------------------------------------------

@router.post("/employees", response_model=EmployeeRecord, status_code=status.HTTP_201_CREATED)
def create_employee(payload: EmployeeCreate, storage: Storage = Depends(get_storage)):
    ensure_company(storage, payload.company_id)
    return storage.create_employee(payload)


@router.get("/companies/{company_id}/employees", response_model=EmployeeRecord)
def get_employees(company_id: int, storage: Storage = Depends(get_storage)):
    employee = storage.get_employee_by_company_id(company_id)
    if employee is None:
        raise NotFoundError("Employee data not found")
    return employee


# -----------------------------------------------------------------------------
# Technology
# -----------------------------------------------------------------------------

@router.post("/technology", response_model=TechnologyRecord, status_code=status.HTTP_201_CREATED)
def create_technology(payload: TechnologyCreate, storage: Storage = Depends(get_storage)):
    ensure_company(storage, payload.company_id)
    return storage.create_technology(payload)


@router.get("/companies/{company_id}/technology", response_model=TechnologyRecord)
def get_technology(company_id: int, storage: Storage = Depends(get_storage)):
    technology = storage.get_technology_by_company_id(company_id)
    if technology is None:
        raise NotFoundError("Technology data not found")
    return technology


# -----------------------------------------------------------------------------
# Owner intent
# -----------------------------------------------------------------------------

@router.post("/owner-intent", response_model=OwnerIntentRecord, status_code=status.HTTP_201_CREATED)
def create_owner_intent(payload: OwnerIntentCreate, storage: Storage = Depends(get_storage)):
    ensure_company(storage, payload.company_id)
    return storage.create_owner_intent(payload)


@router.get("/companies/{company_id}/owner-intent", response_model=OwnerIntentRecord)
def get_owner_intent(company_id: int, storage: Storage = Depends(get_storage)):
    owner_intent = storage.get_owner_intent_by_company_id(company_id)
    if owner_intent is None:
        raise NotFoundError("Owner intent data not found")
    return owner_intent
