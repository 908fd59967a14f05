"""
exports.py — Valuation Report Download Endpoints

- GET /companies/{id}/export/csv
- GET /companies/{id}/export/json
- GET /companies/{id}/export/pdf

All three use the company's current valuation (first stored); 404 when the
company or its valuation is missing.
"""

from typing import Tuple

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.api.deps import get_storage
from app.core.errors import NotFoundError
from app.schemas.records import CompanyRecord, ValuationRecord
from app.services.reports.export import (
    export_filename,
    valuation_to_csv,
    valuation_to_dict,
    valuation_to_pdf,
)
from app.services.storage import Storage

router = APIRouter(prefix="/companies", tags=["exports"])


def _load(storage: Storage, company_id: int) -> Tuple[CompanyRecord, ValuationRecord]:
    company = storage.get_company(company_id)
    if company is None:
        raise NotFoundError("Company not found")
    valuation = storage.get_valuation_by_company_id(company_id)
    if valuation is None:
        raise NotFoundError("Valuation data not found")
    return company, valuation


def _attachment(company: CompanyRecord, extension: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{export_filename(company, extension)}"'}


@router.get("/{company_id}/export/csv")
def export_csv(company_id: int, storage: Storage = Depends(get_storage)):
    company, valuation = _load(storage, company_id)
    return Response(
        content=valuation_to_csv(company, valuation),
        media_type="text/csv; charset=utf-8",
        headers=_attachment(company, "csv"),
    )


@router.get("/{company_id}/export/json")
def export_json(company_id: int, storage: Storage = Depends(get_storage)):
    company, valuation = _load(storage, company_id)
    return valuation_to_dict(company, valuation)


@router.get("/{company_id}/export/pdf")
def export_pdf(company_id: int, storage: Storage = Depends(get_storage)):
    company, valuation = _load(storage, company_id)
    pdf = valuation_to_pdf(
        company,
        valuation,
        recommendations=storage.get_recommendations_by_company_id(company_id),
        buyer_matches=storage.get_buyer_matches_by_company_id(company_id),
    )
    return Response(content=pdf, media_type="application/pdf", headers=_attachment(company, "pdf"))
