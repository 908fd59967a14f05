"""
documents.py — Data Room Document Endpoints

- POST /documents (multipart: file, companyId, type) → 201 Document
    • extension must be pdf/xlsx/xls/csv/doc/docx (400)
    • type must be financial/tax/contract (400)
    • size ≤ MAX_UPLOAD_BYTES (413)
    • placeholder-company policy applies, only after the file itself is accepted
- GET /companies/{id}/documents → all documents of a company
"""

from typing import List

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from app.api.deps import ensure_company, get_storage
from app.core.errors import NotFoundError
from app.schemas.records import DocumentRecord
from app.services.documents import check_upload, record_document, save_upload
from app.services.storage import Storage

router = APIRouter(tags=["documents"])


@router.post("/documents", response_model=DocumentRecord, status_code=status.HTTP_201_CREATED)
def upload_document(
    file: UploadFile = File(...),
    companyId: int = Form(...),
    type: str = Form(...),
    storage: Storage = Depends(get_storage),
):
    # Rejected uploads never touch the company table
    extension = check_upload(file.filename, type)
    path = save_upload(file.file, extension)
    try:
        ensure_company(storage, companyId)
    except NotFoundError:
        path.unlink(missing_ok=True)
        raise
    return record_document(storage, companyId, type, file.filename, path)


@router.get("/companies/{company_id}/documents", response_model=List[DocumentRecord])
def list_documents(company_id: int, storage: Storage = Depends(get_storage)):
    return storage.get_documents_by_company_id(company_id)
