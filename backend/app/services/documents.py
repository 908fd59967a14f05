"""
documents.py — Data Room Upload Handling

Purpose:
- Validate an uploaded file (extension, size) and write it under UPLOAD_DIR as
  `file-<epoch millis>-<random><ext>`.
- Create the matching Document record once the file is on disk.

Limits come from settings (ALLOWED_UPLOAD_EXTENSIONS, MAX_UPLOAD_BYTES).
"""

from __future__ import annotations

import random
import time
from pathlib import Path
from typing import BinaryIO

from app.core.config import settings
from app.core.errors import AppError
from app.core.logging import get_logger
from app.schemas.records import DocumentCreate, DocumentRecord
from app.services.storage.base import Storage

logger = get_logger(__name__)

DOCUMENT_TYPES = ("financial", "tax", "contract")
CHUNK_SIZE = 1024 * 1024


class UploadRejected(AppError):
    status_code = 400


class UploadTooLarge(AppError):
    status_code = 413


def check_upload(filename: str, document_type: str) -> str:
    """Validate name and type; returns the lower-cased extension (with dot)."""
    if document_type not in DOCUMENT_TYPES:
        raise UploadRejected("Invalid parameters")

    extension = Path(filename or "").suffix.lower()
    if extension not in settings.ALLOWED_UPLOAD_EXTENSIONS:
        raise UploadRejected(
            "Invalid file type. Only PDF, Excel, CSV, and Word documents are allowed."
        )
    return extension


def stored_filename(extension: str) -> str:
    return f"file-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{extension}"


def save_upload(source: BinaryIO, extension: str) -> Path:
    """
    Stream `source` into UPLOAD_DIR, enforcing MAX_UPLOAD_BYTES.

    A file over the limit is removed again and UploadTooLarge is raised.
    """
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    target = upload_dir / stored_filename(extension)

    written = 0
    with target.open("wb") as out:
        while True:
            chunk = source.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > settings.MAX_UPLOAD_BYTES:
                break
            out.write(chunk)

    if written > settings.MAX_UPLOAD_BYTES:
        target.unlink(missing_ok=True)
        raise UploadTooLarge(f"File too large. Maximum size is {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB.")

    logger.info("Stored upload %s (%d bytes)", target.name, written)
    return target


def record_document(
    storage: Storage,
    company_id: int,
    document_type: str,
    filename: str,
    path: Path,
) -> DocumentRecord:
    return storage.create_document(DocumentCreate(
        company_id=company_id,
        type=document_type,
        file_name=filename,
        file_path=str(path),
    ))
