"""
deps.py — Shared FastAPI Dependencies

- get_storage        → the storage backend chosen at startup (app.state.storage)
- get_benchmarks     → the live benchmark broadcaster (app.state.benchmarks)
- get_optional_user  → user from the session cookie or `Authorization: Bearer`, else None
- get_current_user   → same, but 401 when unauthenticated
- ensure_company     → placeholder-company policy for wizard writes

Tests override get_storage / get_benchmarks via `app.dependency_overrides`.
"""

from typing import Optional

from fastapi import Depends, Request
from starlette.requests import HTTPConnection

from app.core.config import settings
from app.core.errors import AuthenticationError, NotFoundError
from app.core.security import decode_token
from app.schemas.records import CompanyRecord, UserRecord
from app.services.benchmarks.broadcaster import BenchmarkBroadcaster
from app.services.storage import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_benchmarks(connection: HTTPConnection) -> BenchmarkBroadcaster:
    return connection.app.state.benchmarks


def _token_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def get_optional_user(request: Request, storage: Storage = Depends(get_storage)) -> Optional[UserRecord]:
    token = _token_from_request(request)
    if not token:
        return None

    payload = decode_token(token)
    if not payload or "sub" not in payload:
        return None

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        return None
    return storage.get_user(user_id)


def get_current_user(user: Optional[UserRecord] = Depends(get_optional_user)) -> UserRecord:
    if user is None:
        raise AuthenticationError("Not authenticated")
    return user


def ensure_company(storage: Storage, company_id: int) -> CompanyRecord:
    """
    Resolve the company a wizard write refers to.

    With AUTO_CREATE_PLACEHOLDER_COMPANIES on, an unknown id gets a placeholder
    company with exactly that id; otherwise it is a 404.
    """
    if settings.AUTO_CREATE_PLACEHOLDER_COMPANIES:
        return storage.upsert_company_placeholder(company_id, user_id=settings.PLACEHOLDER_USER_ID)

    company = storage.get_company(company_id)
    if company is None:
        raise NotFoundError("Company not found")
    return company
