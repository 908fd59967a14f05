"""
auth.py — Authentication and Session Handling Endpoints (API Layer)

Purpose:
- Signup / register, login, logout and "who am I" for the web client.
- Issues a JWT access token as an HTTP-only cookie (and in the body for
  clients that prefer `Authorization: Bearer`).
- Delegates password hashing and token encoding to core/security.py and user
  lookups to the storage layer.

Two login routes exist for client compatibility:
- POST /auth/login → companyId is the first company's `uniqueId`
- POST /login      → companyId is the first company's numeric id

This file should be thin — minimal logic.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.core.config import settings
from app.core.errors import AuthenticationError, ConflictError
from app.core.logging import get_logger
from app.core.security import create_access_token, hash_password, verify_password
from app.api.deps import get_current_user, get_storage
from app.schemas.records import UserCreate, UserRecord
from app.services.storage import Storage

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])

INVALID_CREDENTIALS = "Invalid email or password"
DUPLICATE_EMAIL = "Email already exists. Please try logging in instead."

# -----------------------------------------------------------------------------
# Request Schemas
# -----------------------------------------------------------------------------

class _CamelBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignupRequest(_CamelBody):
    """
    Schema for POST /auth/signup.
    - `companyName` is accepted for client compatibility; companies are created
      separately during onboarding.
    """
    full_name: str
    email: str
    password: str
    company_name: Optional[str] = None


class RegisterRequest(_CamelBody):
    username: Optional[str] = None
    email: str
    password: str
    full_name: str
    role: Optional[str] = None


class LoginRequest(BaseModel):
    """
    Schema for login POST.
    - `email`: User's login email.
    - `password`: Raw password supplied by the user.
    """
    email: str
    password: str


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _public_user(user: UserRecord) -> dict:
    return {"id": user.id, "email": user.email, "fullName": user.full_name, "role": user.role}


def _set_session_cookie(response: Response, user: UserRecord) -> str:
    token = create_access_token({"sub": str(user.id)})
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=settings.JWT_EXPIRE_MINUTES * 60,
    )
    return token


def _create_account(storage: Storage, *, username: str, email: str, password: str, full_name: str, role: str) -> UserRecord:
    if storage.get_user_by_email(email):
        raise ConflictError(DUPLICATE_EMAIL)
    if storage.get_user_by_username(username):
        raise ConflictError("Username already exists")

    user = storage.create_user(UserCreate(
        username=username,
        email=email,
        password=hash_password(password),
        full_name=full_name,
        role=role,
    ))
    logger.info("Created account %s (id=%s)", email, user.id)
    return user


def _authenticate(storage: Storage, email: str, password: str) -> UserRecord:
    user = storage.get_user_by_email(email)
    if user is None or not verify_password(password, user.password):
        raise AuthenticationError(INVALID_CREDENTIALS)
    return user


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.post("/auth/signup", status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, storage: Storage = Depends(get_storage)):
    """
    POST /auth/signup

    Creates a "user" account with the email as username. Does not log in.
    """
    user = _create_account(
        storage,
        username=payload.email,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        role="user",
    )
    return {"success": True, "message": "Account created successfully", "userId": user.id}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, response: Response, storage: Storage = Depends(get_storage)):
    """
    POST /register

    Creates the account and logs it in (session cookie set).
    """
    user = _create_account(
        storage,
        username=payload.username or payload.email,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        role=payload.role if payload.role in ("user", "admin") else "user",
    )
    token = _set_session_cookie(response, user)
    return {
        "success": True,
        "message": "Account created successfully",
        "user": _public_user(user),
        "token": token,
    }


@router.post("/auth/login")
def legacy_login(payload: LoginRequest, response: Response, storage: Storage = Depends(get_storage)):
    """
    POST /auth/login

    companyId is the first company's uniqueId (null when none).
    """
    user = _authenticate(storage, payload.email, payload.password)
    companies = storage.get_companies_by_user_id(user.id)
    token = _set_session_cookie(response, user)
    return {
        "success": True,
        "message": "Login successful",
        "user": _public_user(user),
        "companyId": companies[0].unique_id if companies else None,
        "token": token,
    }


@router.post("/login")
def login(payload: LoginRequest, response: Response, storage: Storage = Depends(get_storage)):
    """
    POST /login

    companyId is the first company's numeric id (null when none).
    """
    user = _authenticate(storage, payload.email, payload.password)
    companies = storage.get_companies_by_user_id(user.id)
    token = _set_session_cookie(response, user)
    return {
        "success": True,
        "message": "Login successful",
        "user": _public_user(user),
        "companyId": companies[0].id if companies else None,
        "token": token,
    }


@router.post("/logout")
def logout(response: Response):
    """
    POST /logout

    Stateless JWT: clearing the cookie is all there is to do.
    """
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/user")
def current_user(user: UserRecord = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    """
    GET /user

    401 `{success: false, message: "Not authenticated"}` without a valid session.
    """
    companies = storage.get_companies_by_user_id(user.id)
    return {
        "success": True,
        "user": _public_user(user),
        "companyId": companies[0].id if companies else None,
    }
