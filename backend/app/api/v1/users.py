"""
users.py — User Record Endpoints

- POST /users           → create a user (password hashed; never echoed back)
- GET  /users/{id}      → fetch one user
- GET  /users/{id}/companies → companies owned by a user
"""

from typing import List

from fastapi import APIRouter, Depends, status

from app.api.deps import get_storage
from app.core.errors import ConflictError, NotFoundError
from app.core.security import hash_password
from app.schemas.records import CompanyRecord, UserCreate, UserRecord
from app.services.storage import Storage

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserRecord, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, storage: Storage = Depends(get_storage)):
    if storage.get_user_by_username(payload.username):
        raise ConflictError("Username already exists")
    if storage.get_user_by_email(payload.email):
        raise ConflictError("Email already exists")

    return storage.create_user(payload.model_copy(update={"password": hash_password(payload.password)}))


@router.get("/{user_id}", response_model=UserRecord)
def get_user(user_id: int, storage: Storage = Depends(get_storage)):
    user = storage.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("/{user_id}/companies", response_model=List[CompanyRecord])
def get_user_companies(user_id: int, storage: Storage = Depends(get_storage)):
    return storage.get_companies_by_user_id(user_id)
