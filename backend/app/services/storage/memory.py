"""
memory.py — In-Memory Storage Backend

Purpose:
- Dict-per-kind store with per-kind id counters; lives for the process lifetime.
- Used when no database is configured (or reachable) and in tests.

Seed data (when `seed=True`):
- user 1  "Default User" (user@example.com / password)
- user 2  "Master Admin" (admin@mandainstitute.com / admin123, role admin)
- company 1 "Example Business" owned by user 1
- valuation 1 for company 1

All access goes through one lock: route handlers run on the threadpool.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel

from app.core.logging import get_logger
from app.core.security import hash_password
from app.schemas.records import (
    BuyerMatchCreate,
    BuyerMatchRecord,
    CompanyCreate,
    CompanyRecord,
    DocumentCreate,
    DocumentRecord,
    EmployeeCreate,
    EmployeeRecord,
    FinancialCreate,
    FinancialRecord,
    OwnerIntentCreate,
    OwnerIntentRecord,
    RecommendationCreate,
    RecommendationRecord,
    TechnologyCreate,
    TechnologyRecord,
    UserCreate,
    UserRecord,
    ValuationCreate,
    ValuationRecord,
)
from app.services.storage.base import Storage

logger = get_logger(__name__)

R = TypeVar("R", bound=BaseModel)

KINDS = (
    "users",
    "companies",
    "financials",
    "employees",
    "documents",
    "technology",
    "owner_intent",
    "valuations",
    "recommendations",
    "buyer_matches",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryStorage(Storage):
    name = "memory"

    def __init__(self, seed: bool = True) -> None:
        self._lock = threading.RLock()
        self._tables: Dict[str, Dict[int, BaseModel]] = {kind: {} for kind in KINDS}
        self._next_id: Dict[str, int] = {kind: 1 for kind in KINDS}
        if seed:
            self._seed()

    # ------------------------------------------------------------------ #
    # Generic helpers
    def _insert(self, kind: str, record_cls: Type[R], payload: BaseModel, record_id: Optional[int] = None, **extra) -> R:
        with self._lock:
            if record_id is None:
                record_id = self._next_id[kind]
            self._next_id[kind] = max(self._next_id[kind], record_id + 1)
            stamp_field = "uploaded_at" if kind == "documents" else "created_at"
            data = payload.model_dump()
            data.update(extra)
            data.update({"id": record_id, stamp_field: _now()})
            record = record_cls.model_validate(data)
            self._tables[kind][record_id] = record
            return record

    def _get(self, kind: str, record_id: int) -> Optional[R]:
        with self._lock:
            return self._tables[kind].get(record_id)

    def _by_company(self, kind: str, company_id: int) -> List[R]:
        with self._lock:
            rows = [r for r in self._tables[kind].values() if r.company_id == company_id]
        return sorted(rows, key=lambda r: r.id)

    def _first_by_company(self, kind: str, company_id: int) -> Optional[R]:
        rows = self._by_company(kind, company_id)
        return rows[0] if rows else None

    def _find(self, kind: str, **criteria) -> Optional[R]:
        with self._lock:
            for record in self._tables[kind].values():
                if all(getattr(record, k) == v for k, v in criteria.items()):
                    return record
        return None

    # ------------------------------------------------------------------ #
    # Users
    def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self._get("users", user_id)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return self._find("users", username=username)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return self._find("users", email=email)

    def create_user(self, user: UserCreate) -> UserRecord:
        return self._insert("users", UserRecord, user)

    # ------------------------------------------------------------------ #
    # Companies
    def get_company(self, company_id: int) -> Optional[CompanyRecord]:
        return self._get("companies", company_id)

    def get_companies_by_user_id(self, user_id: int) -> List[CompanyRecord]:
        with self._lock:
            rows = [c for c in self._tables["companies"].values() if c.user_id == user_id]
        return sorted(rows, key=lambda c: c.id)

    def create_company(self, company: CompanyCreate) -> CompanyRecord:
        return self._insert("companies", CompanyRecord, company)

    def _create_company_with_id(self, company_id: int, company: CompanyCreate) -> CompanyRecord:
        with self._lock:
            existing = self._tables["companies"].get(company_id)
            if existing is not None:
                return existing
            return self._insert("companies", CompanyRecord, company, record_id=company_id)

    # ------------------------------------------------------------------ #
    # Wizard steps
    def get_financial(self, financial_id: int) -> Optional[FinancialRecord]:
        return self._get("financials", financial_id)

    def get_financial_by_company_id(self, company_id: int) -> Optional[FinancialRecord]:
        return self._first_by_company("financials", company_id)

    def create_financial(self, financial: FinancialCreate) -> FinancialRecord:
        return self._insert("financials", FinancialRecord, financial)

    def get_employee(self, employee_id: int) -> Optional[EmployeeRecord]:
        return self._get("employees", employee_id)

    def get_employee_by_company_id(self, company_id: int) -> Optional[EmployeeRecord]:
        return self._first_by_company("employees", company_id)

    def create_employee(self, employee: EmployeeCreate) -> EmployeeRecord:
        return self._insert("employees", EmployeeRecord, employee)

    def get_document(self, document_id: int) -> Optional[DocumentRecord]:
        return self._get("documents", document_id)

    def get_documents_by_company_id(self, company_id: int) -> List[DocumentRecord]:
        return self._by_company("documents", company_id)

    def create_document(self, document: DocumentCreate) -> DocumentRecord:
        return self._insert("documents", DocumentRecord, document)

    def get_technology(self, technology_id: int) -> Optional[TechnologyRecord]:
        return self._get("technology", technology_id)

    def get_technology_by_company_id(self, company_id: int) -> Optional[TechnologyRecord]:
        return self._first_by_company("technology", company_id)

    def create_technology(self, technology: TechnologyCreate) -> TechnologyRecord:
        return self._insert("technology", TechnologyRecord, technology)

    def get_owner_intent(self, owner_intent_id: int) -> Optional[OwnerIntentRecord]:
        return self._get("owner_intent", owner_intent_id)

    def get_owner_intent_by_company_id(self, company_id: int) -> Optional[OwnerIntentRecord]:
        return self._first_by_company("owner_intent", company_id)

    def create_owner_intent(self, owner_intent: OwnerIntentCreate) -> OwnerIntentRecord:
        return self._insert("owner_intent", OwnerIntentRecord, owner_intent)

    # ------------------------------------------------------------------ #
    # Valuation outputs
    def get_valuation(self, valuation_id: int) -> Optional[ValuationRecord]:
        return self._get("valuations", valuation_id)

    def get_valuation_by_company_id(self, company_id: int) -> Optional[ValuationRecord]:
        return self._first_by_company("valuations", company_id)

    def get_valuations_by_company_id(self, company_id: int) -> List[ValuationRecord]:
        return self._by_company("valuations", company_id)

    def create_valuation(self, valuation: ValuationCreate) -> ValuationRecord:
        return self._insert("valuations", ValuationRecord, valuation)

    def get_recommendation(self, recommendation_id: int) -> Optional[RecommendationRecord]:
        return self._get("recommendations", recommendation_id)

    def get_recommendations_by_company_id(self, company_id: int) -> List[RecommendationRecord]:
        return self._by_company("recommendations", company_id)

    def create_recommendation(self, recommendation: RecommendationCreate) -> RecommendationRecord:
        return self._insert("recommendations", RecommendationRecord, recommendation)

    def get_buyer_match(self, buyer_match_id: int) -> Optional[BuyerMatchRecord]:
        return self._get("buyer_matches", buyer_match_id)

    def get_buyer_matches_by_company_id(self, company_id: int) -> List[BuyerMatchRecord]:
        return self._by_company("buyer_matches", company_id)

    def create_buyer_match(self, buyer_match: BuyerMatchCreate) -> BuyerMatchRecord:
        return self._insert("buyer_matches", BuyerMatchRecord, buyer_match)

    # ------------------------------------------------------------------ #
    # Seed data
    def _seed(self) -> None:
        self.create_user(UserCreate(
            username="default",
            password=hash_password("password"),
            full_name="Default User",
            email="user@example.com",
            role="user",
        ))
        self.create_user(UserCreate(
            username="admin",
            password=hash_password("admin123"),
            full_name="Master Admin",
            email="admin@mandainstitute.com",
            role="admin",
        ))
        self.create_company(CompanyCreate(
            user_id=1,
            name="Example Business",
            sector="Technology",
            location="United States",
            years_in_business="5-10",
            goal="Selling the business",
        ))
        self.create_valuation(ValuationCreate(
            company_id=1,
            valuation_min=Decimal("950000"),
            valuation_median=Decimal("1200000"),
            valuation_max=Decimal("1450000"),
            ebitda_multiple=Decimal("5.2"),
            discounted_cash_flow=Decimal("1250000"),
            revenue_multiple=Decimal("2.1"),
            asset_based=Decimal("980000"),
            risk_score=65,
            financial_health_score=70,
            market_position_score=65,
            operational_efficiency_score=60,
            debt_structure_score=75,
            red_flags=["Inconsistent revenue growth", "Limited customer diversification"],
        ))
        logger.debug("Seeded in-memory storage with demo users, company and valuation")
