"""
sql.py — Relational (SQLAlchemy) Storage Backend

Purpose:
- Durable implementation of the Storage interface over PostgreSQL (or SQLite in tests).
- One short-lived session per operation; every write commits immediately.
- Converts ORM rows into the pydantic `*Record` schemas before returning.

Notes:
- Placeholder companies are inserted with an explicit id; on PostgreSQL the
  `companies` id sequence is moved past it so later inserts don't collide.
- The two demo users are seeded when the users table is empty, so placeholder
  companies always have an owner.
"""

from __future__ import annotations

from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.core.database import create_session_factory, init_schema
from app.core.logging import get_logger
from app.core.security import hash_password
from app.models import (
    BuyerMatch,
    Company,
    Document,
    Employee,
    Financial,
    OwnerIntent,
    Recommendation,
    Technology,
    User,
    Valuation,
)
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


class SqlStorage(Storage):
    name = "sql"

    def __init__(self, engine: Engine, session_factory: Optional[sessionmaker] = None, create_schema: bool = True, seed: bool = True) -> None:
        self._engine = engine
        self._session_factory = session_factory or create_session_factory(engine)
        if create_schema:
            init_schema(engine)
        if seed:
            self._seed_users()

    # ------------------------------------------------------------------ #
    # Generic helpers
    def _insert(self, model, record_cls: Type[R], payload: BaseModel, **overrides) -> R:
        values = payload.model_dump()
        values.update(overrides)
        with self._session_factory() as session:
            row = model(**values)
            session.add(row)
            session.commit()
            session.refresh(row)
            return record_cls.model_validate(row)

    def _get(self, model, record_cls: Type[R], record_id: int) -> Optional[R]:
        with self._session_factory() as session:
            row = session.get(model, record_id)
            return record_cls.model_validate(row) if row is not None else None

    def _by_company(self, model, record_cls: Type[R], company_id: int) -> List[R]:
        stmt = select(model).where(model.company_id == company_id).order_by(model.id)
        with self._session_factory() as session:
            return [record_cls.model_validate(row) for row in session.scalars(stmt)]

    def _first_by_company(self, model, record_cls: Type[R], company_id: int) -> Optional[R]:
        stmt = select(model).where(model.company_id == company_id).order_by(model.id).limit(1)
        with self._session_factory() as session:
            row = session.scalars(stmt).first()
            return record_cls.model_validate(row) if row is not None else None

    def _find_user(self, column, value) -> Optional[UserRecord]:
        with self._session_factory() as session:
            row = session.scalars(select(User).where(column == value).limit(1)).first()
            return UserRecord.model_validate(row) if row is not None else None

    # ------------------------------------------------------------------ #
    # Users
    def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self._get(User, UserRecord, user_id)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return self._find_user(User.username, username)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return self._find_user(User.email, email)

    def create_user(self, user: UserCreate) -> UserRecord:
        return self._insert(User, UserRecord, user)

    # ------------------------------------------------------------------ #
    # Companies
    def get_company(self, company_id: int) -> Optional[CompanyRecord]:
        return self._get(Company, CompanyRecord, company_id)

    def get_companies_by_user_id(self, user_id: int) -> List[CompanyRecord]:
        stmt = select(Company).where(Company.user_id == user_id).order_by(Company.id)
        with self._session_factory() as session:
            return [CompanyRecord.model_validate(row) for row in session.scalars(stmt)]

    def create_company(self, company: CompanyCreate) -> CompanyRecord:
        return self._insert(Company, CompanyRecord, company)

    def _create_company_with_id(self, company_id: int, company: CompanyCreate) -> CompanyRecord:
        record = self._insert(Company, CompanyRecord, company, id=company_id)
        if self._engine.dialect.name == "postgresql":
            with self._session_factory() as session:
                session.execute(text(
                    "SELECT setval(pg_get_serial_sequence('companies', 'id'), "
                    "(SELECT MAX(id) FROM companies))"
                ))
                session.commit()
        return record

    # ------------------------------------------------------------------ #
    # Wizard steps
    def get_financial(self, financial_id: int) -> Optional[FinancialRecord]:
        return self._get(Financial, FinancialRecord, financial_id)

    def get_financial_by_company_id(self, company_id: int) -> Optional[FinancialRecord]:
        return self._first_by_company(Financial, FinancialRecord, company_id)

    def create_financial(self, financial: FinancialCreate) -> FinancialRecord:
        return self._insert(Financial, FinancialRecord, financial)

    def get_employee(self, employee_id: int) -> Optional[EmployeeRecord]:
        return self._get(Employee, EmployeeRecord, employee_id)

    def get_employee_by_company_id(self, company_id: int) -> Optional[EmployeeRecord]:
        return self._first_by_company(Employee, EmployeeRecord, company_id)

    def create_employee(self, employee: EmployeeCreate) -> EmployeeRecord:
        return self._insert(Employee, EmployeeRecord, employee)

    def get_document(self, document_id: int) -> Optional[DocumentRecord]:
        return self._get(Document, DocumentRecord, document_id)

    def get_documents_by_company_id(self, company_id: int) -> List[DocumentRecord]:
        return self._by_company(Document, DocumentRecord, company_id)

    def create_document(self, document: DocumentCreate) -> DocumentRecord:
        return self._insert(Document, DocumentRecord, document)

    def get_technology(self, technology_id: int) -> Optional[TechnologyRecord]:
        return self._get(Technology, TechnologyRecord, technology_id)

    def get_technology_by_company_id(self, company_id: int) -> Optional[TechnologyRecord]:
        return self._first_by_company(Technology, TechnologyRecord, company_id)

    def create_technology(self, technology: TechnologyCreate) -> TechnologyRecord:
        return self._insert(Technology, TechnologyRecord, technology)

    def get_owner_intent(self, owner_intent_id: int) -> Optional[OwnerIntentRecord]:
        return self._get(OwnerIntent, OwnerIntentRecord, owner_intent_id)

    def get_owner_intent_by_company_id(self, company_id: int) -> Optional[OwnerIntentRecord]:
        return self._first_by_company(OwnerIntent, OwnerIntentRecord, company_id)

    def create_owner_intent(self, owner_intent: OwnerIntentCreate) -> OwnerIntentRecord:
        return self._insert(OwnerIntent, OwnerIntentRecord, owner_intent)

    # ------------------------------------------------------------------ #
    # Valuation outputs
    def get_valuation(self, valuation_id: int) -> Optional[ValuationRecord]:
        return self._get(Valuation, ValuationRecord, valuation_id)

    def get_valuation_by_company_id(self, company_id: int) -> Optional[ValuationRecord]:
        return self._first_by_company(Valuation, ValuationRecord, company_id)

    def get_valuations_by_company_id(self, company_id: int) -> List[ValuationRecord]:
        return self._by_company(Valuation, ValuationRecord, company_id)

    def create_valuation(self, valuation: ValuationCreate) -> ValuationRecord:
        return self._insert(Valuation, ValuationRecord, valuation)

    def get_recommendation(self, recommendation_id: int) -> Optional[RecommendationRecord]:
        return self._get(Recommendation, RecommendationRecord, recommendation_id)

    def get_recommendations_by_company_id(self, company_id: int) -> List[RecommendationRecord]:
        return self._by_company(Recommendation, RecommendationRecord, company_id)

    def create_recommendation(self, recommendation: RecommendationCreate) -> RecommendationRecord:
        return self._insert(Recommendation, RecommendationRecord, recommendation)

    def get_buyer_match(self, buyer_match_id: int) -> Optional[BuyerMatchRecord]:
        return self._get(BuyerMatch, BuyerMatchRecord, buyer_match_id)

    def get_buyer_matches_by_company_id(self, company_id: int) -> List[BuyerMatchRecord]:
        return self._by_company(BuyerMatch, BuyerMatchRecord, company_id)

    def create_buyer_match(self, buyer_match: BuyerMatchCreate) -> BuyerMatchRecord:
        return self._insert(BuyerMatch, BuyerMatchRecord, buyer_match)

    # ------------------------------------------------------------------ #
    # Seed data
    def _seed_users(self) -> None:
        with self._session_factory() as session:
            if session.scalars(select(User.id).limit(1)).first() is not None:
                return

        self.create_user(UserCreate(
            username="default",
            password=hash_password("password"),
            full_name="Default User",
            email="user@example.com",
        ))
        self.create_user(UserCreate(
            username="admin",
            password=hash_password("admin123"),
            full_name="Master Admin",
            email="admin@mandainstitute.com",
            role="admin",
        ))
        logger.info("Seeded users table with default user and master admin")
