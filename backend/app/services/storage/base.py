"""
base.py — Storage Interface Shared by Every Backend

Purpose:
- Define the create / get-by-id / get-by-company operations for the nine
  company-owned entity kinds plus users.
- Own the placeholder-company policy so both backends behave identically.

Lookup semantics:
- Single-row kinds (financial, employee, technology, owner intent, valuation)
  return the FIRST match by ascending id for a company, not the latest.
- List kinds (documents, recommendations, buyer matches, valuations) return all
  matches in ascending id order.

This module does NOT:
- Know about HTTP (see app/api/v1/*).
- Compute anything (see app/services/valuation/*).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from app.core.logging import get_logger
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

logger = get_logger(__name__)


def placeholder_company(user_id: int) -> CompanyCreate:
    """Profile used for companies auto-created by a write to an unknown id."""
    return CompanyCreate(
        user_id=user_id,
        name="Default Company",
        sector="Technology",
        location="USA",
        years_in_business="1-5",
        goal="Valuation",
    )


class Storage(ABC):
    """Repository interface; `name` identifies the backend in /health."""

    name: str = "abstract"

    # ------------------------------------------------------------------ #
    # Users
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserRecord]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    @abstractmethod
    def create_user(self, user: UserCreate) -> UserRecord: ...

    # ------------------------------------------------------------------ #
    # Companies
    @abstractmethod
    def get_company(self, company_id: int) -> Optional[CompanyRecord]: ...

    @abstractmethod
    def get_companies_by_user_id(self, user_id: int) -> List[CompanyRecord]: ...

    @abstractmethod
    def create_company(self, company: CompanyCreate) -> CompanyRecord: ...

    @abstractmethod
    def _create_company_with_id(self, company_id: int, company: CompanyCreate) -> CompanyRecord: ...

    def upsert_company_placeholder(self, company_id: int, user_id: int = 1) -> CompanyRecord:
        """
        Return company `company_id`, creating a placeholder row with exactly that
        id when it does not exist. Idempotent.
        """
        existing = self.get_company(company_id)
        if existing is not None:
            return existing

        logger.warning("Company %s not found; creating placeholder company", company_id)
        return self._create_company_with_id(company_id, placeholder_company(user_id))

    # ------------------------------------------------------------------ #
    # Wizard steps
    @abstractmethod
    def get_financial(self, financial_id: int) -> Optional[FinancialRecord]: ...

    @abstractmethod
    def get_financial_by_company_id(self, company_id: int) -> Optional[FinancialRecord]: ...

    @abstractmethod
    def create_financial(self, financial: FinancialCreate) -> FinancialRecord: ...

    @abstractmethod
    def get_employee(self, employee_id: int) -> Optional[EmployeeRecord]: ...

    @abstractmethod
    def get_employee_by_company_id(self, company_id: int) -> Optional[EmployeeRecord]: ...

    @abstractmethod
    def create_employee(self, employee: EmployeeCreate) -> EmployeeRecord: ...

    @abstractmethod
    def get_document(self, document_id: int) -> Optional[DocumentRecord]: ...

    @abstractmethod
    def get_documents_by_company_id(self, company_id: int) -> List[DocumentRecord]: ...

    @abstractmethod
    def create_document(self, document: DocumentCreate) -> DocumentRecord: ...

    @abstractmethod
    def get_technology(self, technology_id: int) -> Optional[TechnologyRecord]: ...

    @abstractmethod
    def get_technology_by_company_id(self, company_id: int) -> Optional[TechnologyRecord]: ...

    @abstractmethod
    def create_technology(self, technology: TechnologyCreate) -> TechnologyRecord: ...

    @abstractmethod
    def get_owner_intent(self, owner_intent_id: int) -> Optional[OwnerIntentRecord]: ...

    @abstractmethod
    def get_owner_intent_by_company_id(self, company_id: int) -> Optional[OwnerIntentRecord]: ...

    @abstractmethod
    def create_owner_intent(self, owner_intent: OwnerIntentCreate) -> OwnerIntentRecord: ...

    # ------------------------------------------------------------------ #
    # Valuation outputs
    @abstractmethod
    def get_valuation(self, valuation_id: int) -> Optional[ValuationRecord]: ...

    @abstractmethod
    def get_valuation_by_company_id(self, company_id: int) -> Optional[ValuationRecord]: ...

    @abstractmethod
    def get_valuations_by_company_id(self, company_id: int) -> List[ValuationRecord]: ...

    @abstractmethod
    def create_valuation(self, valuation: ValuationCreate) -> ValuationRecord: ...

    @abstractmethod
    def get_recommendation(self, recommendation_id: int) -> Optional[RecommendationRecord]: ...

    @abstractmethod
    def get_recommendations_by_company_id(self, company_id: int) -> List[RecommendationRecord]: ...

    @abstractmethod
    def create_recommendation(self, recommendation: RecommendationCreate) -> RecommendationRecord: ...

    @abstractmethod
    def get_buyer_match(self, buyer_match_id: int) -> Optional[BuyerMatchRecord]: ...

    @abstractmethod
    def get_buyer_matches_by_company_id(self, company_id: int) -> List[BuyerMatchRecord]: ...

    @abstractmethod
    def create_buyer_match(self, buyer_match: BuyerMatchCreate) -> BuyerMatchRecord: ...
