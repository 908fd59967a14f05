"""
records.py — Pydantic Schemas for Stored Entities

Purpose:
- `<Kind>Create` models validate request bodies and are what storage `create_*`
  methods accept.
- `<Kind>Record` models are what every storage backend returns, so the API layer
  never sees ORM objects or backend-specific dicts.

Conventions:
- Python attributes are snake_case; JSON uses camelCase aliases (companyId, ...).
- Money / percentage fields are Decimal and serialise as strings, matching the
  numeric-as-text convention of the relational schema. NaN / Infinity are
  rejected at validation time.
- List fields coerce null / non-list input to [] before insertion.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _as_list(v: Any) -> List[Any]:
    return v if isinstance(v, list) else []


Money = Annotated[Decimal, Field(allow_inf_nan=False)]
StrList = Annotated[List[str], BeforeValidator(_as_list)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------

class UserCreate(CamelModel):
    username: str
    password: str
    full_name: str
    email: str
    role: Literal["user", "admin"] = "user"


class UserRecord(UserCreate):
    id: int
    created_at: datetime
    # Never serialised; stays available to the auth layer.
    password: str = Field(exclude=True)


# -----------------------------------------------------------------------------
# Companies
# -----------------------------------------------------------------------------

class CompanyCreate(CamelModel):
    user_id: int
    name: str
    website: Optional[str] = None
    unique_id: Optional[str] = None
    sector: str
    industry_group: Optional[str] = None
    location: str
    years_in_business: str
    goal: str
    ai_analyzed: bool = False


class CompanyRecord(CompanyCreate):
    id: int
    created_at: datetime


# -----------------------------------------------------------------------------
# Wizard steps
# -----------------------------------------------------------------------------

class FinancialCreate(CamelModel):
    company_id: int
    revenue_current: Optional[Money] = None
    revenue_previous: Optional[Money] = None
    revenue_two_years_ago: Optional[Money] = None
    ebitda: Optional[Money] = None
    net_margin: Optional[Money] = None


class FinancialRecord(FinancialCreate):
    id: int
    created_at: datetime


class EmployeeCreate(CamelModel):
    company_id: int
    count: Optional[int] = Field(None, ge=0)
    digital_systems: StrList = Field(default_factory=list)
    other_system_details: Optional[str] = None


class EmployeeRecord(EmployeeCreate):
    id: int
    created_at: datetime


class TechnologyCreate(CamelModel):
    company_id: int
    transformation_level: Optional[int] = Field(None, ge=1, le=5)
    technologies_used: StrList = Field(default_factory=list)
    tech_investment_percentage: Optional[Money] = None


class TechnologyRecord(TechnologyCreate):
    id: int
    created_at: datetime


class OwnerIntentCreate(CamelModel):
    company_id: int
    intent: str
    exit_timeline: str
    ideal_outcome: Optional[str] = None
    valuation_expectations: Optional[Money] = None


class OwnerIntentRecord(OwnerIntentCreate):
    id: int
    created_at: datetime


DocumentType = Literal["financial", "tax", "contract"]


class DocumentCreate(CamelModel):
    company_id: int
    type: DocumentType
    file_name: str
    file_path: str


class DocumentRecord(DocumentCreate):
    id: int
    uploaded_at: datetime


# -----------------------------------------------------------------------------
# Valuation outputs
# -----------------------------------------------------------------------------

class ValuationCreate(CamelModel):
    company_id: int
    valuation_min: Money
    valuation_median: Money
    valuation_max: Money
    ebitda_multiple: Money
    discounted_cash_flow: Money
    revenue_multiple: Money
    asset_based: Money
    risk_score: int
    financial_health_score: int
    market_position_score: int
    operational_efficiency_score: int
    debt_structure_score: int
    red_flags: StrList = Field(default_factory=list)


class ValuationRecord(ValuationCreate):
    id: int
    created_at: datetime


class RecommendationCreate(CamelModel):
    company_id: int
    category: str
    impact_potential: int
    suggestions: StrList = Field(default_factory=list)
    estimated_value_impact_min: int
    estimated_value_impact_max: int


class RecommendationRecord(RecommendationCreate):
    id: int
    created_at: datetime


class BuyerMatchCreate(CamelModel):
    company_id: int
    name: str
    type: str
    description: str
    match_percentage: int
    tags: StrList = Field(default_factory=list)
    deal_type: str


class BuyerMatchRecord(BuyerMatchCreate):
    id: int
    created_at: datetime
