"""
Tests for the SQLAlchemy storage backend, run against in-memory SQLite.

SQLite returns Numeric columns through float, so money checks compare values,
not their string form.
"""

import logging
from decimal import Decimal

from app.core.config import Settings
from app.schemas.records import (
    CompanyCreate,
    DocumentCreate,
    EmployeeCreate,
    FinancialCreate,
    RecommendationCreate,
    ValuationCreate,
)
from app.services.storage import MemoryStorage, SqlStorage, build_storage


def _company(user_id: int = 1) -> CompanyCreate:
    return CompanyCreate(
        user_id=user_id,
        name="Nordic Tools AB",
        sector="Manufacturing",
        location="Sweden",
        years_in_business="10+",
        goal="Selling the business",
    )


def test_seeded_users(sql_storage):
    assert sql_storage.get_user(1).email == "user@example.com"
    assert sql_storage.get_user_by_username("admin").role == "admin"


def test_company_roundtrip(sql_storage):
    created = sql_storage.create_company(_company())
    fetched = sql_storage.get_company(created.id)

    assert fetched.name == "Nordic Tools AB"
    assert fetched.ai_analyzed is False
    assert [c.id for c in sql_storage.get_companies_by_user_id(1)] == [created.id]


def test_placeholder_company(sql_storage):
    placeholder = sql_storage.upsert_company_placeholder(12)

    assert placeholder.id == 12
    assert sql_storage.get_company(12) is not None
    assert sql_storage.upsert_company_placeholder(12).id == 12


def test_list_columns_and_numeric_values(sql_storage):
    company = sql_storage.create_company(_company())

    sql_storage.create_employee(EmployeeCreate(company_id=company.id, count=4, digital_systems=None))
    employee = sql_storage.get_employee_by_company_id(company.id)
    assert employee.digital_systems == []

    sql_storage.create_valuation(ValuationCreate(
        company_id=company.id,
        valuation_min=Decimal("807500"),
        valuation_median=Decimal("950000"),
        valuation_max=Decimal("1092500"),
        ebitda_multiple=Decimal("900000"),
        discounted_cash_flow=Decimal("1000000"),
        revenue_multiple=Decimal("1000000"),
        asset_based=Decimal("400000"),
        risk_score=55,
        financial_health_score=66,
        market_position_score=48,
        operational_efficiency_score=35,
        debt_structure_score=72,
        red_flags=["Declining Revenue"],
    ))
    valuation = sql_storage.get_valuation_by_company_id(company.id)
    assert valuation.valuation_median == Decimal("950000")
    assert valuation.red_flags == ["Declining Revenue"]


def test_children_listed_in_insert_order(sql_storage):
    company = sql_storage.create_company(_company())
    for category in ("A", "B"):
        sql_storage.create_recommendation(RecommendationCreate(
            company_id=company.id,
            category=category,
            impact_potential=3,
            suggestions=["x"],
            estimated_value_impact_min=1,
            estimated_value_impact_max=2,
        ))
    sql_storage.create_document(DocumentCreate(
        company_id=company.id, type="tax", file_name="t.pdf", file_path="/tmp/t.pdf"
    ))

    assert [r.category for r in sql_storage.get_recommendations_by_company_id(company.id)] == ["A", "B"]
    document = sql_storage.get_documents_by_company_id(company.id)[0]
    assert document.uploaded_at is not None


def test_build_storage_memory_without_database_url():
    storage = build_storage(Settings(DATABASE_URL="", STORAGE_BACKEND="auto"))
    assert isinstance(storage, MemoryStorage)


def test_build_storage_warns_on_sqlite(caplog):
    with caplog.at_level(logging.WARNING, logger="app.services.storage"):
        storage = build_storage(Settings(DATABASE_URL="sqlite://", STORAGE_BACKEND="sql"))

    assert isinstance(storage, SqlStorage)
    assert "meant for tests" in caplog.text


def test_numeric_values_match_memory_backend(sql_storage, empty_storage):
    stored = []
    for storage in (sql_storage, empty_storage):
        company = storage.create_company(_company())
        storage.create_financial(FinancialCreate(
            company_id=company.id,
            revenue_current=Decimal("500000"),
            revenue_previous=Decimal("612345.67"),
            ebitda=Decimal("200000"),
            net_margin=Decimal("8"),
        ))
        stored.append(storage.get_financial_by_company_id(company.id))

    from_sql, from_memory = stored
    for field in ("revenue_current", "revenue_previous", "revenue_two_years_ago", "ebitda", "net_margin"):
        assert getattr(from_sql, field) == getattr(from_memory, field)
