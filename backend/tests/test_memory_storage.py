"""
Tests for the in-memory storage backend.
"""

from decimal import Decimal

from app.core.security import verify_password
from app.schemas.records import CompanyCreate, FinancialCreate, UserCreate


def test_seed_data(memory_storage):
    user = memory_storage.get_user_by_email("user@example.com")
    admin = memory_storage.get_user_by_username("admin")

    assert user.id == 1 and user.full_name == "Default User"
    assert admin.id == 2 and admin.role == "admin"
    assert verify_password("password", user.password)
    assert verify_password("admin123", admin.password)

    company = memory_storage.get_company(1)
    assert company.name == "Example Business"
    assert company.user_id == 1

    valuation = memory_storage.get_valuation_by_company_id(1)
    assert valuation.valuation_median == Decimal("1200000")
    assert len(valuation.red_flags) == 2


def test_ids_are_sequential_per_kind(empty_storage):
    u = empty_storage.create_user(UserCreate(username="a", password="x", full_name="A", email="a@x.io"))
    c1 = empty_storage.create_company(_company(u.id))
    c2 = empty_storage.create_company(_company(u.id))

    assert u.id == 1
    assert (c1.id, c2.id) == (1, 2)
    assert c1.created_at is not None


def test_placeholder_company_keeps_requested_id(empty_storage):
    placeholder = empty_storage.upsert_company_placeholder(5)

    assert placeholder.id == 5
    assert placeholder.user_id == 1
    # Counter moves past the placeholder so later inserts never collide
    assert empty_storage.create_company(_company(1)).id == 6
    # Existing company is returned unchanged
    assert empty_storage.upsert_company_placeholder(5).name == placeholder.name


def test_first_record_by_company_is_lowest_id(empty_storage):
    empty_storage.create_financial(FinancialCreate(company_id=3, revenue_current=Decimal("1")))
    empty_storage.create_financial(FinancialCreate(company_id=3, revenue_current=Decimal("2")))
    empty_storage.create_financial(FinancialCreate(company_id=4, revenue_current=Decimal("3")))

    assert empty_storage.get_financial_by_company_id(3).revenue_current == Decimal("1")
    assert empty_storage.get_financial_by_company_id(99) is None


def test_missing_records_return_none(empty_storage):
    assert empty_storage.get_user(1) is None
    assert empty_storage.get_company(1) is None
    assert empty_storage.get_user_by_email("nobody@example.com") is None
    assert empty_storage.get_companies_by_user_id(1) == []
    assert empty_storage.get_documents_by_company_id(1) == []


def _company(user_id: int) -> CompanyCreate:
    return CompanyCreate(
        user_id=user_id,
        name="Acme",
        sector="Retail",
        location="France",
        years_in_business="3-5",
        goal="Growth",
    )
