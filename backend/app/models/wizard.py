"""
wizard.py — ORM Models for the Business Data Wizard Steps

Purpose:
- One table per wizard step, each owned by a company:
    * Financial   → revenue history, EBITDA, net margin
    * Employee    → headcount + digital systems in use
    * Technology  → transformation level, technologies, tech investment %
    * OwnerIntent → exit intent, timeline, valuation expectation
    * Document    → uploaded data-room files

Numeric money / percentage fields are `Numeric` so values round-trip as
Decimal between the API and PostgreSQL. SQLite (tests) reads them back via float.
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, func

from app.core.database import Base


class Financial(Base):
    __tablename__ = "financials"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    revenue_current = Column(Numeric, nullable=True)
    revenue_previous = Column(Numeric, nullable=True)
    revenue_two_years_ago = Column(Numeric, nullable=True)
    ebitda = Column(Numeric, nullable=True)
    net_margin = Column(Numeric, nullable=True)  # percent, e.g. 8 == 8%

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    count = Column(Integer, nullable=True)
    digital_systems = Column(JSON, nullable=True)  # ["crm", "erp", ...]
    other_system_details = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Technology(Base):
    __tablename__ = "technology"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    transformation_level = Column(Integer, nullable=True)  # 1-5
    technologies_used = Column(JSON, nullable=True)
    tech_investment_percentage = Column(Numeric, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class OwnerIntent(Base):
    __tablename__ = "owner_intent"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    intent = Column(String, nullable=False)
    exit_timeline = Column(String, nullable=False)
    ideal_outcome = Column(String, nullable=True)
    valuation_expectations = Column(Numeric, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    type = Column(String, nullable=False)  # financial | tax | contract
    file_name = Column(String, nullable=False)
    file_path = Column(String, nullable=False)

    uploaded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
