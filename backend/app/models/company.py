"""
company.py — ORM Model for Company Entities

Purpose:
- Represent a business submitted through onboarding.
- Provides the parent id every wizard record hangs off:
    * financials, employees, technology, owner_intent
    * documents (data room)
    * valuations, recommendations, buyer_matches

Important Design Rule:
- This table stores *profile metadata only*, not financial values.
- Rows are immutable after onboarding; placeholder rows are created by the
  storage layer when a write references an unknown company id.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, func

from app.core.database import Base


class Company(Base):
    __tablename__ = "companies"

    # Primary key
    id = Column(Integer, primary_key=True, index=True)

    # Owner
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Display Metadata
    name = Column(String, nullable=False)
    website = Column(String, nullable=True)
    unique_id = Column(String, unique=True, nullable=True)  # derived from name + domain

    # Classification
    sector = Column(String, nullable=False)
    industry_group = Column(String, nullable=True)

    # Onboarding answers
    location = Column(String, nullable=False)
    years_in_business = Column(String, nullable=False)
    goal = Column(String, nullable=False)
    ai_analyzed = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_companies_user_id", "user_id"),
    )

    def __repr__(self):
        return f"<Company {self.id} | {self.name} ({self.sector})>"
