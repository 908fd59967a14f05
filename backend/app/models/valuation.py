"""
valuation.py — ORM Models for Valuation Outputs

Purpose:
- Valuation      → one row per generation run (a company may accumulate many)
- Recommendation → improvement suggestions attached after a valuation
- BuyerMatch     → potential buyer / investor profiles attached after a valuation

Dollar values are `Numeric`; scores and impact ratings are integers.
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, func

from app.core.database import Base


class Valuation(Base):
    __tablename__ = "valuations"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    # Range
    valuation_min = Column(Numeric, nullable=False)
    valuation_median = Column(Numeric, nullable=False)
    valuation_max = Column(Numeric, nullable=False)

    # Methodology estimates
    ebitda_multiple = Column(Numeric, nullable=False)
    discounted_cash_flow = Column(Numeric, nullable=False)
    revenue_multiple = Column(Numeric, nullable=False)
    asset_based = Column(Numeric, nullable=False)

    # Scores (0-100)
    risk_score = Column(Integer, nullable=False)
    financial_health_score = Column(Integer, nullable=False)
    market_position_score = Column(Integer, nullable=False)
    operational_efficiency_score = Column(Integer, nullable=False)
    debt_structure_score = Column(Integer, nullable=False)

    red_flags = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Valuation {self.id} company={self.company_id} median={self.valuation_median}>"


class Recommendation(Base):
    __tablename__ = "recommendations"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    category = Column(String, nullable=False)
    impact_potential = Column(Integer, nullable=False)  # 1-5
    suggestions = Column(JSON, nullable=True)
    estimated_value_impact_min = Column(Integer, nullable=False)  # percent
    estimated_value_impact_max = Column(Integer, nullable=False)  # percent

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class BuyerMatch(Base):
    __tablename__ = "buyer_matches"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    description = Column(String, nullable=False)
    match_percentage = Column(Integer, nullable=False)  # 0-100
    tags = Column(JSON, nullable=True)
    deal_type = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
