"""ORM models; importing this package registers every table on Base.metadata."""

from app.models.company import Company
from app.models.user import User
from app.models.valuation import BuyerMatch, Recommendation, Valuation
from app.models.wizard import Document, Employee, Financial, OwnerIntent, Technology

__all__ = [
    "BuyerMatch",
    "Company",
    "Document",
    "Employee",
    "Financial",
    "OwnerIntent",
    "Recommendation",
    "Technology",
    "User",
    "Valuation",
]
