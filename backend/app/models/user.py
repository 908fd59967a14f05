"""
user.py — ORM Model for Application Users

Purpose:
- Represent authenticated users of the system (business owners and admins).
- Stores hashed passwords only — never raw.

Used by:
- api/v1/auth.py (signup / login / current user)
- core/security.py (password + token validation)
"""

from sqlalchemy import Column, DateTime, Integer, String, func

from app.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Authentication fields
    username = Column(String, unique=True, nullable=False)
    password = Column(String, nullable=False)  # passlib hash
    email = Column(String, unique=True, index=True, nullable=False)

    # Display
    full_name = Column(String, nullable=False)

    # "user" | "admin"
    role = Column(String, nullable=False, default="user", server_default="user")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<User {self.email}>"
