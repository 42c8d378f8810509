"""User model definitions."""

from sqlalchemy import Column, String
from wellbeing_api.database import Base


class User(Base):
    """Represents a person known to the identity provider."""
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, index=True)
    name = Column(String, nullable=False, default="")
    phone = Column(String, nullable=False, default="")
    role = Column(String, nullable=False, index=True)  # student/admin/volunteer/mentor
