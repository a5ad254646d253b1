"""
User Model
Authentication identity; receives and signs certificates
"""

from sqlalchemy import Column, String, Boolean, Date, DateTime, func, true
import uuid
from certi.database import Base, GUID


class User(Base):
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Profile
    birth_date = Column(Date, nullable=True)
    country = Column(String(100), nullable=True)
    gender = Column(String(50), nullable=True)
    phone = Column(String(50), nullable=True)

    # Status
    is_active = Column(Boolean, nullable=False, server_default=true())
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
