"""
Activity Model
Courses and events certificates are issued against
"""

from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, Text, func, true
import uuid
from certi.database import Base, GUID


class Activity(Base):
    __tablename__ = "activities"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, server_default="course")  # course | event | other
    duration_hours = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
