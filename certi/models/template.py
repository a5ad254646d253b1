"""
Certificate Template Model
Background image/PDF plus positioned text fields
"""

from sqlalchemy import Column, String, Integer, DateTime, Text, func
import uuid
from certi.database import Base, GUID, JSONType


class CertificateTemplate(Base):
    __tablename__ = "certificate_templates"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)

    # Template info
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    activity_type = Column(String(20), nullable=False, server_default="course")  # course | event | other
    status = Column(String(20), nullable=False, server_default="active")  # active | inactive

    # Stored background file (local storage path or public URL)
    file_path = Column(Text, nullable=True)
    file_size_bytes = Column(Integer, nullable=True)

    # Text field coordinates (JSON)
    text_fields = Column(JSONType, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
