"""
Validation Model
Append-only audit of successful certificate lookups
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import relationship
import uuid
from certi.database import Base, GUID


class Validation(Base):
    __tablename__ = "validations"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    certificate_id = Column(GUID, ForeignKey("certificates.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # VAL-XXXXXXXXXX
    validation_code = Column(String(50), unique=True, nullable=False, index=True)
    validator_ip = Column(String(45), nullable=True)
    validator_user_agent = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    validated_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    certificate = relationship("Certificate", backref="validations")
