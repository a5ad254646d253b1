"""
Email Send Model
Delivery attempts of certificates by email
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import relationship
import uuid
from certi.database import Base, GUID


class EmailSend(Base):
    __tablename__ = "email_sends"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    certificate_id = Column(GUID, ForeignKey("certificates.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    email_to = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False)
    body = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, server_default="pending")  # pending | sent | failed
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    certificate = relationship("Certificate", backref="email_sends")
