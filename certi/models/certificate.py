"""
Certificate Models
Issued certificates and the files generated for them
"""

from sqlalchemy import Column, String, Integer, Date, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import relationship
import uuid
from certi.database import Base, GUID


class Certificate(Base):
    __tablename__ = "certificates"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_id = Column(GUID, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    template_id = Column(GUID, ForeignKey("certificate_templates.id"), nullable=False, index=True)
    signed_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # CERT-XXXXXXXX, unique across all certificates
    unique_code = Column(String(50), unique=True, nullable=False, index=True)
    qr_url = Column(Text, nullable=True)

    issue_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=True)
    issued_at = Column(DateTime(timezone=True), server_default=func.now())

    # issued | active | revoked | expired | pending | cancelled
    status = Column(String(20), nullable=False, server_default="issued", index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", foreign_keys=[user_id], backref="certificates")
    signer = relationship("User", foreign_keys=[signed_by], backref="signed_certificates")
    activity = relationship("Activity", backref="certificates")
    template = relationship("CertificateTemplate", backref="certificates")


class CertificateDocument(Base):
    __tablename__ = "certificate_documents"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    certificate_id = Column(GUID, ForeignKey("certificates.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(20), nullable=False, server_default="pdf")  # pdf | image | other
    file_name = Column(String(255), nullable=False)
    file_path = Column(Text, nullable=False)
    mime_type = Column(String(100), nullable=True)
    file_size = Column(Integer, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    certificate = relationship("Certificate", backref="documents")
