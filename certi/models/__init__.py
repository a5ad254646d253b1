"""
Database Models
Import all models here for Alembic migrations
"""

from certi.models.user import User
from certi.models.access_control import Role, Permission, RolePermission, UserRole, AccessToken
from certi.models.activity import Activity
from certi.models.template import CertificateTemplate
from certi.models.certificate import Certificate, CertificateDocument
from certi.models.validation import Validation
from certi.models.email_send import EmailSend

__all__ = [
    "User",
    "Role",
    "Permission",
    "RolePermission",
    "UserRole",
    "AccessToken",
    "Activity",
    "CertificateTemplate",
    "Certificate",
    "CertificateDocument",
    "Validation",
    "EmailSend",
]
