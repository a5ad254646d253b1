"""
Access Control Models
Roles, permissions, their pivots and issued API tokens
"""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, func, false
from sqlalchemy.orm import relationship
import uuid
from certi.database import Base, GUID


class Role(Base):
    __tablename__ = "roles"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    name = Column(String(125), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    guard_name = Column(String(125), nullable=False, server_default="web")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    permissions = relationship("Permission", secondary="role_permissions", backref="roles")


class Permission(Base):
    __tablename__ = "permissions"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    # "<module>.<action>", e.g. certificates.create
    name = Column(String(125), unique=True, nullable=False, index=True)
    guard_name = Column(String(125), nullable=False, server_default="web")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class RolePermission(Base):
    __tablename__ = "role_permissions"

    role_id = Column(GUID, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    permission_id = Column(GUID, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True)


class UserRole(Base):
    __tablename__ = "user_roles"

    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role_id = Column(GUID, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)


class AccessToken(Base):
    __tablename__ = "access_tokens"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)  # JWT "jti" claim
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False, server_default="auth_token")
    revoked = Column(Boolean, nullable=False, server_default=false())
    expires_at = Column(DateTime(timezone=True), nullable=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
