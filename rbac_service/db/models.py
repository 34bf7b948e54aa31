"""
Database Models (SQLAlchemy ORM)
=============================================================================
TABLE DESIGN OVERVIEW:
  - permissions: permission profiles (name + ENTITY -> ACTION -> bool matrix)
  - roles:       role definitions, each pointing at exactly one profile
  - users:       application users, holding their role BY NAME

RELATIONSHIPS:

    users.role ----(by name, no FK)----> roles.name
    roles.permission_id ----(FK, RESTRICT)----> permissions.id

  roles -> permissions is a real foreign key with ON DELETE RESTRICT: the
  database itself refuses to delete a profile that a role still uses.

  users -> roles is a string join on the role name. There is no foreign
  key to lean on, so the role service checks for users holding a role
  before deleting or renaming it.

  Nothing cascades. Consistency is kept by refusing the delete that would
  leave a dangling reference.

IDs are opaque strings (seeded profiles use ids like "p1", generated ones
are short hex tokens), so the same ids work in SQLite and PostgreSQL.
=============================================================================
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB

from rbac_service.db.engine import Base


def utcnow():
    """Helper to get current UTC time."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex[:12]


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
MatrixType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# Permission Profiles: reusable capability matrices
# =============================================================================
class PermissionProfile(Base):
    __tablename__ = "permissions"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)           # e.g. "Acceso Total"
    description = Column(Text, nullable=False, default="")
    matrix = Column(MatrixType, nullable=False, default=dict)  # {entity: {view, create, edit, delete}}
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


# =============================================================================
# Role Definitions
# =============================================================================
class RoleDefinition(Base):
    __tablename__ = "roles"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(String(100), unique=True, nullable=False, index=True)  # e.g. "Supervisor"
    description = Column(Text, nullable=False, default="")
    permission_id = Column(
        String(64),
        ForeignKey("permissions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


# =============================================================================
# Users
# =============================================================================
class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(100), nullable=False, index=True)  # roles.name, not roles.id
    avatar = Column(String(500), nullable=False, default="")
    hashed_password = Column(String(255), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
