"""
Database models for store tenancy.

Models:
- TenantRecord: Canonical tenant (one per store), carries the peer store link
- StoreMember: User <-> tenant membership used for authorization

The peer store id lives on the tenant row. Its unique index doubles as the
reverse lookup index (peer id -> tenant id), so a peer id can only ever be
linked to one tenant.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String,
    UniqueConstraint, event,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp (stored without tz so SQLite and Postgres agree)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_uuid() -> str:
    return str(uuid.uuid4())


class TenantRecord(Base):
    """
    Canonical store tenant.

    Attributes:
        id: Tenant UUID (primary key, immutable)
        subdomain: Unique routing subdomain
        name: Display name
        peer_system_id: Peer commerce store id (e.g. "store_01HQWE..."), nullable
        linked_at: When the peer link was last created
        unlinked_at: When the peer link was last removed
        status: pending | active | suspended
        deleted_at: Soft delete marker (tenants are never hard-deleted)
    """

    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=new_uuid)
    subdomain = Column(String(63), unique=True, nullable=False)
    name = Column(String(100), nullable=False)

    peer_system_id = Column(
        String(128),
        nullable=True,
        doc="Peer commerce store id; unique when set",
    )
    linked_at = Column(DateTime, nullable=True)
    unlinked_at = Column(DateTime, nullable=True)

    status = Column(String(20), nullable=False, default="active")

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)

    members = relationship(
        "StoreMember",
        back_populates="tenant",
        lazy="dynamic",
    )

    __table_args__ = (
        # Reverse index: peer store id -> tenant. NULLs do not collide.
        Index("uq_tenants_peer_system_id", peer_system_id, unique=True),
        CheckConstraint("status IN ('pending', 'active', 'suspended')"),
    )

    def __repr__(self):
        return f"<TenantRecord(id={self.id}, subdomain='{self.subdomain}', peer={self.peer_system_id})>"

    def to_dict(self):
        return {
            "id": self.id,
            "subdomain": self.subdomain,
            "name": self.name,
            "peer_system_id": self.peer_system_id,
            "linked_at": self.linked_at.isoformat() if self.linked_at else None,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class StoreMember(Base):
    """
    Membership of a user in a tenant.

    Authorization always resolves through (user_id, tenant_id) with the
    tenant UUID, whichever identifier format the request used. Revocation
    flips is_active; rows are never hard-deleted.
    """

    __tablename__ = "store_members"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=False)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )
    role = Column(String(20), nullable=False, default="viewer")
    is_active = Column(Boolean, nullable=False, default=True)
    invited_by = Column(String(36), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    tenant = relationship("TenantRecord", back_populates="members")

    __table_args__ = (
        UniqueConstraint("user_id", "tenant_id", name="uq_store_members_user_tenant"),
        Index("idx_store_members_user", "user_id"),
        Index("idx_store_members_tenant_active", "tenant_id", "is_active"),
        CheckConstraint("role IN ('owner', 'admin', 'editor', 'viewer', 'customer')"),
    )

    def __repr__(self):
        return f"<StoreMember(user_id={self.user_id}, tenant_id={self.tenant_id}, role={self.role})>"

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "tenant_id": self.tenant_id,
            "role": self.role,
            "is_active": self.is_active,
            "invited_by": self.invited_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


# ============ Database event listeners ============
@event.listens_for(TenantRecord, "before_update")
def receive_before_update(mapper, connection, target):
    """Automatically update updated_at timestamp"""
    target.updated_at = utcnow()
