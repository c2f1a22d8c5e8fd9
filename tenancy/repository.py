"""
Data access layer for tenants, peer store links and memberships.

Repository methods:
- TranslationStore: forward, reverse, create_mapping, remove_mapping
- TenantRepository: create, get
- MembershipRepository: get, has_active_membership, grant, change_role,
  revoke, list_for_user

Lookups return None on absence. Only writes raise TenancyError.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tenancy.config import MEMBER_ROLES, validate_role
from tenancy.errors import ErrorKind, TenancyError
from tenancy.identifiers import (
    DEFAULT_PEER_PREFIX, canonical_uuid, is_peer_id, is_uuid,
)
from tenancy.models import StoreMember, TenantRecord, utcnow

logger = logging.getLogger(__name__)


def _live_tenant(db: Session, tenant_id: str) -> Optional[TenantRecord]:
    return (
        db.query(TenantRecord)
        .filter(
            TenantRecord.id == canonical_uuid(tenant_id),
            TenantRecord.deleted_at.is_(None),
        )
        .first()
    )


class TranslationStore:
    """
    Bidirectional tenant UUID <-> peer store id lookups.

    The peer id is stored on the tenant row, so forward is a primary key
    read and reverse is a read through the unique peer_system_id index.
    """

    def __init__(self, db: Session, peer_prefix: str = DEFAULT_PEER_PREFIX):
        self.db = db
        self.peer_prefix = peer_prefix

    def forward(self, tenant_id: str) -> Optional[str]:
        """Tenant UUID -> linked peer store id (None when unlinked or unknown)"""
        if not is_uuid(tenant_id):
            return None
        tenant = _live_tenant(self.db, tenant_id)
        return tenant.peer_system_id if tenant else None

    def reverse(self, peer_system_id: str) -> Optional[str]:
        """Peer store id -> tenant UUID (None when nothing is linked)"""
        if not is_peer_id(peer_system_id, self.peer_prefix):
            return None
        row = (
            self.db.query(TenantRecord.id)
            .filter(
                TenantRecord.peer_system_id == peer_system_id,
                TenantRecord.deleted_at.is_(None),
            )
            .first()
        )
        return row[0] if row else None

    def create_mapping(self, tenant_id: str, peer_system_id: str) -> TenantRecord:
        """
        Link a tenant to a peer store id.

        Repeating an identical call is a no-op. Linking a tenant that already
        has a different peer id replaces it.

        Raises:
            TenancyError(INVALID_SCOPE_ID_FORMAT): malformed identifiers
            TenancyError(STORE_NOT_FOUND): tenant does not exist
            TenancyError(CONFLICT): peer id already linked to another tenant
        """
        if not is_uuid(tenant_id) or not is_peer_id(peer_system_id, self.peer_prefix):
            raise TenancyError(ErrorKind.INVALID_SCOPE_ID_FORMAT)

        tenant = _live_tenant(self.db, tenant_id)
        if tenant is None:
            raise TenancyError(ErrorKind.STORE_NOT_FOUND, "Store not found")

        if tenant.peer_system_id == peer_system_id:
            return tenant

        owner_id = self.reverse(peer_system_id)
        if owner_id is not None and owner_id != tenant.id:
            logger.warning(
                f"Peer id {peer_system_id} already linked to tenant {owner_id}, "
                f"refusing link to {tenant.id}"
            )
            raise TenancyError(
                ErrorKind.CONFLICT,
                "Peer store id is already linked to another store",
            )

        previous = tenant.peer_system_id
        tenant.peer_system_id = peer_system_id
        tenant.linked_at = utcnow()
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent link of the same peer id
            self.db.rollback()
            raise TenancyError(
                ErrorKind.CONFLICT,
                "Peer store id is already linked to another store",
            )
        self.db.refresh(tenant)

        if previous:
            logger.info(f"Relinked tenant {tenant.id}: {previous} -> {peer_system_id}")
        else:
            logger.info(f"Linked tenant {tenant.id} -> {peer_system_id}")
        return tenant

    def remove_mapping(self, tenant_id: str) -> bool:
        """
        Clear the peer link of a tenant.

        Returns:
            True if a link was removed, False if the tenant was not linked

        Raises:
            TenancyError(INVALID_SCOPE_ID_FORMAT): malformed tenant id
            TenancyError(STORE_NOT_FOUND): tenant does not exist
        """
        if not is_uuid(tenant_id):
            raise TenancyError(ErrorKind.INVALID_SCOPE_ID_FORMAT)

        tenant = _live_tenant(self.db, tenant_id)
        if tenant is None:
            raise TenancyError(ErrorKind.STORE_NOT_FOUND, "Store not found")

        if tenant.peer_system_id is None:
            return False

        removed = tenant.peer_system_id
        tenant.peer_system_id = None
        tenant.unlinked_at = utcnow()
        self.db.commit()

        logger.info(f"Unlinked tenant {tenant.id} from {removed}")
        return True


class TenantRepository:
    """Tenant onboarding and lookup"""

    @staticmethod
    def create(
        db: Session,
        subdomain: str,
        name: str,
        tenant_id: Optional[str] = None,
        status: str = "active",
        peer_system_id: Optional[str] = None,
        peer_prefix: str = DEFAULT_PEER_PREFIX,
    ) -> TenantRecord:
        """
        Onboard a tenant, optionally linked to a peer store id.

        The tenant row and its link are written in one commit, so a failed
        link never leaves an unlinked tenant behind.

        Raises:
            TenancyError(INVALID_SCOPE_ID_FORMAT): malformed tenant or peer id
            TenancyError(CONFLICT): tenant id, subdomain or peer id taken
        """
        if tenant_id is not None:
            if not is_uuid(tenant_id):
                raise TenancyError(ErrorKind.INVALID_SCOPE_ID_FORMAT)
            tenant_id = canonical_uuid(tenant_id)

        if peer_system_id is not None:
            if not is_peer_id(peer_system_id, peer_prefix):
                raise TenancyError(ErrorKind.INVALID_SCOPE_ID_FORMAT)
            if TranslationStore(db, peer_prefix).reverse(peer_system_id) is not None:
                raise TenancyError(
                    ErrorKind.CONFLICT,
                    "Peer store id is already linked to another store",
                )

        tenant = TenantRecord(
            id=tenant_id,
            subdomain=subdomain,
            name=name,
            status=status,
        )
        if peer_system_id is not None:
            tenant.peer_system_id = peer_system_id
            tenant.linked_at = utcnow()

        db.add(tenant)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise TenancyError(ErrorKind.CONFLICT, "Store already exists")
        db.refresh(tenant)

        if peer_system_id is not None:
            logger.info(f"Created tenant {tenant.id} ({subdomain}) linked to {peer_system_id}")
        else:
            logger.info(f"Created tenant {tenant.id} ({subdomain})")
        return tenant

    @staticmethod
    def get(db: Session, tenant_id: str) -> Optional[TenantRecord]:
        if not is_uuid(tenant_id):
            return None
        return _live_tenant(db, tenant_id)


class MembershipRepository:
    """
    Repository for store_members.

    Every lookup keys on (user_id, tenant UUID). Peer ids never reach this
    layer.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str, tenant_id: str) -> Optional[StoreMember]:
        return (
            self.db.query(StoreMember)
            .filter(
                StoreMember.user_id == user_id,
                StoreMember.tenant_id == canonical_uuid(tenant_id),
            )
            .first()
        )

    def has_active_membership(self, user_id: str, tenant_id: str) -> bool:
        """
        Point lookup on the (user_id, tenant_id) unique key.

        A membership on a soft-deleted tenant does not count.
        """
        member = (
            self.db.query(StoreMember)
            .join(TenantRecord, StoreMember.tenant_id == TenantRecord.id)
            .filter(
                StoreMember.user_id == user_id,
                StoreMember.tenant_id == canonical_uuid(tenant_id),
                TenantRecord.deleted_at.is_(None),
            )
            .first()
        )
        return member is not None and bool(member.is_active)

    def grant(
        self,
        user_id: str,
        tenant_id: str,
        role: str = "viewer",
        invited_by: Optional[str] = None,
    ) -> StoreMember:
        """
        Grant (or re-activate) membership.

        Raises:
            TenancyError(INVALID_INPUT): unknown role
            TenancyError(STORE_NOT_FOUND): tenant does not exist
        """
        if not validate_role(role):
            raise TenancyError(
                ErrorKind.INVALID_INPUT,
                f"Invalid role. Expected one of: {', '.join(MEMBER_ROLES)}",
            )
        if not is_uuid(tenant_id) or _live_tenant(self.db, tenant_id) is None:
            raise TenancyError(ErrorKind.STORE_NOT_FOUND, "Store not found")

        member = self.get(user_id, tenant_id)
        if member is None:
            member = StoreMember(
                user_id=user_id,
                tenant_id=canonical_uuid(tenant_id),
                role=role,
                invited_by=invited_by,
            )
            self.db.add(member)
        else:
            member.role = role
            member.is_active = True
            if invited_by:
                member.invited_by = invited_by

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise TenancyError(ErrorKind.CONFLICT, "Membership already exists")
        self.db.refresh(member)

        logger.info(f"Granted {role} on tenant {member.tenant_id} to user {user_id}")
        return member

    def change_role(self, user_id: str, tenant_id: str, role: str) -> StoreMember:
        if not validate_role(role):
            raise TenancyError(
                ErrorKind.INVALID_INPUT,
                f"Invalid role. Expected one of: {', '.join(MEMBER_ROLES)}",
            )
        member = self.get(user_id, tenant_id) if is_uuid(tenant_id) else None
        if member is None:
            raise TenancyError(ErrorKind.STORE_NOT_FOUND, "Membership not found")

        member.role = role
        self.db.commit()
        self.db.refresh(member)
        return member

    def revoke(self, user_id: str, tenant_id: str) -> bool:
        """
        Deactivate membership. The row is kept for audit.

        Returns:
            True if an active membership was revoked
        """
        member = self.get(user_id, tenant_id) if is_uuid(tenant_id) else None
        if member is None or not member.is_active:
            return False

        member.is_active = False
        self.db.commit()

        logger.info(f"Revoked membership of user {user_id} on tenant {member.tenant_id}")
        return True

    def list_for_user(self, user_id: str) -> List[StoreMember]:
        """Active memberships of a user on live tenants"""
        return (
            self.db.query(StoreMember)
            .join(TenantRecord, StoreMember.tenant_id == TenantRecord.id)
            .filter(
                StoreMember.user_id == user_id,
                StoreMember.is_active.is_(True),
                TenantRecord.deleted_at.is_(None),
            )
            .order_by(StoreMember.created_at)
            .all()
        )
