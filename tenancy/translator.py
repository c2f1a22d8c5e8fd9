"""
Tenant ID translation and authorization.

Turns a raw scope identifier plus an optional session user into either an
Authorized context (tenant UUID, linked peer id, user id) or a Rejected
outcome naming the first check that failed.

Check order:
    1. scope id present            -> MISSING_SCOPE_ID
    2. scope id well-formed        -> INVALID_SCOPE_ID_FORMAT
    3. caller authenticated        -> UNAUTHENTICATED
    4. peer id resolves to tenant  -> NO_PEER_MAPPING
    5. active membership           -> NO_STORE_ACCESS

Authentication is checked before any storage lookup, so anonymous callers
cannot learn which tenants or peer links exist.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from tenancy.errors import DEFAULT_MESSAGES, ErrorKind
from tenancy.identifiers import IdFormat, canonical_uuid, classify
from tenancy.repository import MembershipRepository, TranslationStore


@dataclass(frozen=True)
class Unvalidated:
    """Request context before the guard has run"""

    raw_scope_id: Any
    user_id: Optional[str]


@dataclass(frozen=True)
class Rejected:
    kind: ErrorKind
    message: str

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_detail(self):
        return {"code": self.kind.code, "message": self.message}


@dataclass(frozen=True)
class Authorized:
    """Authorized request context. tenant_id is always a canonical UUID."""

    tenant_id: str
    peer_system_id: Optional[str]
    user_id: str

    def to_dict(self):
        return {
            "tenant_id": self.tenant_id,
            "peer_system_id": self.peer_system_id,
            "user_id": self.user_id,
        }


TranslationResult = Union[Authorized, Rejected]


def _reject(kind: ErrorKind) -> Rejected:
    return Rejected(kind=kind, message=DEFAULT_MESSAGES[kind])


class TenantIdTranslator:
    """
    Resolves either identifier format to the canonical tenant UUID and
    authorizes the user against it.
    """

    def __init__(
        self,
        store: TranslationStore,
        members: MembershipRepository,
        peer_prefix: Optional[str] = None,
    ):
        self.store = store
        self.members = members
        self.peer_prefix = peer_prefix or store.peer_prefix

    def to_peer(self, tenant_id: str) -> Optional[str]:
        return self.store.forward(tenant_id)

    def to_tenant(self, peer_system_id: str) -> Optional[str]:
        return self.store.reverse(peer_system_id)

    def get_format(self, raw_scope_id: Any) -> IdFormat:
        return classify(raw_scope_id, self.peer_prefix)

    def normalize_and_authorize(
        self,
        raw_scope_id: Any,
        user_id: Optional[str],
    ) -> TranslationResult:
        """
        Args:
            raw_scope_id: Untrusted header value (None when absent)
            user_id: Session user id (None for anonymous requests)

        Returns:
            Authorized or Rejected. Never raises for bad input.
        """
        if raw_scope_id is None or raw_scope_id == "":
            return _reject(ErrorKind.MISSING_SCOPE_ID)

        id_format = self.get_format(raw_scope_id)
        if id_format is IdFormat.UNKNOWN:
            return _reject(ErrorKind.INVALID_SCOPE_ID_FORMAT)

        if not user_id:
            return _reject(ErrorKind.UNAUTHENTICATED)

        if id_format is IdFormat.UUID:
            tenant_id = canonical_uuid(raw_scope_id)
            peer_system_id = self.store.forward(tenant_id)
        else:
            peer_system_id = raw_scope_id
            tenant_id = self.store.reverse(raw_scope_id)
            if tenant_id is None:
                return _reject(ErrorKind.NO_PEER_MAPPING)

        if not self.members.has_active_membership(user_id, tenant_id):
            return _reject(ErrorKind.NO_STORE_ACCESS)

        return Authorized(
            tenant_id=tenant_id,
            peer_system_id=peer_system_id,
            user_id=user_id,
        )

    def evaluate(self, context: Unvalidated) -> TranslationResult:
        return self.normalize_and_authorize(context.raw_scope_id, context.user_id)
