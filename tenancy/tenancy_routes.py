"""
Tenancy API endpoints.

Exposed endpoints:
- GET    /api/stores/context                              - Authorized store context
- GET    /api/stores/mine                                 - Stores of the session user

Admin (platform role "admin"):
- POST   /api/admin/tenants                               - Onboard tenant
- GET    /api/admin/tenants/{tenant_id}                   - Get tenant
- GET    /api/admin/tenants/{tenant_id}/mapping           - Forward lookup
- PUT    /api/admin/tenants/{tenant_id}/mapping           - Link peer store id
- DELETE /api/admin/tenants/{tenant_id}/mapping           - Unlink peer store id
- GET    /api/admin/mappings/{peer_system_id}             - Reverse lookup
- POST   /api/admin/tenants/{tenant_id}/members           - Grant membership
- PATCH  /api/admin/tenants/{tenant_id}/members/{user_id} - Change role
- DELETE /api/admin/tenants/{tenant_id}/members/{user_id} - Revoke membership
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth.session import require_admin, require_user
from tenancy.config import TenancyConfig
from tenancy.database import get_db
from tenancy.errors import ErrorKind, TenancyError
from tenancy.guard import get_tenancy_config, require_store
from tenancy.identifiers import is_peer_id, is_uuid
from tenancy.repository import MembershipRepository, TenantRepository, TranslationStore
from tenancy.schemas import (
    MappingRequest, MappingResponse, MembershipRequest, MembershipResponse,
    MyStoresResponse, RoleChangeRequest, StoreContextResponse, TenantCreateRequest,
    TenantResponse,
)
from tenancy.translator import Authorized

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stores", tags=["stores"])
admin_router = APIRouter(prefix="/api/admin", tags=["tenancy-admin"])


def get_translation_store(
    db: Session = Depends(get_db),
    config: TenancyConfig = Depends(get_tenancy_config),
) -> TranslationStore:
    return TranslationStore(db, config.peer_id_prefix)


def _require_tenant(db: Session, tenant_id: str):
    if not is_uuid(tenant_id):
        raise TenancyError(ErrorKind.INVALID_SCOPE_ID_FORMAT)
    tenant = TenantRepository.get(db, tenant_id)
    if tenant is None:
        raise TenancyError(ErrorKind.STORE_NOT_FOUND, "Store not found")
    return tenant


# ============ Store context ============

@router.get("/context", response_model=StoreContextResponse)
def get_store_context(store: Authorized = Depends(require_store)):
    """
    Return the authorized context for the x-store-id header.

    Accepts either identifier format and always reports the tenant UUID.
    """
    return store.to_dict()


@router.get("/mine", response_model=MyStoresResponse)
def list_my_stores(
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
):
    memberships = MembershipRepository(db).list_for_user(user["user_id"])
    return {"stores": memberships, "count": len(memberships)}


# ============ Tenants ============

@admin_router.post("/tenants", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
def create_tenant(
    request: TenantCreateRequest,
    admin: dict = Depends(require_admin),
    db: Session = Depends(get_db),
    store: TranslationStore = Depends(get_translation_store),
):
    tenant = TenantRepository.create(
        db,
        subdomain=request.subdomain,
        name=request.name,
        tenant_id=request.tenant_id,
        peer_system_id=request.peer_system_id,
        peer_prefix=store.peer_prefix,
    )

    logger.info(f"Admin {admin['user_id']} onboarded tenant {tenant.id}")
    return tenant


@admin_router.get("/tenants/{tenant_id}", response_model=TenantResponse)
def get_tenant(
    tenant_id: str,
    admin: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return _require_tenant(db, tenant_id)


# ============ Peer mappings ============

@admin_router.get("/tenants/{tenant_id}/mapping", response_model=MappingResponse)
def get_mapping(
    tenant_id: str,
    admin: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    tenant = _require_tenant(db, tenant_id)
    return {
        "tenant_id": tenant.id,
        "peer_system_id": tenant.peer_system_id,
        "linked_at": tenant.linked_at if tenant.peer_system_id else None,
    }


@admin_router.put("/tenants/{tenant_id}/mapping", response_model=MappingResponse)
def put_mapping(
    tenant_id: str,
    request: MappingRequest,
    admin: dict = Depends(require_admin),
    store: TranslationStore = Depends(get_translation_store),
):
    tenant = store.create_mapping(tenant_id, request.peer_system_id)
    return {
        "tenant_id": tenant.id,
        "peer_system_id": tenant.peer_system_id,
        "linked_at": tenant.linked_at,
    }


@admin_router.delete("/tenants/{tenant_id}/mapping")
def delete_mapping(
    tenant_id: str,
    admin: dict = Depends(require_admin),
    store: TranslationStore = Depends(get_translation_store),
):
    removed = store.remove_mapping(tenant_id)
    return {"tenant_id": tenant_id.lower(), "removed": removed}


@admin_router.get("/mappings/{peer_system_id}", response_model=MappingResponse)
def reverse_lookup(
    peer_system_id: str,
    admin: dict = Depends(require_admin),
    store: TranslationStore = Depends(get_translation_store),
):
    if not is_peer_id(peer_system_id, store.peer_prefix):
        raise TenancyError(ErrorKind.INVALID_SCOPE_ID_FORMAT)

    tenant_id = store.reverse(peer_system_id)
    if tenant_id is None:
        raise TenancyError(ErrorKind.NO_PEER_MAPPING)
    return {"tenant_id": tenant_id, "peer_system_id": peer_system_id}


# ============ Memberships ============

@admin_router.post(
    "/tenants/{tenant_id}/members",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
def grant_membership(
    tenant_id: str,
    request: MembershipRequest,
    admin: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return MembershipRepository(db).grant(
        request.user_id,
        tenant_id,
        role=request.role,
        invited_by=admin["user_id"],
    )


@admin_router.patch("/tenants/{tenant_id}/members/{user_id}", response_model=MembershipResponse)
def change_membership_role(
    tenant_id: str,
    user_id: str,
    request: RoleChangeRequest,
    admin: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return MembershipRepository(db).change_role(user_id, tenant_id, request.role)


@admin_router.delete("/tenants/{tenant_id}/members/{user_id}")
def revoke_membership(
    tenant_id: str,
    user_id: str,
    admin: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    revoked = MembershipRepository(db).revoke(user_id, tenant_id)
    return {"user_id": user_id, "tenant_id": tenant_id.lower(), "revoked": revoked}
