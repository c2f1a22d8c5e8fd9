"""
Pydantic schemas for the tenancy API.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tenancy.config import MEMBER_ROLES
from tenancy.identifiers import is_uuid


# ============ Request Schemas ============

class TenantCreateRequest(BaseModel):
    """
    Onboard a new store tenant.

    Example:
        {"subdomain": "acme", "name": "Acme Outfitters"}
    """
    subdomain: str = Field(..., min_length=3, max_length=63, pattern=r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$")
    name: str = Field(..., min_length=1, max_length=100)
    tenant_id: Optional[str] = Field(None, description="Explicit tenant UUID (generated when omitted)")
    peer_system_id: Optional[str] = Field(None, description="Peer store id to link on creation")

    @field_validator("tenant_id")
    def validate_tenant_id(cls, v):
        if v is not None and not is_uuid(v):
            raise ValueError(f"Invalid UUID: {v}")
        return v


class MappingRequest(BaseModel):
    peer_system_id: str = Field(..., min_length=1, max_length=128)


class MembershipRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=36)
    role: str = Field("viewer", description="owner | admin | editor | viewer | customer")

    @field_validator("role")
    def validate_role(cls, v):
        if v not in MEMBER_ROLES:
            raise ValueError(f"Invalid role. Expected one of: {', '.join(MEMBER_ROLES)}")
        return v


class RoleChangeRequest(BaseModel):
    role: str

    @field_validator("role")
    def validate_role(cls, v):
        if v not in MEMBER_ROLES:
            raise ValueError(f"Invalid role. Expected one of: {', '.join(MEMBER_ROLES)}")
        return v


# ============ Response Schemas ============

class StoreContextResponse(BaseModel):
    """Authorized request context as seen by handlers"""
    tenant_id: str
    peer_system_id: Optional[str] = None
    user_id: str


class TenantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    subdomain: str
    name: str
    peer_system_id: Optional[str] = None
    linked_at: Optional[datetime] = None
    unlinked_at: Optional[datetime] = None
    status: str
    created_at: datetime


class MappingResponse(BaseModel):
    tenant_id: str
    peer_system_id: Optional[str] = None
    linked_at: Optional[datetime] = None


class MembershipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    tenant_id: str
    role: str
    is_active: bool
    invited_by: Optional[str] = None
    created_at: datetime


class MyStoresResponse(BaseModel):
    stores: List[MembershipResponse]
    count: int
