"""
Error taxonomy for tenant-scoped requests.

Codes are stable and client-visible. Each ErrorKind carries the HTTP status
it is rendered with.
"""

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class ErrorKind(Enum):
    MISSING_SCOPE_ID = ("MISSING_SCOPE_ID", 400)
    INVALID_SCOPE_ID_FORMAT = ("INVALID_SCOPE_ID_FORMAT", 400)
    NO_PEER_MAPPING = ("NO_PEER_MAPPING", 404)
    UNAUTHENTICATED = ("UNAUTHENTICATED", 401)
    NO_STORE_ACCESS = ("NO_STORE_ACCESS", 403)
    STORE_NOT_FOUND = ("STORE_NOT_FOUND", 404)
    CONFLICT = ("CONFLICT", 409)
    INVALID_RECORD_ID = ("INVALID_RECORD_ID", 400)
    INVALID_INPUT = ("INVALID_INPUT", 400)
    STORE_ID_MISMATCH = ("STORE_ID_MISMATCH", 400)
    FORBIDDEN_ROLE = ("FORBIDDEN_ROLE", 403)
    INTERNAL_ERROR = ("INTERNAL_ERROR", 500)

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def status_code(self) -> int:
        return self.value[1]


DEFAULT_MESSAGES = {
    ErrorKind.MISSING_SCOPE_ID: (
        "Missing x-store-id header. Tenant-scoped requests must name a store "
        "by UUID or by peer store id (store_XXXX)."
    ),
    ErrorKind.INVALID_SCOPE_ID_FORMAT: (
        "Invalid store ID format. Expected a UUID "
        "(123e4567-e89b-12d3-a456-426614174000) or a peer store id "
        "(store_01HQWE1234567890)."
    ),
    ErrorKind.NO_PEER_MAPPING: "No store is linked to this peer store id",
    ErrorKind.UNAUTHENTICATED: "Authentication is required to perform this action",
    ErrorKind.NO_STORE_ACCESS: "User does not have access to this store",
    ErrorKind.STORE_NOT_FOUND: "Resource not found",
    ErrorKind.CONFLICT: "Resource already exists",
    ErrorKind.INVALID_RECORD_ID: "Invalid record ID format. Expected UUID format.",
    ErrorKind.INVALID_INPUT: "Invalid input",
    ErrorKind.STORE_ID_MISMATCH: "Store ID in payload does not match the authorized store",
    ErrorKind.FORBIDDEN_ROLE: "Insufficient permissions",
    ErrorKind.INTERNAL_ERROR: "Internal server error",
}


class TenancyError(Exception):
    """Domain failure raised by repositories and data services"""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.kind.code, "message": self.message}


def error_detail(kind: ErrorKind, message: Optional[str] = None) -> Dict[str, Any]:
    return {"code": kind.code, "message": message or DEFAULT_MESSAGES[kind]}


async def tenancy_error_handler(request: Request, exc: TenancyError) -> JSONResponse:
    """FastAPI exception handler rendering TenancyError like HTTPException"""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})
