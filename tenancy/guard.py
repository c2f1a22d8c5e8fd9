"""
Store authorization guard.

require_store is the FastAPI dependency every tenant-scoped route declares.
It aborts the request with HTTPException before the handler runs when the
scope id is missing, malformed, unresolvable or unauthorized, and otherwise
hands the handler an Authorized context.

Usage:
    @router.get("/api/products")
    def list_products(store: Authorized = Depends(require_store)):
        ...
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request
from loguru import logger
from sqlalchemy.orm import Session

from auth.session import get_session_user
from tenancy.config import TenancyConfig
from tenancy.database import get_db
from tenancy.repository import MembershipRepository, TranslationStore
from tenancy.translator import Authorized, Rejected, TenantIdTranslator, Unvalidated


def get_tenancy_config(request: Request) -> TenancyConfig:
    return request.app.state.tenancy_config


def get_raw_scope_id(
    request: Request,
    config: TenancyConfig = Depends(get_tenancy_config),
) -> Optional[str]:
    """
    Dependency: Raw scope header value, untrusted and unvalidated.
    """
    return request.headers.get(config.store_id_header)


def get_translator(
    db: Session = Depends(get_db),
    config: TenancyConfig = Depends(get_tenancy_config),
) -> TenantIdTranslator:
    store = TranslationStore(db, config.peer_id_prefix)
    return TenantIdTranslator(store, MembershipRepository(db), config.peer_id_prefix)


def require_store(
    raw_scope_id: Optional[str] = Depends(get_raw_scope_id),
    user: Optional[dict] = Depends(get_session_user),
    translator: TenantIdTranslator = Depends(get_translator),
) -> Authorized:
    """
    Dependency: Resolve and authorize the requested store.

    Raises:
        HTTPException: with detail {"code", "message"} on the first failed check
    """
    context = Unvalidated(
        raw_scope_id=raw_scope_id,
        user_id=user["user_id"] if user else None,
    )
    result = translator.evaluate(context)

    if isinstance(result, Rejected):
        logger.warning(
            f"[STORE_GUARD] Rejected store_id={context.raw_scope_id!r} "
            f"user={context.user_id} code={result.kind.code}"
        )
        raise HTTPException(status_code=result.status_code, detail=result.to_detail())

    logger.debug(
        f"[STORE_GUARD] Authorized user={result.user_id} tenant={result.tenant_id} "
        f"peer={result.peer_system_id}"
    )
    return result
