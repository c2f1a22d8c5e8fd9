"""
Base class for tenant-scoped data services.

Every query a service builds starts from _scoped_query(), which applies the
tenant_id equality predicate (and the soft-delete predicate where the model
has one) before any caller-supplied filter. Records owned by another tenant
are therefore indistinguishable from records that do not exist.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from tenancy.config import TenancyConfig, get_page_limit
from tenancy.errors import ErrorKind, TenancyError
from tenancy.identifiers import canonical_uuid, is_uuid

logger = logging.getLogger(__name__)


@dataclass
class Page:
    """One page of tenant-scoped results"""

    items: List[Any]
    count: int
    limit: int
    offset: int
    has_more: bool = field(init=False)

    def __post_init__(self):
        self.has_more = self.offset + self.limit < self.count

    def to_dict(self, key: str = "items") -> Dict[str, Any]:
        return {
            key: [item.to_dict() for item in self.items],
            "count": self.count,
            "limit": self.limit,
            "offset": self.offset,
            "has_more": self.has_more,
        }


class TenantScopedService:
    """
    Shared isolation helpers for data services.

    Subclasses set `model` to the mapped class they serve and
    `default_limit` to their page size.
    """

    model = None
    default_limit = 20

    def __init__(self, db: Session, config: Optional[TenancyConfig] = None):
        self.db = db
        self.config = config or TenancyConfig()

    @property
    def context(self) -> str:
        return type(self).__name__

    # ==================== GUARD CLAUSES ====================

    def _require_tenant_id(self, tenant_id: str) -> str:
        """Re-validate the tenant id before any query is built"""
        if not tenant_id:
            raise TenancyError(
                ErrorKind.MISSING_SCOPE_ID,
                f"{self.context}: Store ID is required",
            )
        if not is_uuid(tenant_id):
            raise TenancyError(
                ErrorKind.INVALID_SCOPE_ID_FORMAT,
                f"{self.context}: Invalid store ID format. Expected UUID format.",
            )
        return canonical_uuid(tenant_id)

    def _require_record_id(self, record_id: str, label: str = "record") -> str:
        if not record_id or not is_uuid(record_id):
            raise TenancyError(
                ErrorKind.INVALID_RECORD_ID,
                f"Invalid {label} ID format. Expected UUID format.",
            )
        return canonical_uuid(record_id)

    # ==================== QUERY ISOLATION ====================

    def _scoped_query(self, tenant_id: str, model=None) -> Query:
        """Base query with the mandatory tenant predicate applied"""
        model = model or self.model
        tenant_id = self._require_tenant_id(tenant_id)

        query = self.db.query(model).filter(model.tenant_id == tenant_id)
        if hasattr(model, "deleted_at"):
            query = query.filter(model.deleted_at.is_(None))
        return query

    def _get_scoped(self, tenant_id: str, record_id: str, label: str = "record"):
        """
        Fetch one record owned by tenant_id.

        Raises:
            TenancyError(STORE_NOT_FOUND): record missing or owned by another tenant
        """
        record_id = self._require_record_id(record_id, label)
        try:
            record = (
                self._scoped_query(tenant_id)
                .filter(self.model.id == record_id)
                .first()
            )
        except SQLAlchemyError as e:
            self._handle_db_error(e, f"get {label}", tenant_id)

        if record is None:
            raise TenancyError(ErrorKind.STORE_NOT_FOUND, f"{label.capitalize()} not found")
        return record

    def _paginate(
        self,
        query: Query,
        limit: Optional[int],
        offset: Optional[int],
        order_by=None,
    ) -> Page:
        """Count and slice the same tenant-filtered query"""
        limit = get_page_limit(limit, self.config, self.default_limit)
        offset = max(0, int(offset or 0))

        count = query.order_by(None).count()
        if order_by is not None:
            query = query.order_by(order_by)
        items = query.offset(offset).limit(limit).all()

        return Page(items=items, count=count, limit=limit, offset=offset)

    # ==================== ERROR HANDLING ====================

    def _handle_db_error(self, error: Exception, operation: str, tenant_id: str = None):
        """
        Log a storage failure with context and re-raise it as a TenancyError.
        Storage internals never reach the caller.
        """
        self.db.rollback()

        if isinstance(error, IntegrityError):
            logger.warning(
                f"{self.context}: integrity violation during {operation} "
                f"(tenant={tenant_id}): {error.orig}"
            )
            raise TenancyError(ErrorKind.CONFLICT) from error

        logger.error(
            f"{self.context}: database error during {operation} "
            f"(tenant={tenant_id}): {error}"
        )
        raise TenancyError(
            ErrorKind.INTERNAL_ERROR,
            f"{self.context}: Failed to {operation}",
        ) from error
