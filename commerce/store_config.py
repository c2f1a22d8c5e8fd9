"""
Store configuration service.

Each tenant owns at most one configuration document (unique tenant_id).
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from commerce.base import TenantScopedService
from commerce.models import StoreConfig
from commerce.schemas import StoreConfigPayload
from tenancy.errors import ErrorKind, TenancyError
from tenancy.identifiers import canonical_uuid, is_uuid

logger = logging.getLogger(__name__)


class StoreConfigService(TenantScopedService):
    model = StoreConfig

    def _find(self, tenant_id: str) -> Optional[StoreConfig]:
        try:
            return self._scoped_query(tenant_id).first()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "fetch store configuration", tenant_id)

    @staticmethod
    def _apply(config: StoreConfig, data: StoreConfigPayload):
        config.version = data.version
        config.store_metadata = data.metadata.to_document()
        config.theme = data.theme.to_document()
        config.layout = data.layout.to_document()
        config.features = data.features.to_document()
        config.integrations = data.integrations.to_document()
        config.seo = data.seo.to_document()

    def get_config(self, tenant_id: str) -> StoreConfig:
        config = self._find(tenant_id)
        if config is None:
            raise TenancyError(ErrorKind.STORE_NOT_FOUND, "Store configuration not found")
        return config

    def create_config(self, tenant_id: str, data: StoreConfigPayload) -> StoreConfig:
        tenant_id = self._require_tenant_id(tenant_id)
        if self._find(tenant_id) is not None:
            raise TenancyError(
                ErrorKind.CONFLICT,
                "Store configuration already exists for this store",
            )

        config = StoreConfig(tenant_id=tenant_id)
        self._apply(config, data)
        try:
            self.db.add(config)
            self.db.commit()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "create store configuration", tenant_id)
        self.db.refresh(config)

        logger.info(f"Created store configuration for tenant {tenant_id}")
        return config

    def update_config(
        self,
        tenant_id: str,
        data: StoreConfigPayload,
        peer_system_id: Optional[str] = None,
    ) -> StoreConfig:
        """
        Replace the configuration document, creating it if missing.

        A store_id in the payload must name the authorized store, either by
        its UUID or by its linked peer id.

        Raises:
            TenancyError(STORE_ID_MISMATCH): payload names a different store
        """
        tenant_id = self._require_tenant_id(tenant_id)

        if data.store_id is not None:
            claimed = canonical_uuid(data.store_id) if is_uuid(data.store_id) else data.store_id
            if claimed not in (tenant_id, peer_system_id):
                logger.warning(
                    f"Store ID mismatch: tenant {tenant_id} payload named {data.store_id}"
                )
                raise TenancyError(ErrorKind.STORE_ID_MISMATCH)

        config = self._find(tenant_id)
        if config is None:
            config = StoreConfig(tenant_id=tenant_id)
            self.db.add(config)
        self._apply(config, data)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "update store configuration", tenant_id)
        self.db.refresh(config)
        return config

    def delete_config(self, tenant_id: str) -> bool:
        config = self._find(tenant_id)
        if config is None:
            raise TenancyError(ErrorKind.STORE_NOT_FOUND, "Store configuration not found")

        try:
            self.db.delete(config)
            self.db.commit()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "delete store configuration", tenant_id)

        logger.info(f"Deleted store configuration for tenant {config.tenant_id}")
        return True

    @staticmethod
    def validate_config(document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Check a configuration document without saving it.

        Returns:
            {"is_valid": bool, "errors": [{path, message, code}], "warnings": []}
        """
        try:
            StoreConfigPayload.model_validate(document)
        except ValidationError as e:
            errors = [
                {
                    "path": ".".join(str(part) for part in err["loc"]),
                    "message": err["msg"],
                    "code": err["type"],
                }
                for err in e.errors()
            ]
            return {"is_valid": False, "errors": errors, "warnings": []}
        return {"is_valid": True, "errors": [], "warnings": []}
