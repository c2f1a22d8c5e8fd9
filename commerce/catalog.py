"""
Product catalog service.

All methods take the authorized tenant id first; results never include
records from other tenants or soft-deleted records.
"""

import logging
from typing import Optional

from sqlalchemy import asc, desc, or_
from sqlalchemy.exc import SQLAlchemyError

from commerce.base import Page, TenantScopedService
from commerce.models import Product
from commerce.schemas import ProductCreate, ProductFilters
from tenancy.config import PRODUCT_STATUS_MAP
from tenancy.errors import ErrorKind, TenancyError
from tenancy.models import utcnow

logger = logging.getLogger(__name__)

STORED_PRODUCT_STATUSES = ("active", "inactive", "pending", "suspended", "archived")


def to_stored_status(status: str) -> str:
    """Map a client-facing status onto the stored value"""
    stored = PRODUCT_STATUS_MAP.get(status, status)
    if stored not in STORED_PRODUCT_STATUSES:
        raise TenancyError(ErrorKind.INVALID_INPUT, f"Invalid product status: {status}")
    return stored


class ProductService(TenantScopedService):
    model = Product
    default_limit = 15

    def list_products(self, tenant_id: str, filters: Optional[ProductFilters] = None) -> Page:
        """
        List products of a store.

        Args:
            tenant_id: Authorized tenant UUID
            filters: Optional filters, sorting and pagination

        Returns:
            Page of Product objects with total count
        """
        filters = filters or ProductFilters()
        query = self._scoped_query(tenant_id)

        if filters.status:
            query = query.filter(Product.status == to_stored_status(filters.status))
            # Storefront view
            if filters.status == "published":
                query = query.filter(Product.is_published.is_(True))

        if filters.min_price is not None:
            query = query.filter(Product.price_amount >= filters.min_price)
        if filters.max_price is not None:
            query = query.filter(Product.price_amount <= filters.max_price)

        if filters.in_stock is True:
            query = query.filter(Product.quantity_available > 0)
        if filters.is_digital is not None:
            query = query.filter(Product.is_digital.is_(filters.is_digital))

        if filters.created_after:
            query = query.filter(Product.created_at >= filters.created_after)
        if filters.updated_after:
            query = query.filter(Product.updated_at >= filters.updated_after)

        if filters.q:
            pattern = f"%{filters.q}%"
            query = query.filter(
                or_(
                    Product.title.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.sku.ilike(pattern),
                )
            )

        direction = asc if filters.sort_order == "asc" else desc
        try:
            return self._paginate(
                query,
                filters.limit,
                filters.offset,
                order_by=direction(getattr(Product, filters.order_by)),
            )
        except SQLAlchemyError as e:
            self._handle_db_error(e, "fetch products", tenant_id)

    def get_product(self, tenant_id: str, product_id: str) -> Product:
        return self._get_scoped(tenant_id, product_id, "product")

    def create_product(self, tenant_id: str, data: ProductCreate) -> Product:
        tenant_id = self._require_tenant_id(tenant_id)
        status = to_stored_status(data.status)

        product = Product(
            tenant_id=tenant_id,
            title=data.title,
            slug=data.slug,
            sku=data.sku,
            description=data.description,
            status=status,
            is_published=status == "active",
            price_amount=data.price_amount,
            price_currency=data.price_currency,
            quantity_available=data.quantity_available,
            is_digital=data.is_digital,
            custom_metadata=data.metadata or {},
        )
        try:
            self.db.add(product)
            self.db.commit()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "create product", tenant_id)
        self.db.refresh(product)

        logger.info(f"Created product {product.id} for tenant {tenant_id}")
        return product

    def delete_product(self, tenant_id: str, product_id: str) -> Product:
        """Soft delete. The row stays but disappears from every scoped query."""
        product = self._get_scoped(tenant_id, product_id, "product")
        product.deleted_at = utcnow()
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "delete product", tenant_id)

        logger.info(f"Deleted product {product.id} for tenant {product.tenant_id}")
        return product
