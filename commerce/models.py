"""
Database models for tenant-scoped commerce data.

Every table carries a tenant_id column. Services never read these tables
without an equality predicate on it (see commerce/base.py).

Models:
- Product: Catalog item (soft-deleted via deleted_at)
- Order: Customer order (soft-deleted via deleted_at)
- StoreConfig: One configuration document per tenant
"""

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index,
    Integer, String, Text, UniqueConstraint, desc,
)

from tenancy.models import Base, new_uuid, utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_uuid)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)
    sku = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="inactive")
    is_published = Column(Boolean, nullable=False, default=False)

    # Amounts in minor currency units
    price_amount = Column(Integer, nullable=False, default=0)
    price_currency = Column(String(3), nullable=False, default="USD")
    quantity_available = Column(Integer, nullable=False, default=0)
    is_digital = Column(Boolean, nullable=False, default=False)

    custom_metadata = Column(JSON, nullable=True, default=lambda: {})

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "slug", name="uq_products_tenant_slug"),
        Index("idx_products_tenant_created", tenant_id, desc(created_at)),
        Index("idx_products_tenant_status", tenant_id, status),
        CheckConstraint("status IN ('active', 'inactive', 'pending', 'suspended', 'archived')"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, tenant_id={self.tenant_id}, title='{self.title}')>"

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "title": self.title,
            "slug": self.slug,
            "sku": self.sku,
            "description": self.description,
            "status": self.status,
            "is_published": self.is_published,
            "price_amount": self.price_amount,
            "price_currency": self.price_currency,
            "quantity_available": self.quantity_available,
            "is_digital": self.is_digital,
            "custom_metadata": self.custom_metadata or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_uuid)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    order_number = Column(String(50), nullable=False)
    customer_id = Column(String(36), nullable=True)
    customer_email = Column(String(255), nullable=False)
    customer_name = Column(String(255), nullable=True)

    status = Column(String(20), nullable=False, default="pending")
    financial_status = Column(String(30), nullable=False, default="pending")
    fulfillment_status = Column(String(30), nullable=False, default="unfulfilled")

    total_amount = Column(Integer, nullable=False, default=0)
    subtotal_amount = Column(Integer, nullable=False, default=0)
    tax_amount = Column(Integer, nullable=False, default=0)
    shipping_amount = Column(Integer, nullable=False, default=0)
    discount_amount = Column(Integer, nullable=False, default=0)
    currency_code = Column(String(3), nullable=False, default="USD")

    custom_metadata = Column(JSON, nullable=True, default=lambda: {})

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        # Order numbers are only unique inside a store
        UniqueConstraint("tenant_id", "order_number", name="uq_orders_tenant_number"),
        Index("idx_orders_tenant_created", tenant_id, desc(created_at)),
        Index("idx_orders_tenant_customer", tenant_id, customer_id),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'processing', 'shipped', "
            "'delivered', 'cancelled', 'returned')"
        ),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, tenant_id={self.tenant_id}, number='{self.order_number}')>"

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "order_number": self.order_number,
            "customer_id": self.customer_id,
            "customer_email": self.customer_email,
            "customer_name": self.customer_name,
            "status": self.status,
            "financial_status": self.financial_status,
            "fulfillment_status": self.fulfillment_status,
            "total_amount": self.total_amount,
            "subtotal_amount": self.subtotal_amount,
            "tax_amount": self.tax_amount,
            "shipping_amount": self.shipping_amount,
            "discount_amount": self.discount_amount,
            "currency_code": self.currency_code,
            "custom_metadata": self.custom_metadata or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class StoreConfig(Base):
    """One configuration document per tenant (unique tenant_id)"""

    __tablename__ = "store_configs"

    id = Column(String(36), primary_key=True, default=new_uuid)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    version = Column(String(20), nullable=False, default="1.0.0")
    store_metadata = Column(JSON, nullable=False, default=lambda: {})
    theme = Column(JSON, nullable=False, default=lambda: {})
    layout = Column(JSON, nullable=False, default=lambda: {})
    features = Column(JSON, nullable=False, default=lambda: {})
    integrations = Column(JSON, nullable=False, default=lambda: {})
    seo = Column(JSON, nullable=True, default=lambda: {})

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "store_id": self.tenant_id,
            "version": self.version,
            "metadata": self.store_metadata or {},
            "theme": self.theme or {},
            "layout": self.layout or {},
            "features": self.features or {},
            "integrations": self.integrations or {},
            "seo": self.seo or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
