"""
Order service.

Order numbers are unique per store, so lookups by number are always paired
with the tenant predicate.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import asc, desc, func
from sqlalchemy.exc import SQLAlchemyError

from commerce.base import Page, TenantScopedService
from commerce.models import Order
from commerce.schemas import OrderCreate, OrderFilters
from tenancy.config import ORDER_STATUSES
from tenancy.errors import ErrorKind, TenancyError

logger = logging.getLogger(__name__)


def _require_status(status: str):
    if status not in ORDER_STATUSES:
        raise TenancyError(
            ErrorKind.INVALID_INPUT,
            f"Invalid order status. Must be one of: {', '.join(ORDER_STATUSES)}",
        )


class OrderService(TenantScopedService):
    model = Order
    default_limit = 20

    def list_orders(self, tenant_id: str, filters: Optional[OrderFilters] = None) -> Page:
        filters = filters or OrderFilters()
        query = self._scoped_query(tenant_id)

        if filters.status is not None:
            _require_status(filters.status)
            query = query.filter(Order.status == filters.status)
        if filters.financial_status:
            query = query.filter(Order.financial_status == filters.financial_status)
        if filters.fulfillment_status:
            query = query.filter(Order.fulfillment_status == filters.fulfillment_status)

        if filters.customer_id:
            query = query.filter(Order.customer_id == filters.customer_id)
        if filters.customer_email:
            query = query.filter(Order.customer_email.ilike(f"%{filters.customer_email}%"))

        if filters.min_total is not None:
            query = query.filter(Order.total_amount >= filters.min_total)
        if filters.max_total is not None:
            query = query.filter(Order.total_amount <= filters.max_total)

        if filters.created_after:
            query = query.filter(Order.created_at >= filters.created_after)
        if filters.created_before:
            query = query.filter(Order.created_at <= filters.created_before)

        direction = asc if filters.sort_order == "asc" else desc
        try:
            return self._paginate(
                query,
                filters.limit,
                filters.offset,
                order_by=direction(getattr(Order, filters.order_by)),
            )
        except SQLAlchemyError as e:
            self._handle_db_error(e, "fetch orders", tenant_id)

    def get_order(self, tenant_id: str, order_id: str) -> Order:
        return self._get_scoped(tenant_id, order_id, "order")

    def get_order_by_number(self, tenant_id: str, order_number: str) -> Order:
        if not order_number:
            raise TenancyError(ErrorKind.INVALID_INPUT, "Order number is required")

        order = (
            self._scoped_query(tenant_id)
            .filter(Order.order_number == order_number)
            .first()
        )
        if order is None:
            raise TenancyError(ErrorKind.STORE_NOT_FOUND, "Order not found")
        return order

    def list_orders_by_customer(
        self,
        tenant_id: str,
        customer_id: str,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Page:
        if not customer_id:
            raise TenancyError(ErrorKind.INVALID_INPUT, "Customer ID is required")

        query = self._scoped_query(tenant_id).filter(Order.customer_id == customer_id)
        return self._paginate(query, limit, offset, order_by=desc(Order.created_at))

    def create_order(self, tenant_id: str, data: OrderCreate) -> Order:
        tenant_id = self._require_tenant_id(tenant_id)
        total = (
            data.subtotal_amount + data.tax_amount + data.shipping_amount
            - data.discount_amount
        )
        order = Order(
            tenant_id=tenant_id,
            order_number=data.order_number,
            customer_id=data.customer_id,
            customer_email=data.customer_email,
            customer_name=data.customer_name,
            subtotal_amount=data.subtotal_amount,
            tax_amount=data.tax_amount,
            shipping_amount=data.shipping_amount,
            discount_amount=data.discount_amount,
            total_amount=max(0, total),
            currency_code=data.currency_code.upper(),
            custom_metadata=data.metadata or {},
        )
        try:
            self.db.add(order)
            self.db.commit()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "create order", tenant_id)
        self.db.refresh(order)

        logger.info(f"Created order {order.order_number} for tenant {tenant_id}")
        return order

    def update_order_status(self, tenant_id: str, order_id: str, status: str) -> Order:
        _require_status(status)

        order = self._get_scoped(tenant_id, order_id, "order")
        previous = order.status
        order.status = status
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "update order status", tenant_id)
        self.db.refresh(order)

        logger.info(f"Order {order.id} status {previous} -> {status}")
        return order

    def get_order_stats(self, tenant_id: str) -> Dict[str, Any]:
        """Order counts per status and revenue totals for one store"""
        base = self._scoped_query(tenant_id)
        try:
            by_status = dict(
                base.with_entities(Order.status, func.count(Order.id))
                .group_by(Order.status)
                .all()
            )
            total_orders, total_revenue = base.with_entities(
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_amount), 0),
            ).one()
        except SQLAlchemyError as e:
            self._handle_db_error(e, "compute order stats", tenant_id)

        return {
            "total_orders": total_orders,
            "total_revenue": int(total_revenue),
            "average_order_value": int(total_revenue / total_orders) if total_orders else 0,
            "by_status": {status: by_status.get(status, 0) for status in ORDER_STATUSES},
        }
