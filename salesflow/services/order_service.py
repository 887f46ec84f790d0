from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from salesflow import money
from salesflow.errors import NotFound, OrderLocked, ValidationError
from salesflow.models import Order, OrderStatus, ProductionOrder, ProductionOrderStatus
from salesflow.services.commission_service import apply_order_status_to_commissions, recalculate_commissions
from salesflow.services.directory_service import get_order
from salesflow.services.ledger_service import cancel_order_receivable, update_order_receivable_amount
from salesflow.state_machines import ORDER_LOCKED_STATES, ORDER_MACHINE, PRODUCTION_ORDER_MACHINE

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def update_order_status(
    db: Session,
    order_id: int,
    status: OrderStatus,
    *,
    tracking_code: str | None = None,
) -> Order:
    order = get_order(db, order_id, for_update=True)
    ORDER_MACHINE.assert_transition(order.status, status)
    previous = order.status
    order.status = status
    if tracking_code is not None:
        order.tracking_code = tracking_code.strip() or None
    order.updated_at = _now()
    db.flush()

    apply_order_status_to_commissions(db, order, status)
    if status == OrderStatus.CANCELLED:
        cancel_order_receivable(db, order.id)

    logger.info(
        'order_status_changed',
        extra={'order_id': order.id, 'from_status': previous.value, 'to_status': status.value},
    )
    return order


def update_order_value(db: Session, order_id: int, total_value: Decimal) -> Order:
    value = money.quantize_money(total_value)
    if value < 0:
        raise ValidationError('Order value cannot be negative')

    order = get_order(db, order_id, for_update=True)
    if order.status in ORDER_LOCKED_STATES:
        raise OrderLocked(f'Order {order.order_number} is {order.status.value}; its value is frozen')
    if value == order.total_value:
        return order

    previous = order.total_value
    order.total_value = value
    order.remaining_amount = money.quantize_money(money.floor_zero(money.subtract(value, order.down_payment)))
    order.updated_at = _now()
    db.flush()

    update_order_receivable_amount(db, order)
    recalculate_commissions(db, order.id)
    logger.info(
        'order_value_changed',
        extra={'order_id': order.id, 'previous_value': previous, 'order_value': value},
    )
    return order


def update_production_order_status(
    db: Session,
    production_order_id: int,
    status: ProductionOrderStatus,
) -> ProductionOrder:
    production_order = db.get(ProductionOrder, production_order_id)
    if not production_order:
        raise NotFound('ProductionOrder', production_order_id)
    PRODUCTION_ORDER_MACHINE.assert_transition(production_order.status, status)
    production_order.status = status
    db.flush()
    return production_order
