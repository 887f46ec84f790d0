from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from salesflow.config import settings
from salesflow.errors import ClientRequired, ConversionConflict, NotApproved, NotFound
from salesflow.models import (
    Budget,
    BudgetItem,
    BudgetStatus,
    Client,
    Order,
    OrderStatus,
    ProductionOrder,
    ProductionOrderItem,
    ProductionOrderStatus,
)
from salesflow.services.budget_aggregation_service import BudgetTotals, aggregate_budget_total
from salesflow.services.budget_service import budget_input_for
from salesflow.services.commission_service import create_order_commissions
from salesflow.services.directory_service import get_client, get_user
from salesflow.services.ledger_service import seed_order_receivable
from salesflow.services.producer_ref import External, producer_ref_from_column
from salesflow.services.sequence_service import allocate_document_number
from salesflow.state_machines import BUDGET_CONVERTIBLE_STATES

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _claim_budget(db: Session, budget_id: int, client_id: int, at: datetime) -> None:
    # Only one transaction can move the budget out of an approved state.
    result = db.execute(
        update(Budget)
        .where(Budget.id == budget_id, Budget.status.in_(tuple(BUDGET_CONVERTIBLE_STATES)))
        .values(status=BudgetStatus.CONVERTED, client_id=client_id, converted_at=at, updated_at=at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConversionConflict(f'Budget {budget_id} was already converted')


def group_items_by_producer(items: list[BudgetItem]) -> dict[int, list[BudgetItem]]:
    """External producers in first-appearance order; in-house items are left out."""
    grouped: dict[int, list[BudgetItem]] = {}
    for item in items:
        ref = producer_ref_from_column(item.producer_id)
        if isinstance(ref, External):
            grouped.setdefault(ref.producer_id, []).append(item)
    return grouped


def _build_order(
    db: Session,
    budget: Budget,
    client: Client,
    totals: BudgetTotals,
    deadline: date | None,
    at: datetime,
) -> Order:
    info = budget.payment_info
    order = Order(
        order_number=allocate_document_number(
            db, prefix=settings.order_number_prefix, column=Order.order_number, at=at
        ),
        budget_id=budget.id,
        client_id=client.id,
        vendor_id=budget.vendor_id,
        title=budget.title,
        description=budget.description,
        contact_name=client.name,
        contact_phone=client.phone,
        contact_email=client.email,
        contact_address=client.address,
        payment_method_id=info.payment_method_id if info else None,
        installments=info.installments if info else 1,
        delivery_type=budget.delivery_type,
        discount_type=budget.discount_type,
        discount_value=budget.discount_value,
        discount_amount=totals.discount_amount,
        shipping_cost=totals.shipping,
        interest_amount=totals.interest,
        down_payment=totals.down_payment,
        remaining_amount=totals.remaining,
        total_value=totals.total,
        status=OrderStatus.PENDING,
        deadline=deadline,
    )
    db.add(order)
    db.flush()
    return order


def _build_production_orders(db: Session, order: Order, items: list[BudgetItem]) -> list[ProductionOrder]:
    production_orders: list[ProductionOrder] = []
    for producer_id, producer_items in group_items_by_producer(items).items():
        get_user(db, producer_id)
        production_orders.append(
            ProductionOrder(
                order_id=order.id,
                producer_id=producer_id,
                status=ProductionOrderStatus.PENDING,
                deadline=order.deadline,
                items=[
                    ProductionOrderItem(
                        budget_item_id=item.id,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        customization_value=item.customization_value,
                        customization_description=item.customization_description,
                        width=item.width,
                        height=item.height,
                        depth=item.depth,
                        notes=item.notes,
                    )
                    for item in producer_items
                ],
            )
        )
    db.add_all(production_orders)
    db.flush()
    return production_orders


def convert_budget_to_order(
    db: Session,
    budget_id: int,
    client_id: int | None,
    delivery_date: date | None = None,
    *,
    at: datetime | None = None,
) -> Order:
    """Turn an approved budget into an order with its receivable, production orders and commissions.

    Everything after the status gate runs in a savepoint: on any failure the
    order, receivable, production orders and commissions are discarded, the
    budget keeps its approved status, and the error propagates. The caller
    commits.
    """
    budget = db.get(Budget, budget_id)
    if not budget:
        raise NotFound('Budget', budget_id)
    if client_id is None:
        raise ClientRequired(f'Budget {budget.budget_number} needs a client before it can become an order')
    if budget.status == BudgetStatus.CONVERTED:
        raise ConversionConflict(f'Budget {budget.budget_number} was already converted')
    if budget.status not in BUDGET_CONVERTIBLE_STATES:
        raise NotApproved(f'Budget {budget.budget_number} is {budget.status.value}, not approved')

    client = get_client(db, client_id)
    totals = aggregate_budget_total(budget_input_for(db, budget))
    moment = at or _now()

    try:
        with db.begin_nested():
            _claim_budget(db, budget.id, client.id, moment)
            order = _build_order(db, budget, client, totals, delivery_date or budget.delivery_deadline, moment)
            seed_order_receivable(db, order)
            production_orders = _build_production_orders(db, order, list(budget.items))
            commissions = create_order_commissions(db, order)
    finally:
        # The gate bypasses the identity map; reload the budget either way.
        db.expire(budget)

    logger.info(
        'budget_converted',
        extra={
            'budget_id': budget_id,
            'order_id': order.id,
            'order_number': order.order_number,
            'order_value': order.total_value,
            'production_orders': len(production_orders),
            'commissions': len(commissions),
        },
    )
    return order
