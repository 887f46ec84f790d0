from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from salesflow import money
from salesflow.errors import NotFound, OrderLocked
from salesflow.models import Commission, CommissionStatus, CommissionType, Order, OrderStatus
from salesflow.services.directory_service import (
    get_order,
    get_partner_pool_rate,
    get_vendor_commission_rate,
    is_vendor_commissionable,
    list_active_partners,
)
from salesflow.state_machines import COMMISSION_MACHINE

logger = logging.getLogger(__name__)

# Matches the scale of commissions.percentage.
PERCENTAGE_PLACES = Decimal('0.000001')


@dataclass(frozen=True)
class CommissionTotals:
    pending: Decimal
    confirmed: Decimal
    paid: Decimal
    total: Decimal


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def commission_amount(order_value: Decimal, percentage: Decimal) -> Decimal:
    return money.quantize_money(money.percentage_of(order_value, percentage))


def partner_share(pool_rate: Decimal, partner_count: int) -> Decimal:
    """Equal slice of the partner pool, at the precision the percentage column keeps."""
    return money.divide(pool_rate, partner_count).quantize(PERCENTAGE_PLACES, rounding=ROUND_HALF_UP)


def list_order_commissions(db: Session, order_id: int) -> list[Commission]:
    return db.execute(
        select(Commission).where(Commission.order_id == order_id).order_by(Commission.id.asc())
    ).scalars().all()


def create_order_commissions(db: Session, order: Order) -> list[Commission]:
    """Create the vendor commission and the partner pool split for a new order.

    Calling it again for an order that already has commissions returns the
    existing rows unchanged.
    """
    existing = list_order_commissions(db, order.id)
    if existing:
        return existing

    created: list[Commission] = []
    if is_vendor_commissionable(db, order.vendor_id):
        rate = get_vendor_commission_rate(db, order.vendor_id)
        created.append(
            Commission(
                order_id=order.id,
                user_id=order.vendor_id,
                type=CommissionType.VENDOR,
                percentage=rate,
                amount=commission_amount(order.total_value, rate),
                status=CommissionStatus.PENDING,
                order_value=order.total_value,
                order_number=order.order_number,
            )
        )

    partners = list_active_partners(db)
    if partners:
        share = partner_share(get_partner_pool_rate(db), len(partners))
        for partner in partners:
            created.append(
                Commission(
                    order_id=order.id,
                    user_id=partner.id,
                    type=CommissionType.PARTNER,
                    percentage=share,
                    amount=commission_amount(order.total_value, share),
                    status=CommissionStatus.CONFIRMED,
                    order_value=order.total_value,
                    order_number=order.order_number,
                )
            )

    db.add_all(created)
    db.flush()
    logger.info(
        'commissions_created',
        extra={'order_id': order.id, 'count': len(created), 'order_value': order.total_value},
    )
    return created


def recalculate_commissions(db: Session, order_id: int) -> list[Commission]:
    order = get_order(db, order_id, for_update=True)
    if order.status == OrderStatus.CANCELLED:
        raise OrderLocked(f'Order {order.order_number} is cancelled; its commissions cannot be recalculated')

    commissions = list_order_commissions(db, order.id)
    if not commissions:
        return create_order_commissions(db, order)

    updated = 0
    for commission in commissions:
        if commission.status == CommissionStatus.CANCELLED:
            continue
        if commission.order_value == order.total_value:
            continue
        commission.order_value = order.total_value
        commission.amount = commission_amount(order.total_value, commission.percentage)
        commission.order_number = order.order_number
        updated += 1

    db.flush()
    if updated:
        logger.info(
            'commissions_recalculated',
            extra={'order_id': order.id, 'updated': updated, 'order_value': order.total_value},
        )
    return commissions


def apply_order_status_to_commissions(db: Session, order: Order, status: OrderStatus) -> list[Commission]:
    commissions = list_order_commissions(db, order.id)
    changed: list[Commission] = []
    if status == OrderStatus.DELIVERED:
        for commission in commissions:
            if commission.type == CommissionType.VENDOR and commission.status == CommissionStatus.PENDING:
                commission.status = CommissionStatus.CONFIRMED
                changed.append(commission)
    elif status == OrderStatus.CANCELLED:
        for commission in commissions:
            if commission.status == CommissionStatus.CANCELLED:
                continue
            COMMISSION_MACHINE.assert_transition(commission.status, CommissionStatus.CANCELLED)
            commission.status = CommissionStatus.CANCELLED
            commission.amount = Decimal('0.00')
            changed.append(commission)

    if changed:
        db.flush()
        logger.info(
            'commissions_status_applied',
            extra={'order_id': order.id, 'order_status': status.value, 'changed': len(changed)},
        )
    return changed


def mark_commission_paid(db: Session, commission_id: int, *, at: datetime | None = None) -> Commission:
    commission = db.get(Commission, commission_id)
    if not commission:
        raise NotFound('Commission', commission_id)
    COMMISSION_MACHINE.assert_transition(commission.status, CommissionStatus.PAID)
    commission.status = CommissionStatus.PAID
    commission.paid_at = at or _now()
    db.flush()
    logger.info('commission_paid', extra={'commission_id': commission.id, 'amount': commission.amount})
    return commission


def commission_totals_for_payee(db: Session, user_id: int) -> CommissionTotals:
    rows = db.execute(
        select(Commission.status, Commission.amount).where(
            Commission.user_id == user_id,
            Commission.status != CommissionStatus.CANCELLED,
        )
    ).all()
    by_status: dict[CommissionStatus, list[Decimal]] = {}
    for status, amount in rows:
        by_status.setdefault(status, []).append(amount)

    pending = money.quantize_money(money.sum_money(by_status.get(CommissionStatus.PENDING, [])))
    confirmed = money.quantize_money(money.sum_money(by_status.get(CommissionStatus.CONFIRMED, [])))
    paid = money.quantize_money(money.sum_money(by_status.get(CommissionStatus.PAID, [])))
    return CommissionTotals(
        pending=pending,
        confirmed=confirmed,
        paid=paid,
        total=money.quantize_money(money.sum_money([pending, confirmed, paid])),
    )
