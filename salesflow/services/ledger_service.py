from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from salesflow import money
from salesflow.errors import InvalidTransition, NotFound, OrderLocked, ValidationError
from salesflow.models import AccountsReceivable, Order, OrderStatus, Payment, PaymentStatus, ReceivableStatus
from salesflow.services.directory_service import get_order
from salesflow.state_machines import PAYMENT_MACHINE

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def derive_receivable_status(amount: Decimal, received: Decimal, minimum_payment: Decimal) -> ReceivableStatus:
    if received >= amount:
        return ReceivableStatus.PAID
    if minimum_payment > 0:
        return ReceivableStatus.PARTIAL if received >= minimum_payment else ReceivableStatus.PENDING
    return ReceivableStatus.PARTIAL if received > 0 else ReceivableStatus.PENDING


def order_minimum_payment(order: Order) -> Decimal:
    """Down payment plus shipping, or nothing when the order was sold without a down payment."""
    if order.down_payment and order.down_payment > 0:
        return money.quantize_money(money.add(order.down_payment, order.shipping_cost))
    return Decimal('0.00')


def _clean_method(method: str) -> str:
    cleaned = (method or '').strip().lower()
    if not cleaned:
        raise ValidationError('Payment method is required')
    return cleaned


def _positive_amount(amount: Decimal) -> Decimal:
    value = money.quantize_money(amount)
    if value <= 0:
        raise ValidationError('Payment amount must be greater than zero')
    return value


def get_order_receivable(db: Session, order_id: int) -> AccountsReceivable | None:
    return db.execute(
        select(AccountsReceivable).where(AccountsReceivable.order_id == order_id)
    ).scalar_one_or_none()


def _get_receivable(db: Session, receivable_id: int, *, for_update: bool = False) -> AccountsReceivable:
    stmt = select(AccountsReceivable).where(AccountsReceivable.id == receivable_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    receivable = db.execute(stmt).scalar_one_or_none()
    if not receivable:
        raise NotFound('AccountsReceivable', receivable_id)
    return receivable


def seed_order_receivable(db: Session, order: Order) -> AccountsReceivable:
    received = money.quantize_money(order.paid_value)
    minimum_payment = order_minimum_payment(order)
    receivable = AccountsReceivable(
        order_id=order.id,
        client_id=order.client_id,
        vendor_id=order.vendor_id,
        description=f'Order {order.order_number}',
        due_date=order.deadline,
        amount=order.total_value,
        received_amount=received,
        minimum_payment=minimum_payment,
        status=derive_receivable_status(order.total_value, received, minimum_payment),
        is_manual=False,
    )
    db.add(receivable)
    db.flush()
    return receivable


def _confirmed_total(db: Session, *criteria) -> Decimal:
    amounts = db.execute(
        select(Payment.amount).where(Payment.status == PaymentStatus.CONFIRMED, *criteria)
    ).scalars().all()
    return money.quantize_money(money.sum_money(amounts))


def _apply_received(receivable: AccountsReceivable, received: Decimal) -> None:
    if receivable.status == ReceivableStatus.CANCELLED:
        return
    receivable.received_amount = received
    receivable.status = derive_receivable_status(receivable.amount, received, receivable.minimum_payment)
    receivable.updated_at = _now()


def sync_order_payments(db: Session, order: Order) -> AccountsReceivable:
    """Re-derive the paid value and receivable state from every confirmed payment.

    The caller is expected to hold the order row lock.
    """
    paid = _confirmed_total(db, Payment.order_id == order.id)
    order.paid_value = paid
    order.updated_at = _now()

    receivable = get_order_receivable(db, order.id)
    if receivable is None:
        receivable = seed_order_receivable(db, order)
    else:
        _apply_received(receivable, paid)
    db.flush()
    return receivable


def record_payment(
    db: Session,
    order_id: int,
    amount: Decimal,
    method: str,
    *,
    transaction_id: str | None = None,
    paid_at: datetime | None = None,
    status: PaymentStatus = PaymentStatus.CONFIRMED,
) -> tuple[Order, AccountsReceivable]:
    value = _positive_amount(amount)
    method = _clean_method(method)
    order = get_order(db, order_id, for_update=True)
    if order.status == OrderStatus.CANCELLED:
        raise OrderLocked(f'Order {order.order_number} is cancelled and cannot take payments')

    receivable = get_order_receivable(db, order.id)
    payment = Payment(
        order_id=order.id,
        receivable_id=receivable.id if receivable else None,
        amount=value,
        method=method,
        status=status,
        transaction_id=(transaction_id or '').strip() or None,
        paid_at=paid_at or _now(),
    )
    db.add(payment)
    db.flush()

    receivable = sync_order_payments(db, order)
    logger.info(
        'payment_recorded',
        extra={
            'order_id': order.id,
            'payment_id': payment.id,
            'amount': value,
            'payment_status': status.value,
            'paid_value': order.paid_value,
            'receivable_status': receivable.status.value,
        },
    )
    return order, receivable


def _sync_manual_receipts(db: Session, receivable: AccountsReceivable) -> None:
    _apply_received(receivable, _confirmed_total(db, Payment.receivable_id == receivable.id))
    db.flush()


def _lock_payment(db: Session, payment_id: int) -> Payment:
    stmt = (
        select(Payment)
        .where(Payment.id == payment_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    payment = db.execute(stmt).scalar_one_or_none()
    if not payment:
        raise NotFound('Payment', payment_id)
    return payment


def set_payment_status(db: Session, payment_id: int, status: PaymentStatus) -> Payment:
    payment = db.get(Payment, payment_id)
    if not payment:
        raise NotFound('Payment', payment_id)

    # Lock the owner first, then re-read the payment under that lock.
    if payment.order_id is not None:
        order = get_order(db, payment.order_id, for_update=True)
        payment = _lock_payment(db, payment_id)
        PAYMENT_MACHINE.assert_transition(payment.status, status)
        payment.status = status
        db.flush()
        sync_order_payments(db, order)
    else:
        receivable = _get_receivable(db, payment.receivable_id, for_update=True)
        payment = _lock_payment(db, payment_id)
        PAYMENT_MACHINE.assert_transition(payment.status, status)
        payment.status = status
        db.flush()
        _sync_manual_receipts(db, receivable)

    logger.info('payment_status_changed', extra={'payment_id': payment.id, 'payment_status': status.value})
    return payment


def create_manual_receivable(
    db: Session,
    *,
    amount: Decimal,
    description: str,
    client_id: int | None = None,
    vendor_id: int | None = None,
    due_date: date | None = None,
    minimum_payment: Decimal = Decimal('0'),
) -> AccountsReceivable:
    value = _positive_amount(amount)
    minimum = money.quantize_money(minimum_payment)
    if minimum < 0:
        raise ValidationError('Minimum payment cannot be negative')
    if minimum > value:
        raise ValidationError('Minimum payment cannot exceed the receivable amount')
    cleaned = (description or '').strip()
    if not cleaned:
        raise ValidationError('Description is required')

    receivable = AccountsReceivable(
        client_id=client_id,
        vendor_id=vendor_id,
        description=cleaned,
        due_date=due_date,
        amount=value,
        received_amount=Decimal('0.00'),
        minimum_payment=minimum,
        status=derive_receivable_status(value, Decimal('0.00'), minimum),
        is_manual=True,
    )
    db.add(receivable)
    db.flush()
    return receivable


def record_manual_receipt(
    db: Session,
    receivable_id: int,
    amount: Decimal,
    method: str,
    *,
    transaction_id: str | None = None,
    paid_at: datetime | None = None,
) -> AccountsReceivable:
    value = _positive_amount(amount)
    method = _clean_method(method)
    receivable = _get_receivable(db, receivable_id, for_update=True)
    if not receivable.is_manual:
        raise ValidationError('Order receivables are settled through order payments')
    if receivable.status == ReceivableStatus.CANCELLED:
        raise InvalidTransition('AccountsReceivable', receivable.status, ReceivableStatus.PAID)

    db.add(
        Payment(
            receivable_id=receivable.id,
            amount=value,
            method=method,
            status=PaymentStatus.CONFIRMED,
            transaction_id=(transaction_id or '').strip() or None,
            paid_at=paid_at or _now(),
        )
    )
    db.flush()
    _sync_manual_receipts(db, receivable)
    logger.info(
        'manual_receipt_recorded',
        extra={'receivable_id': receivable.id, 'amount': value, 'receivable_status': receivable.status.value},
    )
    return receivable


def update_order_receivable_amount(db: Session, order: Order) -> AccountsReceivable:
    receivable = get_order_receivable(db, order.id)
    if receivable is None:
        return seed_order_receivable(db, order)
    if receivable.status != ReceivableStatus.CANCELLED:
        receivable.amount = order.total_value
        receivable.minimum_payment = order_minimum_payment(order)
        _apply_received(receivable, order.paid_value)
    db.flush()
    return receivable


def cancel_order_receivable(db: Session, order_id: int) -> AccountsReceivable | None:
    receivable = get_order_receivable(db, order_id)
    if receivable is None or receivable.status == ReceivableStatus.CANCELLED:
        return receivable
    receivable.status = ReceivableStatus.CANCELLED
    receivable.updated_at = _now()
    db.flush()
    return receivable
