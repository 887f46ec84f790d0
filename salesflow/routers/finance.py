from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from salesflow.auth import Principal, require_role
from salesflow.db import get_db
from salesflow.dependencies import to_http_exception
from salesflow.errors import SalesflowError
from salesflow.models import UserRole
from salesflow.presenters import commission_dict, commission_totals_dict, payment_dict, receivable_dict
from salesflow.schemas import ManualReceivablePayload, PaymentPayload, PaymentStatusPayload
from salesflow.services.commission_service import commission_totals_for_payee, mark_commission_paid
from salesflow.services.ledger_service import create_manual_receivable, record_manual_receipt, set_payment_status

router = APIRouter(prefix='/api', tags=['finance'])
finance_access = require_role(UserRole.ADMIN, UserRole.FINANCE)
payee_access = require_role(UserRole.ADMIN, UserRole.FINANCE, UserRole.VENDOR, UserRole.PARTNER)


@router.post('/receivables', status_code=201)
def create_receivable(
    payload: ManualReceivablePayload,
    db: Session = Depends(get_db),
    _: Principal = Depends(finance_access),
):
    try:
        receivable = create_manual_receivable(
            db,
            amount=payload.amount,
            description=payload.description,
            client_id=payload.client_id,
            vendor_id=payload.vendor_id,
            due_date=payload.due_date,
            minimum_payment=payload.minimum_payment,
        )
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return receivable_dict(receivable)


@router.post('/receivables/{receivable_id}/receipts', status_code=201)
def add_receipt(
    receivable_id: int,
    payload: PaymentPayload,
    db: Session = Depends(get_db),
    _: Principal = Depends(finance_access),
):
    try:
        receivable = record_manual_receipt(
            db,
            receivable_id,
            payload.amount,
            payload.method,
            transaction_id=payload.transaction_id,
            paid_at=payload.paid_at,
        )
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return receivable_dict(receivable)


@router.post('/payments/{payment_id}/status')
def change_payment_status(
    payment_id: int,
    payload: PaymentStatusPayload,
    db: Session = Depends(get_db),
    _: Principal = Depends(finance_access),
):
    try:
        payment = set_payment_status(db, payment_id, payload.status)
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return payment_dict(payment)


@router.post('/commissions/{commission_id}/pay')
def pay_commission(commission_id: int, db: Session = Depends(get_db), _: Principal = Depends(finance_access)):
    try:
        commission = mark_commission_paid(db, commission_id)
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return commission_dict(commission)


@router.get('/commissions/me/totals')
def my_commission_totals(db: Session = Depends(get_db), principal: Principal = Depends(payee_access)):
    return commission_totals_dict(commission_totals_for_payee(db, principal.id))
