from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from salesflow.auth import Principal, require_role
from salesflow.db import get_db
from salesflow.dependencies import get_client_ip, to_http_exception
from salesflow.errors import SalesflowError
from salesflow.models import ProductionOrder, UserRole
from salesflow.presenters import commission_dict, order_dict, production_order_dict, receivable_dict
from salesflow.schemas import OrderStatusPayload, OrderValuePayload, PaymentPayload, ProductionOrderStatusPayload
from salesflow.services.commission_service import recalculate_commissions
from salesflow.services.ledger_service import record_payment
from salesflow.services.order_service import update_order_status, update_order_value, update_production_order_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api', tags=['orders'])
finance_access = require_role(UserRole.ADMIN, UserRole.FINANCE)
sales_access = require_role(UserRole.ADMIN, UserRole.VENDOR)
admin_access = require_role(UserRole.ADMIN)
production_access = require_role(UserRole.ADMIN, UserRole.PRODUCER)


@router.post('/orders/{order_id}/payments', status_code=201)
def add_payment(
    order_id: int,
    payload: PaymentPayload,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(finance_access),
):
    try:
        order, receivable = record_payment(
            db,
            order_id,
            payload.amount,
            payload.method,
            transaction_id=payload.transaction_id,
            paid_at=payload.paid_at,
        )
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    logger.info(
        'payment_request_committed',
        extra={'order_id': order_id, 'principal_id': principal.id, 'client_ip': get_client_ip(request)},
    )
    return {'order': order_dict(order), 'receivable': receivable_dict(receivable)}


@router.post('/orders/{order_id}/commissions/recalculate')
def recalculate(order_id: int, db: Session = Depends(get_db), _: Principal = Depends(finance_access)):
    try:
        commissions = recalculate_commissions(db, order_id)
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return [commission_dict(commission) for commission in commissions]


@router.post('/orders/{order_id}/status')
def change_status(
    order_id: int,
    payload: OrderStatusPayload,
    db: Session = Depends(get_db),
    _: Principal = Depends(sales_access),
):
    try:
        order = update_order_status(db, order_id, payload.status, tracking_code=payload.tracking_code)
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return order_dict(order)


@router.put('/orders/{order_id}/value')
def change_value(
    order_id: int,
    payload: OrderValuePayload,
    db: Session = Depends(get_db),
    _: Principal = Depends(admin_access),
):
    try:
        order = update_order_value(db, order_id, payload.total_value)
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return order_dict(order)


@router.post('/production-orders/{production_order_id}/status')
def change_production_status(
    production_order_id: int,
    payload: ProductionOrderStatusPayload,
    db: Session = Depends(get_db),
    principal: Principal = Depends(production_access),
):
    current = db.get(ProductionOrder, production_order_id)
    if current and principal.role == UserRole.PRODUCER and current.producer_id != principal.id:
        raise HTTPException(status_code=403)
    try:
        production_order = update_production_order_status(db, production_order_id, payload.status)
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return production_order_dict(production_order)
