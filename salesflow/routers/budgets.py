from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from salesflow.auth import Principal, assert_budget_scope, require_role
from salesflow.db import get_db
from salesflow.dependencies import to_http_exception
from salesflow.errors import SalesflowError
from salesflow.models import UserRole
from salesflow.presenters import budget_dict, budget_totals_dict, order_dict
from salesflow.schemas import BudgetPayload, ConvertPayload, ReasonPayload
from salesflow.services.budget_service import (
    BudgetDraft,
    BudgetItemDraft,
    admin_approve_budget,
    admin_reject_budget,
    approve_budget,
    compute_budget_totals,
    create_budget,
    get_budget,
    list_budgets_awaiting_approval,
    reject_budget,
    submit_budget,
    update_budget,
)
from salesflow.services.conversion_service import convert_budget_to_order

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api/budgets', tags=['budgets'])
sales_access = require_role(UserRole.ADMIN, UserRole.VENDOR)
admin_access = require_role(UserRole.ADMIN)


def _draft(payload: BudgetPayload) -> BudgetDraft:
    return BudgetDraft(
        title=payload.title,
        contact_name=payload.contact_name,
        items=tuple(BudgetItemDraft(**item.model_dump()) for item in payload.items),
        client_id=payload.client_id,
        contact_phone=payload.contact_phone,
        contact_email=payload.contact_email,
        description=payload.description,
        discount_type=payload.discount_type,
        discount_value=payload.discount_value,
        delivery_type=payload.delivery_type,
        shipping_cost=payload.shipping_cost,
        payment_method_id=payload.payment_method_id,
        installments=payload.installments,
        down_payment=payload.down_payment,
        valid_until=payload.valid_until,
        delivery_deadline=payload.delivery_deadline,
    )


def _check_scope(db: Session, principal: Principal, budget_id: int) -> None:
    assert_budget_scope(principal, get_budget(db, budget_id).vendor_id)


@router.get('/awaiting-approval')
def awaiting_approval(db: Session = Depends(get_db), _: Principal = Depends(admin_access)):
    return [budget_dict(budget) for budget in list_budgets_awaiting_approval(db)]


@router.post('', status_code=201)
def create(payload: BudgetPayload, db: Session = Depends(get_db), principal: Principal = Depends(sales_access)):
    try:
        budget = create_budget(db, vendor_id=principal.id, draft=_draft(payload))
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return budget_dict(budget)


@router.get('/{budget_id}')
def detail(budget_id: int, db: Session = Depends(get_db), principal: Principal = Depends(sales_access)):
    try:
        budget = get_budget(db, budget_id)
    except SalesflowError as exc:
        raise to_http_exception(exc) from exc
    assert_budget_scope(principal, budget.vendor_id)
    return budget_dict(budget)


@router.put('/{budget_id}')
def update(
    budget_id: int,
    payload: BudgetPayload,
    db: Session = Depends(get_db),
    principal: Principal = Depends(sales_access),
):
    try:
        _check_scope(db, principal, budget_id)
        budget = update_budget(db, budget_id, draft=_draft(payload))
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return budget_dict(budget)


@router.get('/{budget_id}/totals')
def totals(budget_id: int, db: Session = Depends(get_db), principal: Principal = Depends(sales_access)):
    try:
        _check_scope(db, principal, budget_id)
        result = compute_budget_totals(db, budget_id)
    except SalesflowError as exc:
        raise to_http_exception(exc) from exc
    return budget_totals_dict(result)


@router.post('/{budget_id}/submit')
def submit(budget_id: int, db: Session = Depends(get_db), principal: Principal = Depends(sales_access)):
    try:
        _check_scope(db, principal, budget_id)
        budget = submit_budget(db, budget_id)
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return budget_dict(budget)


@router.post('/{budget_id}/approve')
def approve(budget_id: int, db: Session = Depends(get_db), principal: Principal = Depends(sales_access)):
    try:
        _check_scope(db, principal, budget_id)
        budget = approve_budget(db, budget_id)
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return budget_dict(budget)


@router.post('/{budget_id}/reject')
def reject(
    budget_id: int,
    payload: ReasonPayload,
    db: Session = Depends(get_db),
    principal: Principal = Depends(sales_access),
):
    try:
        _check_scope(db, principal, budget_id)
        budget = reject_budget(db, budget_id, reason=payload.reason)
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return budget_dict(budget)


@router.post('/{budget_id}/admin-approve')
def admin_approve(budget_id: int, db: Session = Depends(get_db), principal: Principal = Depends(admin_access)):
    try:
        budget = admin_approve_budget(db, budget_id, approver_id=principal.id)
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return budget_dict(budget)


@router.post('/{budget_id}/admin-reject')
def admin_reject(
    budget_id: int,
    payload: ReasonPayload,
    db: Session = Depends(get_db),
    principal: Principal = Depends(admin_access),
):
    try:
        budget = admin_reject_budget(db, budget_id, approver_id=principal.id, reason=payload.reason)
    except SalesflowError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    db.commit()
    return budget_dict(budget)


@router.post('/{budget_id}/convert', status_code=201)
def convert(
    budget_id: int,
    payload: ConvertPayload,
    db: Session = Depends(get_db),
    principal: Principal = Depends(sales_access),
):
    try:
        _check_scope(db, principal, budget_id)
        order = convert_budget_to_order(db, budget_id, payload.client_id, payload.delivery_date)
    except SalesflowError as exc:
        db.rollback()
        logger.warning(
            'budget_conversion_failed',
            extra={'budget_id': budget_id, 'code': exc.code, 'principal_id': principal.id},
        )
        raise to_http_exception(exc) from exc
    db.commit()
    return order_dict(order)
