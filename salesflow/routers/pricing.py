from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from salesflow.auth import Principal, require_role
from salesflow.db import get_db
from salesflow.dependencies import to_http_exception
from salesflow.errors import SalesflowError
from salesflow.models import UserRole
from salesflow.presenters import discount_evaluation_dict, line_item_pricing_dict
from salesflow.schemas import DiscountRequest, LineItemPricingRequest, PricingSettingsPayload
from salesflow.services.discount_guard_service import BudgetDiscount, GuardLine, evaluate_budget_discount
from salesflow.services.line_item_pricing_service import LineItemInput, price_line_item
from salesflow.services.margin_pricing_service import MarginTier, PricingSettings, load_pricing_settings

router = APIRouter(prefix='/api/pricing', tags=['pricing'])
pricing_access = require_role(UserRole.ADMIN, UserRole.VENDOR)


def _pricing_settings(payload: PricingSettingsPayload) -> PricingSettings:
    return PricingSettings(
        tiers=tuple(MarginTier(threshold=t.threshold, margin_rate=t.margin_rate) for t in payload.tiers),
        minimum_margin_rate=payload.minimum_margin_rate,
        tax_rate=payload.tax_rate,
        commission_rate=payload.commission_rate,
        allow_unmanaged_fallback=payload.allow_unmanaged_fallback,
    )


@router.post('/line-item')
def price_line_item_route(
    payload: LineItemPricingRequest,
    db: Session = Depends(get_db),
    _: Principal = Depends(pricing_access),
):
    item = LineItemInput(
        quantity=payload.quantity,
        price_source=payload.price_source,
        manual_unit_price=payload.unit_price,
        customization_value=payload.customization_value,
        general_customization_value=payload.general_customization_value,
        discount_type=payload.discount_type,
        discount_value=payload.discount_value,
    )
    try:
        settings = _pricing_settings(payload.pricing) if payload.pricing else load_pricing_settings(db)
        pricing = price_line_item(item, payload.cost, payload.running_revenue, settings)
    except SalesflowError as exc:
        raise to_http_exception(exc) from exc
    return line_item_pricing_dict(pricing)


@router.post('/discount')
def evaluate_discount_route(payload: DiscountRequest, _: Principal = Depends(pricing_access)):
    lines = [
        GuardLine(
            unit_price=line.unit_price,
            quantity=line.quantity,
            total_price=line.total_price,
            minimum_price=line.minimum_price,
            base_price_with_margin=line.base_price_with_margin,
            customization_per_unit=line.customization_per_unit,
            label=line.label,
        )
        for line in payload.items
    ]
    try:
        evaluation = evaluate_budget_discount(
            lines, BudgetDiscount(discount_type=payload.discount_type, value=payload.discount_value)
        )
    except SalesflowError as exc:
        raise to_http_exception(exc) from exc
    return discount_evaluation_dict(evaluation)
