from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from decimal import Decimal

from salesflow import money
from salesflow.config import settings
from salesflow.errors import ValidationError
from salesflow.models import DeliveryType
from salesflow.services.discount_guard_service import (
    BudgetDiscount,
    DiscountEvaluation,
    GuardLine,
    evaluate_budget_discount,
)


@dataclass(frozen=True)
class BudgetInput:
    lines: tuple[GuardLine, ...]
    discount: BudgetDiscount = BudgetDiscount()
    delivery_type: DeliveryType = DeliveryType.DELIVERY
    shipping_cost: Decimal = Decimal('0')
    payment_method_type: str | None = None
    monthly_interest_rate: Decimal = Decimal('0')
    installments: int = 1
    down_payment: Decimal | None = None


@dataclass(frozen=True)
class BudgetTotals:
    subtotal: Decimal
    discount_amount: Decimal
    discounted_total: Decimal
    minimum_total: Decimal
    shipping: Decimal
    interest: Decimal
    total: Decimal
    down_payment: Decimal
    remaining: Decimal
    requires_approval: bool
    discount: DiscountEvaluation


def _validate(budget: BudgetInput) -> None:
    if budget.shipping_cost < 0:
        raise ValidationError('Shipping cost cannot be negative')
    if budget.installments < 1:
        raise ValidationError('Installments must be at least 1')
    if budget.monthly_interest_rate < 0:
        raise ValidationError('Interest rate cannot be negative')
    if budget.down_payment is not None and budget.down_payment < 0:
        raise ValidationError('Down payment cannot be negative')


def financing_interest(
    base_total: Decimal,
    *,
    payment_method_type: str | None,
    monthly_interest_rate: Decimal,
    installments: int,
    interest_method_types: Collection[str] | None = None,
) -> Decimal:
    """Simple (not compound) interest for card-like methods paid in installments."""
    method_types = (
        interest_method_types if interest_method_types is not None else settings.installment_interest_method_types
    )
    if payment_method_type not in method_types or installments <= 1:
        return Decimal('0')
    return money.multiply_by_scalar(money.percentage_of(base_total, monthly_interest_rate), installments)


def aggregate_budget_total(
    budget: BudgetInput,
    *,
    interest_method_types: Collection[str] | None = None,
) -> BudgetTotals:
    _validate(budget)
    guard = evaluate_budget_discount(budget.lines, budget.discount)

    shipping = Decimal('0') if budget.delivery_type == DeliveryType.PICKUP else money.to_decimal(budget.shipping_cost)
    base_total = money.add(guard.total, shipping)
    interest = money.quantize_money(
        financing_interest(
            base_total,
            payment_method_type=budget.payment_method_type,
            monthly_interest_rate=budget.monthly_interest_rate,
            installments=budget.installments,
            interest_method_types=interest_method_types,
        )
    )
    total = money.quantize_money(money.add(base_total, interest))

    if budget.down_payment is None:
        down_payment = money.quantize_money(money.divide(total, 2))
    else:
        down_payment = money.quantize_money(budget.down_payment)
    remaining = money.quantize_money(money.floor_zero(money.subtract(total, down_payment)))

    return BudgetTotals(
        subtotal=guard.items_subtotal,
        discount_amount=guard.discount_amount,
        discounted_total=guard.discounted_total,
        minimum_total=guard.minimum_total,
        shipping=money.quantize_money(shipping),
        interest=interest,
        total=total,
        down_payment=down_payment,
        remaining=remaining,
        requires_approval=guard.requires_approval,
        discount=guard,
    )
