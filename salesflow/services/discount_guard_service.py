from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from salesflow import money
from salesflow.models import DiscountType
from salesflow.services.line_item_pricing_service import discount_amount_for, validate_discount


@dataclass(frozen=True)
class GuardLine:
    unit_price: Decimal
    quantity: Decimal
    total_price: Decimal
    minimum_price: Decimal = Decimal('0')
    base_price_with_margin: Decimal = Decimal('0')
    customization_per_unit: Decimal = Decimal('0')
    label: str | None = None


@dataclass(frozen=True)
class BudgetDiscount:
    discount_type: DiscountType = DiscountType.NONE
    value: Decimal = Decimal('0')

    @property
    def requested(self) -> bool:
        return self.discount_type != DiscountType.NONE and self.value > 0


@dataclass(frozen=True)
class LineBelowMinimum:
    label: str | None
    unit_price: Decimal
    minimum_price: Decimal
    shortfall: Decimal


@dataclass(frozen=True)
class DiscountEvaluation:
    items_subtotal: Decimal
    minimum_total: Decimal
    discount_amount: Decimal
    discounted_total: Decimal
    total: Decimal
    requires_approval: bool
    discount_disabled: bool
    shortfall: Decimal
    items_below_minimum: tuple[LineBelowMinimum, ...]


def _line_floor(line: GuardLine) -> Decimal:
    unit_floor = money.max_money(line.minimum_price, line.base_price_with_margin)
    return money.add(
        money.multiply_by_scalar(unit_floor, line.quantity),
        money.multiply_by_scalar(line.customization_per_unit, line.quantity),
    )


def _net_unit_price(line: GuardLine) -> Decimal:
    if line.quantity <= 0:
        return money.to_decimal(line.unit_price)
    return money.divide(line.total_price, line.quantity)


def _below_minimum(lines: Sequence[GuardLine]) -> tuple[LineBelowMinimum, ...]:
    out: list[LineBelowMinimum] = []
    for line in lines:
        net_unit = _net_unit_price(line)
        if line.minimum_price > 0 and net_unit < line.minimum_price:
            out.append(
                LineBelowMinimum(
                    label=line.label,
                    unit_price=money.quantize_money(net_unit),
                    minimum_price=line.minimum_price,
                    shortfall=money.quantize_money(money.subtract(line.minimum_price, net_unit)),
                )
            )
    return tuple(out)


def _all_lines_at_or_below_floor(lines: Sequence[GuardLine]) -> bool:
    floored = [line for line in lines if line.minimum_price > 0]
    if not floored or len(floored) != len(lines):
        return False
    return all(_net_unit_price(line) <= line.minimum_price for line in floored)


def evaluate_budget_discount(lines: Sequence[GuardLine], discount: BudgetDiscount) -> DiscountEvaluation:
    """Check a budget-level discount against the aggregate minimum-price floor.

    A discount that would take the budget under the floor is not refused: the
    total is clamped to the floor and the result asks for administrator
    approval, with the shortfall between the requested and the floor total.
    Lines already under the floor, by manual price or item discount, keep their
    total and only ask for approval.

    ``minimum_price`` and ``base_price_with_margin`` are per-unit product
    floors; ``customization_per_unit`` is added on top of the larger of the two.
    """
    validate_discount(discount.discount_type, discount.value, label='Budget')

    items_subtotal = money.sum_money(line.total_price for line in lines)
    minimum_total = money.sum_money(_line_floor(line) for line in lines)
    below = _below_minimum(lines)

    discount_disabled = discount.requested and _all_lines_at_or_below_floor(lines)
    if discount.requested and not discount_disabled:
        discount_amount = money.min_money(
            discount_amount_for(items_subtotal, discount.discount_type, discount.value), items_subtotal
        )
    else:
        discount_amount = Decimal('0')
    discounted_total = money.floor_zero(money.subtract(items_subtotal, discount_amount))

    total = discounted_total
    shortfall = Decimal('0')
    clamped = False
    if discount.requested and not discount_disabled and discounted_total < minimum_total:
        total = minimum_total
        shortfall = money.subtract(minimum_total, discounted_total)
        clamped = True

    return DiscountEvaluation(
        items_subtotal=money.quantize_money(items_subtotal),
        minimum_total=money.quantize_money(minimum_total),
        discount_amount=money.quantize_money(discount_amount),
        discounted_total=money.quantize_money(discounted_total),
        total=money.quantize_money(total),
        requires_approval=clamped or bool(below) or items_subtotal < minimum_total,
        discount_disabled=discount_disabled,
        shortfall=money.quantize_money(shortfall),
        items_below_minimum=below,
    )
