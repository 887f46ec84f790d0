from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from salesflow import money
from salesflow.errors import ValidationError
from salesflow.models import DiscountType, PriceSource
from salesflow.services.margin_pricing_service import PricingSettings, calculate_price_from_cost


@dataclass(frozen=True)
class LineItemInput:
    quantity: Decimal
    price_source: PriceSource = PriceSource.COMPUTED
    manual_unit_price: Decimal | None = None
    customization_value: Decimal = Decimal('0')
    general_customization_value: Decimal = Decimal('0')
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Decimal = Decimal('0')


@dataclass(frozen=True)
class LineItemPricing:
    unit_price: Decimal
    ideal_price: Decimal
    minimum_price: Decimal
    total_unit_cost: Decimal
    base_total: Decimal
    item_discount_amount: Decimal
    total_price: Decimal
    below_minimum: bool
    shortfall: Decimal
    managed: bool


def validate_discount(discount_type: DiscountType, value: Decimal, *, label: str) -> None:
    if discount_type == DiscountType.NONE:
        return
    if value < 0:
        raise ValidationError(f'{label} discount cannot be negative')
    if discount_type == DiscountType.PERCENTAGE and value > 100:
        raise ValidationError(f'{label} discount percentage must be between 0 and 100')


def discount_amount_for(base: Decimal, discount_type: DiscountType, value: Decimal) -> Decimal:
    if discount_type == DiscountType.PERCENTAGE:
        return money.percentage_of(base, value)
    if discount_type == DiscountType.FIXED:
        return money.to_decimal(value)
    return Decimal('0')


def _validate_item(item: LineItemInput, cost: Decimal) -> None:
    if item.quantity <= 0:
        raise ValidationError('Quantity must be greater than zero')
    if cost < 0:
        raise ValidationError('Unit cost cannot be negative')
    if item.customization_value < 0 or item.general_customization_value < 0:
        raise ValidationError('Customization values cannot be negative')
    if item.price_source == PriceSource.MANUAL:
        if item.manual_unit_price is None:
            raise ValidationError('Manual price source requires a unit price')
        if item.manual_unit_price < 0:
            raise ValidationError('Unit price cannot be negative')
    validate_discount(item.discount_type, item.discount_value, label='Item')


def price_line_item(
    item: LineItemInput,
    cost: Decimal,
    running_revenue: Decimal,
    pricing_settings: PricingSettings | None,
) -> LineItemPricing:
    """Price one budget line.

    Customizations are folded into the margin base, so the quote is taken on
    product cost plus per-unit customization. The item discount comes off the
    pre-discount line total and the result never goes below zero. The floor is
    checked against the net unit price, after the item discount.
    """
    cost = money.to_decimal(cost)
    _validate_item(item, cost)

    total_unit_cost = money.sum_money([cost, item.customization_value, item.general_customization_value])
    quote = calculate_price_from_cost(total_unit_cost, running_revenue, pricing_settings)
    ideal_price = money.quantize_money(quote.ideal_price)
    minimum_price = money.quantize_money(quote.minimum_price)

    if item.price_source == PriceSource.MANUAL:
        unit_price = money.quantize_money(item.manual_unit_price)
    else:
        unit_price = ideal_price

    base_total = money.multiply_by_scalar(unit_price, item.quantity)
    item_discount = discount_amount_for(base_total, item.discount_type, item.discount_value)
    total_price = money.floor_zero(money.subtract(base_total, item_discount))

    net_unit_price = money.divide(total_price, item.quantity)
    below_minimum = minimum_price > 0 and net_unit_price < minimum_price
    shortfall = money.subtract(minimum_price, net_unit_price) if below_minimum else Decimal('0.00')

    return LineItemPricing(
        unit_price=unit_price,
        ideal_price=ideal_price,
        minimum_price=minimum_price,
        total_unit_cost=money.quantize_money(total_unit_cost),
        base_total=money.quantize_money(base_total),
        item_discount_amount=money.quantize_money(money.min_money(item_discount, base_total)),
        total_price=money.quantize_money(total_price),
        below_minimum=below_minimum,
        shortfall=money.quantize_money(shortfall),
        managed=quote.managed,
    )


def running_revenue_excluding(lines: Sequence[tuple[Decimal, Decimal]], index: int) -> Decimal:
    """Revenue of every other line, given ``(unit_price, quantity)`` pairs."""
    return money.sum_money(
        money.multiply_by_scalar(unit_price, quantity)
        for position, (unit_price, quantity) in enumerate(lines)
        if position != index
    )
