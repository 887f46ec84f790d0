from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from salesflow import money
from salesflow.errors import PricingConfigError
from salesflow.models import MarginTier as MarginTierRow
from salesflow.models import PricingSetting

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarginTier:
    threshold: Decimal
    margin_rate: Decimal


@dataclass(frozen=True)
class PricingSettings:
    tiers: tuple[MarginTier, ...]
    minimum_margin_rate: Decimal
    tax_rate: Decimal = Decimal('0')
    commission_rate: Decimal = Decimal('0')
    allow_unmanaged_fallback: bool = False


@dataclass(frozen=True)
class PriceQuote:
    ideal_price: Decimal
    minimum_price: Decimal
    margin_applied: Decimal = Decimal('0')
    minimum_margin_applied: Decimal = Decimal('0')
    managed: bool = True
    warnings: tuple[str, ...] = field(default=())


def unmanaged_quote(cost: Decimal, *, warning: str | None = None) -> PriceQuote:
    return PriceQuote(
        ideal_price=cost,
        minimum_price=Decimal('0'),
        managed=False,
        warnings=(warning,) if warning else (),
    )


def _validate_rate(rate: Decimal, *, field_name: str) -> None:
    if rate < 0:
        raise PricingConfigError(f'{field_name} cannot be negative ({rate}%)')
    if rate >= 100:
        raise PricingConfigError(f'{field_name} must be below 100% ({rate}%)')


def validate_pricing_settings(pricing: PricingSettings) -> None:
    if not pricing.tiers:
        raise PricingConfigError('Pricing settings need at least one margin tier')
    _validate_rate(pricing.minimum_margin_rate, field_name='Minimum margin')
    _validate_rate(pricing.tax_rate, field_name='Tax rate')
    _validate_rate(pricing.commission_rate, field_name='Commission rate')
    for tier in pricing.tiers:
        if tier.threshold < 0:
            raise PricingConfigError(f'Margin tier threshold cannot be negative ({tier.threshold})')
        _validate_rate(tier.margin_rate, field_name='Tier margin')


def select_margin_tier(tiers: tuple[MarginTier, ...], running_revenue: Decimal) -> MarginTier:
    """Pick the tier with the highest threshold not exceeding ``running_revenue``.

    Tiers are walked in ascending threshold order and the last match wins. When
    every threshold sits above the revenue the lowest tier applies.
    """
    ordered = sorted(tiers, key=lambda t: t.threshold)
    selected = ordered[0]
    for tier in ordered:
        if tier.threshold <= running_revenue:
            selected = tier
    return selected


def _price_for_margin(cost: Decimal, margin_rate: Decimal, pricing: PricingSettings) -> Decimal:
    loaded_rate = margin_rate + pricing.tax_rate + pricing.commission_rate
    if loaded_rate >= 100:
        raise PricingConfigError(
            f'Margin {margin_rate}% plus tax and commission reaches {loaded_rate}%, which leaves no price'
        )
    divisor = money.subtract(Decimal('1'), money.divide(loaded_rate, money.HUNDRED))
    return money.divide(cost, divisor)


def calculate_price_from_cost(
    cost: Decimal,
    running_revenue: Decimal,
    pricing: PricingSettings | None,
) -> PriceQuote:
    """Margin-on-sale-price quote for one unit.

    ``ideal = cost / (1 - margin/100)``; the minimum price uses the minimum
    margin the same way. Prices are returned unrounded; callers round to cents
    at the point they store or show them.
    """
    cost = money.to_decimal(cost)
    running_revenue = money.to_decimal(running_revenue)
    if cost < 0:
        raise PricingConfigError(f'Cost cannot be negative ({cost})')
    if pricing is None:
        return unmanaged_quote(cost)

    try:
        validate_pricing_settings(pricing)
        tier = select_margin_tier(pricing.tiers, running_revenue)
        ideal = _price_for_margin(cost, tier.margin_rate, pricing)
        minimum = _price_for_margin(cost, pricing.minimum_margin_rate, pricing)
    except PricingConfigError as exc:
        if not pricing.allow_unmanaged_fallback:
            raise
        logger.warning('pricing_config_invalid_fallback', extra={'reason': str(exc), 'cost': cost})
        return unmanaged_quote(cost, warning=str(exc))

    return PriceQuote(
        ideal_price=ideal,
        minimum_price=minimum,
        margin_applied=tier.margin_rate,
        minimum_margin_applied=pricing.minimum_margin_rate,
    )


def load_pricing_settings(db: Session) -> PricingSettings | None:
    row = db.execute(
        select(PricingSetting).where(PricingSetting.active.is_(True)).order_by(PricingSetting.id.desc()).limit(1)
    ).scalar_one_or_none()
    if not row:
        return None

    tier_rows = db.execute(
        select(MarginTierRow)
        .where(MarginTierRow.settings_id == row.id)
        .order_by(MarginTierRow.display_order.asc(), MarginTierRow.min_revenue.asc())
    ).scalars().all()
    return PricingSettings(
        tiers=tuple(MarginTier(threshold=t.min_revenue, margin_rate=t.margin_rate) for t in tier_rows),
        minimum_margin_rate=row.minimum_margin_rate,
        tax_rate=row.tax_rate,
        commission_rate=row.commission_rate,
        allow_unmanaged_fallback=row.allow_unmanaged_fallback,
    )
