from __future__ import annotations

import unittest
from decimal import Decimal

from salesflow.errors import PricingConfigError
from salesflow.money import quantize_money
from salesflow.services.margin_pricing_service import (
    MarginTier,
    PricingSettings,
    calculate_price_from_cost,
    load_pricing_settings,
    select_margin_tier,
)
from tests.support import add_pricing, make_session


def _settings(*tiers: tuple[str, str], minimum: str = '10', **kwargs) -> PricingSettings:
    return PricingSettings(
        tiers=tuple(MarginTier(threshold=Decimal(t), margin_rate=Decimal(r)) for t, r in tiers),
        minimum_margin_rate=Decimal(minimum),
        **kwargs,
    )


class MarginPricingServiceTests(unittest.TestCase):
    def test_single_tier_quote(self) -> None:
        quote = calculate_price_from_cost(Decimal('100'), Decimal('0'), _settings(('0', '30')))

        self.assertEqual(quantize_money(quote.ideal_price), Decimal('142.86'))
        self.assertEqual(quantize_money(quote.minimum_price), Decimal('111.11'))
        self.assertEqual(quote.margin_applied, Decimal('30'))
        self.assertTrue(quote.managed)

    def test_last_tier_at_or_below_revenue_wins(self) -> None:
        tiers = (
            MarginTier(threshold=Decimal('10000'), margin_rate=Decimal('20')),
            MarginTier(threshold=Decimal('0'), margin_rate=Decimal('30')),
            MarginTier(threshold=Decimal('5000'), margin_rate=Decimal('25')),
        )
        self.assertEqual(select_margin_tier(tiers, Decimal('4999.99')).margin_rate, Decimal('30'))
        self.assertEqual(select_margin_tier(tiers, Decimal('5000')).margin_rate, Decimal('25'))
        self.assertEqual(select_margin_tier(tiers, Decimal('250000')).margin_rate, Decimal('20'))

    def test_revenue_below_every_threshold_uses_lowest_tier(self) -> None:
        quote = calculate_price_from_cost(Decimal('80'), Decimal('10'), _settings(('100', '20'), ('500', '10')))

        self.assertEqual(quote.margin_applied, Decimal('20'))
        self.assertEqual(quantize_money(quote.ideal_price), Decimal('100.00'))

    def test_without_settings_cost_passes_through_unmanaged(self) -> None:
        quote = calculate_price_from_cost(Decimal('55.20'), Decimal('0'), None)

        self.assertEqual(quote.ideal_price, Decimal('55.20'))
        self.assertEqual(quote.minimum_price, Decimal('0'))
        self.assertFalse(quote.managed)

    def test_tax_and_commission_join_the_divisor(self) -> None:
        quote = calculate_price_from_cost(
            Decimal('100'),
            Decimal('0'),
            _settings(('0', '30'), tax_rate=Decimal('10'), commission_rate=Decimal('10')),
        )

        self.assertEqual(quantize_money(quote.ideal_price), Decimal('200.00'))
        self.assertEqual(quantize_money(quote.minimum_price), Decimal('142.86'))

    def test_margin_of_one_hundred_percent_is_a_configuration_error(self) -> None:
        with self.assertRaises(PricingConfigError):
            calculate_price_from_cost(Decimal('10'), Decimal('0'), _settings(('0', '100')))
        with self.assertRaises(PricingConfigError):
            calculate_price_from_cost(Decimal('10'), Decimal('0'), _settings(('0', '-5')))
        with self.assertRaises(PricingConfigError):
            calculate_price_from_cost(
                Decimal('10'), Decimal('0'), _settings(('0', '60'), tax_rate=Decimal('25'), commission_rate=Decimal('15'))
            )

    def test_fallback_flag_returns_unmanaged_quote_with_warning(self) -> None:
        quote = calculate_price_from_cost(
            Decimal('10'), Decimal('0'), _settings(('0', '100'), allow_unmanaged_fallback=True)
        )

        self.assertFalse(quote.managed)
        self.assertEqual(quote.ideal_price, Decimal('10'))
        self.assertEqual(len(quote.warnings), 1)

    def test_load_pricing_settings_reads_active_row_and_tiers(self) -> None:
        db = make_session()
        self.assertIsNone(load_pricing_settings(db))

        add_pricing(db, (('0', '30'), ('1000', '25')), minimum_margin='12')
        loaded = load_pricing_settings(db)

        self.assertEqual(loaded.minimum_margin_rate, Decimal('12'))
        self.assertEqual([t.margin_rate for t in loaded.tiers], [Decimal('30'), Decimal('25')])
        self.assertEqual(loaded.tiers[1].threshold, Decimal('1000'))
        db.close()


if __name__ == '__main__':
    unittest.main()
