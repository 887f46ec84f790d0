from __future__ import annotations

import unittest
from decimal import Decimal

from salesflow.errors import ValidationError
from salesflow.models import DiscountType
from salesflow.services.discount_guard_service import BudgetDiscount, GuardLine, evaluate_budget_discount


def _line(unit_price: str, quantity: str, minimum: str = '0', **kwargs) -> GuardLine:
    unit = Decimal(unit_price)
    qty = Decimal(quantity)
    return GuardLine(
        unit_price=unit,
        quantity=qty,
        total_price=unit * qty,
        minimum_price=Decimal(minimum),
        **kwargs,
    )


class DiscountGuardServiceTests(unittest.TestCase):
    def test_discount_below_floor_is_clamped_and_needs_approval(self) -> None:
        result = evaluate_budget_discount(
            [_line('142.86', '2', '111.11')],
            BudgetDiscount(DiscountType.PERCENTAGE, Decimal('25')),
        )

        self.assertEqual(result.items_subtotal, Decimal('285.72'))
        self.assertEqual(result.minimum_total, Decimal('222.22'))
        self.assertEqual(result.discounted_total, Decimal('214.29'))
        self.assertEqual(result.total, Decimal('222.22'))
        self.assertEqual(result.shortfall, Decimal('7.93'))
        self.assertTrue(result.requires_approval)

    def test_discount_above_floor_is_accepted(self) -> None:
        result = evaluate_budget_discount(
            [_line('142.86', '2', '111.11')],
            BudgetDiscount(DiscountType.PERCENTAGE, Decimal('10')),
        )

        self.assertEqual(result.discount_amount, Decimal('28.57'))
        self.assertEqual(result.total, Decimal('257.15'))
        self.assertFalse(result.requires_approval)
        self.assertEqual(result.shortfall, Decimal('0.00'))

    def test_fixed_discount_larger_than_subtotal_floors_at_zero(self) -> None:
        result = evaluate_budget_discount([_line('50', '1')], BudgetDiscount(DiscountType.FIXED, Decimal('80')))

        self.assertEqual(result.discount_amount, Decimal('50.00'))
        self.assertEqual(result.discounted_total, Decimal('0.00'))
        self.assertEqual(result.total, Decimal('0.00'))
        self.assertFalse(result.requires_approval)

    def test_discount_is_disabled_when_every_line_sits_on_its_floor(self) -> None:
        result = evaluate_budget_discount(
            [_line('111.11', '1', '111.11'), _line('90', '2', '90')],
            BudgetDiscount(DiscountType.PERCENTAGE, Decimal('5')),
        )

        self.assertTrue(result.discount_disabled)
        self.assertEqual(result.discount_amount, Decimal('0.00'))
        self.assertEqual(result.total, Decimal('291.11'))
        self.assertFalse(result.requires_approval)

        below_floor = evaluate_budget_discount(
            [_line('100', '1', '111.11')],
            BudgetDiscount(DiscountType.PERCENTAGE, Decimal('10')),
        )
        self.assertTrue(below_floor.discount_disabled)
        self.assertEqual(below_floor.total, Decimal('100.00'))
        self.assertEqual(below_floor.shortfall, Decimal('0.00'))
        self.assertTrue(below_floor.requires_approval)

    def test_line_below_its_floor_requires_approval_without_discount(self) -> None:
        result = evaluate_budget_discount(
            [_line('100', '1', '111.11', label='mug'), _line('50', '1')],
            BudgetDiscount(),
        )

        self.assertTrue(result.requires_approval)
        self.assertEqual(result.total, Decimal('150.00'))
        self.assertEqual(len(result.items_below_minimum), 1)
        self.assertEqual(result.items_below_minimum[0].label, 'mug')
        self.assertEqual(result.items_below_minimum[0].shortfall, Decimal('11.11'))

    def test_item_discount_under_the_floor_requires_approval(self) -> None:
        line = GuardLine(
            unit_price=Decimal('142.86'),
            quantity=Decimal('1'),
            total_price=Decimal('14.29'),
            minimum_price=Decimal('111.11'),
            label='tote',
        )
        result = evaluate_budget_discount([line], BudgetDiscount())

        self.assertTrue(result.requires_approval)
        self.assertEqual(result.total, Decimal('14.29'))
        self.assertEqual(result.items_below_minimum[0].unit_price, Decimal('14.29'))
        self.assertEqual(result.items_below_minimum[0].shortfall, Decimal('96.82'))

    def test_customization_floor_without_discount_requires_approval(self) -> None:
        line = _line('120', '1', '100', customization_per_unit=Decimal('30'))
        result = evaluate_budget_discount([line], BudgetDiscount())

        self.assertEqual(result.minimum_total, Decimal('130.00'))
        self.assertEqual(result.total, Decimal('120.00'))
        self.assertTrue(result.requires_approval)

    def test_floor_uses_larger_of_minimum_and_margin_price_plus_customization(self) -> None:
        line = _line(
            '150',
            '2',
            '100',
            base_price_with_margin=Decimal('120'),
            customization_per_unit=Decimal('10'),
        )
        result = evaluate_budget_discount([line], BudgetDiscount(DiscountType.FIXED, Decimal('50')))

        self.assertEqual(result.minimum_total, Decimal('260.00'))
        self.assertEqual(result.discounted_total, Decimal('250.00'))
        self.assertEqual(result.total, Decimal('260.00'))
        self.assertTrue(result.requires_approval)

    def test_invalid_budget_discount_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            evaluate_budget_discount([_line('10', '1')], BudgetDiscount(DiscountType.PERCENTAGE, Decimal('120')))
        with self.assertRaises(ValidationError):
            evaluate_budget_discount([_line('10', '1')], BudgetDiscount(DiscountType.FIXED, Decimal('-3')))


if __name__ == '__main__':
    unittest.main()
