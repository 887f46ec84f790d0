from __future__ import annotations

import unittest
from decimal import Decimal

from sqlalchemy import select

from salesflow.models import MarginTier, PaymentMethod, Product, User
from salesflow.seed_example import seed_into
from salesflow.services.budget_service import create_budget
from tests.support import count, draft, item, make_session


class SeedExampleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()

    def tearDown(self) -> None:
        self.db.close()

    def test_seed_is_repeatable(self) -> None:
        seed_into(self.db)
        seed_into(self.db)

        self.assertEqual(count(self.db, User), 6)
        self.assertEqual(count(self.db, MarginTier), 3)
        self.assertEqual(count(self.db, PaymentMethod), 3)
        self.assertEqual(count(self.db, Product), 2)

    def test_seeded_catalog_can_be_priced(self) -> None:
        seed_into(self.db)
        vendor = self.db.execute(select(User).where(User.username == 'vendor1')).scalar_one()
        mug = self.db.execute(select(Product).where(Product.name == 'Branded mug')).scalar_one()

        budget = create_budget(self.db, vendor_id=vendor.id, draft=draft(item(mug, '10')))

        self.assertEqual(budget.items[0].unit_price, Decimal('17.36'))
        self.assertEqual(budget.total_value, Decimal('173.60'))


if __name__ == '__main__':
    unittest.main()
