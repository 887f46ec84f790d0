from __future__ import annotations

import unittest
from datetime import datetime, timezone

from salesflow.errors import SequenceCollision
from salesflow.models import Budget, BudgetStatus
from salesflow.services.sequence_service import allocate_document_number, format_document_number, next_sequence_value
from tests.support import add_vendor, make_session

MARCH = datetime(2025, 3, 14, tzinfo=timezone.utc)


class SequenceServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()

    def tearDown(self) -> None:
        self.db.close()

    def test_format_uses_year_month_and_six_digits(self) -> None:
        self.assertEqual(format_document_number('BUD', 42, at=MARCH), 'BUD-2503-000042')

    def test_counters_are_independent_and_increment(self) -> None:
        self.assertEqual(next_sequence_value(self.db, 'BUD'), 1)
        self.assertEqual(next_sequence_value(self.db, 'BUD'), 2)
        self.assertEqual(next_sequence_value(self.db, 'PED'), 1)
        self.assertEqual(next_sequence_value(self.db, 'BUD'), 3)

    def test_existing_numbers_are_skipped(self) -> None:
        vendor = add_vendor(self.db)
        self.db.add(
            Budget(
                budget_number='BUD-2503-000001',
                vendor_id=vendor.id,
                contact_name='Imported',
                title='Imported budget',
                status=BudgetStatus.DRAFT,
            )
        )
        self.db.flush()

        number = allocate_document_number(self.db, prefix='BUD', column=Budget.budget_number, at=MARCH)

        self.assertEqual(number, 'BUD-2503-000002')

    def test_gives_up_after_max_attempts(self) -> None:
        vendor = add_vendor(self.db)
        for value in (1, 2):
            self.db.add(
                Budget(
                    budget_number=format_document_number('BUD', value, at=MARCH),
                    vendor_id=vendor.id,
                    contact_name='Imported',
                    title='Imported budget',
                    status=BudgetStatus.DRAFT,
                )
            )
        self.db.flush()

        with self.assertRaises(SequenceCollision):
            allocate_document_number(self.db, prefix='BUD', column=Budget.budget_number, at=MARCH, max_attempts=2)


if __name__ == '__main__':
    unittest.main()
