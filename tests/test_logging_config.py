from __future__ import annotations

import io
import json
import logging
import unittest
from decimal import Decimal

from salesflow.errors import ConversionConflict
from salesflow.logging_config import configure_logging, reset_logging
from salesflow.models import OrderStatus


class LoggingConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        reset_logging()
        self.stream = io.StringIO()
        configure_logging(level='DEBUG', stream=self.stream)
        self.logger = logging.getLogger('salesflow.tests')

    def tearDown(self) -> None:
        reset_logging()

    def _lines(self) -> list[dict]:
        return [json.loads(line) for line in self.stream.getvalue().splitlines()]

    def test_extra_fields_become_json_keys(self) -> None:
        self.logger.info(
            'payment_recorded',
            extra={'order_id': 7, 'amount': Decimal('12.50'), 'order_status': OrderStatus.CONFIRMED},
        )

        [line] = self._lines()
        self.assertEqual(line['message'], 'payment_recorded')
        self.assertEqual(line['level'], 'INFO')
        self.assertEqual(line['logger'], 'salesflow.tests')
        self.assertEqual(line['order_id'], 7)
        self.assertEqual(line['amount'], '12.50')
        self.assertEqual(line['order_status'], 'CONFIRMED')

    def test_exceptions_carry_their_code(self) -> None:
        try:
            raise ConversionConflict('Budget 3 was already converted')
        except ConversionConflict:
            self.logger.exception('budget_conversion_failed')

        [line] = self._lines()
        self.assertEqual(line['exc_type'], 'ConversionConflict')
        self.assertEqual(line['exc_code'], 'CONVERSION_CONFLICT')
        self.assertIn('Traceback', line['traceback'])

    def test_configure_is_idempotent(self) -> None:
        configure_logging(stream=io.StringIO())

        self.assertEqual(len(logging.getLogger('salesflow').handlers), 1)


if __name__ == '__main__':
    unittest.main()
