from __future__ import annotations

import unittest

from salesflow.errors import InvalidTransition
from salesflow.models import BudgetStatus, CommissionStatus, OrderStatus
from salesflow.state_machines import BUDGET_MACHINE, COMMISSION_MACHINE, ORDER_MACHINE


class StateMachineTests(unittest.TestCase):
    def test_budget_paths(self) -> None:
        self.assertTrue(BUDGET_MACHINE.can_transition(BudgetStatus.DRAFT, BudgetStatus.SENT))
        self.assertTrue(BUDGET_MACHINE.can_transition(BudgetStatus.ADMIN_APPROVED, BudgetStatus.CONVERTED))
        self.assertFalse(BUDGET_MACHINE.can_transition(BudgetStatus.DRAFT, BudgetStatus.CONVERTED))
        self.assertTrue(BUDGET_MACHINE.is_terminal(BudgetStatus.CONVERTED))
        self.assertTrue(BUDGET_MACHINE.is_terminal(BudgetStatus.REJECTED))

    def test_invalid_transition_names_both_states(self) -> None:
        with self.assertRaises(InvalidTransition) as ctx:
            ORDER_MACHINE.assert_transition(OrderStatus.DELIVERED, OrderStatus.CANCELLED)

        self.assertEqual(ctx.exception.current, 'DELIVERED')
        self.assertEqual(ctx.exception.target, 'CANCELLED')
        self.assertEqual(ctx.exception.code, 'INVALID_TRANSITION')

    def test_paid_commission_can_still_be_cancelled(self) -> None:
        COMMISSION_MACHINE.assert_transition(CommissionStatus.PAID, CommissionStatus.CANCELLED)
        with self.assertRaises(InvalidTransition):
            COMMISSION_MACHINE.assert_transition(CommissionStatus.CANCELLED, CommissionStatus.PENDING)


if __name__ == '__main__':
    unittest.main()
