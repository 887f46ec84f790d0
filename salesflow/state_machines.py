from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from salesflow.errors import InvalidTransition
from salesflow.models import (
    BudgetStatus,
    CommissionStatus,
    OrderStatus,
    PaymentStatus,
    ProductionOrderStatus,
)

S = TypeVar('S', bound=Enum)


@dataclass(frozen=True)
class StateMachine(Generic[S]):
    entity: str
    transitions: dict[S, frozenset[S]]

    def can_transition(self, current: S, target: S) -> bool:
        return target in self.transitions.get(current, frozenset())

    def assert_transition(self, current: S, target: S) -> None:
        if not self.can_transition(current, target):
            raise InvalidTransition(self.entity, current, target)

    def is_terminal(self, state: S) -> bool:
        return not self.transitions.get(state)


BUDGET_MACHINE: StateMachine[BudgetStatus] = StateMachine(
    entity='Budget',
    transitions={
        BudgetStatus.DRAFT: frozenset({BudgetStatus.SENT, BudgetStatus.AWAITING_APPROVAL}),
        BudgetStatus.SENT: frozenset(
            {BudgetStatus.APPROVED, BudgetStatus.REJECTED, BudgetStatus.AWAITING_APPROVAL}
        ),
        BudgetStatus.AWAITING_APPROVAL: frozenset({BudgetStatus.ADMIN_APPROVED, BudgetStatus.NOT_APPROVED}),
        BudgetStatus.NOT_APPROVED: frozenset({BudgetStatus.SENT, BudgetStatus.AWAITING_APPROVAL}),
        BudgetStatus.APPROVED: frozenset({BudgetStatus.CONVERTED}),
        BudgetStatus.ADMIN_APPROVED: frozenset({BudgetStatus.CONVERTED}),
        BudgetStatus.REJECTED: frozenset(),
        BudgetStatus.CONVERTED: frozenset(),
    },
)

# Vendors may edit commercial content only in these states.
BUDGET_EDITABLE_STATES = frozenset({BudgetStatus.DRAFT, BudgetStatus.SENT, BudgetStatus.NOT_APPROVED})
BUDGET_CONVERTIBLE_STATES = frozenset({BudgetStatus.APPROVED, BudgetStatus.ADMIN_APPROVED})

ORDER_MACHINE: StateMachine[OrderStatus] = StateMachine(
    entity='Order',
    transitions={
        OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
        OrderStatus.CONFIRMED: frozenset({OrderStatus.PRODUCTION, OrderStatus.CANCELLED}),
        OrderStatus.PRODUCTION: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
        OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
        OrderStatus.DELIVERED: frozenset(),
        OrderStatus.CANCELLED: frozenset(),
    },
)

# Commercial totals are frozen once an order reaches one of these.
ORDER_LOCKED_STATES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

PRODUCTION_ORDER_MACHINE: StateMachine[ProductionOrderStatus] = StateMachine(
    entity='ProductionOrder',
    transitions={
        ProductionOrderStatus.PENDING: frozenset({ProductionOrderStatus.ACCEPTED, ProductionOrderStatus.REJECTED}),
        ProductionOrderStatus.ACCEPTED: frozenset({ProductionOrderStatus.PRODUCTION}),
        ProductionOrderStatus.PRODUCTION: frozenset({ProductionOrderStatus.COMPLETED}),
        ProductionOrderStatus.COMPLETED: frozenset(),
        ProductionOrderStatus.REJECTED: frozenset(),
    },
)

COMMISSION_MACHINE: StateMachine[CommissionStatus] = StateMachine(
    entity='Commission',
    transitions={
        CommissionStatus.PENDING: frozenset({CommissionStatus.CONFIRMED, CommissionStatus.CANCELLED}),
        CommissionStatus.CONFIRMED: frozenset({CommissionStatus.PAID, CommissionStatus.CANCELLED}),
        CommissionStatus.PAID: frozenset({CommissionStatus.CANCELLED}),
        CommissionStatus.CANCELLED: frozenset(),
    },
)

PAYMENT_MACHINE: StateMachine[PaymentStatus] = StateMachine(
    entity='Payment',
    transitions={
        PaymentStatus.PENDING: frozenset({PaymentStatus.CONFIRMED, PaymentStatus.FAILED}),
        PaymentStatus.CONFIRMED: frozenset(),
        PaymentStatus.FAILED: frozenset(),
    },
)
