"""Typed errors raised by the pricing, conversion and settlement services.

Every error carries a machine-readable ``code`` so routers can map it to an
HTTP status without matching on message text.
"""

from __future__ import annotations


class SalesflowError(Exception):
    code: str = 'SALESFLOW_ERROR'

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SalesflowError, ValueError):
    code = 'VALIDATION_ERROR'


class PricingConfigError(SalesflowError):
    code = 'PRICING_CONFIG_ERROR'


class NotFound(SalesflowError):
    code = 'NOT_FOUND'

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f'{entity} {entity_id} not found')
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransition(SalesflowError):
    code = 'INVALID_TRANSITION'

    def __init__(self, entity: str, current: object, target: object) -> None:
        current_value = getattr(current, 'value', current)
        target_value = getattr(target, 'value', target)
        super().__init__(f'{entity} cannot move from {current_value} to {target_value}')
        self.entity = entity
        self.current = current_value
        self.target = target_value


class BudgetLocked(SalesflowError):
    code = 'BUDGET_LOCKED'


class OrderLocked(SalesflowError):
    code = 'ORDER_LOCKED'


class NotApproved(SalesflowError):
    code = 'NOT_APPROVED'


class ClientRequired(SalesflowError):
    code = 'CLIENT_REQUIRED'


class ConversionConflict(SalesflowError):
    code = 'CONVERSION_CONFLICT'


class SequenceCollision(SalesflowError):
    code = 'SEQUENCE_COLLISION'

    def __init__(self, prefix: str, attempts: int) -> None:
        super().__init__(f'Could not allocate a unique {prefix} number after {attempts} attempts')
        self.prefix = prefix
        self.attempts = attempts
