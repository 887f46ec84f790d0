"""Decimal money helpers.

Every function accepts ``Decimal``, ``int``, ``str`` or ``None`` and returns an
unrounded ``Decimal``. Rounding to cents happens only in ``quantize_money``,
which callers apply where a value is persisted or shown. Floats go through
``str()`` so no binary round-trip leaks into a money value.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation

from salesflow.errors import ValidationError

CENTS = Decimal('0.01')
ZERO = Decimal('0')
HUNDRED = Decimal('100')

MONEY_CONTEXT = Context(prec=28, rounding=ROUND_HALF_UP)

MoneyLike = Decimal | int | str | float | None


def to_decimal(value: MoneyLike) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError('Boolean is not a monetary value')
    raw = str(value).strip().replace(',', '.')
    if raw == '':
        return ZERO
    try:
        parsed = Decimal(raw)
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f'Invalid monetary value: {value!r}') from exc
    if not parsed.is_finite():
        raise ValidationError(f'Invalid monetary value: {value!r}')
    return parsed


def quantize_money(value: MoneyLike) -> Decimal:
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_money_string(value: MoneyLike) -> str:
    return f'{quantize_money(value):.2f}'


def add(a: MoneyLike, b: MoneyLike) -> Decimal:
    return MONEY_CONTEXT.add(to_decimal(a), to_decimal(b))


def subtract(a: MoneyLike, b: MoneyLike) -> Decimal:
    return MONEY_CONTEXT.subtract(to_decimal(a), to_decimal(b))


def multiply_by_scalar(value: MoneyLike, scalar: MoneyLike) -> Decimal:
    return MONEY_CONTEXT.multiply(to_decimal(value), to_decimal(scalar))


def divide(value: MoneyLike, divisor: MoneyLike) -> Decimal:
    d = to_decimal(divisor)
    if d == ZERO:
        raise ValidationError('Division by zero')
    return MONEY_CONTEXT.divide(to_decimal(value), d)


def percentage_of(value: MoneyLike, percentage: MoneyLike) -> Decimal:
    return MONEY_CONTEXT.divide(multiply_by_scalar(value, percentage), HUNDRED)


def compare(a: MoneyLike, b: MoneyLike) -> int:
    return int(to_decimal(a).compare(to_decimal(b)))


def sum_money(values: Iterable[MoneyLike]) -> Decimal:
    total = ZERO
    for value in values:
        total = MONEY_CONTEXT.add(total, to_decimal(value))
    return total


def max_money(*values: MoneyLike) -> Decimal:
    if not values:
        return ZERO
    return max(to_decimal(v) for v in values)


def min_money(*values: MoneyLike) -> Decimal:
    if not values:
        return ZERO
    return min(to_decimal(v) for v in values)


def floor_zero(value: MoneyLike) -> Decimal:
    return max_money(ZERO, value)
