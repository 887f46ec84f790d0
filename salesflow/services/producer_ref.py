from __future__ import annotations

from dataclasses import dataclass

from salesflow.errors import ValidationError

INTERNAL_SENTINEL = 'internal'


@dataclass(frozen=True)
class Internal:
    pass


@dataclass(frozen=True)
class External:
    producer_id: int


ProducerRef = Internal | External


def producer_ref_from_column(value: str | int | None) -> ProducerRef:
    """Unassigned items and the 'internal' sentinel are both fulfilled in-house."""
    if value is None:
        return Internal()
    raw = str(value).strip()
    if raw == '' or raw.lower() == INTERNAL_SENTINEL:
        return Internal()
    if not raw.isdigit():
        raise ValidationError(f'Invalid producer reference: {value!r}')
    return External(producer_id=int(raw))


def producer_ref_to_column(ref: ProducerRef) -> str:
    if isinstance(ref, External):
        return str(ref.producer_id)
    return INTERNAL_SENTINEL
