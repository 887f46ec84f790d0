from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import InstrumentedAttribute, Session

from salesflow.config import settings
from salesflow.errors import SequenceCollision
from salesflow.models import NumberSequence

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _locked_counter(db: Session, name: str) -> NumberSequence | None:
    return db.execute(
        select(NumberSequence)
        .where(NumberSequence.name == name)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def next_sequence_value(db: Session, name: str) -> int:
    """Increment the named counter under a row lock.

    The increment is part of the caller's transaction, so a rollback gives the
    value back.
    """
    counter = _locked_counter(db, name)
    if counter is None:
        savepoint = db.begin_nested()
        try:
            db.add(NumberSequence(name=name, current_value=1))
            db.flush()
            savepoint.commit()
            return 1
        except IntegrityError:
            # Another transaction created the row first.
            savepoint.rollback()
            counter = _locked_counter(db, name)
            if counter is None:
                raise

    counter.current_value += 1
    db.flush()
    return counter.current_value


def format_document_number(prefix: str, value: int, *, at: datetime | None = None) -> str:
    moment = at or _now()
    return f'{prefix}-{moment:%y%m}-{value:06d}'


def allocate_document_number(
    db: Session,
    *,
    prefix: str,
    column: InstrumentedAttribute,
    at: datetime | None = None,
    max_attempts: int | None = None,
) -> str:
    """Return the next ``PREFIX-YYMM-nnnnnn`` number not yet used in ``column``.

    Numbers that already exist (imported or hand-entered rows) are skipped; after
    ``max_attempts`` consecutive collisions the allocation gives up.
    """
    attempts = max_attempts or settings.sequence_max_attempts
    for attempt in range(1, attempts + 1):
        candidate = format_document_number(prefix, next_sequence_value(db, prefix), at=at)
        taken = db.execute(select(column).where(column == candidate).limit(1)).first()
        if not taken:
            return candidate
        logger.warning(
            'document_number_collision',
            extra={'prefix': prefix, 'candidate': candidate, 'attempt': attempt},
        )
    raise SequenceCollision(prefix, attempts)
