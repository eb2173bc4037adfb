"""
Resonance Event Log

Append-only record of "user U completed axis A on day D". This is the
system of record for the constellation aggregate: an aggregate increment
happens if and only if this log gained a row.

Idempotency:
- The natural key (user_id, category_id, resonance_day) is unique.
- Inserts use ON CONFLICT DO NOTHING ... RETURNING id, so a retried or
  duplicated record() returns created=False without raising and without
  touching the aggregate. Concurrent duplicates converge on one winner.

Backdated inserts also drop that day's cached constellation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from core.cache import invalidate_constellation_cache
from core.database import upsert_insert
from models import ResonanceEvent
from services.categories import resolve_axis_slug
from services.resonance_aggregator import AggregateSnapshot, increment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordResult:
    created: bool
    user_id: UUID
    category_id: UUID
    axis_slug: str
    resonance_day: date
    # Only set when the event was new and the aggregate moved.
    aggregate: Optional[AggregateSnapshot] = None


def record(
    db: Session,
    user_id: UUID,
    category_id: UUID,
    day: Optional[date] = None,
) -> RecordResult:
    """
    Record that `user_id` completed `category_id` on `day` (default: today).

    Raises:
        CategoryNotFoundError: the category is unknown, inactive, or not an axis.
            Nothing is written in that case.
    """
    day = day or date.today()
    axis_slug = resolve_axis_slug(db, category_id)

    table = ResonanceEvent.__table__
    stmt = (
        upsert_insert(db, table)
        .values(
            user_id=user_id,
            category_id=category_id,
            axis_slug=axis_slug,
            resonance_day=day,
        )
        .on_conflict_do_nothing(
            index_elements=[table.c.user_id, table.c.category_id, table.c.resonance_day]
        )
        .returning(table.c.id)
    )
    inserted = db.execute(stmt).first()

    if inserted is None:
        logger.debug(
            "Resonance event already recorded",
            extra={"extra_fields": {"axis_slug": axis_slug, "resonance_day": day.isoformat()}},
        )
        return RecordResult(
            created=False,
            user_id=user_id,
            category_id=category_id,
            axis_slug=axis_slug,
            resonance_day=day,
        )

    snapshot = increment(db, day, axis_slug)
    if day < date.today():
        # Backdated completion: the closed day's cached constellation is now stale.
        invalidate_constellation_cache(day)
    logger.debug(
        "Resonance event recorded",
        extra={
            "extra_fields": {
                "axis_slug": axis_slug,
                "resonance_day": day.isoformat(),
                "completion_count": snapshot.completion_count,
            }
        },
    )
    return RecordResult(
        created=True,
        user_id=user_id,
        category_id=category_id,
        axis_slug=axis_slug,
        resonance_day=day,
        aggregate=snapshot,
    )


def list_user_events(db: Session, user_id: UUID, day: Optional[date] = None) -> List[ResonanceEvent]:
    """The caller's own events for a day, oldest first."""
    day = day or date.today()
    return (
        db.query(ResonanceEvent)
        .filter(ResonanceEvent.user_id == user_id, ResonanceEvent.resonance_day == day)
        .order_by(ResonanceEvent.created_at.asc(), ResonanceEvent.axis_slug.asc())
        .all()
    )
