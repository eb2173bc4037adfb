"""
Constellation aggregate maintenance.

One row per (day, axis_slug) holding the exact completion count and a
saturating intensity. Rows are only ever changed through `increment`,
a single INSERT ... ON CONFLICT DO UPDATE statement, so concurrent
writers on the same key serialize on the row lock instead of racing a
read-modify-write.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from core.database import upsert_insert
from models import ConstellationData

BASE_INTENSITY = 1.0
INTENSITY_STEP = 0.1
MAX_INTENSITY = 2.0


@dataclass(frozen=True)
class AggregateSnapshot:
    day: date
    axis_slug: str
    completion_count: int
    resonance_intensity: float


def increment(db: Session, day: date, axis_slug: str) -> AggregateSnapshot:
    """
    Count one more completion of `axis_slug` on `day`.

    Only the resonance log calls this, after it has actually inserted a new
    event. Calling it from anywhere else lets the aggregate drift from the log.
    """
    table = ConstellationData.__table__
    bumped = table.c.resonance_intensity + INTENSITY_STEP

    stmt = (
        upsert_insert(db, table)
        .values(
            date=day,
            axis_slug=axis_slug,
            completion_count=1,
            resonance_intensity=BASE_INTENSITY,
        )
        .on_conflict_do_update(
            index_elements=[table.c.date, table.c.axis_slug],
            set_={
                "completion_count": table.c.completion_count + 1,
                "resonance_intensity": case((bumped > MAX_INTENSITY, MAX_INTENSITY), else_=bumped),
                # onupdate= does not fire for ON CONFLICT updates.
                "updated_at": func.now(),
            },
        )
        .returning(table.c.completion_count, table.c.resonance_intensity)
    )
    row = db.execute(stmt).one()

    return AggregateSnapshot(
        day=day,
        axis_slug=axis_slug,
        completion_count=int(row.completion_count),
        resonance_intensity=float(row.resonance_intensity),
    )
