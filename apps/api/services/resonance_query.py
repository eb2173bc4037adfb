"""
Hexagon resonance read model.

For one user and day, returns one row per active axis with:
- resonance_count: distinct *other* users with a resonance event on that axis
- user_completed: whether the caller has a check-in for that axis

The caller is filtered out inside the counting subquery and only counts
leave this module, so the result never identifies another user. The
caller's own status comes from the check-in table (the authoritative
fact), not from the append-only log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import AXIS_KIND, Category, Checkin, ResonanceEvent
from services.categories import list_active_axes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AxisResonance:
    axis_slug: str
    resonance_count: int
    user_completed: bool

    @property
    def has_resonance(self) -> bool:
        return self.resonance_count > 0


def hexagon_resonance(db: Session, user_id: UUID, day: Optional[date] = None) -> List[AxisResonance]:
    """
    Resonance for every active axis, in display order. Never sparse: axes
    with no activity come back as (0, False).
    """
    day = day or date.today()

    others = (
        select(
            ResonanceEvent.axis_slug.label("axis_slug"),
            func.count(distinct(ResonanceEvent.user_id)).label("others_count"),
        )
        .where(
            ResonanceEvent.resonance_day == day,
            ResonanceEvent.user_id != user_id,
        )
        .group_by(ResonanceEvent.axis_slug)
        .subquery("others")
    )

    completed = (
        select(Checkin.category_id.label("category_id"))
        .where(Checkin.user_id == user_id, Checkin.completed_on == day)
        .distinct()
        .subquery("completed")
    )

    stmt = (
        select(
            Category.slug,
            func.coalesce(others.c.others_count, 0).label("resonance_count"),
            completed.c.category_id.is_not(None).label("user_completed"),
        )
        .select_from(Category)
        .outerjoin(others, others.c.axis_slug == Category.slug)
        .outerjoin(completed, completed.c.category_id == Category.id)
        .where(Category.is_active.is_(True), Category.kind == AXIS_KIND)
        .order_by(Category.position.asc(), Category.slug.asc())
    )

    return [
        AxisResonance(
            axis_slug=row.slug,
            resonance_count=int(row.resonance_count or 0),
            user_completed=bool(row.user_completed),
        )
        for row in db.execute(stmt)
    ]


def hexagon_resonance_or_default(db: Session, user_id: UUID, day: Optional[date] = None) -> List[AxisResonance]:
    """
    hexagon_resonance, degraded to all-zero counts on database errors.

    Resonance decorates the hexagon; it must never block it. If even the
    axis list cannot be read, returns an empty list.
    """
    try:
        return hexagon_resonance(db, user_id, day)
    except SQLAlchemyError as e:
        logger.error(f"Hexagon resonance query failed, returning zero counts: {e}", exc_info=True)
        db.rollback()

    try:
        return [
            AxisResonance(axis_slug=axis.slug, resonance_count=0, user_completed=False)
            for axis in list_active_axes(db)
        ]
    except SQLAlchemyError as e:
        logger.error(f"Axis lookup failed while degrading hexagon resonance: {e}")
        db.rollback()
        return []


def total_resonance(rows: List[AxisResonance]) -> int:
    return sum(r.resonance_count for r in rows)
