"""
Check-in (completion fact) writes.

One row per (user, category, day). Only a genuine insert publishes
`checkin.created`; touching an existing row (mood/notes) or removing it
publishes nothing. Removing a check-in leaves the resonance log and the
constellation aggregate untouched: resonance means "completed at some
point that day", not "currently checked".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from core.database import upsert_insert
from core.events import EVENT_CHECKIN_CREATED, emit
from core.exceptions import NotFoundError
from models import Checkin
from services.categories import get_category
import services.resonance_trigger  # noqa: F401  (subscribes the resonance handler)

logger = logging.getLogger(__name__)


@dataclass
class CheckinResult:
    checkin: Checkin
    created: bool


def create_checkin(
    db: Session,
    user_id: UUID,
    category_id: UUID,
    day: Optional[date] = None,
    mood: Optional[int] = None,
    notes: Optional[str] = None,
) -> CheckinResult:
    """
    Mark `category_id` completed for `user_id` on `day` (default: today).

    Raises:
        NotFoundError: the category does not exist.
    """
    day = day or date.today()
    if get_category(db, category_id) is None:
        raise NotFoundError("Category", str(category_id))

    table = Checkin.__table__
    stmt = (
        upsert_insert(db, table)
        .values(
            user_id=user_id,
            category_id=category_id,
            completed_on=day,
            mood=mood,
            notes=notes,
        )
        .on_conflict_do_nothing(
            index_elements=[table.c.user_id, table.c.category_id, table.c.completed_on]
        )
        .returning(table.c.id)
    )
    inserted = db.execute(stmt).first()

    if inserted is not None:
        emit(EVENT_CHECKIN_CREATED, db=db, user_id=user_id, category_id=category_id, day=day)
        return CheckinResult(checkin=db.get(Checkin, inserted.id), created=True)

    existing = _find_checkin(db, user_id, category_id, day)
    if mood is not None:
        existing.mood = mood
    if notes is not None:
        existing.notes = notes
    db.flush()
    return CheckinResult(checkin=existing, created=False)


def remove_checkin(db: Session, user_id: UUID, category_id: UUID, day: Optional[date] = None) -> bool:
    """Un-check a category for a day. Returns True if a row was deleted."""
    day = day or date.today()
    deleted = (
        db.query(Checkin)
        .filter(
            Checkin.user_id == user_id,
            Checkin.category_id == category_id,
            Checkin.completed_on == day,
        )
        .delete(synchronize_session=False)
    )
    if deleted:
        logger.info(f"Check-in removed for category {category_id} on {day.isoformat()}")
    return bool(deleted)


def list_checkins(db: Session, user_id: UUID, day: Optional[date] = None, limit: int = 100) -> List[Checkin]:
    query = db.query(Checkin).filter(Checkin.user_id == user_id)
    if day:
        query = query.filter(Checkin.completed_on == day)
    return query.order_by(Checkin.completed_on.desc(), Checkin.created_at.desc()).limit(limit).all()


def _find_checkin(db: Session, user_id: UUID, category_id: UUID, day: date) -> Checkin:
    return (
        db.query(Checkin)
        .filter(
            Checkin.user_id == user_id,
            Checkin.category_id == category_id,
            Checkin.completed_on == day,
        )
        .one()
    )
