"""
Check-in -> resonance propagation.

Subscribes to `checkin.created` and records the matching resonance event
in the check-in's own transaction. Resonance is additive: whatever goes
wrong here, the check-in itself must still commit. The work runs inside a
SAVEPOINT so a failure discards only the resonance writes.

Imported for its side effect by `services.checkins`.
"""
import logging
from datetime import date
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from core.events import EVENT_CHECKIN_CREATED, subscribe
from core.exceptions import CategoryNotFoundError
from services.resonance_log import record

logger = logging.getLogger(__name__)


def on_checkin_created(db: Session, user_id: UUID, category_id: UUID, day: date) -> bool:
    """
    Handle a newly inserted check-in. Returns True if a resonance event was created.
    """
    if not settings.RESONANCE_ENABLED:
        return False

    try:
        # Rolls back to the savepoint on any exception, then re-raises.
        with db.begin_nested():
            result = record(db, user_id, category_id, day)
        return result.created
    except CategoryNotFoundError:
        logger.warning(
            f"Skipping resonance for category {category_id}: not an active axis",
            extra={"extra_fields": {"category_id": str(category_id), "day": day.isoformat()}},
        )
        return False
    except SQLAlchemyError as e:
        logger.error(
            f"Resonance recording failed; check-in kept: {e}",
            exc_info=True,
            extra={"extra_fields": {"category_id": str(category_id), "day": day.isoformat()}},
        )
        return False


subscribe(EVENT_CHECKIN_CREATED, on_checkin_created)
