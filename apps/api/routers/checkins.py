"""
Check-in API Router

One POST toggles a category for a day. A first completion feeds the
resonance engine; un-checking only removes the check-in.
"""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date
from uuid import UUID

from core.auth import get_current_user_id
from core.database import get_db
from schemas import CheckinResponse, CheckinToggle
from services.checkins import create_checkin, list_checkins, remove_checkin

router = APIRouter(prefix="/v1/checkins", tags=["Check-ins"])


@router.post("")
async def toggle_checkin(
    body: CheckinToggle,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """
    Create or remove a check-in.

    completed=true  -> insert (201) or update mood/notes on the existing row (200)
    completed=false -> delete the day's check-in if present
    """
    day = body.day or date.today()

    if not body.completed:
        removed = remove_checkin(db, user_id, body.category_id, day)
        return {"removed": removed, "category_id": str(body.category_id), "date": day.isoformat()}

    result = create_checkin(db, user_id, body.category_id, day, mood=body.mood, notes=body.notes)
    payload = CheckinResponse.model_validate(result.checkin).model_dump(mode="json")
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        content={"checkin": payload, "created": result.created},
    )


@router.get("")
async def get_checkins(
    day: Optional[date] = Query(default=None, alias="date"),
    limit: int = 100,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """List the caller's check-ins, optionally for one day."""
    checkins = list_checkins(db, user_id, day=day, limit=min(max(limit, 1), 500))
    return {
        "checkins": [CheckinResponse.model_validate(c) for c in checkins],
        "count": len(checkins),
    }
