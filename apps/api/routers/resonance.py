"""
Resonance API Router

Anonymous community signal around the hexagon:
- record: idempotent "I completed this axis today" (also fed by check-ins)
- hexagon: how many *other* people completed each axis on a day
- constellation: per-axis community aggregate for a day
"""

from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from core.auth import get_current_user_id
from core.database import get_db
from services.constellation import get_constellation_data
from services.resonance_log import list_user_events, record
from services.resonance_query import hexagon_resonance_or_default, total_resonance

router = APIRouter(prefix="/v1/resonance", tags=["Resonance"])


# ============ Request / Response Models ============

class RecordRequest(BaseModel):
    category_id: UUID
    day: Optional[date] = Field(default=None, alias="date")

    model_config = ConfigDict(populate_by_name=True)


class RecordResponse(BaseModel):
    created: bool
    axis_slug: str
    resonance_day: date
    completion_count: Optional[int] = None  # None when the call was a duplicate
    resonance_intensity: Optional[float] = None


class AxisResonanceResponse(BaseModel):
    axis_slug: str
    resonance_count: int
    user_completed: bool
    has_resonance: bool


class HexagonResonanceResponse(BaseModel):
    date: date
    resonance: List[AxisResonanceResponse]
    total_resonance: int


class ResonanceEventResponse(BaseModel):
    category_id: UUID
    axis_slug: str
    resonance_day: date

    model_config = ConfigDict(from_attributes=True)


class ConstellationAxisResponse(BaseModel):
    axis_slug: str
    completion_count: int
    resonance_intensity: float
    axis_color: str
    axis_name: Dict[str, Any]


# ============ Endpoints ============

@router.post("/events", response_model=RecordResponse)
async def record_event(
    body: RecordRequest,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """
    Record a resonance event for the caller.

    Repeating the call for the same category and day is safe: it answers 200
    with created=false and counts nothing twice. Unknown or inactive axes
    answer 404 CATEGORY_NOT_FOUND.
    """
    result = record(db, user_id, body.category_id, body.day)
    response = RecordResponse(
        created=result.created,
        axis_slug=result.axis_slug,
        resonance_day=result.resonance_day,
        completion_count=result.aggregate.completion_count if result.aggregate else None,
        resonance_intensity=result.aggregate.resonance_intensity if result.aggregate else None,
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        content=response.model_dump(mode="json"),
    )


@router.get("/events", response_model=List[ResonanceEventResponse])
async def my_events(
    day: Optional[date] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """The caller's own resonance events for a day."""
    return list_user_events(db, user_id, day)


@router.get("/hexagon", response_model=HexagonResonanceResponse)
async def hexagon(
    day: Optional[date] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """
    Per-axis resonance for the caller's hexagon.

    Always one entry per active axis. Degrades to zero counts instead of
    failing, since resonance only decorates the hexagon.
    """
    day = day or date.today()
    rows = hexagon_resonance_or_default(db, user_id, day)
    return HexagonResonanceResponse(
        date=day,
        resonance=[
            AxisResonanceResponse(
                axis_slug=r.axis_slug,
                resonance_count=r.resonance_count,
                user_completed=r.user_completed,
                has_resonance=r.has_resonance,
            )
            for r in rows
        ],
        total_resonance=total_resonance(rows),
    )


@router.get("/constellation", response_model=List[ConstellationAxisResponse])
async def constellation(
    day: Optional[date] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    _user_id: UUID = Depends(get_current_user_id),
):
    """Community constellation for a day (axes with activity only)."""
    return get_constellation_data(db, day)
