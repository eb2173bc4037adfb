from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, date
from uuid import UUID
from typing import Optional, Dict


class CategoryResponse(BaseModel):
    id: UUID
    slug: str
    name: Dict[str, str]
    description: Optional[Dict[str, str]] = None
    color: str
    icon: str
    position: int

    model_config = ConfigDict(from_attributes=True)


class CheckinToggle(BaseModel):
    """Mark a category completed (or not) for a day. Defaults to today."""
    category_id: UUID
    completed: bool = True
    day: Optional[date] = Field(default=None, alias="date")
    mood: Optional[int] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = Field(default=None, max_length=1000)

    model_config = ConfigDict(populate_by_name=True)


class CheckinResponse(BaseModel):
    id: UUID
    user_id: UUID
    category_id: UUID
    completed_on: date
    mood: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
