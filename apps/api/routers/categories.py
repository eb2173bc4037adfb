"""
Category Registry Router

Read-only list of the axes that make up the hexagon.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from schemas import CategoryResponse
from services.categories import list_active_axes

router = APIRouter(prefix="/v1/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryResponse])
async def list_categories(db: Session = Depends(get_db)):
    """Active axes in display order."""
    return list_active_axes(db)
