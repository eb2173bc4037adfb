"""
Community constellation view.

Abstract per-axis activity for a day, read straight from the aggregate
joined to the category registry. Carries counts and presentation data
only; no user appears anywhere in this path.

Closed days rarely change, so their payload is cached in Redis; a
backdated record drops the day's entry. Today is always read live.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.cache import constellation_cache_key, get_cache, set_cache
from core.config import settings
from models import Category, ConstellationData

logger = logging.getLogger(__name__)


def get_constellation_data(db: Session, day: Optional[date] = None) -> List[Dict[str, Any]]:
    """
    Rows of {axis_slug, completion_count, resonance_intensity, axis_color, axis_name}
    for axes with activity on `day`, in display order.
    """
    today = date.today()
    day = day or today
    cacheable = day < today

    if cacheable:
        cached = get_cache(constellation_cache_key(day))
        if cached is not None:
            return cached

    # Plain columns: upserts bypass the identity map, entities could be stale.
    rows = (
        db.query(
            ConstellationData.axis_slug,
            ConstellationData.completion_count,
            ConstellationData.resonance_intensity,
            Category.color,
            Category.name,
        )
        .join(Category, Category.slug == ConstellationData.axis_slug)
        .filter(ConstellationData.date == day)
        .order_by(Category.position.asc(), Category.slug.asc())
        .all()
    )
    payload = [
        {
            "axis_slug": row.axis_slug,
            "completion_count": int(row.completion_count),
            "resonance_intensity": float(row.resonance_intensity),
            "axis_color": row.color,
            "axis_name": row.name,
        }
        for row in rows
    ]

    if cacheable:
        set_cache(constellation_cache_key(day), payload, ttl=settings.CACHE_TTL_CONSTELLATION)
    return payload
