"""
Re-derive the constellation aggregate from the resonance log.

The hot path never re-scans the log; these helpers do, for drift checks
and for repair after data migrations (e.g. rewriting category ids). Run
them with resonance writes paused, inside one transaction.

Intensity is a pure function of the count: the incremental rule
(start at 1.0, +0.1 per extra completion, cap 2.0) folds to
min(1.0 + 0.1 * (count - 1), 2.0).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.cache import invalidate_constellation_cache
from models import ConstellationData, ResonanceEvent
from services.resonance_aggregator import BASE_INTENSITY, INTENSITY_STEP, MAX_INTENSITY

logger = logging.getLogger(__name__)

Key = Tuple[date, str]


@dataclass(frozen=True)
class DriftEntry:
    day: date
    axis_slug: str
    expected_count: int  # from the log
    actual_count: Optional[int]  # None when the aggregate row is missing
    expected_intensity: float = 0.0
    actual_intensity: Optional[float] = None


def derive_intensity(count: int) -> float:
    """Closed form of the incremental intensity rule, rounded like the column."""
    if count <= 0:
        return 0.0
    raw = Decimal(str(BASE_INTENSITY)) + Decimal(str(INTENSITY_STEP)) * (count - 1)
    capped = min(raw, Decimal(str(MAX_INTENSITY)))
    return float(capped.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _log_counts(db: Session, day: Optional[date]) -> Dict[Key, int]:
    query = db.query(
        ResonanceEvent.resonance_day,
        ResonanceEvent.axis_slug,
        func.count(ResonanceEvent.id),
    )
    if day:
        query = query.filter(ResonanceEvent.resonance_day == day)
    rows = query.group_by(ResonanceEvent.resonance_day, ResonanceEvent.axis_slug).all()
    return {(d, slug): int(n) for d, slug, n in rows}


def _aggregate_rows(db: Session, day: Optional[date]) -> Dict[Key, ConstellationData]:
    # Upserts bypass the identity map; reload whatever the session holds.
    query = db.query(ConstellationData).populate_existing()
    if day:
        query = query.filter(ConstellationData.date == day)
    return {(row.date, row.axis_slug): row for row in query.all()}


def find_drift(db: Session, day: Optional[date] = None) -> List[DriftEntry]:
    """Every (day, axis) whose aggregate count or intensity disagrees with the log."""
    expected = _log_counts(db, day)
    actual = _aggregate_rows(db, day)

    drift = []
    for key in sorted(set(expected) | set(actual)):
        want = expected.get(key, 0)
        want_intensity = derive_intensity(want)
        row = actual.get(key)
        if row is None:
            if want:
                drift.append(DriftEntry(
                    day=key[0], axis_slug=key[1], expected_count=want, actual_count=None,
                    expected_intensity=want_intensity,
                ))
            continue
        have = int(row.completion_count)
        have_intensity = float(row.resonance_intensity)
        if have != want or have_intensity != want_intensity:
            drift.append(DriftEntry(
                day=key[0], axis_slug=key[1], expected_count=want, actual_count=have,
                expected_intensity=want_intensity, actual_intensity=have_intensity,
            ))
    return drift


def rebuild_constellation(db: Session, day: Optional[date] = None) -> int:
    """
    Rewrite aggregate rows for `day` (or every day) from the log.

    Rows with no backing events are zeroed rather than deleted; aggregate
    rows are never removed. Does not commit. Returns the number of rows
    written.
    """
    expected = _log_counts(db, day)
    existing = _aggregate_rows(db, day)

    written = 0
    for key in set(expected) | set(existing):
        count = expected.get(key, 0)
        intensity = derive_intensity(count)
        row = existing.get(key)
        if row is None:
            db.add(ConstellationData(
                date=key[0],
                axis_slug=key[1],
                completion_count=count,
                resonance_intensity=intensity,
            ))
            written += 1
        elif int(row.completion_count) != count or float(row.resonance_intensity) != intensity:
            row.completion_count = count
            row.resonance_intensity = intensity
            written += 1

    db.flush()
    invalidate_constellation_cache(day)
    logger.info(
        f"Constellation rebuilt: {written} row(s) written",
        extra={"extra_fields": {"day": day.isoformat() if day else None, "rows_written": written}},
    )
    return written
