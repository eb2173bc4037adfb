from sqlalchemy import Column, Integer, Boolean, CheckConstraint, Date, DateTime, ForeignKey, Numeric, Text, Index, UniqueConstraint, JSON, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from core.database import Base
import uuid

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")

AXIS_KIND = "axis"


class Category(Base):
    """
    Trackable category (an "axis" of the hexagon when kind == 'axis').

    The id is an opaque UUID and never changes across renames; the slug is
    the human key the visualization and the aggregate use.
    """
    __tablename__ = "category"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    slug = Column(Text, unique=True, nullable=False)
    name = Column(JSONType, nullable=False)  # {"en": "Physical", "es": "Física"}
    description = Column(JSONType, nullable=True)
    color = Column(Text, nullable=False, default="#6b7280")
    icon = Column(Text, nullable=False, default="circle")
    position = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    kind = Column(Text, nullable=False, default=AXIS_KIND)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_category_active_position", "is_active", "position"),
    )


class Checkin(Base):
    """
    Completion fact: user completed a category on a given day.

    At most one row per (user, category, day). Users are owned by the external
    auth service, so user_id carries no foreign key.
    """
    __tablename__ = "checkin"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    category_id = Column(Uuid, ForeignKey("category.id", ondelete="CASCADE"), nullable=False)
    completed_on = Column(Date, nullable=False)
    mood = Column(Integer, nullable=True)  # 1-10
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    category = relationship("Category")

    __table_args__ = (
        UniqueConstraint("user_id", "category_id", "completed_on", name="uq_checkin_user_category_day"),
        CheckConstraint("mood IS NULL OR (mood BETWEEN 1 AND 10)", name="ck_checkin_mood_range"),
        Index("ix_checkin_user_day", "user_id", "completed_on"),
    )


class ResonanceEvent(Base):
    """
    Append-only log of "user completed axis on day".

    System of record for the constellation aggregate. One row per
    (user, category, day); never updated or deleted.
    """
    __tablename__ = "resonance_event"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    category_id = Column(Uuid, ForeignKey("category.id"), nullable=False)
    axis_slug = Column(Text, nullable=False)  # Denormalized at write time
    resonance_day = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "category_id", "resonance_day", name="uq_resonance_event_user_category_day"),
        Index("ix_resonance_event_day_axis", "resonance_day", "axis_slug"),
        Index("ix_resonance_event_user_day", "user_id", "resonance_day"),
    )


class ConstellationData(Base):
    """
    Per-day, per-axis community aggregate.

    completion_count is exact and always equals the number of resonance events
    for (date, axis_slug). resonance_intensity is a saturating presentation
    metric in [1.0, 2.0].
    """
    __tablename__ = "constellation_data"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False)
    axis_slug = Column(Text, nullable=False)
    completion_count = Column(Integer, nullable=False, default=1)
    resonance_intensity = Column(Numeric(3, 2), nullable=False, default=1.0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("date", "axis_slug", name="uq_constellation_date_axis"),
        CheckConstraint("completion_count >= 0", name="ck_constellation_count_non_negative"),
        CheckConstraint("resonance_intensity <= 2.0", name="ck_constellation_intensity_cap"),
    )
