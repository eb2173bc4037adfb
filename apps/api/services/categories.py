"""
Category registry lookups.

Read-only from the resonance engine's point of view: only active,
axis-kind categories take part in resonance.
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from core.database import upsert_insert
from core.exceptions import CategoryNotFoundError
from models import AXIS_KIND, Category

# The six hexagon axes, in display order.
CORE_AXES = [
    {"slug": "physical", "name": {"en": "Physical", "es": "Física"},
     "description": {"en": "Exercise, health, and nutrition", "es": "Ejercicio, salud y nutrición"},
     "color": "#A6C26F", "icon": "activity", "position": 1},
    {"slug": "mental", "name": {"en": "Mental", "es": "Mental"},
     "description": {"en": "Learning, focus, and productivity", "es": "Aprendizaje, enfoque y productividad"},
     "color": "#D4A5F3", "icon": "brain", "position": 2},
    {"slug": "emotional", "name": {"en": "Emotional", "es": "Emocional"},
     "description": {"en": "Mood and stress management", "es": "Estado de ánimo y manejo del estrés"},
     "color": "#FF6B6B", "icon": "heart", "position": 3},
    {"slug": "social", "name": {"en": "Social", "es": "Social"},
     "description": {"en": "Relationships and connections", "es": "Relaciones y conexiones"},
     "color": "#4ECDC4", "icon": "users", "position": 4},
    {"slug": "spiritual", "name": {"en": "Spiritual", "es": "Espiritual"},
     "description": {"en": "Meditation, purpose, and mindfulness", "es": "Meditación, propósito y mindfulness"},
     "color": "#45B7D1", "icon": "sparkles", "position": 5},
    {"slug": "material", "name": {"en": "Material", "es": "Material"},
     "description": {"en": "Finance, career, and resources", "es": "Finanzas, carrera y recursos"},
     "color": "#FFD93D", "icon": "briefcase", "position": 6},
]


def seed_core_axes(db: Session) -> int:
    """Insert any missing core axes (matched by slug). Returns rows inserted."""
    table = Category.__table__
    inserted = 0
    for axis in CORE_AXES:
        stmt = (
            upsert_insert(db, table)
            .values(is_active=True, kind=AXIS_KIND, **axis)
            .on_conflict_do_nothing(index_elements=[table.c.slug])
            .returning(table.c.id)
        )
        if db.execute(stmt).first() is not None:
            inserted += 1
    return inserted


def get_category(db: Session, category_id: UUID) -> Optional[Category]:
    return db.get(Category, category_id)


def resolve_axis_slug(db: Session, category_id: UUID) -> str:
    """
    Resolve a category id to its axis slug.

    Raises:
        CategoryNotFoundError: unknown id, inactive category, or not an axis.
    """
    slug = (
        db.query(Category.slug)
        .filter(
            Category.id == category_id,
            Category.is_active.is_(True),
            Category.kind == AXIS_KIND,
        )
        .scalar()
    )
    if slug is None:
        raise CategoryNotFoundError(category_id)
    return slug


def list_active_axes(db: Session) -> List[Category]:
    """Active axis categories in display order."""
    return (
        db.query(Category)
        .filter(Category.is_active.is_(True), Category.kind == AXIS_KIND)
        .order_by(Category.position.asc(), Category.slug.asc())
        .all()
    )
