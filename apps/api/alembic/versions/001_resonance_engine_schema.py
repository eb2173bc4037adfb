"""resonance engine schema

Revision ID: 001
Revises:
Create Date: 2025-08-26 00:00:00.000000

Creates the category registry, check-ins, the resonance event log and the
constellation aggregate, and seeds the six core axes.

Category ids are UUIDs from the start. Changing the id type later requires
rewriting resonance_event and constellation_data in the same migration
(then verifying with scripts/rebuild_constellation.py) before writes resume.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


CORE_AXES = [
    {"slug": "physical", "name": {"en": "Physical", "es": "Física"}, "description": {"en": "Exercise, health, and nutrition", "es": "Ejercicio, salud y nutrición"}, "color": "#A6C26F", "icon": "activity", "position": 1},
    {"slug": "mental", "name": {"en": "Mental", "es": "Mental"}, "description": {"en": "Learning, focus, and productivity", "es": "Aprendizaje, enfoque y productividad"}, "color": "#D4A5F3", "icon": "brain", "position": 2},
    {"slug": "emotional", "name": {"en": "Emotional", "es": "Emocional"}, "description": {"en": "Mood and stress management", "es": "Estado de ánimo y manejo del estrés"}, "color": "#FF6B6B", "icon": "heart", "position": 3},
    {"slug": "social", "name": {"en": "Social", "es": "Social"}, "description": {"en": "Relationships and connections", "es": "Relaciones y conexiones"}, "color": "#4ECDC4", "icon": "users", "position": 4},
    {"slug": "spiritual", "name": {"en": "Spiritual", "es": "Espiritual"}, "description": {"en": "Meditation, purpose, and mindfulness", "es": "Meditación, propósito y mindfulness"}, "color": "#45B7D1", "icon": "sparkles", "position": 5},
    {"slug": "material", "name": {"en": "Material", "es": "Material"}, "description": {"en": "Finance, career, and resources", "es": "Finanzas, carrera y recursos"}, "color": "#FFD93D", "icon": "briefcase", "position": 6},
]


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto;')

    op.create_table(
        'category',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('slug', sa.Text(), nullable=False, unique=True),
        sa.Column('name', postgresql.JSONB(), nullable=False),
        sa.Column('description', postgresql.JSONB(), nullable=True),
        sa.Column('color', sa.Text(), nullable=False, server_default='#6b7280'),
        sa.Column('icon', sa.Text(), nullable=False, server_default='circle'),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('kind', sa.Text(), nullable=False, server_default='axis'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_category_active_position', 'category', ['is_active', 'position'])

    op.create_table(
        'checkin',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('category_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('category.id', ondelete='CASCADE'), nullable=False),
        sa.Column('completed_on', sa.Date(), nullable=False),
        sa.Column('mood', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('user_id', 'category_id', 'completed_on', name='uq_checkin_user_category_day'),
        sa.CheckConstraint('mood IS NULL OR (mood BETWEEN 1 AND 10)', name='ck_checkin_mood_range'),
    )
    op.create_index('ix_checkin_user_id', 'checkin', ['user_id'])
    op.create_index('ix_checkin_user_day', 'checkin', ['user_id', 'completed_on'])

    op.create_table(
        'resonance_event',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('category_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('category.id'), nullable=False),
        sa.Column('axis_slug', sa.Text(), nullable=False),
        sa.Column('resonance_day', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('user_id', 'category_id', 'resonance_day', name='uq_resonance_event_user_category_day'),
    )
    op.create_index('ix_resonance_event_day_axis', 'resonance_event', ['resonance_day', 'axis_slug'])
    op.create_index('ix_resonance_event_user_day', 'resonance_event', ['user_id', 'resonance_day'])

    op.create_table(
        'constellation_data',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('axis_slug', sa.Text(), nullable=False),
        sa.Column('completion_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('resonance_intensity', sa.Numeric(3, 2), nullable=False, server_default='1.0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('date', 'axis_slug', name='uq_constellation_date_axis'),
        sa.CheckConstraint('completion_count >= 0', name='ck_constellation_count_non_negative'),
        sa.CheckConstraint('resonance_intensity <= 2.0', name='ck_constellation_intensity_cap'),
    )

    category = sa.table(
        'category',
        sa.column('slug', sa.Text()),
        sa.column('name', postgresql.JSONB()),
        sa.column('description', postgresql.JSONB()),
        sa.column('color', sa.Text()),
        sa.column('icon', sa.Text()),
        sa.column('position', sa.Integer()),
    )
    op.bulk_insert(category, CORE_AXES)


def downgrade() -> None:
    op.drop_table('constellation_data')
    op.drop_index('ix_resonance_event_user_day', table_name='resonance_event')
    op.drop_index('ix_resonance_event_day_axis', table_name='resonance_event')
    op.drop_table('resonance_event')
    op.drop_index('ix_checkin_user_day', table_name='checkin')
    op.drop_index('ix_checkin_user_id', table_name='checkin')
    op.drop_table('checkin')
    op.drop_index('ix_category_active_position', table_name='category')
    op.drop_table('category')
