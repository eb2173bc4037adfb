"""
Tests for the resonance event log.

Covers idempotent recording, axis resolution failures, and the rule that
the aggregate moves only when the log gains a row.
"""
import pytest
from datetime import date, timedelta
from uuid import uuid4

from core.exceptions import CategoryNotFoundError
from models import Category, ConstellationData, ResonanceEvent
from services.resonance_log import list_user_events, record

DAY = date(2025, 8, 26)


def _events(db, **filters):
    return db.query(ResonanceEvent).filter_by(**filters).all()


def _aggregate(db, day, slug):
    return db.query(ConstellationData).filter_by(date=day, axis_slug=slug).one_or_none()


class TestRecord:
    def test_first_record_creates_event_and_aggregate(self, db_session, axes):
        user = uuid4()
        result = record(db_session, user, axes["physical"].id, DAY)

        assert result.created is True
        assert result.axis_slug == "physical"
        assert result.resonance_day == DAY
        assert result.aggregate.completion_count == 1
        assert result.aggregate.resonance_intensity == pytest.approx(1.0)

        events = _events(db_session, user_id=user)
        assert len(events) == 1
        assert events[0].axis_slug == "physical"
        assert events[0].category_id == axes["physical"].id

    def test_duplicate_record_is_a_silent_noop(self, db_session, axes):
        """Same (user, category, day) twice: one event, one increment."""
        user = uuid4()
        first = record(db_session, user, axes["mental"].id, DAY)
        second = record(db_session, user, axes["mental"].id, DAY)

        assert first.created is True
        assert second.created is False
        assert second.aggregate is None
        assert second.axis_slug == "mental"

        assert len(_events(db_session, user_id=user)) == 1
        assert _aggregate(db_session, DAY, "mental").completion_count == 1

    def test_same_user_other_day_is_a_new_event(self, db_session, axes):
        user = uuid4()
        record(db_session, user, axes["social"].id, DAY)
        result = record(db_session, user, axes["social"].id, DAY + timedelta(days=1))

        assert result.created is True
        assert _aggregate(db_session, DAY, "social").completion_count == 1
        assert _aggregate(db_session, DAY + timedelta(days=1), "social").completion_count == 1

    def test_day_defaults_to_today(self, db_session, axes):
        result = record(db_session, uuid4(), axes["spiritual"].id)

        assert result.resonance_day == date.today()
        assert _aggregate(db_session, date.today(), "spiritual") is not None

    def test_unknown_category_raises_not_found_and_writes_nothing(self, db_session):
        missing = uuid4()
        with pytest.raises(CategoryNotFoundError) as exc:
            record(db_session, uuid4(), missing, DAY)

        assert exc.value.status_code == 404
        assert exc.value.error_code == "CATEGORY_NOT_FOUND"
        assert db_session.query(ResonanceEvent).count() == 0
        assert db_session.query(ConstellationData).count() == 0

    def test_inactive_category_is_not_an_axis(self, db_session, axes):
        axes["material"].is_active = False
        db_session.flush()

        with pytest.raises(CategoryNotFoundError):
            record(db_session, uuid4(), axes["material"].id, DAY)
        assert _aggregate(db_session, DAY, "material") is None

    def test_non_axis_kind_is_rejected(self, db_session):
        habit = Category(slug="hydration", name={"en": "Hydration"}, position=7, kind="habit")
        db_session.add(habit)
        db_session.flush()

        with pytest.raises(CategoryNotFoundError):
            record(db_session, uuid4(), habit.id, DAY)


class TestListUserEvents:
    def test_returns_only_the_callers_events_for_the_day(self, db_session, axes):
        me, other = uuid4(), uuid4()
        record(db_session, me, axes["physical"].id, DAY)
        record(db_session, me, axes["mental"].id, DAY)
        record(db_session, me, axes["mental"].id, DAY - timedelta(days=1))
        record(db_session, other, axes["physical"].id, DAY)

        events = list_user_events(db_session, me, DAY)

        assert sorted(e.axis_slug for e in events) == ["mental", "physical"]
        assert all(e.user_id == me for e in events)
