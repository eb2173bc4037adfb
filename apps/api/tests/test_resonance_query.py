"""
Tests for hexagon resonance (the read path behind the visualization).

Covers completeness (one row per active axis), exclusion of the caller,
check-in-based completion status, and the zero-count fallback.
"""
from datetime import date, timedelta
from uuid import uuid4

from sqlalchemy.exc import OperationalError

from models import Category
from services import resonance_query
from services.checkins import create_checkin, remove_checkin
from services.resonance_log import record
from services.resonance_query import hexagon_resonance, hexagon_resonance_or_default, total_resonance

DAY = date(2025, 8, 26)
AXIS_ORDER = ["physical", "mental", "emotional", "social", "spiritual", "material"]


def _by_slug(rows):
    return {r.axis_slug: r for r in rows}


class TestCompleteness:
    def test_quiet_day_returns_every_axis_with_zeroes(self, db_session, axes):
        rows = hexagon_resonance(db_session, uuid4(), DAY)

        assert [r.axis_slug for r in rows] == AXIS_ORDER
        assert all(r.resonance_count == 0 for r in rows)
        assert all(r.user_completed is False for r in rows)
        assert all(r.has_resonance is False for r in rows)

    def test_axis_without_events_is_still_present(self, db_session, axes):
        record(db_session, uuid4(), axes["physical"].id, DAY)

        rows = _by_slug(hexagon_resonance(db_session, uuid4(), DAY))

        assert len(rows) == 6
        assert rows["material"].resonance_count == 0
        assert rows["material"].user_completed is False

    def test_inactive_and_non_axis_categories_are_excluded(self, db_session, axes):
        axes["material"].is_active = False
        db_session.add(Category(slug="hydration", name={"en": "Hydration"}, position=0, kind="habit"))
        db_session.flush()

        slugs = [r.axis_slug for r in hexagon_resonance(db_session, uuid4(), DAY)]

        assert slugs == AXIS_ORDER[:-1]

    def test_order_follows_category_position(self, db_session, axes):
        axes["material"].position = 0
        db_session.flush()

        rows = hexagon_resonance(db_session, uuid4(), DAY)

        assert rows[0].axis_slug == "material"


class TestExclusion:
    def test_three_user_scenario(self, db_session, axes):
        users = [uuid4(), uuid4(), uuid4()]
        for user in users:
            create_checkin(db_session, user, axes["physical"].id, DAY)

        rows = _by_slug(hexagon_resonance(db_session, users[0], DAY))

        assert rows["physical"].resonance_count == 2
        assert rows["physical"].user_completed is True
        assert rows["physical"].has_resonance is True
        assert rows["mental"].resonance_count == 0

    def test_callers_own_event_never_counts(self, db_session, axes):
        me = uuid4()
        record(db_session, me, axes["emotional"].id, DAY)

        rows = _by_slug(hexagon_resonance(db_session, me, DAY))

        assert rows["emotional"].resonance_count == 0

    def test_observer_sees_everyone(self, db_session, axes):
        for _ in range(4):
            record(db_session, uuid4(), axes["social"].id, DAY)

        rows = _by_slug(hexagon_resonance(db_session, uuid4(), DAY))

        assert rows["social"].resonance_count == 4

    def test_other_days_do_not_leak(self, db_session, axes):
        record(db_session, uuid4(), axes["mental"].id, DAY - timedelta(days=1))

        rows = _by_slug(hexagon_resonance(db_session, uuid4(), DAY))

        assert rows["mental"].resonance_count == 0


class TestUserCompleted:
    def test_reads_checkins_not_the_event_log(self, db_session, axes):
        """An event without a check-in does not mark the axis completed."""
        me = uuid4()
        record(db_session, me, axes["spiritual"].id, DAY)

        rows = _by_slug(hexagon_resonance(db_session, me, DAY))

        assert rows["spiritual"].user_completed is False

    def test_unchecking_clears_status_but_keeps_the_signal(self, db_session, axes):
        me, other = uuid4(), uuid4()
        create_checkin(db_session, me, axes["material"].id, DAY)
        create_checkin(db_session, other, axes["material"].id, DAY)
        remove_checkin(db_session, me, axes["material"].id, DAY)

        mine = _by_slug(hexagon_resonance(db_session, me, DAY))
        theirs = _by_slug(hexagon_resonance(db_session, other, DAY))

        assert mine["material"].user_completed is False
        assert mine["material"].resonance_count == 1
        # The event log is append-only: my completion still counts for others.
        assert theirs["material"].resonance_count == 1


class TestDegradedRead:
    def test_database_error_degrades_to_zero_counts(self, db_session, axes, monkeypatch):
        record(db_session, uuid4(), axes["physical"].id, DAY)

        def boom(*args, **kwargs):
            raise OperationalError("SELECT ...", {}, Exception("connection reset"))

        monkeypatch.setattr(resonance_query, "hexagon_resonance", boom)

        rows = hexagon_resonance_or_default(db_session, uuid4(), DAY)

        assert [r.axis_slug for r in rows] == AXIS_ORDER
        assert total_resonance(rows) == 0

    def test_total_resonance_sums_counts(self, db_session, axes):
        record(db_session, uuid4(), axes["physical"].id, DAY)
        record(db_session, uuid4(), axes["mental"].id, DAY)
        record(db_session, uuid4(), axes["mental"].id, DAY)

        assert total_resonance(hexagon_resonance_or_default(db_session, uuid4(), DAY)) == 3
