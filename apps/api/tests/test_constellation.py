"""
Tests for the constellation view and its re-derivation from the log.

The aggregate is a cache over the resonance log: its counts must always be
reproducible from the log, and a rebuild must restore them after drift.
"""
import pytest
from datetime import date, timedelta
from uuid import uuid4

from core.cache import constellation_cache_key
from models import ConstellationData
from services.checkins import create_checkin
from services.constellation import get_constellation_data
from services.constellation_rebuild import derive_intensity, find_drift, rebuild_constellation
from services.resonance_aggregator import increment
from services.resonance_log import record

DAY = date(2025, 8, 26)


def _row(db, day, slug):
    return db.query(ConstellationData).filter_by(date=day, axis_slug=slug).one_or_none()


class TestConstellationView:
    def test_rows_carry_counts_and_presentation_only(self, db_session, axes):
        today = date.today()
        for _ in range(2):
            record(db_session, uuid4(), axes["mental"].id, today)
        record(db_session, uuid4(), axes["physical"].id, today)

        data = get_constellation_data(db_session, today)

        assert [d["axis_slug"] for d in data] == ["physical", "mental"]
        mental = data[1]
        assert mental["completion_count"] == 2
        assert mental["resonance_intensity"] == pytest.approx(1.1)
        assert mental["axis_color"] == "#D4A5F3"
        assert mental["axis_name"]["en"] == "Mental"
        assert set(mental) == {"axis_slug", "completion_count", "resonance_intensity", "axis_color", "axis_name"}

    def test_today_is_never_cached(self, db_session, axes, fake_redis):
        record(db_session, uuid4(), axes["social"].id, date.today())

        get_constellation_data(db_session)

        assert fake_redis.get(constellation_cache_key(date.today())) is None

    def test_closed_days_are_served_from_cache(self, db_session, axes, fake_redis):
        past = date.today() - timedelta(days=3)
        record(db_session, uuid4(), axes["social"].id, past)

        first = get_constellation_data(db_session, past)
        assert fake_redis.get(constellation_cache_key(past)) is not None

        # Out-of-band edit: only a cache hit can still report the old count.
        _row(db_session, past, "social").completion_count = 9
        db_session.flush()

        assert get_constellation_data(db_session, past) == first

    def test_backdated_checkin_refreshes_cached_day(self, db_session, axes, fake_redis):
        yesterday = date.today() - timedelta(days=1)
        create_checkin(db_session, uuid4(), axes["social"].id, yesterday)
        assert get_constellation_data(db_session, yesterday)[0]["completion_count"] == 1

        create_checkin(db_session, uuid4(), axes["social"].id, yesterday)
        data = get_constellation_data(db_session, yesterday)

        assert data[0]["completion_count"] == 2
        assert data[0]["completion_count"] == _row(db_session, yesterday, "social").completion_count

    def test_duplicate_backdated_record_keeps_cache(self, db_session, axes, fake_redis):
        past = date.today() - timedelta(days=2)
        user = uuid4()
        record(db_session, user, axes["mental"].id, past)
        get_constellation_data(db_session, past)

        record(db_session, user, axes["mental"].id, past)

        assert fake_redis.get(constellation_cache_key(past)) is not None

    def test_day_without_activity_is_empty(self, db_session, axes):
        assert get_constellation_data(db_session, DAY) == []


class TestDeriveIntensity:
    @pytest.mark.parametrize("count,expected", [(0, 0.0), (1, 1.0), (3, 1.2), (10, 1.9), (11, 2.0), (500, 2.0)])
    def test_closed_form(self, count, expected):
        assert derive_intensity(count) == pytest.approx(expected)

    def test_matches_incremental_rule(self, db_session):
        for n in range(1, 16):
            snap = increment(db_session, DAY, "physical")
            assert snap.completion_count == n
            assert snap.resonance_intensity == pytest.approx(derive_intensity(n))


class TestDriftAndRebuild:
    def test_normal_operation_has_no_drift(self, db_session, axes):
        users = [uuid4() for _ in range(5)]
        for i, user in enumerate(users):
            record(db_session, user, axes["physical"].id, DAY)
            record(db_session, user, axes["physical"].id, DAY)  # duplicate
            if i % 2:
                record(db_session, user, axes["mental"].id, DAY)

        assert find_drift(db_session) == []
        assert _row(db_session, DAY, "physical").completion_count == 5
        assert _row(db_session, DAY, "mental").completion_count == 2

    def test_rebuild_repairs_corrupted_count(self, db_session, axes, fake_redis):
        for _ in range(3):
            record(db_session, uuid4(), axes["emotional"].id, DAY)
        row = _row(db_session, DAY, "emotional")
        row.completion_count = 7
        row.resonance_intensity = 1.6
        db_session.flush()
        fake_redis.setex(constellation_cache_key(DAY), 60, "[]")

        drift = find_drift(db_session, DAY)
        assert len(drift) == 1
        assert drift[0].axis_slug == "emotional"
        assert drift[0].expected_count == 3
        assert drift[0].actual_count == 7

        assert rebuild_constellation(db_session, DAY) == 1

        repaired = _row(db_session, DAY, "emotional")
        assert repaired.completion_count == 3
        assert float(repaired.resonance_intensity) == pytest.approx(1.2)
        assert find_drift(db_session, DAY) == []
        assert fake_redis.get(constellation_cache_key(DAY)) is None

    def test_wrong_intensity_with_right_count_is_drift(self, db_session, axes):
        for _ in range(3):
            record(db_session, uuid4(), axes["social"].id, DAY)
        row = _row(db_session, DAY, "social")
        row.resonance_intensity = 1.9
        db_session.flush()

        drift = find_drift(db_session, DAY)

        assert len(drift) == 1
        assert drift[0].expected_count == drift[0].actual_count == 3
        assert drift[0].expected_intensity == pytest.approx(1.2)
        assert drift[0].actual_intensity == pytest.approx(1.9)

        assert rebuild_constellation(db_session, DAY) == 1
        assert float(_row(db_session, DAY, "social").resonance_intensity) == pytest.approx(1.2)
        assert find_drift(db_session, DAY) == []

    def test_rebuild_recreates_missing_row(self, db_session, axes):
        record(db_session, uuid4(), axes["spiritual"].id, DAY)
        record(db_session, uuid4(), axes["spiritual"].id, DAY)
        db_session.query(ConstellationData).filter_by(date=DAY, axis_slug="spiritual").delete()
        db_session.flush()

        drift = find_drift(db_session)
        assert drift[0].actual_count is None

        rebuild_constellation(db_session)

        assert _row(db_session, DAY, "spiritual").completion_count == 2

    def test_orphan_aggregate_is_zeroed_not_deleted(self, db_session, axes):
        increment(db_session, DAY, "material")

        assert len(find_drift(db_session, DAY)) == 1
        rebuild_constellation(db_session, DAY)

        row = _row(db_session, DAY, "material")
        assert row is not None
        assert row.completion_count == 0
        assert find_drift(db_session, DAY) == []
