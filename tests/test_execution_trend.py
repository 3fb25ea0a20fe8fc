"""Execution trend bucketing: daily vs weekly granularity."""

from datetime import datetime, timedelta, timezone

from testcraft.services.execution_trend import (
    GRANULARITY_DAY,
    GRANULARITY_WEEK,
    bucket_key,
    choose_granularity,
    execution_trend,
)
from testcraft.services.run_repository import RunRecord

JAN_1 = datetime(2026, 1, 1, 9, tzinfo=timezone.utc)  # a Thursday


def _run(status, at, run_id=1):
    return RunRecord(id=run_id, test_case_id=1, environment="qa", status=status, executed_at=at)


class TestGranularity:
    def test_empty_and_single_are_daily(self):
        assert choose_granularity([]) == GRANULARITY_DAY
        assert choose_granularity([JAN_1]) == GRANULARITY_DAY

    def test_exactly_90_days_is_daily(self):
        assert choose_granularity([JAN_1, JAN_1 + timedelta(days=90)]) == GRANULARITY_DAY

    def test_just_over_90_days_is_weekly(self):
        later = JAN_1 + timedelta(days=90, seconds=1)
        assert choose_granularity([later, JAN_1]) == GRANULARITY_WEEK

    def test_week_key_is_monday(self):
        assert bucket_key(JAN_1, GRANULARITY_WEEK) == "2025-12-29"
        sunday = datetime(2026, 1, 4, 23, 59, tzinfo=timezone.utc)
        assert bucket_key(sunday, GRANULARITY_WEEK) == "2025-12-29"
        monday = datetime(2026, 1, 5, 0, 0, tzinfo=timezone.utc)
        assert bucket_key(monday, GRANULARITY_WEEK) == "2026-01-05"

    def test_day_key_uses_utc_date(self):
        late_utc_minus_5 = datetime(2026, 1, 1, 22, tzinfo=timezone(timedelta(hours=-5)))
        assert bucket_key(late_utc_minus_5, GRANULARITY_DAY) == "2026-01-02"


class TestExecutionTrend:
    def test_daily_buckets(self):
        runs = [
            _run("PASS", JAN_1, 1),
            _run("FAIL", JAN_1 + timedelta(hours=2), 2),
            _run("BLOCKED", JAN_1 + timedelta(hours=3), 3),
            _run("PASS", JAN_1 + timedelta(days=1), 4),
        ]
        assert execution_trend(runs)["trend"] == [
            {"date": "2026-01-01", "totalExecuted": 3, "passCount": 1, "failCount": 1, "passRate": 33},
            {"date": "2026-01-02", "totalExecuted": 1, "passCount": 1, "failCount": 0, "passRate": 100},
        ]

    def test_weekly_buckets_over_long_span(self):
        runs = [
            _run("PASS", JAN_1, 1),
            _run("FAIL", JAN_1 + timedelta(days=2), 2),   # Saturday, same week
            _run("PASS", JAN_1 + timedelta(days=91), 3),  # Thursday 2026-04-02
        ]
        trend = execution_trend(runs)["trend"]
        assert [t["date"] for t in trend] == ["2025-12-29", "2026-03-30"]
        assert trend[0]["totalExecuted"] == 2
        assert trend[0]["passRate"] == 50

    def test_sorted_regardless_of_input_order(self):
        runs = [
            _run("PASS", JAN_1 + timedelta(days=3), 1),
            _run("PASS", JAN_1, 2),
            _run("FAIL", JAN_1 + timedelta(days=1), 3),
        ]
        dates = [t["date"] for t in execution_trend(runs)["trend"]]
        assert dates == sorted(dates)

    def test_empty(self):
        assert execution_trend([]) == {"trend": []}
