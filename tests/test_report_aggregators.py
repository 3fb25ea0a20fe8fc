"""Status breakdown, environment comparison and percentage rounding."""

from datetime import datetime, timezone

from testcraft.services.report_aggregators import environment_comparison, status_breakdown
from testcraft.services.run_repository import RunRecord
from testcraft.utils.helpers import round_pct

_AT = datetime(2026, 3, 1, 12, tzinfo=timezone.utc)


def _runs(*specs):
    """specs: (status, environment, count) triples → RunRecord list."""
    runs = []
    for status, env, count in specs:
        for _ in range(count):
            runs.append(RunRecord(
                id=len(runs) + 1, test_case_id=1, environment=env,
                status=status, executed_at=_AT,
            ))
    return runs


class TestRoundPct:
    def test_half_rounds_up(self):
        assert round_pct(1, 8) == 13   # 12.5
        assert round_pct(1, 2) == 50

    def test_thirds(self):
        assert round_pct(1, 3) == 33
        assert round_pct(2, 3) == 67

    def test_zero_denominator(self):
        assert round_pct(0, 0) == 0
        assert round_pct(5, 0) == 0


class TestStatusBreakdown:
    def test_counts_and_percentages(self):
        runs = _runs(("PASS", "staging", 3), ("FAIL", "staging", 1), ("BLOCKED", "qa", 1))
        result = status_breakdown(runs)
        assert result["total"] == 5
        assert result["breakdown"] == [
            {"status": "PASS", "count": 3, "percentage": 60},
            {"status": "FAIL", "count": 1, "percentage": 20},
            {"status": "BLOCKED", "count": 1, "percentage": 20},
        ]

    def test_canonical_order_regardless_of_input(self):
        runs = _runs(("SKIPPED", "qa", 1), ("FAIL", "qa", 2), ("PASS", "qa", 1))
        statuses = [row["status"] for row in status_breakdown(runs)["breakdown"]]
        assert statuses == ["PASS", "FAIL", "SKIPPED"]

    def test_zero_count_statuses_omitted(self):
        result = status_breakdown(_runs(("PASS", "qa", 2)))
        assert result["breakdown"] == [{"status": "PASS", "count": 2, "percentage": 100}]

    def test_empty(self):
        assert status_breakdown([]) == {"breakdown": [], "total": 0}


class TestEnvironmentComparison:
    def test_pass_rates_sorted_by_environment(self):
        runs = _runs(
            ("PASS", "staging", 4), ("FAIL", "staging", 1),
            ("PASS", "production", 2),
        )
        result = environment_comparison(runs)
        assert result["environments"] == [
            {"environment": "production", "totalRuns": 2, "passCount": 2, "failCount": 0, "passRate": 100},
            {"environment": "staging", "totalRuns": 5, "passCount": 4, "failCount": 1, "passRate": 80},
        ]

    def test_blocked_and_skipped_lower_pass_rate(self):
        runs = _runs(("PASS", "qa", 1), ("BLOCKED", "qa", 1), ("SKIPPED", "qa", 2))
        env = environment_comparison(runs)["environments"][0]
        assert env["totalRuns"] == 4
        assert env["failCount"] == 0
        assert env["passRate"] == 25

    def test_labels_are_case_sensitive(self):
        runs = _runs(("PASS", "Staging", 1), ("PASS", "staging", 1))
        labels = [e["environment"] for e in environment_comparison(runs)["environments"]]
        assert labels == ["Staging", "staging"]

    def test_empty(self):
        assert environment_comparison([]) == {"environments": []}
