"""Flaky / top-failing rankings against an in-memory repository."""

from datetime import datetime, timedelta, timezone

import pytest

from testcraft.core.exceptions import ValidationError
from testcraft.services.analysis_engine import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    TestAnalysisEngine,
    clamp_limit,
    validate_analysis_type,
)
from testcraft.services.run_repository import RunRecord, TestCaseSummary

T0 = datetime(2026, 2, 1, 8, tzinfo=timezone.utc)


class FakeRepository:
    """Enrichment lookups served from dicts; records the ids it was asked for."""

    def __init__(self, cases=None, last_failed=None):
        self.cases = cases or {}
        self.last_failed = last_failed or {}
        self.case_lookups = []
        self.last_failed_lookups = []

    def fetch_test_cases(self, ids):
        ids = list(ids)
        self.case_lookups.append(ids)
        return {i: self.cases[i] for i in ids if i in self.cases}

    def fetch_last_failed_at(self, ids):
        ids = list(ids)
        self.last_failed_lookups.append(ids)
        return {i: self.last_failed[i] for i in ids if i in self.last_failed}


def _runs_for(case_id, passes, fails, start_id=1):
    runs = []
    for n in range(passes + fails):
        status = "PASS" if n < passes else "FAIL"
        runs.append(RunRecord(
            id=start_id + n, test_case_id=case_id, environment="qa",
            status=status, executed_at=T0 + timedelta(minutes=n),
        ))
    return runs


def _case(case_id, name, debug=False, last_run_at=None):
    return TestCaseSummary(id=case_id, name=name, debug_flag=debug, last_run_at=last_run_at)


@pytest.fixture()
def repo():
    return FakeRepository(
        cases={
            1: _case(1, "Checkout A", last_run_at=T0),
            2: _case(2, "Checkout B", debug=True),
            3: _case(3, "Always red"),
        },
        last_failed={1: T0 + timedelta(days=1), 2: T0 + timedelta(days=2), 3: T0},
    )


@pytest.fixture()
def runs():
    # A: 6 pass / 4 fail, B: 3 pass / 7 fail, C: 0 pass / 2 fail
    return _runs_for(1, 6, 4, 1) + _runs_for(2, 3, 7, 100) + _runs_for(3, 0, 2, 200)


class TestLimitsAndType:
    @pytest.mark.parametrize("raw,expected", [
        (None, DEFAULT_LIMIT),
        ("", DEFAULT_LIMIT),
        ("abc", DEFAULT_LIMIT),
        (0, DEFAULT_LIMIT),
        (-5, DEFAULT_LIMIT),
        ("3", 3),
        ("2.5", DEFAULT_LIMIT),
        (1000, MAX_LIMIT),
    ])
    def test_clamp_limit(self, raw, expected):
        assert clamp_limit(raw) == expected

    @pytest.mark.parametrize("bad", [None, "", "FLAKY", "top_failing", "slowest"])
    def test_invalid_type_rejected(self, bad):
        with pytest.raises(ValidationError):
            validate_analysis_type(bad)


class TestFlaky:
    def test_ranks_by_score(self, repo, runs):
        tests = TestAnalysisEngine(repo).flaky(runs)["tests"]
        assert [t["testCaseId"] for t in tests] == [2, 1]
        assert tests[0] == {
            "testCaseId": 2,
            "testCaseName": "Checkout B",
            "totalRuns": 10,
            "passCount": 3,
            "failCount": 7,
            "flakinessScore": 70,
            "debugFlag": True,
            "lastRunAt": None,
        }
        assert tests[1]["flakinessScore"] == 40
        assert tests[1]["lastRunAt"] == T0.isoformat()

    def test_pure_failures_are_not_flaky(self, repo, runs):
        ids = [t["testCaseId"] for t in TestAnalysisEngine(repo).flaky(runs)["tests"]]
        assert 3 not in ids

    def test_ties_break_on_lower_id(self):
        runs = _runs_for(9, 1, 1, 1) + _runs_for(4, 1, 1, 10)
        tests = TestAnalysisEngine(FakeRepository()).flaky(runs)["tests"]
        assert [t["testCaseId"] for t in tests] == [4, 9]

    def test_limit_caps_at_50(self):
        runs = []
        for case_id in range(1, 61):
            runs += _runs_for(case_id, 1, 1, case_id * 10)
        tests = TestAnalysisEngine(FakeRepository()).flaky(runs, limit=1000)["tests"]
        assert len(tests) == MAX_LIMIT

    def test_vanished_case_falls_back_to_unknown(self, runs):
        tests = TestAnalysisEngine(FakeRepository()).flaky(runs)["tests"]
        assert all(t["testCaseName"] == "Unknown" for t in tests)
        assert all(t["debugFlag"] is False and t["lastRunAt"] is None for t in tests)

    def test_empty(self, repo):
        assert TestAnalysisEngine(repo).flaky([]) == {"tests": []}


class TestTopFailing:
    def test_ranks_by_fail_count(self, repo, runs):
        tests = TestAnalysisEngine(repo).top_failing(runs)["tests"]
        assert [t["testCaseId"] for t in tests] == [2, 1, 3]
        assert tests[0]["failCount"] == 7
        assert tests[0]["failRate"] == 70
        assert tests[0]["lastFailedAt"] == (T0 + timedelta(days=2)).isoformat()
        assert tests[2]["failRate"] == 100

    def test_last_failed_looked_up_for_truncated_ids_only(self, repo, runs):
        TestAnalysisEngine(repo).top_failing(runs, limit=1)
        assert repo.last_failed_lookups == [[2]]

    def test_missing_last_failed_is_none(self, runs):
        repo = FakeRepository(cases={2: _case(2, "Checkout B")})
        tests = TestAnalysisEngine(repo).top_failing(runs, limit=1)["tests"]
        assert tests[0]["lastFailedAt"] is None

    def test_passing_only_cases_excluded(self, repo):
        runs = _runs_for(1, 5, 0)
        assert TestAnalysisEngine(repo).top_failing(runs) == {"tests": []}

    def test_analyze_dispatches(self, repo, runs):
        engine = TestAnalysisEngine(repo)
        assert engine.analyze(runs, "top-failing", limit=2) == engine.top_failing(runs, limit=2)
        with pytest.raises(ValidationError):
            engine.analyze(runs, "bogus")
