"""
Test analysis — flaky and top-failing test case rankings.

Both modes share the same first step: tally PASS / FAIL / total runs per
test case over the filtered run set.

Flaky mode:
  1. Candidates: at least one PASS and at least one FAIL
  2. flakinessScore = round(fail / total × 100)
  3. Sort by score desc, then testCaseId asc
  4. Truncate to limit, enrich with name / debugFlag / lastRunAt

Top-failing mode:
  1. Candidates: at least one FAIL (pure-fail cases included)
  2. failRate = round(fail / total × 100)
  3. Sort by absolute failCount desc, then testCaseId asc
  4. Truncate to limit, enrich with name / debugFlag, plus lastFailedAt
     looked up only for the truncated ids

Test cases deleted between the run query and enrichment fall back to
name "Unknown", debugFlag False and a null timestamp.
"""

import logging
from dataclasses import dataclass

from testcraft.core.exceptions import ValidationError
from testcraft.models.testing import RUN_STATUS_FAIL, RUN_STATUS_PASS
from testcraft.utils.helpers import round_pct

logger = logging.getLogger(__name__)

ANALYSIS_FLAKY = "flaky"
ANALYSIS_TOP_FAILING = "top-failing"
ANALYSIS_TYPES = (ANALYSIS_FLAKY, ANALYSIS_TOP_FAILING)

DEFAULT_LIMIT = 10
MAX_LIMIT = 50

UNKNOWN_TEST_CASE = "Unknown"


def validate_analysis_type(analysis_type) -> str:
    """Return the type unchanged, or raise ValidationError for anything else."""
    if analysis_type not in ANALYSIS_TYPES:
        raise ValidationError(
            'Query parameter "type" must be "flaky" or "top-failing"',
            details={"type": f"got {analysis_type!r}"},
        )
    return analysis_type


def clamp_limit(raw) -> int:
    """Resolve a requested limit to [1, MAX_LIMIT].

    Missing, zero and negative values fall back to DEFAULT_LIMIT, and so
    does any string that is not a whole number: "2.5" resolves to 10, not 2.
    Anything above MAX_LIMIT is capped.
    """
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    if limit <= 0:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


@dataclass
class CaseTally:
    test_case_id: int
    total_runs: int = 0
    pass_count: int = 0
    fail_count: int = 0


def tally_by_test_case(runs) -> dict[int, CaseTally]:
    """Group runs by test case and count PASS / FAIL / all."""
    tallies: dict[int, CaseTally] = {}
    for run in runs:
        tally = tallies.get(run.test_case_id)
        if tally is None:
            tally = tallies[run.test_case_id] = CaseTally(run.test_case_id)
        tally.total_runs += 1
        if run.status == RUN_STATUS_PASS:
            tally.pass_count += 1
        elif run.status == RUN_STATUS_FAIL:
            tally.fail_count += 1
    return tallies


def _iso(value):
    return value.isoformat() if value is not None else None


class TestAnalysisEngine:
    """Ranks test cases by flakiness or failure count.

    Args:
        repository: object providing ``fetch_test_cases(ids)`` and
                    ``fetch_last_failed_at(ids)`` (see RunRepository).
    """

    __test__ = False  # not a pytest class

    def __init__(self, repository):
        self.repository = repository

    def analyze(self, runs, analysis_type: str, limit=DEFAULT_LIMIT) -> dict:
        """Dispatch to the requested mode.

        Returns:
            {"tests": [...]} with the row shape of the selected mode.
        """
        validate_analysis_type(analysis_type)
        if analysis_type == ANALYSIS_FLAKY:
            return self.flaky(runs, limit=limit)
        return self.top_failing(runs, limit=limit)

    def flaky(self, runs, *, limit=DEFAULT_LIMIT) -> dict:
        limit = clamp_limit(limit)
        candidates = [
            t for t in tally_by_test_case(runs).values()
            if t.pass_count > 0 and t.fail_count > 0
        ]
        scored = [(t, round_pct(t.fail_count, t.total_runs)) for t in candidates]
        scored.sort(key=lambda pair: (-pair[1], pair[0].test_case_id))
        scored = scored[:limit]

        details = self.repository.fetch_test_cases(t.test_case_id for t, _ in scored)
        tests = []
        for tally, score in scored:
            tc = details.get(tally.test_case_id)
            tests.append({
                "testCaseId": tally.test_case_id,
                "testCaseName": tc.name if tc else UNKNOWN_TEST_CASE,
                "totalRuns": tally.total_runs,
                "passCount": tally.pass_count,
                "failCount": tally.fail_count,
                "flakinessScore": score,
                "debugFlag": tc.debug_flag if tc else False,
                "lastRunAt": _iso(tc.last_run_at) if tc else None,
            })

        logger.debug("Flaky analysis: %d candidates, %d returned", len(candidates), len(tests))
        return {"tests": tests}

    def top_failing(self, runs, *, limit=DEFAULT_LIMIT) -> dict:
        limit = clamp_limit(limit)
        candidates = [t for t in tally_by_test_case(runs).values() if t.fail_count > 0]
        candidates.sort(key=lambda t: (-t.fail_count, t.test_case_id))
        candidates = candidates[:limit]

        ids = [t.test_case_id for t in candidates]
        details = self.repository.fetch_test_cases(ids)
        last_failed = self.repository.fetch_last_failed_at(ids)

        tests = []
        for tally in candidates:
            tc = details.get(tally.test_case_id)
            tests.append({
                "testCaseId": tally.test_case_id,
                "testCaseName": tc.name if tc else UNKNOWN_TEST_CASE,
                "failCount": tally.fail_count,
                "totalRuns": tally.total_runs,
                "failRate": round_pct(tally.fail_count, tally.total_runs),
                "debugFlag": tc.debug_flag if tc else False,
                "lastFailedAt": _iso(last_failed.get(tally.test_case_id)),
            })

        logger.debug("Top-failing analysis: %d returned", len(tests))
        return {"tests": tests}

