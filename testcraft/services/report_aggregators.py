"""
Status and environment aggregations over filtered test runs.

Both functions take any iterable of run records exposing ``status`` and
``environment`` (RunRecord in production, lightweight stand-ins in tests)
and return the JSON-ready response body. Empty input always yields the
empty shape, never an error.
"""

from collections import Counter, defaultdict

from testcraft.models.testing import (
    RUN_STATUS_BLOCKED,
    RUN_STATUS_FAIL,
    RUN_STATUS_PASS,
    RUN_STATUS_SKIPPED,
)
from testcraft.utils.helpers import round_pct

# Display order for breakdown rows; unknown statuses follow in first-seen order
STATUS_ORDER = (RUN_STATUS_PASS, RUN_STATUS_FAIL, RUN_STATUS_BLOCKED, RUN_STATUS_SKIPPED)


def status_breakdown(runs) -> dict:
    """Count runs per status.

    Returns:
        {"breakdown": [{"status", "count", "percentage"}], "total": int}
    """
    counts = Counter(run.status for run in runs)
    total = sum(counts.values())

    ordered = [s for s in STATUS_ORDER if s in counts]
    ordered += [s for s in counts if s not in STATUS_ORDER]

    breakdown = [
        {
            "status": status,
            "count": counts[status],
            "percentage": round_pct(counts[status], total),
        }
        for status in ordered
    ]
    return {"breakdown": breakdown, "total": total}


def environment_comparison(runs) -> dict:
    """Pass/fail totals and pass rate per environment.

    BLOCKED and SKIPPED runs count toward ``totalRuns`` only, so they lower
    the pass rate without appearing as failures.

    Returns:
        {"environments": [{"environment", "totalRuns", "passCount",
                           "failCount", "passRate"}]}
        sorted by environment label (case-sensitive ordinal).
    """
    by_env = defaultdict(Counter)
    for run in runs:
        by_env[run.environment][run.status] += 1

    environments = []
    for env in sorted(by_env):
        counts = by_env[env]
        total = sum(counts.values())
        passed = counts[RUN_STATUS_PASS]
        environments.append({
            "environment": env,
            "totalRuns": total,
            "passCount": passed,
            "failCount": counts[RUN_STATUS_FAIL],
            "passRate": round_pct(passed, total),
        })
    return {"environments": environments}
