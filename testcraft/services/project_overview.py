"""Project dashboard figures: headline stats and the environment list."""

from datetime import timedelta

from sqlalchemy import func, select

from testcraft.models.testing import (
    RUN_STATUS_NOT_RUN,
    RUN_STATUS_PASS,
    TestCase,
    TestRun,
)
from testcraft.utils.helpers import round_pct, utcnow

DEFAULT_ENVIRONMENTS = ("development", "staging", "production", "qa")
RECENT_RUNS_WINDOW = timedelta(days=7)


def _count(session, *criteria) -> int:
    return session.execute(select(func.count(TestCase.id)).where(*criteria)).scalar_one()


def project_stats(session, project_id: int, *, clock=utcnow) -> dict:
    """Headline numbers for a project.

    ``passRate`` is the share of executed test cases whose most recent run
    passed; test cases still at NOT_RUN are left out of the denominator.
    ``recentRuns`` counts every run (any status) in the last 7 days.
    """
    in_project = TestCase.project_id == project_id
    total = _count(session, in_project)
    debug_flagged = _count(session, in_project, TestCase.debug_flag.is_(True))
    passing = _count(session, in_project, TestCase.last_run_status == RUN_STATUS_PASS)
    executed = _count(session, in_project, TestCase.last_run_status != RUN_STATUS_NOT_RUN)

    since = clock() - RECENT_RUNS_WINDOW
    recent_runs = session.execute(
        select(func.count(TestRun.id))
        .join(TestCase, TestCase.id == TestRun.test_case_id)
        .where(in_project, TestRun.executed_at >= since)
    ).scalar_one()

    return {
        "totalTestCases": total,
        "passRate": round_pct(passing, executed),
        "recentRuns": recent_runs,
        "debugFlagged": debug_flagged,
    }


def project_environments(session, project_id: int) -> dict:
    """Default environments merged with every label the project's runs used."""
    used = session.execute(
        select(TestRun.environment)
        .join(TestCase, TestCase.id == TestRun.test_case_id)
        .where(TestCase.project_id == project_id)
        .distinct()
    ).scalars().all()
    environments = set(DEFAULT_ENVIRONMENTS) | {env for env in used if env}
    return {"environments": sorted(environments)}
