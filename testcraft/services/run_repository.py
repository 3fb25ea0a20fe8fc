"""
Read-side access to test runs and test cases for the report engine.

The engine never talks to ``db.session`` directly: it is handed a
RunRepository bound to a session, which keeps the aggregation code free of
global state and lets the aggregators work on plain records.

Rows are projected into small frozen records (RunRecord, TestCaseSummary)
so the aggregators never trigger lazy loads and never see a naive datetime.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select

from testcraft.models.testing import RUN_STATUS_FAIL, TestCase, TestRun
from testcraft.utils.helpers import as_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunRecord:
    """Projection of a TestRun row used by every aggregator."""

    id: int
    test_case_id: int
    environment: str
    status: str
    executed_at: datetime


@dataclass(frozen=True)
class TestCaseSummary:
    """Enrichment projection of a TestCase row."""

    __test__ = False  # not a pytest class

    id: int
    name: str
    debug_flag: bool
    last_run_at: datetime | None


class RunRepository:
    """SQLAlchemy-backed run/test-case lookups.

    Args:
        session: SQLAlchemy session (``db.session`` inside a request).
    """

    def __init__(self, session):
        self.session = session

    def fetch_runs(self, run_filter) -> list[RunRecord]:
        """Return runs matching the filter, oldest first."""
        stmt = (
            select(
                TestRun.id,
                TestRun.test_case_id,
                TestRun.environment,
                TestRun.status,
                TestRun.executed_at,
            )
            .where(run_filter.to_clause())
            .order_by(TestRun.executed_at.asc(), TestRun.id.asc())
        )
        rows = self.session.execute(stmt).all()
        return [
            RunRecord(
                id=r.id,
                test_case_id=r.test_case_id,
                environment=r.environment or "",
                status=r.status,
                executed_at=as_utc(r.executed_at),
            )
            for r in rows
        ]

    def fetch_test_cases(self, test_case_ids: Iterable[int]) -> dict[int, TestCaseSummary]:
        """Batch-load enrichment data; ids that no longer exist are simply absent."""
        ids = list(test_case_ids)
        if not ids:
            return {}
        stmt = select(
            TestCase.id, TestCase.name, TestCase.debug_flag, TestCase.last_run_at,
        ).where(TestCase.id.in_(ids))
        return {
            r.id: TestCaseSummary(
                id=r.id,
                name=r.name,
                debug_flag=bool(r.debug_flag),
                last_run_at=as_utc(r.last_run_at),
            )
            for r in self.session.execute(stmt).all()
        }

    def fetch_last_failed_at(self, test_case_ids: Iterable[int]) -> dict[int, datetime]:
        """Most recent FAIL ``executed_at`` per test case, over all of its runs."""
        ids = list(test_case_ids)
        if not ids:
            return {}
        stmt = (
            select(TestRun.test_case_id, func.max(TestRun.executed_at).label("last_failed_at"))
            .where(TestRun.test_case_id.in_(ids), TestRun.status == RUN_STATUS_FAIL)
            .group_by(TestRun.test_case_id)
        )
        return {
            r.test_case_id: as_utc(r.last_failed_at)
            for r in self.session.execute(stmt).all()
            if r.last_failed_at is not None
        }
