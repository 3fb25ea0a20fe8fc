"""
Report Engine.

Builds the run filter once per request, fetches the matching runs once and
dispatches to the registered report runner. Runners are pure functions of
the fetched runs (plus the engine, for enrichment lookups).

Registered reports:
  - status-breakdown         → {breakdown, total}
  - execution-trend          → {trend}
  - environment-comparison   → {environments}
  - test-analysis            → {tests}  (type=flaky | top-failing, limit)

Caller errors (unknown report, invalid analysis type) are raised before
the run store is queried. Store errors propagate unchanged.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from testcraft.core.exceptions import NotFoundError
from testcraft.services.analysis_engine import (
    DEFAULT_LIMIT,
    TestAnalysisEngine,
    validate_analysis_type,
)
from testcraft.services.execution_trend import execution_trend
from testcraft.services.report_aggregators import environment_comparison, status_breakdown
from testcraft.services.report_filters import ReportFilters, build_from_filters
from testcraft.utils.helpers import utcnow

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════════
# REPORT ENGINE
# ═════════════════════════════════════════════════════════════════════════════

class ReportEngine:
    """Runs registered reports against a run repository.

    Args:
        repository: RunRepository (or any object with the same methods).
        clock: returns the current aware UTC datetime; used for the
               relative time ranges (24h / 3d / 7d).
    """

    # ── Registry of built-in report runners ──────────────────────────────
    _RUNNERS: dict = {}
    _VALIDATORS: dict = {}

    @classmethod
    def register(cls, report_key: str, validate: Callable | None = None):
        """Decorator to register a report runner.

        ``validate(**options)`` runs before any data is fetched.
        """
        def decorator(fn):
            cls._RUNNERS[report_key] = fn
            if validate is not None:
                cls._VALIDATORS[report_key] = validate
            return fn
        return decorator

    @classmethod
    def list_reports(cls) -> list[str]:
        return sorted(cls._RUNNERS)

    def __init__(self, repository, *, clock: Callable[[], datetime] = utcnow):
        self.repository = repository
        self.clock = clock

    def fetch_runs(self, project_id: int, filters: ReportFilters) -> list:
        run_filter = build_from_filters(project_id, filters, clock=self.clock)
        runs = self.repository.fetch_runs(run_filter)
        logger.debug(
            "Fetched %d runs for project %s filter=%s",
            len(runs), project_id, run_filter.describe(),
            extra={"project_id": project_id},
        )
        return runs

    def run(self, report_key: str, project_id: int, filters: ReportFilters | None = None, **options) -> dict:
        """Execute a report and return its response body.

        Raises:
            NotFoundError: unknown report key.
            ValidationError: options rejected by the report's validator.
        """
        runner = self._RUNNERS.get(report_key)
        if runner is None:
            raise NotFoundError(resource="Report", resource_id=report_key)
        validator = self._VALIDATORS.get(report_key)
        if validator is not None:
            validator(**options)

        runs = self.fetch_runs(project_id, filters or ReportFilters())
        result = runner(self, runs, **options)
        logger.debug(
            "Report %s computed for project %s over %d runs",
            report_key, project_id, len(runs),
            extra={"project_id": project_id, "report": report_key},
        )
        return result

    def summary(self, project_id: int, filters: ReportFilters | None = None, *, limit=DEFAULT_LIMIT) -> dict:
        """Every report from a single run fetch (used by exports)."""
        runs = self.fetch_runs(project_id, filters or ReportFilters())
        analysis = TestAnalysisEngine(self.repository)
        return {
            "statusBreakdown": status_breakdown(runs),
            "executionTrend": execution_trend(runs),
            "environmentComparison": environment_comparison(runs),
            "flakyTests": analysis.flaky(runs, limit=limit),
            "topFailingTests": analysis.top_failing(runs, limit=limit),
        }


# ═════════════════════════════════════════════════════════════════════════════
# REPORT RUNNERS
# ═════════════════════════════════════════════════════════════════════════════

@ReportEngine.register("status-breakdown")
def _status_breakdown(engine, runs, **kw):
    return status_breakdown(runs)


@ReportEngine.register("execution-trend")
def _execution_trend(engine, runs, **kw):
    return execution_trend(runs)


@ReportEngine.register("environment-comparison")
def _environment_comparison(engine, runs, **kw):
    return environment_comparison(runs)


def _validate_test_analysis(analysis_type=None, **kw):
    validate_analysis_type(analysis_type)


@ReportEngine.register("test-analysis", validate=_validate_test_analysis)
def _test_analysis(engine, runs, analysis_type=None, limit=DEFAULT_LIMIT, **kw):
    return TestAnalysisEngine(engine.repository).analyze(runs, analysis_type, limit=limit)
