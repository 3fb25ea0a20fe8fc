"""
Report filter predicate shared by every report type.

Two pieces:
  - ReportFilters: request-scoped value object. ``from_args`` parses raw
    query arguments and rejects malformed dates / scope ids with
    ValidationError before anything touches the run store.
  - build_report_filter(): pure function turning the parsed filters into a
    RunFilter, the predicate handed to the run repository.

Predicate rules:
  1. Always: runs of the given project, status not NOT_RUN / IN_PROGRESS
  2. 24h / 3d / 7d → executed_at >= now - N days (clock injected)
  3. custom        → executed_at >= date_from [and <= date_to];
                     no date_from means no time constraint at all
  4. all / absent / unknown → no time constraint
  5. test-plan / test-suite + scope_id → only cases linked to that plan/suite;
     a missing scope_id silently drops the scope constraint
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import and_, select

from testcraft.core.exceptions import ValidationError
from testcraft.models.testing import (
    NON_TERMINAL_STATUSES,
    TestCase,
    TestPlanCase,
    TestRun,
    TestSuiteCase,
)
from testcraft.utils.helpers import parse_datetime_input, utcnow

logger = logging.getLogger(__name__)

TIME_RANGES = ("24h", "3d", "7d", "custom", "all")
TIME_RANGE_DAYS = {"24h": 1, "3d": 3, "7d": 7}

SCOPE_GLOBAL = "global"
SCOPE_TEST_PLAN = "test-plan"
SCOPE_TEST_SUITE = "test-suite"
SCOPES = (SCOPE_GLOBAL, SCOPE_TEST_PLAN, SCOPE_TEST_SUITE)


# ═════════════════════════════════════════════════════════════════════════════
# REQUEST VALUE OBJECT
# ═════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ReportFilters:
    """User-supplied report filters after parsing."""

    time_range: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    scope: str | None = None
    scope_id: int | None = None

    @classmethod
    def from_args(cls, args: Mapping) -> "ReportFilters":
        """Parse raw query arguments (camelCase keys, as sent by the UI).

        Dates are only read when ``timeRange=custom`` and the scope id only
        when a plan/suite scope is requested; everything else is ignored.

        Raises:
            ValidationError: unparseable ``dateFrom``/``dateTo`` or a
                non-integer ``scopeId``.
        """
        time_range = (args.get("timeRange") or "").strip() or None
        scope = (args.get("scope") or "").strip() or None

        date_from = date_to = None
        if time_range == "custom":
            errors = {}
            try:
                date_from = parse_datetime_input(args.get("dateFrom"))
            except ValueError as exc:
                errors["dateFrom"] = str(exc)
            try:
                date_to = parse_datetime_input(args.get("dateTo"))
            except ValueError as exc:
                errors["dateTo"] = str(exc)
            if errors:
                raise ValidationError("Invalid date in report filters", details=errors)

        scope_id = None
        raw_scope_id = args.get("scopeId")
        if scope in (SCOPE_TEST_PLAN, SCOPE_TEST_SUITE) and raw_scope_id not in (None, ""):
            try:
                scope_id = int(raw_scope_id)
            except (TypeError, ValueError):
                raise ValidationError(
                    "scopeId must be an integer",
                    details={"scopeId": f"{raw_scope_id!r} is not an integer"},
                ) from None

        return cls(
            time_range=time_range,
            date_from=date_from,
            date_to=date_to,
            scope=scope,
            scope_id=scope_id,
        )

    def to_dict(self) -> dict:
        return {
            "timeRange": self.time_range or "all",
            "dateFrom": self.date_from.isoformat() if self.date_from else None,
            "dateTo": self.date_to.isoformat() if self.date_to else None,
            "scope": self.scope or SCOPE_GLOBAL,
            "scopeId": self.scope_id,
        }


# ═════════════════════════════════════════════════════════════════════════════
# PREDICATE
# ═════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RunFilter:
    """Predicate over TestRun rows.

    ``executed_from`` / ``executed_to`` are inclusive bounds; ``None`` means
    unbounded. ``plan_id`` / ``suite_id`` are mutually exclusive.
    """

    project_id: int
    excluded_statuses: tuple = NON_TERMINAL_STATUSES
    executed_from: datetime | None = None
    executed_to: datetime | None = None
    plan_id: int | None = None
    suite_id: int | None = None

    def to_clause(self):
        """Return the SQLAlchemy boolean expression for ``TestRun`` queries."""
        case_ids = select(TestCase.id).where(TestCase.project_id == self.project_id)
        if self.plan_id is not None:
            case_ids = case_ids.where(
                TestCase.id.in_(
                    select(TestPlanCase.test_case_id)
                    .where(TestPlanCase.test_plan_id == self.plan_id)
                )
            )
        elif self.suite_id is not None:
            case_ids = case_ids.where(
                TestCase.id.in_(
                    select(TestSuiteCase.test_case_id)
                    .where(TestSuiteCase.test_suite_id == self.suite_id)
                )
            )

        clauses = [
            TestRun.test_case_id.in_(case_ids),
            TestRun.status.notin_(self.excluded_statuses),
        ]
        if self.executed_from is not None:
            clauses.append(TestRun.executed_at >= self.executed_from)
        if self.executed_to is not None:
            clauses.append(TestRun.executed_at <= self.executed_to)
        return and_(*clauses)

    def describe(self) -> dict:
        """Plain-dict view for log lines."""
        return {
            "project_id": self.project_id,
            "executed_from": self.executed_from.isoformat() if self.executed_from else None,
            "executed_to": self.executed_to.isoformat() if self.executed_to else None,
            "plan_id": self.plan_id,
            "suite_id": self.suite_id,
        }


def build_report_filter(
    project_id: int,
    time_range: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    scope: str | None = None,
    scope_id: int | None = None,
    *,
    clock: Callable[[], datetime] = utcnow,
) -> RunFilter:
    """Translate report filters into a RunFilter.

    Never raises: every argument is optional and falls back to the most
    permissive interpretation. ``clock`` is read once, at call time.
    """
    executed_from = executed_to = None
    if time_range in TIME_RANGE_DAYS:
        executed_from = clock() - timedelta(days=TIME_RANGE_DAYS[time_range])
    elif time_range == "custom" and date_from is not None:
        executed_from = date_from
        executed_to = date_to

    plan_id = suite_id = None
    if scope == SCOPE_TEST_PLAN and scope_id is not None:
        plan_id = scope_id
    elif scope == SCOPE_TEST_SUITE and scope_id is not None:
        suite_id = scope_id

    return RunFilter(
        project_id=project_id,
        executed_from=executed_from,
        executed_to=executed_to,
        plan_id=plan_id,
        suite_id=suite_id,
    )


def build_from_filters(
    project_id: int,
    filters: ReportFilters,
    *,
    clock: Callable[[], datetime] = utcnow,
) -> RunFilter:
    """Convenience wrapper around build_report_filter for a ReportFilters."""
    return build_report_filter(
        project_id,
        time_range=filters.time_range,
        date_from=filters.date_from,
        date_to=filters.date_to,
        scope=filters.scope,
        scope_id=filters.scope_id,
        clock=clock,
    )
