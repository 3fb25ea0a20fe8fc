"""
TestCraft Reporting Service
Testing domain models read by the reporting engine.

Models:
    - TestPlan:       planning container per project
    - TestSuite:      logical grouping of test cases
    - TestCase:       individual test case in the catalog
    - TestPlanCase:   junction table for plan ↔ case N:M relationship
    - TestSuiteCase:  junction table for suite ↔ case N:M relationship
    - TestRun:        one execution of a test case in an environment

Architecture ref:
    Project ──1:N──▶ Test Case ──1:N──▶ Test Run
    Test Plan  ──N:M──▶ Test Case
    Test Suite ──N:M──▶ Test Case

Runs are written by the execution workflow; the reporting engine only
reads runs whose status is terminal.
"""

from datetime import datetime, timezone

from testcraft.models import db


# ── Constants ────────────────────────────────────────────────────────────

RUN_STATUS_NOT_RUN = "NOT_RUN"
RUN_STATUS_IN_PROGRESS = "IN_PROGRESS"
RUN_STATUS_PASS = "PASS"
RUN_STATUS_FAIL = "FAIL"
RUN_STATUS_BLOCKED = "BLOCKED"
RUN_STATUS_SKIPPED = "SKIPPED"

# Statuses that never enter a report working set
NON_TERMINAL_STATUSES = (RUN_STATUS_NOT_RUN, RUN_STATUS_IN_PROGRESS)


# ═════════════════════════════════════════════════════════════════════════════
class TestPlan(db.Model):
    """Top-level test planning container within a project."""

    __tablename__ = "test_plans"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")

    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    plan_cases = db.relationship(
        "TestPlanCase", backref="plan", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<TestPlan {self.id}: {self.name}>"


# ═════════════════════════════════════════════════════════════════════════════
class TestSuite(db.Model):
    """Logical grouping of test cases (smoke, regression, ...)."""

    __tablename__ = "test_suites"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    suite_type = db.Column(db.String(50), default="", comment="Free-text suite category")

    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    suite_cases = db.relationship(
        "TestSuiteCase", backref="suite", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<TestSuite {self.id}: {self.name}>"


# ═════════════════════════════════════════════════════════════════════════════
class TestCase(db.Model):
    """
    Individual test case in the project catalog.

    ``last_run_status`` / ``last_run_at`` are denormalised by the run
    workflow whenever a run completes.
    """

    __tablename__ = "test_cases"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    test_type = db.Column(db.String(20), default="STEP_BASED", comment="STEP_BASED | GHERKIN")

    debug_flag = db.Column(db.Boolean, nullable=False, default=False)
    debug_flagged_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_run_status = db.Column(
        db.String(20), nullable=False, default=RUN_STATUS_NOT_RUN,
        comment="NOT_RUN | IN_PROGRESS | PASS | FAIL | BLOCKED | SKIPPED",
    )
    last_run_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    runs = db.relationship(
        "TestRun", backref="test_case", lazy="dynamic",
        cascade="all, delete-orphan",
    )
    plan_links = db.relationship("TestPlanCase", backref="test_case", lazy="dynamic")
    suite_links = db.relationship("TestSuiteCase", backref="test_case", lazy="dynamic")

    def __repr__(self):
        return f"<TestCase {self.id}: {self.name}>"


# ═════════════════════════════════════════════════════════════════════════════
class TestPlanCase(db.Model):
    """Bridge: TestPlan ↔ TestCase (N:M)."""

    __tablename__ = "test_plan_cases"

    id = db.Column(db.Integer, primary_key=True)
    test_plan_id = db.Column(
        db.Integer, db.ForeignKey("test_plans.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    test_case_id = db.Column(
        db.Integer, db.ForeignKey("test_cases.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )

    __table_args__ = (
        db.UniqueConstraint("test_plan_id", "test_case_id", name="uq_plan_testcase"),
    )

    def __repr__(self):
        return f"<TestPlanCase plan#{self.test_plan_id} ↔ tc#{self.test_case_id}>"


class TestSuiteCase(db.Model):
    """Bridge: TestSuite ↔ TestCase (N:M)."""

    __tablename__ = "test_suite_cases"

    id = db.Column(db.Integer, primary_key=True)
    test_suite_id = db.Column(
        db.Integer, db.ForeignKey("test_suites.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    test_case_id = db.Column(
        db.Integer, db.ForeignKey("test_cases.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )

    __table_args__ = (
        db.UniqueConstraint("test_suite_id", "test_case_id", name="uq_suite_testcase"),
    )

    def __repr__(self):
        return f"<TestSuiteCase suite#{self.test_suite_id} ↔ tc#{self.test_case_id}>"


# ═════════════════════════════════════════════════════════════════════════════
class TestRun(db.Model):
    """
    One execution of a test case in a named environment.

    Immutable once its status is terminal.
    """

    __tablename__ = "test_runs"

    id = db.Column(db.Integer, primary_key=True)
    test_case_id = db.Column(
        db.Integer, db.ForeignKey("test_cases.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    executed_by_id = db.Column(db.Integer, nullable=True, comment="User who executed the run")
    executed_at = db.Column(
        db.DateTime(timezone=True), nullable=False, index=True,
        default=lambda: datetime.now(timezone.utc),
    )
    environment = db.Column(db.String(100), nullable=False, default="", comment="Free-text label")
    status = db.Column(
        db.String(20), nullable=False, default=RUN_STATUS_NOT_RUN,
        comment="NOT_RUN | IN_PROGRESS | PASS | FAIL | BLOCKED | SKIPPED",
    )
    duration = db.Column(db.Integer, nullable=True, comment="Run duration in seconds")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.CheckConstraint("duration IS NULL OR duration >= 0", name="ck_test_runs_duration"),
        db.Index("ix_test_runs_case_status", "test_case_id", "status"),
    )

    def __repr__(self):
        return f"<TestRun {self.id}: case#{self.test_case_id} [{self.environment}] → {self.status}>"
