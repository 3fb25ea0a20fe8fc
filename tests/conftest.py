"""
Shared pytest fixtures for the TestCraft reporting test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - organization / project: Pre-created entities
    - make_case / make_run: row factories for seeding report data
"""

from datetime import datetime, timezone

import pytest

from testcraft import create_app
from testcraft.models import db as _db
from testcraft.models import testing as testing_models
from testcraft.models.project import Organization, OrganizationMember, Project


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield _db.session
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def organization():
    org = Organization(name="Acme QA")
    _db.session.add(org)
    _db.session.commit()
    return org


@pytest.fixture()
def member(organization):
    """User #1 as a member of the organization."""
    m = OrganizationMember(organization_id=organization.id, user_id=1, role="QA_ENGINEER")
    _db.session.add(m)
    _db.session.commit()
    return m


@pytest.fixture()
def project(organization):
    proj = Project(organization_id=organization.id, name="Checkout Web")
    _db.session.add(proj)
    _db.session.commit()
    return proj


@pytest.fixture()
def make_case(project):
    """Factory: ``make_case("Login", debug_flag=True)`` → committed TestCase."""
    def _make(name="Test case", project_id=None, **kwargs):
        tc = testing_models.TestCase(
            project_id=project_id or project.id, name=name, **kwargs,
        )
        _db.session.add(tc)
        _db.session.commit()
        return tc
    return _make


@pytest.fixture()
def make_run():
    """Factory: ``make_run(case, "PASS", at=..., environment="staging")``."""
    def _make(test_case, status, at=None, environment="staging"):
        run = testing_models.TestRun(
            test_case_id=test_case.id,
            status=status,
            environment=environment,
            executed_at=at or datetime.now(timezone.utc),
        )
        _db.session.add(run)
        _db.session.commit()
        return run
    return _make
