"""
Project Access Middleware — Verifies organization membership for JWT users.

Provides the `@require_project_access` decorator:
  - 404 when the project in the route does not exist
  - 403 when the JWT user is not a member of the project's organization
  - 401 when there is no JWT user and API_AUTH_ENABLED is on

Usage:
    @bp.route("/api/v1/projects/<int:project_id>/stats")
    @require_project_access("project_id")
    def project_stats(project_id):
        ...

If no JWT user and API auth is disabled (development / testing), the
membership check is skipped but the project must still exist.
"""

import functools
import logging

from flask import current_app, g, request

from testcraft.models import db
from testcraft.models.project import OrganizationMember, Project
from testcraft.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def _auth_enabled() -> bool:
    return str(current_app.config.get("API_AUTH_ENABLED", "false")).lower() in ("1", "true", "yes")


def can_access_project(user_id: int, project: Project) -> bool:
    """True when the user belongs to the organization owning the project."""
    return db.session.execute(
        db.select(OrganizationMember.id).where(
            OrganizationMember.organization_id == project.organization_id,
            OrganizationMember.user_id == user_id,
        )
    ).first() is not None


def require_project_access(param_name: str = "project_id"):
    """
    Decorator: require the JWT user to be a member of the organization
    owning the project identified by the given route parameter.

    Args:
        param_name: Name of the Flask route parameter containing the project ID.
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            project_id = kwargs.get(param_name)
            if project_id is None:
                project_id = (request.view_args or {}).get(param_name)
            if project_id is None:
                return f(*args, **kwargs)

            project = db.session.get(Project, project_id)
            if project is None:
                return api_error(E.NOT_FOUND, "Project not found")
            g.project = project

            user_id = getattr(g, "jwt_user_id", None)
            if user_id is None:
                if _auth_enabled():
                    return api_error(E.UNAUTHORIZED, "Authentication required")
                return f(*args, **kwargs)

            if not can_access_project(user_id, project):
                logger.warning(
                    "User %s denied access to project %d — not a member",
                    user_id, project_id,
                    extra={"project_id": project_id},
                )
                return api_error(E.FORBIDDEN, "You do not have access to this project")

            return f(*args, **kwargs)
        return decorated
    return decorator
