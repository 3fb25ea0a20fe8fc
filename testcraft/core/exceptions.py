"""
Service-wide exception hierarchy.

Services raise these types; blueprints register handlers against them once
and get consistent HTTP status codes everywhere.

Usage:
    from testcraft.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Project", resource_id=42)
    raise ValidationError("dateFrom is not a valid ISO date", details={"dateFrom": "..."})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "Project", "Report").
        resource_id: The key that was looked up. Included in logs and in the
                     HTTP response message.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when caller input is rejected before any aggregation runs.

    Covers an invalid report ``type``, unparseable dates and malformed
    scope identifiers. Maps to HTTP 400 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
                 Keys are query parameter names; values are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ForbiddenError(Exception):
    """Raised when an authenticated user is not allowed to read a project.

    Maps to HTTP 403.
    """

    def __init__(self, user_id: int | str, project_id: int) -> None:
        self.user_id = user_id
        self.project_id = project_id
        super().__init__("You do not have access to this project")
