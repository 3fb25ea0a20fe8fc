"""
Reporting blueprint — project-scoped report endpoints.

    GET /api/v1/projects/<pid>/reports/status-breakdown
    GET /api/v1/projects/<pid>/reports/execution-trend
    GET /api/v1/projects/<pid>/reports/environment-comparison
    GET /api/v1/projects/<pid>/reports/test-analysis?type=flaky|top-failing&limit=
    GET /api/v1/projects/<pid>/reports/export?format=csv|json|xlsx&limit=
    GET /api/v1/projects/<pid>/stats
    GET /api/v1/projects/<pid>/environments

Report endpoints share the filter query args
timeRange, dateFrom, dateTo, scope, scopeId.
"""

import io
import logging

from flask import Blueprint, g, jsonify, request, send_file
from sqlalchemy.exc import SQLAlchemyError

from testcraft.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from testcraft.middleware.project_access import require_project_access
from testcraft.models import db
from testcraft.services.analysis_engine import clamp_limit
from testcraft.services.export_service import EXPORT_FORMATS, MIME_TYPES, RENDERERS, export_filename
from testcraft.services.project_overview import project_environments, project_stats
from testcraft.services.report_engine import ReportEngine
from testcraft.services.report_filters import ReportFilters
from testcraft.services.run_repository import RunRepository
from testcraft.utils.errors import E, api_error

logger = logging.getLogger(__name__)

reporting_bp = Blueprint("reporting", __name__, url_prefix="/api/v1/projects/<int:project_id>")


# ═══════════════════════════════════════════════════════════════
# Error handlers
# ═══════════════════════════════════════════════════════════════

@reporting_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    return api_error(E.VALIDATION_INVALID, str(error), details=error.details)


@reporting_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


@reporting_bp.errorhandler(ForbiddenError)
def _handle_forbidden(error: ForbiddenError):
    return api_error(E.FORBIDDEN, str(error))


@reporting_bp.errorhandler(SQLAlchemyError)
def _handle_db_error(error: SQLAlchemyError):
    db.session.rollback()
    logger.exception("Report query failed")
    return api_error(E.DATABASE, "Failed to compute report")


def _engine() -> ReportEngine:
    return ReportEngine(RunRepository(db.session))


def _run_report(report_key: str, project_id: int, **options):
    filters = ReportFilters.from_args(request.args)
    return jsonify(_engine().run(report_key, project_id, filters, **options)), 200


# ═══════════════════════════════════════════════════════════════
# Reports
# ═══════════════════════════════════════════════════════════════

@reporting_bp.route("/reports/status-breakdown", methods=["GET"])
@require_project_access("project_id")
def status_breakdown(project_id):
    """Run counts and percentages per terminal status."""
    return _run_report("status-breakdown", project_id)


@reporting_bp.route("/reports/execution-trend", methods=["GET"])
@require_project_access("project_id")
def execution_trend(project_id):
    """Pass-rate series, daily or weekly depending on the data span."""
    return _run_report("execution-trend", project_id)


@reporting_bp.route("/reports/environment-comparison", methods=["GET"])
@require_project_access("project_id")
def environment_comparison(project_id):
    return _run_report("environment-comparison", project_id)


@reporting_bp.route("/reports/test-analysis", methods=["GET"])
@require_project_access("project_id")
def test_analysis(project_id):
    """Flaky or top-failing test cases; ``type`` is required."""
    return _run_report(
        "test-analysis", project_id,
        analysis_type=request.args.get("type"),
        limit=clamp_limit(request.args.get("limit")),
    )


@reporting_bp.route("/reports/export", methods=["GET"])
@require_project_access("project_id")
def export_report(project_id):
    """
    GET /reports/export?format=csv|json|xlsx
    Download every report for the current filters as one file.
    """
    fmt = (request.args.get("format") or "csv").lower()
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(
            'Query parameter "format" must be one of csv, json, xlsx',
            details={"format": f"got {fmt!r}"},
        )
    filters = ReportFilters.from_args(request.args)
    data = _engine().summary(project_id, filters, limit=clamp_limit(request.args.get("limit")))

    project = g.project
    data["projectName"] = project.name
    data["filters"] = filters.to_dict()

    content = RENDERERS[fmt](data)
    filename = export_filename(project.name, fmt)
    logger.info("Exported %s report for project %d", fmt, project_id,
                extra={"project_id": project_id, "report": "export"})
    if isinstance(content, str):
        content = content.encode("utf-8")
    return send_file(
        io.BytesIO(content),
        mimetype=MIME_TYPES[fmt],
        as_attachment=True,
        download_name=filename,
    )


# ═══════════════════════════════════════════════════════════════
# Project overview
# ═══════════════════════════════════════════════════════════════

@reporting_bp.route("/stats", methods=["GET"])
@require_project_access("project_id")
def stats(project_id):
    return jsonify(project_stats(db.session, project_id)), 200


@reporting_bp.route("/environments", methods=["GET"])
@require_project_access("project_id")
def environments(project_id):
    return jsonify(project_environments(db.session, project_id)), 200
