"""
Rate limiting configuration.

The Limiter instance is created in testcraft/__init__.py with no default
limits; this module applies the per-route limits.

Usage:
    from testcraft.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

REPORT_RATE_LIMIT = "60/minute"
EXPORT_RATE_LIMIT = "10/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits (per remote IP):
        - Reporting endpoints: 60/minute
        - Report export:       10/minute (builds every report at once)
        - Health check:        exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    bp = app.blueprints.get("reporting")
    if bp:
        limiter.limit(REPORT_RATE_LIMIT)(bp)

    export_view = app.view_functions.get("reporting.export_report")
    if export_view:
        limiter.limit(EXPORT_RATE_LIMIT)(export_view)

    health_view = app.view_functions.get("health")
    if health_view:
        limiter.exempt(health_view)

    app.logger.info(
        "Rate limiter configured — reports: %s, export: %s",
        REPORT_RATE_LIMIT, EXPORT_RATE_LIMIT,
    )
