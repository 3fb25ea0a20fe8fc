"""
Report export — CSV, JSON and XLSX renderings of a combined report.

Input is the dict produced by ``ReportEngine.summary()`` plus:
    projectName : str
    filters     : dict (ReportFilters.to_dict())

Percent values are written with a trailing ``%`` in CSV, as plain integers
in JSON and XLSX.
"""

import csv
import io
import json
import logging
import re
from datetime import datetime, timezone

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "json", "xlsx")

MIME_TYPES = {
    "csv": "text/csv",
    "json": "application/json",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

HEADER_FILL = PatternFill(start_color="354A5F", end_color="354A5F", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True, size=11)
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)


def _pct(value) -> str:
    return f"{value}%"


def _bool(value) -> str:
    return "true" if value else "false"


def _tests(data: dict, key: str) -> list:
    return (data.get(key) or {}).get("tests", [])


def export_filename(project_name: str, fmt: str, today=None) -> str:
    """``testcraft-report-<slug>-<YYYY-MM-DD>.<fmt>``

    Every run of characters other than letters and digits in the project
    name becomes one hyphen. Letters outside ASCII are kept.
    """
    today = today or datetime.now(timezone.utc).date()
    slug = re.sub(r"[\W_]+", "-", (project_name or "").lower()).strip("-") or "project"
    return f"testcraft-report-{slug}-{today.isoformat()}.{fmt}"


# ═════════════════════════════════════════════════════════════════════════════
# CSV
# ═════════════════════════════════════════════════════════════════════════════

def export_report_csv(data: dict, generated_at: datetime | None = None) -> str:
    """Sectioned CSV: header block, then one titled table per report."""
    generated_at = generated_at or datetime.now(timezone.utc)
    filters = data.get("filters") or {}

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow([f"TestCraft Report - {data.get('projectName', '')}"])
    writer.writerow([f"Generated: {generated_at.date().isoformat()}"])
    writer.writerow([f"Time Range: {filters.get('timeRange', 'all')}"])
    writer.writerow([f"Scope: {filters.get('scope', 'global')}"])
    writer.writerow([])

    status = data.get("statusBreakdown")
    if status:
        writer.writerow(["STATUS BREAKDOWN"])
        writer.writerow(["Status", "Count", "Percentage"])
        for s in status["breakdown"]:
            writer.writerow([s["status"], s["count"], _pct(s["percentage"])])
        writer.writerow(["Total", "", status["total"]])
        writer.writerow([])

    trend = data.get("executionTrend")
    if trend:
        writer.writerow(["EXECUTION TREND"])
        writer.writerow(["Date", "Total Executed", "Pass Count", "Fail Count", "Pass Rate"])
        for t in trend["trend"]:
            writer.writerow([t["date"], t["totalExecuted"], t["passCount"], t["failCount"], _pct(t["passRate"])])
        writer.writerow([])

    envs = data.get("environmentComparison")
    if envs:
        writer.writerow(["ENVIRONMENT COMPARISON"])
        writer.writerow(["Environment", "Total Runs", "Pass Count", "Fail Count", "Pass Rate"])
        for e in envs["environments"]:
            writer.writerow([e["environment"], e["totalRuns"], e["passCount"], e["failCount"], _pct(e["passRate"])])
        writer.writerow([])

    if data.get("flakyTests"):
        writer.writerow(["FLAKY TESTS"])
        writer.writerow(["Test Case", "Total Runs", "Pass", "Fail", "Flakiness Score", "Debug Flag"])
        for t in _tests(data, "flakyTests"):
            writer.writerow([
                t["testCaseName"], t["totalRuns"], t["passCount"], t["failCount"],
                _pct(t["flakinessScore"]), _bool(t["debugFlag"]),
            ])
        writer.writerow([])

    if data.get("topFailingTests"):
        writer.writerow(["TOP FAILING TESTS"])
        writer.writerow(["Test Case", "Fail Count", "Total Runs", "Fail Rate", "Debug Flag", "Last Failed"])
        for t in _tests(data, "topFailingTests"):
            last_failed = t.get("lastFailedAt")
            writer.writerow([
                t["testCaseName"], t["failCount"], t["totalRuns"], _pct(t["failRate"]),
                _bool(t["debugFlag"]), last_failed[:10] if last_failed else "N/A",
            ])

    return buf.getvalue()


# ═════════════════════════════════════════════════════════════════════════════
# JSON
# ═════════════════════════════════════════════════════════════════════════════

def export_report_json(data: dict, generated_at: datetime | None = None) -> str:
    generated_at = generated_at or datetime.now(timezone.utc)
    payload = {
        "generatedAt": generated_at.isoformat(),
        "projectName": data.get("projectName"),
        "filters": data.get("filters") or {},
        "statusBreakdown": data.get("statusBreakdown"),
        "executionTrend": data.get("executionTrend"),
        "environmentComparison": data.get("environmentComparison"),
        "flakyTests": data.get("flakyTests"),
        "topFailingTests": data.get("topFailingTests"),
    }
    return json.dumps(payload, indent=2)


# ═════════════════════════════════════════════════════════════════════════════
# XLSX
# ═════════════════════════════════════════════════════════════════════════════

def _apply_header_style(ws, row: int, col_count: int) -> None:
    """Apply dark-header styling to an Excel row (1-indexed)."""
    for col in range(1, col_count + 1):
        cell = ws.cell(row=row, column=col)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.border = THIN_BORDER
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)


def _auto_width(ws) -> None:
    """Auto-size column widths based on content (capped at 60 chars)."""
    for col in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            if cell.value is not None:
                max_len = max(max_len, min(len(str(cell.value)), 60))
        ws.column_dimensions[col_letter].width = max(max_len + 4, 12)


def _write_table(ws, headers: list[str], rows: list[list], start_row: int = 1) -> None:
    for col, header in enumerate(headers, 1):
        ws.cell(row=start_row, column=col, value=header)
    _apply_header_style(ws, start_row, len(headers))
    for r, values in enumerate(rows, start_row + 1):
        for c, value in enumerate(values, 1):
            ws.cell(row=r, column=c, value=value).border = THIN_BORDER
    _auto_width(ws)


def export_report_xlsx(data: dict, generated_at: datetime | None = None) -> bytes:
    """Workbook with a summary sheet plus one sheet per report section."""
    generated_at = generated_at or datetime.now(timezone.utc)
    filters = data.get("filters") or {}
    wb = Workbook()

    # ── Sheet 1: Summary ─────────────────────────────────────────────
    ws = wb.active
    ws.title = "Summary"
    ws["A1"] = f"TestCraft Report - {data.get('projectName', '')}"
    ws["A1"].font = Font(size=16, bold=True, color="354A5F")
    ws["A2"] = f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M UTC')}"
    ws["A2"].font = Font(size=10, italic=True, color="666666")
    ws["A3"] = f"Time Range: {filters.get('timeRange', 'all')}"
    ws["A4"] = f"Scope: {filters.get('scope', 'global')}"

    status = data.get("statusBreakdown") or {"breakdown": [], "total": 0}
    rows = [[s["status"], s["count"], s["percentage"]] for s in status["breakdown"]]
    rows.append(["Total", status["total"], None])
    _write_table(ws, ["Status", "Count", "Percentage"], rows, start_row=6)

    # ── Sheet 2: Execution Trend ─────────────────────────────────────
    trend = (data.get("executionTrend") or {}).get("trend", [])
    _write_table(
        wb.create_sheet("Execution Trend"),
        ["Date", "Total Executed", "Pass Count", "Fail Count", "Pass Rate %"],
        [[t["date"], t["totalExecuted"], t["passCount"], t["failCount"], t["passRate"]] for t in trend],
    )

    # ── Sheet 3: Environments ────────────────────────────────────────
    envs = (data.get("environmentComparison") or {}).get("environments", [])
    _write_table(
        wb.create_sheet("Environments"),
        ["Environment", "Total Runs", "Pass Count", "Fail Count", "Pass Rate %"],
        [[e["environment"], e["totalRuns"], e["passCount"], e["failCount"], e["passRate"]] for e in envs],
    )

    # ── Sheet 4: Flaky Tests ─────────────────────────────────────────
    _write_table(
        wb.create_sheet("Flaky Tests"),
        ["Test Case", "Total Runs", "Pass", "Fail", "Flakiness Score %", "Debug Flag"],
        [
            [t["testCaseName"], t["totalRuns"], t["passCount"], t["failCount"],
             t["flakinessScore"], "Yes" if t["debugFlag"] else "No"]
            for t in _tests(data, "flakyTests")
        ],
    )

    # ── Sheet 5: Top Failing Tests ───────────────────────────────────
    _write_table(
        wb.create_sheet("Top Failing"),
        ["Test Case", "Fail Count", "Total Runs", "Fail Rate %", "Debug Flag", "Last Failed"],
        [
            [t["testCaseName"], t["failCount"], t["totalRuns"], t["failRate"],
             "Yes" if t["debugFlag"] else "No", t.get("lastFailedAt") or "N/A"]
            for t in _tests(data, "topFailingTests")
        ],
    )

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    logger.debug("XLSX report generated for %s", data.get("projectName"))
    return buf.getvalue()


RENDERERS = {
    "csv": export_report_csv,
    "json": export_report_json,
    "xlsx": export_report_xlsx,
}
