"""
Execution trend — runs bucketed into a pass-rate time series.

Algorithm:
  1. Span = latest executed_at - earliest executed_at (all in UTC)
  2. Fewer than 2 runs or span <= 90 days → one bucket per calendar day
  3. Otherwise → one bucket per ISO week, keyed by that week's Monday
  4. Per bucket: total, PASS, FAIL, pass rate (BLOCKED/SKIPPED only in total)
  5. Buckets sorted by key; YYYY-MM-DD sorts chronologically as text

The 90-day threshold is fixed and not configurable.
"""

from collections import Counter, defaultdict
from datetime import datetime, timedelta

from testcraft.models.testing import RUN_STATUS_FAIL, RUN_STATUS_PASS
from testcraft.utils.helpers import as_utc, round_pct

TREND_WEEKLY_THRESHOLD = timedelta(days=90)

GRANULARITY_DAY = "day"
GRANULARITY_WEEK = "week"


def choose_granularity(timestamps: list[datetime]) -> str:
    """Return ``"week"`` when the data spans more than 90 days, else ``"day"``."""
    if len(timestamps) < 2:
        return GRANULARITY_DAY
    span = max(timestamps) - min(timestamps)
    return GRANULARITY_WEEK if span > TREND_WEEKLY_THRESHOLD else GRANULARITY_DAY


def bucket_key(executed_at: datetime, granularity: str) -> str:
    """UTC day, or the Monday starting the UTC ISO week, as YYYY-MM-DD."""
    day = as_utc(executed_at).date()
    if granularity == GRANULARITY_WEEK:
        day -= timedelta(days=day.weekday())
    return day.isoformat()


def execution_trend(runs) -> dict:
    """Build the trend series.

    Returns:
        {"trend": [{"date", "totalExecuted", "passCount", "failCount", "passRate"}]}
    """
    runs = list(runs)
    granularity = choose_granularity([as_utc(r.executed_at) for r in runs])

    buckets = defaultdict(Counter)
    for run in runs:
        buckets[bucket_key(run.executed_at, granularity)][run.status] += 1

    trend = []
    for key in sorted(buckets):
        counts = buckets[key]
        total = sum(counts.values())
        passed = counts[RUN_STATUS_PASS]
        trend.append({
            "date": key,
            "totalExecuted": total,
            "passCount": passed,
            "failCount": counts[RUN_STATUS_FAIL],
            "passRate": round_pct(passed, total),
        })
    return {"trend": trend}
