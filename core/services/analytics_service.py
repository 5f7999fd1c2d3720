# =============================================================================
# core/services/analytics_service.py - Admin Analytics
# =============================================================================
# Builds the four analytics charts from raw rows with pandas:
#
#   userGrowth               profiles.created_at counted per period
#   engagement               user_progress.created_at counted per period
#   popularContent           top 5 sections by completion count
#   subscriptionDistribution profiles.subscription_tier counts
#
# Period granularity follows the selected range:
#   7days / 30days -> day   ("2024-03-05")
#   90days         -> week  ("Week of 2024-03-03", weeks start on Sunday)
#   365days        -> month ("Mar 2024")
#
# Every period in the window is present, with zero counts where empty.
# =============================================================================

import logging
from datetime import datetime, timedelta
from typing import Any

import pandas as pd

from core.models.admin import AnalyticsRange
from lib.supabase_client import SupabaseClient
from lib.utils import truncate, utc_now

logger = logging.getLogger(__name__)

TOP_SECTIONS = 5
TITLE_LENGTH = 20

GRANULARITY = {
    AnalyticsRange.WEEK: "day",
    AnalyticsRange.MONTH: "day",
    AnalyticsRange.QUARTER: "week",
    AnalyticsRange.YEAR: "month",
}


def period_labels(stamps: pd.Series, granularity: str) -> pd.Series:
    """Map UTC timestamps to their period label."""
    days = stamps.dt.normalize()
    if granularity == "day":
        return days.dt.strftime("%Y-%m-%d")
    if granularity == "week":
        # dayofweek is 0 for Monday; shift back to the preceding Sunday
        week_start = days - pd.to_timedelta((days.dt.dayofweek + 1) % 7, unit="D")
        return "Week of " + week_start.dt.strftime("%Y-%m-%d")
    return days.dt.strftime("%b %Y")


def _utc(value: datetime) -> pd.Timestamp:
    stamp = pd.Timestamp(value)
    return stamp.tz_localize("UTC") if stamp.tzinfo is None else stamp.tz_convert("UTC")


def bucket_counts(
    timestamps: list[str],
    start: datetime,
    end: datetime,
    granularity: str,
) -> dict[str, list]:
    """
    Count timestamps per period between start and end (inclusive).

    Returns:
        {"labels": [...], "data": [...]} in chronological order
    """
    start_ts, end_ts = _utc(start), _utc(end)
    calendar = pd.Series(pd.date_range(start_ts.normalize(), end_ts.normalize(), freq="D"))
    labels = period_labels(calendar, granularity).drop_duplicates().tolist()

    stamps = pd.Series(pd.to_datetime(timestamps, utc=True, format="ISO8601"))
    stamps = stamps[(stamps >= start_ts) & (stamps <= end_ts)]
    counts = period_labels(stamps, granularity).value_counts() if not stamps.empty else pd.Series(dtype=int)

    return {"labels": labels, "data": [int(counts.get(label, 0)) for label in labels]}


def popular_content(section_ids: list[str], titles: dict[str, str]) -> dict[str, list]:
    """Top sections by completion count with shortened titles."""
    if not section_ids:
        return {"labels": [], "data": []}

    top = pd.Series(section_ids).value_counts().head(TOP_SECTIONS)
    labels = [
        truncate(titles[section_id], TITLE_LENGTH) if section_id in titles else section_id[:8]
        for section_id in top.index
    ]
    return {"labels": labels, "data": [int(count) for count in top.values]}


def subscription_distribution(tiers: list[str | None]) -> dict[str, list]:
    """Profile counts per subscription tier, labels capitalised."""
    if not tiers:
        return {"labels": [], "data": []}

    counts = pd.Series(tiers, dtype="object").fillna("unknown").value_counts()
    return {
        "labels": [str(tier)[:1].upper() + str(tier)[1:] for tier in counts.index],
        "data": [int(count) for count in counts.values],
    }


class AnalyticsService:

    @staticmethod
    def build_report(range_: AnalyticsRange = AnalyticsRange.MONTH, now: datetime | None = None) -> dict[str, Any]:
        """
        Assemble all analytics charts for the admin page.

        Args:
            range_: Reporting window
            now: End of the window (defaults to the current time)
        """
        end = now or utc_now()
        start = end - timedelta(days=range_.days)
        granularity = GRANULARITY[range_]
        since = start.isoformat()

        signups = [row["created_at"] for row in SupabaseClient.list_created_since("profiles", since)]
        activity = [row["created_at"] for row in SupabaseClient.list_created_since("user_progress", since)]

        completed = [row["section_id"] for row in SupabaseClient.list_completed_progress()]
        top_ids = pd.Series(completed).value_counts().head(TOP_SECTIONS).index.tolist() if completed else []
        titles = {s["id"]: s["title"] for s in SupabaseClient.fetch_sections_by_ids(top_ids)}

        tiers = [row.get("subscription_tier") for row in SupabaseClient.list_profiles("subscription_tier")]

        logger.debug(
            f"Analytics {range_.value}: {len(signups)} signups, {len(activity)} progress rows, "
            f"{len(completed)} completions"
        )
        return {
            "range": range_.value,
            "userGrowth": bucket_counts(signups, start, end, granularity),
            "engagement": bucket_counts(activity, start, end, granularity),
            "popularContent": popular_content(completed, titles),
            "subscriptionDistribution": subscription_distribution(tiers),
        }
