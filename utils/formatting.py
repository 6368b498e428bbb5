"""
Formatting Utilities

Functions for formatting money, percentages, durations and timestamps for
recommendation texts and the dashboard.
"""

import logging
from datetime import datetime
from typing import Optional

import pandas as pd

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    "excellent": "🟢",
    "good": "🔵",
    "warning": "🟡",
    "critical": "🔴",
}

PRIORITY_ICONS = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "⚪",
}


def format_currency(value: float, symbol: str = "$") -> str:
    """
    Format an amount with thousands separators and two decimals.

    Example:
        >>> format_currency(5263157.894)
        '$5,263,157.89'
    """
    if value is None or pd.isna(value):
        return f"{symbol}0.00"
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    """Format a percentage value (already scaled to 0-100)."""
    if value is None or pd.isna(value):
        return "—"
    return f"{value:.{decimals}f}%"


def format_days(value: Optional[float]) -> str:
    """Format a duration in days, e.g. 1 -> '1.0 day', 4.5 -> '4.5 days'."""
    if value is None or pd.isna(value):
        return "—"
    unit = "day" if value == 1 else "days"
    return f"{value:.1f} {unit}"


def format_timestamp(iso_timestamp) -> str:
    """
    Convert ISO 8601 timestamp to readable format (YYYY-MM-DD HH:MM:SS), handling potential errors.

    Args:
        iso_timestamp: ISO timestamp string, datetime object, or None

    Returns:
        Formatted timestamp string or empty string if invalid
    """
    if not iso_timestamp:
        return ""
    try:
        if isinstance(iso_timestamp, datetime):
            return iso_timestamp.strftime("%Y-%m-%d %H:%M:%S")
        dt_obj = datetime.fromisoformat(str(iso_timestamp).replace("Z", "+00:00"))
        return dt_obj.strftime("%Y-%m-%d %H:%M:%S")
    except (ValueError, TypeError):
        logger.warning(f"Could not parse timestamp: {iso_timestamp}")
        return str(iso_timestamp)


def status_badge(status: str) -> str:
    """Icon plus capitalised status, e.g. '🟡 Warning'."""
    return f"{STATUS_ICONS.get(status, '⚪')} {status.capitalize()}"


def priority_badge(priority: str) -> str:
    return f"{PRIORITY_ICONS.get(priority, '⚪')} {priority.upper()}"

