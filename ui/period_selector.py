"""
Period Selector UI Component

Sidebar controls for choosing the month to analyse and the KPI history length.
"""

import streamlit as st
import logging
from datetime import datetime
from typing import List, Tuple

from core.periods.models import format_period_label, trailing_periods

logger = logging.getLogger(__name__)


def recent_period_labels(now: datetime, months: int = 24) -> List[str]:
    """YYYY-MM labels of the last `months` months, newest first."""
    return [format_period_label(anchor) for anchor in reversed(trailing_periods(now, months))]


def render_period_selector(now: datetime, default_history_months: int = 6) -> Tuple[str, bool, int]:
    """
    Render the period controls.

    Args:
        now: Current time in the plant timezone
        default_history_months: Initial value of the history slider

    Returns:
        Tuple of (period label, include history, history months)
    """
    st.header("🗓️ Period")

    period = st.selectbox(
        "Month to analyse",
        options=recent_period_labels(now),
        index=0,
        key="analysis_period",
        help="Calendar month; compared against the month before it"
    )

    include_history = st.checkbox("Include KPI history", value=True, key="include_history")
    history_months = st.slider(
        "History months",
        min_value=2,
        max_value=24,
        value=min(max(default_history_months, 2), 24),
        disabled=not include_history,
        key="history_months"
    )

    logger.debug(f"Selected period {period} (history={include_history}, months={history_months})")
    return period, include_history, history_months
