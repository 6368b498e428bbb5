"""
Manufacturing Efficiency Analytics - Main Application

Monthly operational intelligence for the plant:
- KPIs: production efficiency, capacity utilization, cost per unit, lead time
- Bottlenecks: slow stages, problematic products, slow suppliers
- Recommendations: prioritised actions derived from both
"""

import streamlit as st
import logging

from utils.config import load_config, validate_config, get_app_config
from core.analysis.service import run_efficiency_analysis
from core.db.pool import get_pool
from core.db.repository import OperationsRepository
from core.errors import RepositoryError
from core.periods.models import now_local
from ui.metrics_display import (
    render_bottlenecks,
    render_history_chart,
    render_kpi_cards,
    render_recommendations,
)
from ui.period_selector import render_period_selector
from utils.formatting import format_timestamp

# Load configuration
load_config()
app_config = get_app_config()

# Configure logging
logging.basicConfig(
    level=getattr(logging, app_config["log_level"].upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Streamlit page config
st.set_page_config(
    page_title="Manufacturing Efficiency Analytics",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.title("🏭 Manufacturing Efficiency Analytics")
st.markdown("**Monthly KPIs, bottlenecks and recommendations**")

# Validate configuration
config_errors = validate_config()
if config_errors:
    st.error("❌ Configuration errors detected:")
    for error in config_errors:
        st.error(error)
    st.stop()

with st.sidebar:
    period, include_history, history_months = render_period_selector(
        now_local(app_config["timezone"]),
        default_history_months=app_config["history_months"]
    )
    run_clicked = st.button("Run analysis", type="primary", use_container_width=True)

if run_clicked:
    try:
        repository = OperationsRepository(
            get_pool(app_config["pool_min_connections"], app_config["pool_max_connections"])
        )
        with st.spinner(f"Analysing {period}..."):
            st.session_state["analysis"] = run_efficiency_analysis(
                repository,
                period=period,
                include_history=include_history,
                history_months=history_months,
                max_workers=app_config["max_workers"]
            )
    except RepositoryError as e:
        logger.error(f"Analysis failed: {e}")
        st.error(f"❌ Could not read operations data: {e}")
    except ValueError as e:
        logger.warning(f"Invalid analysis request: {e}")
        st.error(f"❌ {e}")

analysis = st.session_state.get("analysis")
if analysis is None:
    st.info("Select a month in the sidebar and click **Run analysis**.")
    st.stop()

data = analysis["data"]
st.caption(
    f"Period {data['period']} · generated {format_timestamp(analysis['meta']['generatedAt'])} "
    f"in {analysis['meta']['durationMs']} ms"
)

render_kpi_cards(data["kpis"])
st.divider()
render_bottlenecks(data["bottlenecks"])
st.divider()
render_recommendations(data["recommendations"])

if data.get("historicalData"):
    st.divider()
    render_history_chart(data["historicalData"])
