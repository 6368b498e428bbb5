"""
Metrics Display Functions

UI components for displaying efficiency KPIs, bottlenecks, recommendations
and the KPI history of the analysed month.
"""

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import logging
from typing import Dict, List

from utils.formatting import (
    format_currency,
    format_days,
    format_percent,
    priority_badge,
    status_badge,
)

logger = logging.getLogger(__name__)

KPI_LABELS = {
    'productionEfficiency': "Production Efficiency",
    'capacityUtilization': "Capacity Utilization",
    'costPerUnit': "Cost per Unit",
    'leadTime': "Lead Time",
}

# Metrics where a rising trend is bad
LOWER_IS_BETTER = {'costPerUnit', 'leadTime'}


def _kpi_value(key: str, kpi: Dict) -> str:
    if key == 'productionEfficiency':
        return format_percent(kpi['efficiencyRate'])
    if key == 'capacityUtilization':
        return format_percent(kpi['utilizationRate'])
    if key == 'costPerUnit':
        return format_currency(kpi['costPerUnit'])
    return format_days(kpi['averageLeadTime'])


def _kpi_caption(key: str, kpi: Dict) -> str:
    if key == 'productionEfficiency':
        return f"{kpi['producedUnits']:g} of {kpi['plannedUnits']:g} planned units"
    if key == 'capacityUtilization':
        return f"{kpi['usedCapacity']:,.0f} of {kpi['totalCapacity']:,.0f} hours"
    if key == 'costPerUnit':
        return f"{format_currency(kpi['totalCost'])} over {kpi['unitsProduced']:g} units"
    return f"min {format_days(kpi['minLeadTime'])} · max {format_days(kpi['maxLeadTime'])}"


def render_kpi_cards(kpis: Dict[str, Dict]):
    """
    Display the four KPIs side by side.

    Args:
        kpis: The "kpis" section of the analysis response
    """
    st.subheader("📈 Efficiency KPIs")
    columns = st.columns(len(KPI_LABELS))

    for column, (key, label) in zip(columns, KPI_LABELS.items()):
        kpi = kpis[key]
        with column:
            st.metric(
                label,
                _kpi_value(key, kpi),
                delta=kpi['trend'],
                delta_color="inverse" if key in LOWER_IS_BETTER else "normal"
            )
            st.caption(_kpi_caption(key, kpi))
            st.markdown(status_badge(kpi['status']))


def render_bottlenecks(bottlenecks: Dict):
    """Display bottleneck summary and one table per category."""
    summary = bottlenecks['summary']
    st.subheader("🚧 Bottlenecks")

    col1, col2 = st.columns(2)
    with col1:
        st.metric("Bottlenecks detected", summary['totalBottlenecks'])
    with col2:
        st.metric("High impact", summary['criticalIssues'])
    st.info(summary['estimatedImpact'])

    sections = [
        ("Slow stages", bottlenecks['slowStages'],
         ['stageName', 'averageDuration', 'ordersCount', 'impactLevel', 'suggestion']),
        ("Problematic products", bottlenecks['problematicProducts'],
         ['productName', 'averageDelay', 'delayedOrders', 'totalOrders', 'delayRate', 'impactLevel']),
        ("Slow suppliers", bottlenecks['slowSuppliers'],
         ['supplierName', 'averageDeliveryTime', 'delayDays', 'ordersCount', 'reliability', 'impactLevel']),
    ]

    for title, rows, columns in sections:
        with st.expander(f"{title} ({len(rows)})", expanded=bool(rows)):
            if not rows:
                st.caption("No problems detected")
                continue
            st.dataframe(pd.DataFrame(rows)[columns], use_container_width=True, hide_index=True)


def render_recommendations(recommendations: Dict):
    """Display the prioritised recommendation list."""
    items = recommendations['items']
    summary = recommendations['summary']

    st.subheader(f"💡 Recommendations ({summary['totalRecommendations']})")
    st.markdown(f"**{summary['estimatedImpact']}**")

    if not items:
        st.success("No recommendations for this period")
        return

    for item in items:
        header = f"{priority_badge(item['priority'])} · {item['title']}"
        with st.expander(header, expanded=item['priority'] == 'critical'):
            st.write(item['description'])
            st.markdown(f"**Impact:** {item['impact']}")
            st.markdown("**Actions:**")
            for action in item['actionItems']:
                st.markdown(f"- {action}")
            st.markdown(f"**Estimated benefit:** {item['estimatedBenefit']}")
            st.caption(f"{item['affectedArea']} · {item['urgency']} · {item['id']}")


def history_frame(historical: List[Dict]) -> pd.DataFrame:
    """
    Flatten KPI history into one row per month.

    Returns:
        DataFrame with period, efficiency, utilization, cost_per_unit and lead_time columns
    """
    rows = [
        {
            'period': month['period'],
            'efficiency': month['productionEfficiency']['efficiencyRate'],
            'utilization': month['capacityUtilization']['utilizationRate'],
            'cost_per_unit': month['costPerUnit']['costPerUnit'],
            'lead_time': month['leadTime']['averageLeadTime'],
        }
        for month in historical
    ]
    return pd.DataFrame(rows, columns=['period', 'efficiency', 'utilization', 'cost_per_unit', 'lead_time'])


def render_history_chart(historical: List[Dict]):
    """Line chart of efficiency and utilization rates across the history window."""
    df = history_frame(historical)
    if df.empty:
        logger.warning("No KPI history to display")
        return

    st.subheader("🕒 KPI History")
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=df['period'],
        y=df['efficiency'],
        mode='lines+markers',
        name='Efficiency (%)',
        line=dict(color='#28a745')
    ))
    fig.add_trace(go.Scatter(
        x=df['period'],
        y=df['utilization'],
        mode='lines+markers',
        name='Utilization (%)',
        line=dict(color='#007bff')
    ))
    fig.update_layout(
        xaxis_title='Month',
        yaxis_title='Percentage (%)',
        height=360,
        hovermode='x unified',
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1)
    )
    st.plotly_chart(fig, use_container_width=True)

    st.dataframe(df, use_container_width=True, hide_index=True)
