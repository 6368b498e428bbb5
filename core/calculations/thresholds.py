"""
Analytics Thresholds

Every classification boundary used by the KPI calculator, the bottleneck
detector and the recommendation engine, grouped per component. The values are
fixed; they are kept as data so they can be reviewed and tested in one place.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class KPIThresholds:
    """Status boundaries for the four efficiency KPIs"""

    # Production efficiency rate (%)
    efficiency_excellent: float = 95.0
    efficiency_good: float = 85.0
    efficiency_warning: float = 70.0

    # Capacity utilization rate (%)
    utilization_optimal_min: float = 80.0
    utilization_optimal_max: float = 95.0
    utilization_good_min: float = 70.0
    utilization_good_max: float = 100.0   # exclusive
    utilization_warning_min: float = 50.0

    # Working-day model: ~22 working days in a 31-day month, 8h shifts
    working_day_ratio: float = 0.71
    hours_per_shift: float = 8.0

    # Cost-per-unit trend (% change vs previous month)
    cost_trend_excellent: float = -5.0
    cost_trend_good: float = 0.0
    cost_trend_warning: float = 10.0

    # Average lead time (days)
    lead_time_excellent: float = 3.0
    lead_time_good: float = 5.0
    lead_time_warning: float = 7.0


@dataclass(frozen=True)
class BottleneckThresholds:
    """Sample floors, impact boundaries and filters for the bottleneck detectors"""

    max_results: int = 10

    # Slow stages (days / order counts)
    stage_min_orders: int = 3
    stage_high_duration: float = 7.0
    stage_high_orders: int = 5
    stage_medium_duration: float = 5.0
    stage_medium_orders: int = 10
    stage_reported_duration: float = 5.0
    stage_critical_duration: float = 10.0

    # Problematic products (% / days)
    product_min_orders: int = 2
    product_high_delay_rate: float = 60.0
    product_high_average_delay: float = 5.0
    product_medium_delay_rate: float = 40.0
    product_medium_average_delay: float = 3.0
    product_issue_delay_rate: float = 50.0
    product_issue_average_delay: float = 5.0
    product_issue_volume_orders: int = 10
    product_issue_volume_delay_rate: float = 30.0

    # Slow suppliers (days / %)
    supplier_min_orders: int = 2
    supplier_expected_delivery_days: float = 5.0
    supplier_high_delay_days: float = 7.0
    supplier_high_reliability: float = 60.0
    supplier_medium_delay_days: float = 3.0
    supplier_medium_reliability: float = 80.0
    supplier_reported_delay_days: float = 1.0
    supplier_reported_reliability: float = 90.0

    # Summary wording by number of high-impact findings
    summary_critical_issues: int = 5
    summary_high_issues: int = 3
    summary_moderate_issues: int = 1


@dataclass(frozen=True)
class RecommendationThresholds:
    """Trigger points for the recommendation rules"""

    # Production efficiency (%)
    efficiency_critical_rate: float = 70.0
    efficiency_high_rate: float = 85.0
    efficiency_target_rate: float = 95.0
    efficiency_recovery_rate: float = 85.0
    efficiency_negative_trend: float = 10.0

    # Capacity utilization (%)
    utilization_low: float = 60.0
    utilization_over: float = 100.0
    utilization_near_limit: float = 95.0
    utilization_target: float = 80.0

    # Cost-per-unit trend (%)
    cost_critical_trend: float = 15.0
    cost_high_trend: float = 5.0
    cost_savings_ratio: float = 0.10

    # Lead time (days)
    lead_time_critical_days: float = 10.0
    lead_time_high_days: float = 7.0
    lead_time_target_days: float = 5.0

    # Bottleneck-driven rules
    max_product_recommendations: int = 3
    max_supplier_recommendations: int = 3
    supplier_low_reliability: float = 80.0

    # Inventory
    stock_warning_ratio: float = 1.2
    low_stock_limit: int = 10
    max_named_warning_items: int = 5

    # Summary wording
    summary_immediate_critical: int = 3
    summary_priority_critical: int = 1
    summary_priority_high: int = 5
    summary_improvement_high: int = 2


KPI_THRESHOLDS = KPIThresholds()
BOTTLENECK_THRESHOLDS = BottleneckThresholds()
RECOMMENDATION_THRESHOLDS = RecommendationThresholds()
