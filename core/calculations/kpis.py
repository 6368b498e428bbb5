"""
Efficiency KPI Calculations

Pure calculations for the four monthly efficiency indicators:
- Production efficiency: produced / planned units
- Capacity utilization: consumed hours / available staff hours
- Cost per unit: purchase cost / produced units
- Lead time: days from order start to completion

Each KPI carries a period-over-period trend string ("+X.X%" / "-X.X%") and a
status in {excellent, good, warning, critical}. Zero denominators yield 0.
"""

import math
from dataclasses import dataclass
from typing import Dict

from core.db.records import LeadTimeStats, ProductionTotals
from .thresholds import KPIThresholds, KPI_THRESHOLDS

EXCELLENT = "excellent"
GOOD = "good"
WARNING = "warning"
CRITICAL = "critical"


# ============================================================
# KPI VALUE OBJECTS
# ============================================================

@dataclass(frozen=True)
class ProductionEfficiencyKPI:
    period: str
    planned_units: float
    produced_units: float
    efficiency_rate: float  # % (may exceed 100)
    trend: str
    status: str

    def to_dict(self) -> Dict:
        return {
            'period': self.period,
            'plannedUnits': self.planned_units,
            'producedUnits': self.produced_units,
            'efficiencyRate': self.efficiency_rate,
            'trend': self.trend,
            'status': self.status
        }


@dataclass(frozen=True)
class CapacityUtilizationKPI:
    period: str
    total_capacity: float     # available hours
    used_capacity: float      # consumed hours
    utilization_rate: float   # %
    trend: str
    status: str

    def to_dict(self) -> Dict:
        return {
            'period': self.period,
            'totalCapacity': self.total_capacity,
            'usedCapacity': self.used_capacity,
            'utilizationRate': self.utilization_rate,
            'trend': self.trend,
            'status': self.status
        }


@dataclass(frozen=True)
class CostPerUnitKPI:
    period: str
    total_cost: float
    units_produced: float
    cost_per_unit: float
    trend: str
    status: str

    def to_dict(self) -> Dict:
        return {
            'period': self.period,
            'totalCost': self.total_cost,
            'unitsProduced': self.units_produced,
            'costPerUnit': self.cost_per_unit,
            'trend': self.trend,
            'status': self.status
        }


@dataclass(frozen=True)
class LeadTimeKPI:
    period: str
    average_lead_time: float  # days
    min_lead_time: float
    max_lead_time: float
    trend: str
    status: str

    def to_dict(self) -> Dict:
        return {
            'period': self.period,
            'averageLeadTime': self.average_lead_time,
            'minLeadTime': self.min_lead_time,
            'maxLeadTime': self.max_lead_time,
            'trend': self.trend,
            'status': self.status
        }


@dataclass(frozen=True)
class EfficiencyMetrics:
    """The four KPIs for one month"""
    production_efficiency: ProductionEfficiencyKPI
    capacity_utilization: CapacityUtilizationKPI
    cost_per_unit: CostPerUnitKPI
    lead_time: LeadTimeKPI
    period: str

    def kpis_dict(self) -> Dict[str, Dict]:
        return {
            'productionEfficiency': self.production_efficiency.to_dict(),
            'capacityUtilization': self.capacity_utilization.to_dict(),
            'costPerUnit': self.cost_per_unit.to_dict(),
            'leadTime': self.lead_time.to_dict()
        }

    def to_dict(self) -> Dict:
        result = self.kpis_dict()
        result['period'] = self.period
        return result


# ============================================================
# SHARED HELPERS
# ============================================================

def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0.0 when the denominator is not positive"""
    if denominator <= 0:
        return 0.0
    return numerator / denominator * scale


def percent_change(current: float, previous: float) -> float:
    """
    Percentage change from `previous` to `current`.

    Returns 0.0 when there is no previous value to compare against.
    """
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


def format_trend(variation: float) -> str:
    """
    Format a percentage change with one decimal and an explicit sign.

    Example:
        >>> format_trend(2.71), format_trend(-12.04), format_trend(0)
        ('+2.7%', '-12.0%', '+0.0%')
    """
    if variation >= 0:
        return f"+{abs(variation):.1f}%"
    return f"{variation:.1f}%"


def parse_trend(trend: str) -> float:
    """Numeric value of a trend string ("+3.4%" -> 3.4); malformed strings give 0.0"""
    try:
        return float(trend.strip().rstrip('%'))
    except (AttributeError, ValueError):
        return 0.0


def round2(value: float) -> float:
    return round(float(value), 2)


def working_days(days_in_period: int, thresholds: KPIThresholds = KPI_THRESHOLDS) -> int:
    """Approximate working days in a month (31 calendar days -> 22 working days)."""
    return int(math.floor(days_in_period * thresholds.working_day_ratio))


# ============================================================
# STATUS CLASSIFICATION
# ============================================================

def classify_efficiency_status(rate: float, thresholds: KPIThresholds = KPI_THRESHOLDS) -> str:
    """Production efficiency status from the absolute rate."""
    if rate >= thresholds.efficiency_excellent:
        return EXCELLENT
    if rate >= thresholds.efficiency_good:
        return GOOD
    if rate >= thresholds.efficiency_warning:
        return WARNING
    return CRITICAL


def classify_utilization_status(rate: float, thresholds: KPIThresholds = KPI_THRESHOLDS) -> str:
    """
    Capacity utilization status from the absolute rate.

    80-95% is optimal; both under-use and over-use degrade the status.
    """
    if thresholds.utilization_optimal_min <= rate <= thresholds.utilization_optimal_max:
        return EXCELLENT
    if thresholds.utilization_good_min <= rate < thresholds.utilization_good_max:
        return GOOD
    if rate >= thresholds.utilization_warning_min or rate > thresholds.utilization_good_max:
        return WARNING
    return CRITICAL


def classify_cost_status(variation: float, thresholds: KPIThresholds = KPI_THRESHOLDS) -> str:
    """Cost-per-unit status from the month-over-month change (lower is better)."""
    if variation <= thresholds.cost_trend_excellent:
        return EXCELLENT
    if variation <= thresholds.cost_trend_good:
        return GOOD
    if variation <= thresholds.cost_trend_warning:
        return WARNING
    return CRITICAL


def classify_lead_time_status(average_days: float, thresholds: KPIThresholds = KPI_THRESHOLDS) -> str:
    """Lead time status from the absolute average in days."""
    if average_days <= thresholds.lead_time_excellent:
        return EXCELLENT
    if average_days <= thresholds.lead_time_good:
        return GOOD
    if average_days <= thresholds.lead_time_warning:
        return WARNING
    return CRITICAL


# ============================================================
# KPI CALCULATIONS
# ============================================================

def calculate_production_efficiency(
    period: str,
    current: ProductionTotals,
    previous: ProductionTotals,
    thresholds: KPIThresholds = KPI_THRESHOLDS
) -> ProductionEfficiencyKPI:
    """
    Production efficiency (real vs planned output).

    Args:
        period: YYYY-MM label of the analysed month
        current: Planned/produced totals of the analysed month
        previous: Planned/produced totals of the previous month

    Returns:
        ProductionEfficiencyKPI, status classified on the rate itself

    Example:
        >>> kpi = calculate_production_efficiency(
        ...     "2024-01", ProductionTotals(100, 95), ProductionTotals(0, 0))
        >>> kpi.efficiency_rate, kpi.status
        (95.0, 'excellent')
    """
    efficiency_rate = safe_ratio(current.produced_units, current.planned_units, 100)
    previous_rate = safe_ratio(previous.produced_units, previous.planned_units, 100)
    variation = percent_change(efficiency_rate, previous_rate)

    return ProductionEfficiencyKPI(
        period=period,
        planned_units=current.planned_units,
        produced_units=current.produced_units,
        efficiency_rate=round2(efficiency_rate),
        trend=format_trend(variation),
        status=classify_efficiency_status(efficiency_rate, thresholds)
    )


def calculate_capacity_utilization(
    period: str,
    active_staff: int,
    days_in_period: int,
    used_hours: float,
    previous_used_hours: float,
    thresholds: KPIThresholds = KPI_THRESHOLDS
) -> CapacityUtilizationKPI:
    """
    Capacity utilization of the available staff hours.

    Capacity = active staff × working days × hours per shift. The staff count
    is a point-in-time figure, so the previous month's rate is measured
    against the same capacity.

    Args:
        period: YYYY-MM label of the analysed month
        active_staff: Number of active operators
        days_in_period: Calendar days in the analysed month
        used_hours: Hours consumed by completed orders this month
        previous_used_hours: Hours consumed by completed orders last month
    """
    total_capacity = max(active_staff, 0) * working_days(days_in_period, thresholds) * thresholds.hours_per_shift
    utilization_rate = safe_ratio(used_hours, total_capacity, 100)
    previous_rate = safe_ratio(previous_used_hours, total_capacity, 100)
    variation = percent_change(utilization_rate, previous_rate)

    return CapacityUtilizationKPI(
        period=period,
        total_capacity=round2(total_capacity),
        used_capacity=round2(used_hours),
        utilization_rate=round2(utilization_rate),
        trend=format_trend(variation),
        status=classify_utilization_status(utilization_rate, thresholds)
    )


def calculate_cost_per_unit(
    period: str,
    total_cost: float,
    units_produced: float,
    previous_cost: float,
    previous_units: float,
    thresholds: KPIThresholds = KPI_THRESHOLDS
) -> CostPerUnitKPI:
    """
    Purchase cost per produced unit.

    Unlike the other KPIs the status is classified on the trend: a falling
    cost per unit is good regardless of its absolute level.
    """
    cost_per_unit = safe_ratio(total_cost, units_produced)
    previous_cost_per_unit = safe_ratio(previous_cost, previous_units)
    variation = percent_change(cost_per_unit, previous_cost_per_unit)

    return CostPerUnitKPI(
        period=period,
        total_cost=round2(total_cost),
        units_produced=round2(units_produced),
        cost_per_unit=round2(cost_per_unit),
        trend=format_trend(variation),
        status=classify_cost_status(variation, thresholds)
    )


def calculate_lead_time(
    period: str,
    current: LeadTimeStats,
    previous: LeadTimeStats,
    thresholds: KPIThresholds = KPI_THRESHOLDS
) -> LeadTimeKPI:
    """Average/min/max production lead time; status from the absolute average."""
    average = max(current.average_days, 0.0)
    variation = percent_change(average, previous.average_days)

    return LeadTimeKPI(
        period=period,
        average_lead_time=round2(average),
        min_lead_time=round2(max(current.min_days, 0.0)),
        max_lead_time=round2(max(current.max_days, 0.0)),
        trend=format_trend(variation),
        status=classify_lead_time_status(average, thresholds)
    )
