import pytest

from core.calculations.kpis import (
    CRITICAL,
    EXCELLENT,
    GOOD,
    WARNING,
    calculate_capacity_utilization,
    calculate_cost_per_unit,
    calculate_lead_time,
    calculate_production_efficiency,
    classify_cost_status,
    classify_efficiency_status,
    classify_lead_time_status,
    classify_utilization_status,
    format_trend,
    parse_trend,
    percent_change,
    safe_ratio,
    working_days,
)
from core.db.records import LeadTimeStats, ProductionTotals


def test_production_efficiency_on_target():
    kpi = calculate_production_efficiency(
        "2024-01", ProductionTotals(100, 95), ProductionTotals(0, 0)
    )

    assert kpi.efficiency_rate == 95.0
    assert kpi.status == EXCELLENT
    assert kpi.trend == "+0.0%"
    assert kpi.period == "2024-01"


def test_production_efficiency_improving_trend():
    kpi = calculate_production_efficiency(
        "2024-01", ProductionTotals(100, 97), ProductionTotals(90, 85)
    )

    assert kpi.efficiency_rate == 97.0
    assert kpi.trend.startswith("+")
    assert kpi.trend == "+2.7%"


def test_production_efficiency_declining_trend():
    kpi = calculate_production_efficiency(
        "2024-01", ProductionTotals(1000, 600), ProductionTotals(1000, 900)
    )

    assert kpi.efficiency_rate == 60.0
    assert kpi.trend == "-33.3%"
    assert kpi.status == CRITICAL


def test_production_efficiency_with_no_data():
    kpi = calculate_production_efficiency(
        "2024-01", ProductionTotals(0, 0), ProductionTotals(0, 0)
    )

    assert kpi.efficiency_rate == 0.0
    assert kpi.trend == "+0.0%"
    assert kpi.status == CRITICAL


def test_capacity_utilization_uses_working_days():
    kpi = calculate_capacity_utilization(
        "2024-01", active_staff=10, days_in_period=31, used_hours=1496, previous_used_hours=0
    )

    # 10 operators x 22 working days x 8 hours
    assert kpi.total_capacity == 1760.0
    assert kpi.utilization_rate == 85.0
    assert kpi.status == EXCELLENT


def test_capacity_utilization_without_staff():
    kpi = calculate_capacity_utilization(
        "2024-01", active_staff=0, days_in_period=31, used_hours=120, previous_used_hours=80
    )

    assert kpi.total_capacity == 0.0
    assert kpi.utilization_rate == 0.0
    assert kpi.trend == "+0.0%"
    assert kpi.status == CRITICAL


def test_capacity_trend_against_same_capacity():
    kpi = calculate_capacity_utilization(
        "2024-01", active_staff=10, days_in_period=31, used_hours=880, previous_used_hours=1760
    )

    assert kpi.utilization_rate == 50.0
    assert kpi.trend == "-50.0%"


def test_cost_per_unit_rising():
    kpi = calculate_cost_per_unit(
        "2024-01", total_cost=12000, units_produced=600, previous_cost=10000, previous_units=1000
    )

    assert kpi.cost_per_unit == 20.0
    assert kpi.trend == "+100.0%"
    assert kpi.status == CRITICAL


def test_cost_per_unit_falling_is_excellent():
    kpi = calculate_cost_per_unit(
        "2024-01", total_cost=9000, units_produced=1000, previous_cost=10000, previous_units=1000
    )

    assert kpi.cost_per_unit == 9.0
    assert kpi.trend == "-10.0%"
    assert kpi.status == EXCELLENT


def test_cost_per_unit_without_units():
    kpi = calculate_cost_per_unit(
        "2024-01", total_cost=5000, units_produced=0, previous_cost=0, previous_units=0
    )

    assert kpi.cost_per_unit == 0.0
    assert kpi.total_cost == 5000.0
    assert kpi.trend == "+0.0%"


def test_lead_time_short_is_excellent():
    kpi = calculate_lead_time(
        "2024-01", LeadTimeStats(2, 1, 3), LeadTimeStats(0, 0, 0)
    )

    assert kpi.average_lead_time == 2.0
    assert kpi.min_lead_time == 1.0
    assert kpi.max_lead_time == 3.0
    assert kpi.status == EXCELLENT


def test_lead_time_long_is_critical():
    kpi = calculate_lead_time(
        "2024-01", LeadTimeStats(12, 4, 20), LeadTimeStats(8, 3, 15)
    )

    assert kpi.status == CRITICAL
    assert kpi.trend == "+50.0%"


@pytest.mark.parametrize("rate, expected", [
    (95.0, EXCELLENT),
    (120.0, EXCELLENT),
    (85.0, GOOD),
    (70.0, WARNING),
    (69.99, CRITICAL),
])
def test_classify_efficiency_status(rate, expected):
    assert classify_efficiency_status(rate) == expected


@pytest.mark.parametrize("rate, expected", [
    (80.0, EXCELLENT),
    (95.0, EXCELLENT),
    (75.0, GOOD),
    (96.0, GOOD),
    (100.0, WARNING),
    (130.0, WARNING),
    (55.0, WARNING),
    (40.0, CRITICAL),
])
def test_classify_utilization_status(rate, expected):
    assert classify_utilization_status(rate) == expected


@pytest.mark.parametrize("variation, expected", [
    (-10.0, EXCELLENT),
    (-5.0, EXCELLENT),
    (-4.9, GOOD),
    (0.0, GOOD),
    (0.1, WARNING),
    (10.0, WARNING),
    (10.1, CRITICAL),
])
def test_classify_cost_status_on_trend(variation, expected):
    assert classify_cost_status(variation) == expected


@pytest.mark.parametrize("days, expected", [
    (3.0, EXCELLENT),
    (5.0, GOOD),
    (7.0, WARNING),
    (7.5, CRITICAL),
])
def test_classify_lead_time_status(days, expected):
    assert classify_lead_time_status(days) == expected


def test_helpers():
    assert safe_ratio(5, 0) == 0.0
    assert safe_ratio(1, 4, 100) == 25.0
    assert percent_change(110, 0) == 0.0
    assert percent_change(110, 100) == pytest.approx(10.0)
    assert format_trend(-12.04) == "-12.0%"
    assert format_trend(0) == "+0.0%"
    assert parse_trend("+3.4%") == 3.4
    assert parse_trend("-12.0%") == -12.0
    assert parse_trend("n/a") == 0.0
    assert working_days(31) == 22
    assert working_days(28) == 19
