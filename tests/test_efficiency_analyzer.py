from datetime import datetime

import pytest

from core.analysis.efficiency import EfficiencyAnalyzer
from core.errors import RepositoryError

AS_OF = datetime(2024, 1, 15)


def test_analyze_efficiency(repository):
    metrics = EfficiencyAnalyzer(repository).analyze_efficiency(AS_OF)

    assert metrics.period == "2024-01"
    assert metrics.production_efficiency.efficiency_rate == 60.0
    assert metrics.capacity_utilization.total_capacity == 1760.0
    assert metrics.capacity_utilization.utilization_rate == 45.45
    assert metrics.cost_per_unit.cost_per_unit == 20.0
    assert metrics.lead_time.average_lead_time == 12.0
    assert metrics.lead_time.trend == "+50.0%"


def test_each_kpi_compares_with_previous_month(repository):
    EfficiencyAnalyzer(repository).analyze_efficiency(AS_OF)

    starts = sorted(start for start, _ in repository.called("fetch_production_totals"))
    assert starts == [datetime(2023, 12, 1), datetime(2024, 1, 1)]
    assert len(repository.called("fetch_consumed_hours")) == 2
    assert len(repository.called("fetch_purchase_cost")) == 2
    assert len(repository.called("fetch_units_produced")) == 2
    assert len(repository.called("fetch_lead_time_stats")) == 2
    assert len(repository.called("fetch_active_staff_count")) == 1


def test_empty_month_yields_zero_kpis(empty_repository):
    metrics = EfficiencyAnalyzer(empty_repository).analyze_efficiency(AS_OF)

    assert metrics.production_efficiency.efficiency_rate == 0.0
    assert metrics.capacity_utilization.utilization_rate == 0.0
    assert metrics.cost_per_unit.cost_per_unit == 0.0
    assert metrics.lead_time.average_lead_time == 0.0
    assert all(kpi["trend"] == "+0.0%" for kpi in metrics.kpis_dict().values())


def test_repository_failure_aborts_analysis(repository):
    repository.failing = {"fetch_purchase_cost"}

    with pytest.raises(RepositoryError, match="fetch_purchase_cost"):
        EfficiencyAnalyzer(repository).analyze_efficiency(AS_OF)


def test_historical_metrics_oldest_first(repository):
    history = EfficiencyAnalyzer(repository, max_workers=2).get_historical_metrics(3, as_of=AS_OF)

    assert [m.period for m in history] == ["2023-11", "2023-12", "2024-01"]
    assert history[-1].production_efficiency.efficiency_rate == 60.0
    assert history[0].production_efficiency.efficiency_rate == 0.0


def test_historical_metrics_rejects_zero_months(repository):
    with pytest.raises(ValueError):
        EfficiencyAnalyzer(repository).get_historical_metrics(0, as_of=AS_OF)


def test_metrics_to_dict(repository):
    data = EfficiencyAnalyzer(repository).analyze_efficiency(AS_OF).to_dict()

    assert data["period"] == "2024-01"
    assert set(data) == {
        "period", "productionEfficiency", "capacityUtilization", "costPerUnit", "leadTime"
    }
    assert data["costPerUnit"]["status"] == "critical"
