"""
Efficiency Analysis

Computes the four monthly efficiency KPIs against the operations repository.
The four sub-computations have no data dependency on each other and run
concurrently; a repository failure in any of them aborts the whole analysis.
"""

import logging
from datetime import datetime
from typing import List, Optional

from core.calculations.kpis import (
    CapacityUtilizationKPI,
    CostPerUnitKPI,
    EfficiencyMetrics,
    LeadTimeKPI,
    ProductionEfficiencyKPI,
    calculate_capacity_utilization,
    calculate_cost_per_unit,
    calculate_lead_time,
    calculate_production_efficiency,
)
from core.calculations.thresholds import KPIThresholds, KPI_THRESHOLDS
from core.periods.models import AnalysisPeriod, resolve_period, trailing_periods
from .parallel import run_in_parallel

logger = logging.getLogger(__name__)


class EfficiencyAnalyzer:
    """Computes production, capacity, cost and lead-time KPIs for a month."""

    def __init__(
        self,
        repository,
        max_workers: Optional[int] = None,
        thresholds: KPIThresholds = KPI_THRESHOLDS
    ):
        """
        Args:
            repository: OperationsRepository (or any object with the same fetch_* methods)
            max_workers: Thread limit for the KPI fan-out (default: one per KPI)
            thresholds: Status boundaries
        """
        self.repository = repository
        self.max_workers = max_workers
        self.thresholds = thresholds

    def analyze_efficiency(self, as_of: Optional[datetime] = None) -> EfficiencyMetrics:
        """
        Calculate all efficiency KPIs for the month containing `as_of`.

        Args:
            as_of: Any moment inside the month to analyse (default: now)

        Returns:
            EfficiencyMetrics for that month

        Raises:
            RepositoryError: If any aggregate query fails
        """
        period = resolve_period(as_of or datetime.now())
        logger.info(f"Analyzing efficiency for {period.label}")

        results = run_in_parallel(
            {
                "production_efficiency": lambda: self.calculate_production_efficiency(period),
                "capacity_utilization": lambda: self.calculate_capacity_utilization(period),
                "cost_per_unit": lambda: self.calculate_cost_per_unit(period),
                "lead_time": lambda: self.calculate_lead_time(period),
            },
            max_workers=self.max_workers,
            name="kpi"
        )

        return EfficiencyMetrics(
            production_efficiency=results["production_efficiency"],
            capacity_utilization=results["capacity_utilization"],
            cost_per_unit=results["cost_per_unit"],
            lead_time=results["lead_time"],
            period=period.label
        )

    def calculate_production_efficiency(self, period: AnalysisPeriod) -> ProductionEfficiencyKPI:
        current = self.repository.fetch_production_totals(period.current.start, period.current.end)
        previous = self.repository.fetch_production_totals(period.previous.start, period.previous.end)
        return calculate_production_efficiency(period.label, current, previous, self.thresholds)

    def calculate_capacity_utilization(self, period: AnalysisPeriod) -> CapacityUtilizationKPI:
        active_staff = self.repository.fetch_active_staff_count()
        used_hours = self.repository.fetch_consumed_hours(period.current.start, period.current.end)
        previous_used = self.repository.fetch_consumed_hours(period.previous.start, period.previous.end)
        return calculate_capacity_utilization(
            period.label,
            active_staff=active_staff,
            days_in_period=period.current.days,
            used_hours=used_hours,
            previous_used_hours=previous_used,
            thresholds=self.thresholds
        )

    def calculate_cost_per_unit(self, period: AnalysisPeriod) -> CostPerUnitKPI:
        current, previous = period.current, period.previous
        return calculate_cost_per_unit(
            period.label,
            total_cost=self.repository.fetch_purchase_cost(current.start, current.end),
            units_produced=self.repository.fetch_units_produced(current.start, current.end),
            previous_cost=self.repository.fetch_purchase_cost(previous.start, previous.end),
            previous_units=self.repository.fetch_units_produced(previous.start, previous.end),
            thresholds=self.thresholds
        )

    def calculate_lead_time(self, period: AnalysisPeriod) -> LeadTimeKPI:
        current = self.repository.fetch_lead_time_stats(period.current.start, period.current.end)
        previous = self.repository.fetch_lead_time_stats(period.previous.start, period.previous.end)
        return calculate_lead_time(period.label, current, previous, self.thresholds)

    def get_historical_metrics(
        self,
        months: int = 6,
        as_of: Optional[datetime] = None
    ) -> List[EfficiencyMetrics]:
        """
        KPIs for the last `months` months, oldest first.

        Raises:
            ValueError: If months is not positive
        """
        anchors = trailing_periods(as_of or datetime.now(), months)
        logger.info(f"Computing KPI history for {len(anchors)} months")
        return [self.analyze_efficiency(anchor) for anchor in anchors]
