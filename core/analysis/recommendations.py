"""
Recommendation Engine

Reads the current low-stock snapshot and turns it, together with the KPI and
bottleneck results, into a prioritised recommendation report.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from core.calculations.bottlenecks import BottleneckAnalysis
from core.calculations.kpis import EfficiencyMetrics
from core.calculations.recommendations import (
    IdFactory,
    RecommendationIdSequence,
    RecommendationReport,
    build_recommendation_report,
)
from core.calculations.thresholds import RecommendationThresholds, RECOMMENDATION_THRESHOLDS

logger = logging.getLogger(__name__)


class RecommendationEngine:
    """Generates recommendations from KPIs, bottlenecks and inventory levels."""

    def __init__(
        self,
        repository,
        id_factory: Optional[Callable[[str], IdFactory]] = None,
        clock: Callable[[], datetime] = datetime.now,
        thresholds: RecommendationThresholds = RECOMMENDATION_THRESHOLDS
    ):
        """
        Args:
            repository: Source of the low-stock snapshot
            id_factory: Given the period label, returns a fresh id generator
                for one report (default: RecommendationIdSequence)
            clock: Timestamp source for `generated_at`
            thresholds: Rule trigger points
        """
        self.repository = repository
        self.id_factory = id_factory or (lambda period: RecommendationIdSequence(f"REC-{period}"))
        self.clock = clock
        self.thresholds = thresholds

    def generate_recommendations(
        self,
        metrics: EfficiencyMetrics,
        bottlenecks: BottleneckAnalysis
    ) -> RecommendationReport:
        """
        Build the recommendation report for an analysed month.

        Raises:
            RepositoryError: If the low-stock query fails
        """
        low_stock = self.repository.fetch_low_stock_items(
            warning_ratio=self.thresholds.stock_warning_ratio,
            limit=self.thresholds.low_stock_limit
        )

        report = build_recommendation_report(
            metrics,
            bottlenecks,
            low_stock,
            next_id=self.id_factory(metrics.period),
            generated_at=self.clock(),
            thresholds=self.thresholds
        )
        logger.info(
            f"Generated {report.summary.total_recommendations} recommendations for "
            f"{report.period} ({report.summary.critical_count} critical)"
        )
        return report
