"""
Bottleneck Detection

Detects slow stages, problematic products and slow suppliers for the month
containing a given moment. The three repository queries run concurrently;
classification and ranking happen in core.calculations.bottlenecks.
"""

import logging
from datetime import datetime
from typing import Optional

from core.calculations.bottlenecks import BottleneckAnalysis, build_bottleneck_analysis
from core.calculations.thresholds import BottleneckThresholds, BOTTLENECK_THRESHOLDS
from core.periods.models import resolve_period
from .parallel import run_in_parallel

logger = logging.getLogger(__name__)


class BottleneckDetector:
    """Finds stages, products and suppliers slowing production down."""

    def __init__(
        self,
        repository,
        max_workers: Optional[int] = None,
        thresholds: BottleneckThresholds = BOTTLENECK_THRESHOLDS
    ):
        self.repository = repository
        self.max_workers = max_workers
        self.thresholds = thresholds

    def detect_bottlenecks(self, as_of: Optional[datetime] = None) -> BottleneckAnalysis:
        """
        Analyse all bottleneck categories for the month containing `as_of`.

        Only the current month is examined; there is no comparison with the
        previous one.

        Raises:
            RepositoryError: If any aggregate query fails
        """
        window = resolve_period(as_of or datetime.now()).current
        logger.info(f"Detecting bottlenecks for {window.label}")

        rows = run_in_parallel(
            {
                "stages": lambda: self.repository.fetch_stage_durations(window.start, window.end),
                "products": lambda: self.repository.fetch_product_delays(window.start, window.end),
                "suppliers": lambda: self.repository.fetch_supplier_deliveries(window.start, window.end),
            },
            max_workers=self.max_workers,
            name="bottleneck"
        )

        analysis = build_bottleneck_analysis(
            window.label,
            stage_rows=rows["stages"],
            product_rows=rows["products"],
            supplier_rows=rows["suppliers"],
            thresholds=self.thresholds
        )
        logger.info(
            f"Found {analysis.summary.total_bottlenecks} bottlenecks "
            f"({analysis.summary.critical_issues} high impact) for {window.label}"
        )
        return analysis
