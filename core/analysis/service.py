"""
Efficiency Analysis Service

Runs the complete pipeline for one month (KPIs and bottlenecks in parallel,
then recommendations, optionally KPI history) and assembles the response
consumed by the dashboard and export collaborators.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from core.periods.models import parse_period_label
from .bottlenecks import BottleneckDetector
from .efficiency import EfficiencyAnalyzer
from .parallel import run_in_parallel
from .recommendations import RecommendationEngine

logger = logging.getLogger(__name__)


def run_efficiency_analysis(
    repository,
    period: Optional[str] = None,
    include_history: bool = False,
    history_months: int = 6,
    max_workers: Optional[int] = None,
    clock: Callable[[], datetime] = datetime.now
) -> dict:
    """
    Analyse one month end to end.

    Args:
        repository: OperationsRepository instance
        period: Month to analyse as "YYYY-MM" (default: current month)
        include_history: Also return KPIs of the last `history_months` months
        history_months: Number of months of KPI history
        max_workers: Thread limit for each fan-out
        clock: Source of "now" (default month and timestamps)

    Returns:
        dict with "success", "data" (period, kpis, bottlenecks,
        recommendations, historicalData when requested) and "meta"

    Raises:
        ValueError: If `period` is not a valid YYYY-MM label or history_months < 1
        RepositoryError: If any aggregate query fails
    """
    started = time.monotonic()
    as_of = parse_period_label(period) if period else clock()
    if include_history and history_months < 1:
        raise ValueError(f"history_months must be at least 1, got {history_months}")

    logger.info(
        f"Starting efficiency analysis (period={period or 'current'}, "
        f"include_history={include_history})"
    )

    analyzer = EfficiencyAnalyzer(repository, max_workers=max_workers)
    detector = BottleneckDetector(repository, max_workers=max_workers)
    engine = RecommendationEngine(repository, clock=clock)

    results = run_in_parallel(
        {
            "metrics": lambda: analyzer.analyze_efficiency(as_of),
            "bottlenecks": lambda: detector.detect_bottlenecks(as_of),
        },
        name="analysis"
    )
    metrics = results["metrics"]
    bottlenecks = results["bottlenecks"]

    report = engine.generate_recommendations(metrics, bottlenecks)

    data = {
        "period": metrics.period,
        "kpis": metrics.kpis_dict(),
        "bottlenecks": {
            "slowStages": [s.to_dict() for s in bottlenecks.slow_stages],
            "problematicProducts": [p.to_dict() for p in bottlenecks.problematic_products],
            "slowSuppliers": [s.to_dict() for s in bottlenecks.slow_suppliers],
            "summary": bottlenecks.summary.to_dict(),
        },
        "recommendations": {
            "items": [r.to_dict() for r in report.recommendations],
            "summary": report.summary.to_dict(),
        },
    }

    if include_history:
        history = analyzer.get_historical_metrics(history_months, as_of=as_of)
        data["historicalData"] = [m.to_dict() for m in history]

    duration_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        f"Efficiency analysis completed for {metrics.period} in {duration_ms} ms "
        f"({bottlenecks.summary.total_bottlenecks} bottlenecks, "
        f"{report.summary.total_recommendations} recommendations)"
    )

    return {
        "success": True,
        "data": data,
        "meta": {
            "generatedAt": clock().isoformat(),
            "durationMs": duration_ms,
        },
    }
