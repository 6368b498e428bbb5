"""
Bottleneck Calculations

Turns per-group repository rows into ranked bottleneck findings:
- Slow stages: order statuses whose orders take too long
- Problematic products: products whose orders finish late
- Slow suppliers: suppliers that deliver late or unreliably

Each detector applies a minimum sample size, classifies impact
(high/medium/low), keeps only problematic groups and caps the result at
`max_results` entries ordered by severity.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from core.db.records import ProductDelayRow, StageDurationRow, SupplierDeliveryRow
from .kpis import round2
from .thresholds import BottleneckThresholds, BOTTLENECK_THRESHOLDS

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

STAGE_NAMES = {
    "pendiente": "Pending Start",
    "en_proceso": "In Progress",
    "completada": "Completed",
    "cancelada": "Cancelled",
    "pausada": "Paused",
}


@dataclass(frozen=True)
class SlowStage:
    stage_name: str
    average_duration: float  # days
    orders_count: int
    impact_level: str
    suggestion: str

    def to_dict(self) -> Dict:
        return {
            'stageName': self.stage_name,
            'averageDuration': self.average_duration,
            'ordersCount': self.orders_count,
            'impactLevel': self.impact_level,
            'suggestion': self.suggestion
        }


@dataclass(frozen=True)
class ProblematicProduct:
    product_id: int
    product_name: str
    average_delay: float  # days
    delayed_orders: int
    total_orders: int
    delay_rate: float     # %
    impact_level: str
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'productId': self.product_id,
            'productName': self.product_name,
            'averageDelay': self.average_delay,
            'delayedOrders': self.delayed_orders,
            'totalOrders': self.total_orders,
            'delayRate': self.delay_rate,
            'impactLevel': self.impact_level,
            'issues': list(self.issues)
        }


@dataclass(frozen=True)
class SlowSupplier:
    supplier_id: int
    supplier_name: str
    average_delivery_time: float   # days
    expected_delivery_time: float  # days
    delay_days: float
    orders_count: int
    impact_level: str
    reliability: float             # % on-time deliveries

    def to_dict(self) -> Dict:
        return {
            'supplierId': self.supplier_id,
            'supplierName': self.supplier_name,
            'averageDeliveryTime': self.average_delivery_time,
            'expectedDeliveryTime': self.expected_delivery_time,
            'delayDays': self.delay_days,
            'ordersCount': self.orders_count,
            'impactLevel': self.impact_level,
            'reliability': self.reliability
        }


@dataclass(frozen=True)
class BottleneckSummary:
    total_bottlenecks: int
    critical_issues: int
    estimated_impact: str

    def to_dict(self) -> Dict:
        return {
            'totalBottlenecks': self.total_bottlenecks,
            'criticalIssues': self.critical_issues,
            'estimatedImpact': self.estimated_impact
        }


@dataclass(frozen=True)
class BottleneckAnalysis:
    slow_stages: List[SlowStage]
    problematic_products: List[ProblematicProduct]
    slow_suppliers: List[SlowSupplier]
    period: str
    summary: BottleneckSummary

    def to_dict(self) -> Dict:
        return {
            'slowStages': [s.to_dict() for s in self.slow_stages],
            'problematicProducts': [p.to_dict() for p in self.problematic_products],
            'slowSuppliers': [s.to_dict() for s in self.slow_suppliers],
            'period': self.period,
            'summary': self.summary.to_dict()
        }


def translate_stage(stage: str) -> str:
    """Display name for an order status code; unknown codes pass through."""
    return STAGE_NAMES.get(stage, stage)


# ============================================================
# SLOW STAGES
# ============================================================

def classify_stage_impact(
    average_duration: float,
    orders_count: int,
    thresholds: BottleneckThresholds = BOTTLENECK_THRESHOLDS
) -> str:
    if average_duration > thresholds.stage_high_duration and orders_count > thresholds.stage_high_orders:
        return HIGH
    if average_duration > thresholds.stage_medium_duration or orders_count > thresholds.stage_medium_orders:
        return MEDIUM
    return LOW


def stage_suggestion(
    average_duration: float,
    thresholds: BottleneckThresholds = BOTTLENECK_THRESHOLDS
) -> str:
    if average_duration > thresholds.stage_critical_duration:
        return "Critical stage: consider automation or additional resources"
    if average_duration > thresholds.stage_high_duration:
        return "Slow stage: apply lean practices, review the process and assign more operators"
    if average_duration > thresholds.stage_medium_duration:
        return "Moderate stage: monitor closely"
    return "Stage within normal parameters"


def find_slow_stages(
    rows: Iterable[StageDurationRow],
    thresholds: BottleneckThresholds = BOTTLENECK_THRESHOLDS
) -> List[SlowStage]:
    """
    Stages whose orders take longer than the reporting threshold.

    Groups with fewer than `stage_min_orders` orders are ignored whatever
    their duration.
    """
    stages = []
    for row in rows:
        if row.orders_count < thresholds.stage_min_orders:
            continue

        average_duration = round2(row.average_duration)
        if average_duration <= thresholds.stage_reported_duration:
            continue

        stages.append(SlowStage(
            stage_name=translate_stage(row.stage),
            average_duration=average_duration,
            orders_count=row.orders_count,
            impact_level=classify_stage_impact(row.average_duration, row.orders_count, thresholds),
            suggestion=stage_suggestion(row.average_duration, thresholds)
        ))

    stages.sort(key=lambda s: s.average_duration, reverse=True)
    return stages[:thresholds.max_results]


# ============================================================
# PROBLEMATIC PRODUCTS
# ============================================================

def classify_product_impact(
    delay_rate: float,
    average_delay: float,
    thresholds: BottleneckThresholds = BOTTLENECK_THRESHOLDS
) -> str:
    if delay_rate > thresholds.product_high_delay_rate and average_delay > thresholds.product_high_average_delay:
        return HIGH
    if delay_rate > thresholds.product_medium_delay_rate or average_delay > thresholds.product_medium_average_delay:
        return MEDIUM
    return LOW


def product_issues(
    delay_rate: float,
    average_delay: float,
    total_orders: int,
    thresholds: BottleneckThresholds = BOTTLENECK_THRESHOLDS
) -> List[str]:
    issues = []
    if delay_rate > thresholds.product_issue_delay_rate:
        issues.append("High rate of late deliveries")
    if average_delay > thresholds.product_issue_average_delay:
        issues.append("Significant average delays")
    if (total_orders > thresholds.product_issue_volume_orders
            and delay_rate > thresholds.product_issue_volume_delay_rate):
        issues.append("High volume with compliance problems")
    return issues


def find_problematic_products(
    rows: Iterable[ProductDelayRow],
    thresholds: BottleneckThresholds = BOTTLENECK_THRESHOLDS
) -> List[ProblematicProduct]:
    """
    Products with at least one delayed order, worst average delay first.

    Ties on average delay are broken by the number of delayed orders.
    """
    products = []
    for row in rows:
        if row.total_orders < thresholds.product_min_orders or row.delayed_orders <= 0:
            continue

        delay_rate = row.delayed_orders / row.total_orders * 100
        products.append(ProblematicProduct(
            product_id=row.product_id,
            product_name=row.product_name,
            average_delay=round2(row.average_delay),
            delayed_orders=row.delayed_orders,
            total_orders=row.total_orders,
            delay_rate=round2(delay_rate),
            impact_level=classify_product_impact(delay_rate, row.average_delay, thresholds),
            issues=product_issues(delay_rate, row.average_delay, row.total_orders, thresholds)
        ))

    products.sort(key=lambda p: (p.average_delay, p.delayed_orders), reverse=True)
    return products[:thresholds.max_results]


# ============================================================
# SLOW SUPPLIERS
# ============================================================

def classify_supplier_impact(
    delay_days: float,
    reliability: float,
    thresholds: BottleneckThresholds = BOTTLENECK_THRESHOLDS
) -> str:
    if delay_days > thresholds.supplier_high_delay_days and reliability < thresholds.supplier_high_reliability:
        return HIGH
    if delay_days > thresholds.supplier_medium_delay_days or reliability < thresholds.supplier_medium_reliability:
        return MEDIUM
    return LOW


def find_slow_suppliers(
    rows: Iterable[SupplierDeliveryRow],
    thresholds: BottleneckThresholds = BOTTLENECK_THRESHOLDS
) -> List[SlowSupplier]:
    """
    Suppliers that deliver late or miss their promised dates too often.

    Delay is measured against a fixed expected delivery time; reliability is
    the share of deliveries received by the promised date.
    """
    expected = thresholds.supplier_expected_delivery_days
    suppliers = []
    for row in rows:
        if row.orders_count < thresholds.supplier_min_orders:
            continue

        delay_days = max(0.0, row.average_delivery_time - expected)
        on_time = row.orders_count - row.delayed_deliveries
        reliability = on_time / row.orders_count * 100

        supplier = SlowSupplier(
            supplier_id=row.supplier_id,
            supplier_name=row.supplier_name,
            average_delivery_time=round2(row.average_delivery_time),
            expected_delivery_time=expected,
            delay_days=round2(delay_days),
            orders_count=row.orders_count,
            impact_level=classify_supplier_impact(delay_days, reliability, thresholds),
            reliability=round2(reliability)
        )

        if (supplier.delay_days > thresholds.supplier_reported_delay_days
                or supplier.reliability < thresholds.supplier_reported_reliability):
            suppliers.append(supplier)

    suppliers.sort(key=lambda s: s.average_delivery_time, reverse=True)
    return suppliers[:thresholds.max_results]


# ============================================================
# SUMMARY
# ============================================================

def summarize_bottlenecks(
    slow_stages: List[SlowStage],
    problematic_products: List[ProblematicProduct],
    slow_suppliers: List[SlowSupplier],
    thresholds: BottleneckThresholds = BOTTLENECK_THRESHOLDS
) -> BottleneckSummary:
    findings = [*slow_stages, *problematic_products, *slow_suppliers]
    critical_issues = sum(1 for f in findings if f.impact_level == HIGH)

    if critical_issues >= thresholds.summary_critical_issues:
        estimated_impact = "Critical impact: multiple bottlenecks detected"
    elif critical_issues >= thresholds.summary_high_issues:
        estimated_impact = "High impact: immediate attention required"
    elif critical_issues >= thresholds.summary_moderate_issues:
        estimated_impact = "Moderate impact: review problem areas"
    else:
        estimated_impact = "Low impact on operations"

    return BottleneckSummary(
        total_bottlenecks=len(findings),
        critical_issues=critical_issues,
        estimated_impact=estimated_impact
    )


def build_bottleneck_analysis(
    period: str,
    stage_rows: Iterable[StageDurationRow],
    product_rows: Iterable[ProductDelayRow],
    supplier_rows: Iterable[SupplierDeliveryRow],
    thresholds: BottleneckThresholds = BOTTLENECK_THRESHOLDS
) -> BottleneckAnalysis:
    """Run the three detectors over already-fetched rows and summarise them."""
    slow_stages = find_slow_stages(stage_rows, thresholds)
    problematic_products = find_problematic_products(product_rows, thresholds)
    slow_suppliers = find_slow_suppliers(supplier_rows, thresholds)

    return BottleneckAnalysis(
        slow_stages=slow_stages,
        problematic_products=problematic_products,
        slow_suppliers=slow_suppliers,
        period=period,
        summary=summarize_bottlenecks(slow_stages, problematic_products, slow_suppliers, thresholds)
    )
