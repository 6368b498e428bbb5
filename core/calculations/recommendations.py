"""
Recommendation Rules

Rule-based generation of actionable recommendations from the monthly KPIs,
the detected bottlenecks and a low-stock inventory snapshot.

Eight independent rule groups each yield zero or more recommendations:
production efficiency, capacity, cost, lead time, slow stages, problematic
products, slow suppliers and inventory. Results are concatenated in that
order and stably sorted by priority (critical, high, medium, low), so
recommendations of equal priority keep their rule-group order.

Everything here is a pure function of its inputs: ids come from a sequence
created per report, never from process-wide state.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from core.db.records import LowStockItem
from utils.formatting import format_currency
from .bottlenecks import (
    HIGH,
    BottleneckAnalysis,
    ProblematicProduct,
    SlowStage,
    SlowSupplier,
)
from .kpis import (
    CRITICAL,
    WARNING,
    CapacityUtilizationKPI,
    CostPerUnitKPI,
    EfficiencyMetrics,
    LeadTimeKPI,
    ProductionEfficiencyKPI,
    parse_trend,
)
from .thresholds import RecommendationThresholds, RECOMMENDATION_THRESHOLDS

PRIORITY_ORDER = {
    "critical": 0,
    "high": 1,
    "medium": 2,
    "low": 3,
}

IdFactory = Callable[[], str]


@dataclass(frozen=True)
class RecommendationMetric:
    current: float
    target: float
    unit: str

    def to_dict(self) -> Dict:
        return {'current': self.current, 'target': self.target, 'unit': self.unit}


@dataclass(frozen=True)
class Recommendation:
    id: str
    type: str           # inventory | production | supplier | capacity | cost | quality
    priority: str       # critical | high | medium | low
    title: str
    description: str
    impact: str
    action_items: List[str]
    estimated_benefit: str
    urgency: str        # immediate | short-term | medium-term | long-term
    affected_area: str
    metrics: Optional[RecommendationMetric] = None

    def to_dict(self) -> Dict:
        result = {
            'id': self.id,
            'type': self.type,
            'priority': self.priority,
            'title': self.title,
            'description': self.description,
            'impact': self.impact,
            'actionItems': list(self.action_items),
            'estimatedBenefit': self.estimated_benefit,
            'urgency': self.urgency,
            'affectedArea': self.affected_area
        }
        if self.metrics is not None:
            result['metrics'] = self.metrics.to_dict()
        return result


@dataclass(frozen=True)
class RecommendationSummary:
    total_recommendations: int
    critical_count: int
    high_priority_count: int
    estimated_impact: str

    def to_dict(self) -> Dict:
        return {
            'totalRecommendations': self.total_recommendations,
            'criticalCount': self.critical_count,
            'highPriorityCount': self.high_priority_count,
            'estimatedImpact': self.estimated_impact
        }


@dataclass(frozen=True)
class RecommendationReport:
    recommendations: List[Recommendation]
    summary: RecommendationSummary
    period: str
    generated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict:
        return {
            'recommendations': [r.to_dict() for r in self.recommendations],
            'summary': self.summary.to_dict(),
            'period': self.period,
            'generatedAt': self.generated_at.isoformat()
        }


class RecommendationIdSequence:
    """
    Sequential recommendation ids scoped to one report.

    Example:
        >>> next_id = RecommendationIdSequence("REC-2024-01")
        >>> next_id(), next_id()
        ('REC-2024-01-001', 'REC-2024-01-002')
    """

    def __init__(self, prefix: str = "REC"):
        self.prefix = prefix
        self._issued = 0

    def __call__(self) -> str:
        self._issued += 1
        return f"{self.prefix}-{self._issued:03d}"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ============================================================
# KPI RULES
# ============================================================

def production_efficiency_rules(
    kpi: ProductionEfficiencyKPI,
    next_id: IdFactory,
    thresholds: RecommendationThresholds = RECOMMENDATION_THRESHOLDS
) -> List[Recommendation]:
    recommendations = []
    rate = kpi.efficiency_rate

    if kpi.status == CRITICAL or rate < thresholds.efficiency_critical_rate:
        extra_units = round_half_up(kpi.planned_units * thresholds.efficiency_recovery_rate / 100 - kpi.produced_units)
        recommendations.append(Recommendation(
            id=next_id(),
            type="production",
            priority="critical",
            title="Critical production efficiency",
            description=(
                f"Current efficiency is {rate:.1f}%, far below the "
                f"{thresholds.efficiency_target_rate:.0f}% target. Only {kpi.produced_units:g} of "
                f"{kpi.planned_units:g} planned units are being produced."
            ),
            impact="Lost productivity and reduced ability to fulfil orders",
            action_items=[
                "Analyse causes of low output (equipment, staff, materials)",
                "Review order planning and set realistic quantities",
                "Implement real-time production control",
                "Train staff in continuous improvement techniques",
            ],
            estimated_benefit=(
                f"Raising efficiency to {thresholds.efficiency_recovery_rate:.0f}% = "
                f"{extra_units} additional units/month"
            ),
            urgency="immediate",
            affected_area="Production",
            metrics=RecommendationMetric(
                current=rate, target=thresholds.efficiency_target_rate, unit="%"
            )
        ))
    elif kpi.status == WARNING or rate < thresholds.efficiency_high_rate:
        recommendations.append(Recommendation(
            id=next_id(),
            type="production",
            priority="high",
            title="Improve production efficiency",
            description=(
                f"Current efficiency is {rate:.1f}%, below the optimal "
                f"{thresholds.efficiency_target_rate:.0f}% target."
            ),
            impact="Production capacity not fully used",
            action_items=[
                "Identify bottlenecks on the production line",
                "Reduce changeover time between orders",
                "Review staff allocation per shift",
            ],
            estimated_benefit="10-15% increase in monthly output",
            urgency="short-term",
            affected_area="Production"
        ))

    if kpi.trend.startswith("-") and abs(parse_trend(kpi.trend)) > thresholds.efficiency_negative_trend:
        recommendations.append(Recommendation(
            id=next_id(),
            type="production",
            priority="high",
            title="Negative efficiency trend",
            description=f"Efficiency changed {kpi.trend} compared with the previous month.",
            impact="Progressive loss of production capacity",
            action_items=[
                "Audit production processes",
                "Check equipment condition and maintenance",
                "Review staff turnover and training",
            ],
            estimated_benefit="Stop further decline and recover previous levels",
            urgency="short-term",
            affected_area="Production"
        ))

    return recommendations


def capacity_rules(
    kpi: CapacityUtilizationKPI,
    next_id: IdFactory,
    thresholds: RecommendationThresholds = RECOMMENDATION_THRESHOLDS
) -> List[Recommendation]:
    recommendations = []
    rate = kpi.utilization_rate

    if rate < thresholds.utilization_low:
        spare_hours = kpi.total_capacity * thresholds.utilization_target / 100 - kpi.used_capacity
        recommendations.append(Recommendation(
            id=next_id(),
            type="capacity",
            priority="high",
            title="Under-used production capacity",
            description=f"Only {rate:.1f}% of the available capacity is being used.",
            impact="Idle resources and unabsorbed fixed costs",
            action_items=[
                "Increase production order volume",
                "Look for new customers or markets",
                "Consider temporarily reducing staff or shifts",
                "Introduce complementary products",
            ],
            estimated_benefit=f"Potential of {spare_hours:.0f} additional hours",
            urgency="medium-term",
            affected_area="Planning"
        ))

    if rate > thresholds.utilization_over:
        recommendations.append(Recommendation(
            id=next_id(),
            type="capacity",
            priority="critical",
            title="Capacity over-utilization",
            description=f"Utilization is {rate:.1f}%, exceeding normal capacity.",
            impact="Risk of staff burnout, errors and delays",
            action_items=[
                "Hire additional staff",
                "Add extra shifts",
                "Invest in automation or additional equipment",
            ],
            estimated_benefit="Bring load back to sustainable levels (80-90%)",
            urgency="immediate",
            affected_area="Human Resources"
        ))
    elif rate > thresholds.utilization_near_limit:
        recommendations.append(Recommendation(
            id=next_id(),
            type="capacity",
            priority="high",
            title="Capacity close to its limit",
            description=f"Utilization is {rate:.1f}%, very close to the maximum.",
            impact="New orders cannot be accepted without delays",
            action_items=[
                "Plan a capacity expansion",
                "Evaluate investment in equipment or staff",
                "Streamline processes to free up capacity",
            ],
            estimated_benefit="Allow an additional 20-30% growth",
            urgency="short-term",
            affected_area="Planning"
        ))

    return recommendations


def cost_rules(
    kpi: CostPerUnitKPI,
    next_id: IdFactory,
    thresholds: RecommendationThresholds = RECOMMENDATION_THRESHOLDS
) -> List[Recommendation]:
    variation = parse_trend(kpi.trend)
    rising = kpi.trend.startswith("+")

    if kpi.status == CRITICAL or (rising and variation > thresholds.cost_critical_trend):
        savings = kpi.total_cost * thresholds.cost_savings_ratio
        return [Recommendation(
            id=next_id(),
            type="cost",
            priority="critical",
            title="Critical increase in production costs",
            description=(
                f"Cost per unit changed {kpi.trend} to {format_currency(kpi.cost_per_unit)}."
            ),
            impact="Significant reduction of profit margins",
            action_items=[
                "Negotiate better prices with suppliers",
                "Look for alternative suppliers",
                "Reduce raw material waste",
                "Consolidate purchases into volume orders",
            ],
            estimated_benefit=(
                f"A {thresholds.cost_savings_ratio:.0%} reduction saves "
                f"{format_currency(savings)}/month"
            ),
            urgency="immediate",
            affected_area="Purchasing and Production"
        )]

    if kpi.status == WARNING or (rising and variation > thresholds.cost_high_trend):
        return [Recommendation(
            id=next_id(),
            type="cost",
            priority="high",
            title="Rising costs",
            description=f"Cost per unit changed {kpi.trend}.",
            impact="Pressure on profitability margins",
            action_items=[
                "Review supplier contracts",
                "Analyse material waste",
                "Tighten cost control",
            ],
            estimated_benefit="Stabilise costs and prevent further increases",
            urgency="short-term",
            affected_area="Purchasing"
        )]

    return []


def lead_time_rules(
    kpi: LeadTimeKPI,
    next_id: IdFactory,
    thresholds: RecommendationThresholds = RECOMMENDATION_THRESHOLDS
) -> List[Recommendation]:
    average = kpi.average_lead_time

    if kpi.status == CRITICAL or average > thresholds.lead_time_critical_days:
        target = thresholds.lead_time_target_days
        speedup = (average - target) / average * 100 if average > 0 else 0.0
        return [Recommendation(
            id=next_id(),
            type="production",
            priority="critical",
            title="Excessive lead time",
            description=f"Average production time is {average:.1f} days.",
            impact="Customer dissatisfaction and loss of competitiveness",
            action_items=[
                "Identify the slowest process stages",
                "Introduce lean production",
                "Improve coordination between departments",
                "Reduce waiting time between stages",
            ],
            estimated_benefit=f"Reducing to {target:.0f} days = {speedup:.0f}% faster delivery",
            urgency="immediate",
            affected_area="Production"
        )]

    if kpi.status == WARNING or average > thresholds.lead_time_high_days:
        return [Recommendation(
            id=next_id(),
            type="production",
            priority="high",
            title="Lead time above target",
            description=f"Average production time is {average:.1f} days.",
            impact="Delivery times longer than competitors'",
            action_items=[
                "Map the complete production process",
                "Identify steps that add no value",
                "Improve flow between stages",
            ],
            estimated_benefit="20-30% shorter delivery time",
            urgency="short-term",
            affected_area="Production"
        )]

    return []


# ============================================================
# BOTTLENECK RULES
# ============================================================

def slow_stage_rules(stages: Iterable[SlowStage], next_id: IdFactory) -> List[Recommendation]:
    return [
        Recommendation(
            id=next_id(),
            type="production",
            priority="high",
            title=f'Stage "{stage.stage_name}" is a bottleneck',
            description=(
                f"This stage takes {stage.average_duration:.1f} days on average, "
                f"affecting {stage.orders_count} orders."
            ),
            impact="Delays the whole production process",
            action_items=[
                stage.suggestion,
                "Assign more resources to this stage",
                "Train the specialised staff",
            ],
            estimated_benefit="Reduce overall lead time by 15-20%",
            urgency="short-term",
            affected_area="Production"
        )
        for stage in stages
        if stage.impact_level == HIGH
    ]


def problematic_product_rules(
    products: List[ProblematicProduct],
    next_id: IdFactory,
    thresholds: RecommendationThresholds = RECOMMENDATION_THRESHOLDS
) -> List[Recommendation]:
    return [
        Recommendation(
            id=next_id(),
            type="quality",
            priority="high",
            title=f'Product "{product.product_name}" has a high problem rate',
            description=f"{product.delay_rate:.0f}% of orders were delayed.",
            impact="Affects customer satisfaction and profitability",
            action_items=[
                *[f"Resolve: {issue}" for issue in product.issues],
                "Review this product's production process",
                "Check raw material availability",
            ],
            estimated_benefit="Bring the delay rate down to 20% or less",
            urgency="short-term",
            affected_area="Production"
        )
        for product in products[:thresholds.max_product_recommendations]
        if product.impact_level == HIGH
    ]


def slow_supplier_rules(
    suppliers: List[SlowSupplier],
    next_id: IdFactory,
    thresholds: RecommendationThresholds = RECOMMENDATION_THRESHOLDS
) -> List[Recommendation]:
    recommendations = []

    for supplier in suppliers[:thresholds.max_supplier_recommendations]:
        if supplier.impact_level == HIGH:
            recommendations.append(Recommendation(
                id=next_id(),
                type="supplier",
                priority="high",
                title=f'Supplier "{supplier.supplier_name}" delivers slowly',
                description=f"Average delivery time: {supplier.average_delivery_time:.1f} days.",
                impact="Production delays caused by missing materials",
                action_items=[
                    "Negotiate shorter delivery times",
                    "Look for alternative suppliers",
                    "Increase safety stock for this supplier's materials",
                ],
                estimated_benefit="Reduce production delays by 10-15%",
                urgency="medium-term",
                affected_area="Purchasing"
            ))
        elif supplier.reliability < thresholds.supplier_low_reliability:
            recommendations.append(Recommendation(
                id=next_id(),
                type="supplier",
                priority="medium",
                title=f'Low reliability of "{supplier.supplier_name}"',
                description=f"Only {supplier.reliability:.0f}% of deliveries arrive on time.",
                impact="Risk of material shortages",
                action_items=[
                    "Diversify suppliers",
                    "Increase safety stock",
                    "Monitor performance more frequently",
                ],
                estimated_benefit="More stable supply",
                urgency="medium-term",
                affected_area="Purchasing"
            ))

    return recommendations


# ============================================================
# INVENTORY RULES
# ============================================================

def inventory_rules(
    low_stock: Iterable[LowStockItem],
    next_id: IdFactory,
    thresholds: RecommendationThresholds = RECOMMENDATION_THRESHOLDS
) -> List[Recommendation]:
    """
    One critical recommendation naming every item below its minimum and one
    high-priority recommendation naming up to five items within the warning
    margin above it.
    """
    items = list(low_stock)
    recommendations = []

    critical_items = [i for i in items if i.below_minimum]
    warning_items = [
        i for i in items
        if not i.below_minimum
        and i.current_quantity <= i.minimum_quantity * thresholds.stock_warning_ratio
    ]

    if critical_items:
        recommendations.append(Recommendation(
            id=next_id(),
            type="inventory",
            priority="critical",
            title=f"{len(critical_items)} raw material items at critical stock",
            description=f"Items below minimum: {', '.join(i.name for i in critical_items)}",
            impact="Risk of stopping production for lack of materials",
            action_items=[
                "Issue an urgent purchase order",
                "Ask suppliers for express delivery",
                "Adjust minimum quantities if this recurs",
            ],
            estimated_benefit="Prevent production stoppages",
            urgency="immediate",
            affected_area="Purchasing and Inventory"
        ))

    if warning_items:
        named = warning_items[:thresholds.max_named_warning_items]
        recommendations.append(Recommendation(
            id=next_id(),
            type="inventory",
            priority="high",
            title=f"{len(warning_items)} items close to minimum stock",
            description=f"Items that need restocking soon: {', '.join(i.name for i in named)}",
            impact="Possible interruptions if not restocked in time",
            action_items=[
                "Schedule a purchase order",
                "Check supplier lead times",
                "Prioritise high-turnover materials",
            ],
            estimated_benefit="Keep production flowing",
            urgency="short-term",
            affected_area="Purchasing and Inventory"
        ))

    return recommendations


# ============================================================
# REPORT
# ============================================================

def sort_by_priority(recommendations: Iterable[Recommendation]) -> List[Recommendation]:
    """Stable sort: critical first, equal priorities keep their input order."""
    return sorted(recommendations, key=lambda r: PRIORITY_ORDER[r.priority])


def summarize_recommendations(
    recommendations: List[Recommendation],
    thresholds: RecommendationThresholds = RECOMMENDATION_THRESHOLDS
) -> RecommendationSummary:
    critical_count = sum(1 for r in recommendations if r.priority == "critical")
    high_priority_count = sum(1 for r in recommendations if r.priority == "high")

    if critical_count >= thresholds.summary_immediate_critical:
        estimated_impact = "Immediate action required: multiple critical problems"
    elif (critical_count >= thresholds.summary_priority_critical
            or high_priority_count >= thresholds.summary_priority_high):
        estimated_impact = "Priority attention: significant problems detected"
    elif high_priority_count >= thresholds.summary_improvement_high:
        estimated_impact = "Improvements recommended to optimise operations"
    else:
        estimated_impact = "Stable operation with improvement opportunities"

    return RecommendationSummary(
        total_recommendations=len(recommendations),
        critical_count=critical_count,
        high_priority_count=high_priority_count,
        estimated_impact=estimated_impact
    )


def build_recommendation_report(
    metrics: EfficiencyMetrics,
    bottlenecks: BottleneckAnalysis,
    low_stock: Iterable[LowStockItem],
    next_id: Optional[IdFactory] = None,
    generated_at: Optional[datetime] = None,
    thresholds: RecommendationThresholds = RECOMMENDATION_THRESHOLDS
) -> RecommendationReport:
    """
    Evaluate all rule groups and assemble the prioritised report.

    Args:
        metrics: KPIs of the analysed month
        bottlenecks: Bottleneck findings of the same month
        low_stock: Current low-stock snapshot
        next_id: Id factory; a fresh RecommendationIdSequence when None
        generated_at: Report timestamp; now when None

    Returns:
        RecommendationReport sorted by priority
    """
    if next_id is None:
        next_id = RecommendationIdSequence(f"REC-{metrics.period}")

    recommendations = [
        *production_efficiency_rules(metrics.production_efficiency, next_id, thresholds),
        *capacity_rules(metrics.capacity_utilization, next_id, thresholds),
        *cost_rules(metrics.cost_per_unit, next_id, thresholds),
        *lead_time_rules(metrics.lead_time, next_id, thresholds),
        *slow_stage_rules(bottlenecks.slow_stages, next_id),
        *problematic_product_rules(bottlenecks.problematic_products, next_id, thresholds),
        *slow_supplier_rules(bottlenecks.slow_suppliers, next_id, thresholds),
        *inventory_rules(low_stock, next_id, thresholds),
    ]
    recommendations = sort_by_priority(recommendations)

    return RecommendationReport(
        recommendations=recommendations,
        summary=summarize_recommendations(recommendations, thresholds),
        period=metrics.period,
        generated_at=generated_at or datetime.now()
    )
