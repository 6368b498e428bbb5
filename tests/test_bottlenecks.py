from datetime import datetime

import pytest

from core.analysis.bottlenecks import BottleneckDetector
from core.calculations.bottlenecks import (
    HIGH,
    LOW,
    MEDIUM,
    build_bottleneck_analysis,
    classify_stage_impact,
    classify_supplier_impact,
    find_problematic_products,
    find_slow_stages,
    find_slow_suppliers,
    stage_suggestion,
    translate_stage,
)
from core.db.records import ProductDelayRow, StageDurationRow, SupplierDeliveryRow
from core.errors import RepositoryError


def test_small_stage_groups_never_reported():
    rows = [StageDurationRow(stage="pausada", orders_count=2, average_duration=40.0)]

    assert find_slow_stages(rows) == []


def test_slow_stages_sorted_and_translated():
    rows = [
        StageDurationRow(stage="en_proceso", orders_count=8, average_duration=9.0),
        StageDurationRow(stage="pendiente", orders_count=20, average_duration=12.5),
        StageDurationRow(stage="completada", orders_count=40, average_duration=5.0),
        StageDurationRow(stage="revision", orders_count=3, average_duration=6.0),
    ]

    stages = find_slow_stages(rows)

    assert [s.stage_name for s in stages] == ["Pending Start", "In Progress", "revision"]
    assert stages[0].impact_level == HIGH
    assert stages[0].suggestion.startswith("Critical stage")
    assert stages[2].impact_level == MEDIUM


def test_slow_stages_capped_at_ten():
    rows = [
        StageDurationRow(stage=f"stage_{i}", orders_count=5, average_duration=6.0 + i)
        for i in range(15)
    ]

    stages = find_slow_stages(rows)

    assert len(stages) == 10
    assert stages[0].average_duration == 20.0


def test_stage_impact_and_suggestion():
    assert classify_stage_impact(8.0, 6) == HIGH
    assert classify_stage_impact(8.0, 5) == MEDIUM
    assert classify_stage_impact(4.0, 11) == MEDIUM
    assert classify_stage_impact(4.0, 4) == LOW
    assert stage_suggestion(3.0) == "Stage within normal parameters"
    assert translate_stage("en_proceso") == "In Progress"
    assert translate_stage("unknown") == "unknown"


def test_problematic_products():
    rows = [
        ProductDelayRow(1, "Bracket A", total_orders=10, delayed_orders=8, average_delay=6.0),
        ProductDelayRow(2, "Hinge B", total_orders=5, delayed_orders=0, average_delay=0.0),
        ProductDelayRow(3, "Panel C", total_orders=1, delayed_orders=1, average_delay=9.0),
        ProductDelayRow(4, "Frame D", total_orders=20, delayed_orders=7, average_delay=2.0),
    ]

    products = find_problematic_products(rows)

    assert [p.product_name for p in products] == ["Bracket A", "Frame D"]
    bracket, frame = products
    assert bracket.delay_rate == 80.0
    assert bracket.impact_level == HIGH
    assert bracket.issues == ["High rate of late deliveries", "Significant average delays"]
    assert frame.delay_rate == 35.0
    assert frame.impact_level == LOW
    assert frame.issues == ["High volume with compliance problems"]


def test_products_tie_broken_by_delayed_orders():
    rows = [
        ProductDelayRow(1, "A", total_orders=10, delayed_orders=2, average_delay=4.0),
        ProductDelayRow(2, "B", total_orders=10, delayed_orders=5, average_delay=4.0),
    ]

    assert [p.product_name for p in find_problematic_products(rows)] == ["B", "A"]


def test_slow_suppliers():
    rows = [
        SupplierDeliveryRow(7, "Acme Steel", orders_count=10, average_delivery_time=14.0, delayed_deliveries=6),
        SupplierDeliveryRow(8, "Quick Parts", orders_count=10, average_delivery_time=5.5, delayed_deliveries=0),
        SupplierDeliveryRow(9, "Late Once", orders_count=10, average_delivery_time=4.0, delayed_deliveries=2),
        SupplierDeliveryRow(10, "Tiny", orders_count=1, average_delivery_time=30.0, delayed_deliveries=1),
    ]

    suppliers = find_slow_suppliers(rows)

    assert [s.supplier_name for s in suppliers] == ["Acme Steel", "Late Once"]
    acme, late = suppliers
    assert acme.delay_days == 9.0
    assert acme.reliability == 40.0
    assert acme.expected_delivery_time == 5.0
    assert acme.impact_level == HIGH
    assert late.delay_days == 0.0
    assert late.reliability == 80.0
    assert late.impact_level == LOW


def test_supplier_impact():
    assert classify_supplier_impact(8.0, 50.0) == HIGH
    assert classify_supplier_impact(8.0, 70.0) == MEDIUM
    assert classify_supplier_impact(1.0, 79.0) == MEDIUM
    assert classify_supplier_impact(1.0, 95.0) == LOW


def test_build_analysis_summary(repository):
    analysis = build_bottleneck_analysis(
        "2024-01",
        repository.stage_rows,
        repository.product_rows,
        repository.supplier_rows,
    )

    assert analysis.period == "2024-01"
    assert analysis.summary.total_bottlenecks == 3
    assert analysis.summary.critical_issues == 3
    assert analysis.summary.estimated_impact == "High impact: immediate attention required"


def test_empty_analysis_has_low_impact():
    analysis = build_bottleneck_analysis("2024-01", [], [], [])

    assert analysis.summary.total_bottlenecks == 0
    assert analysis.summary.estimated_impact == "Low impact on operations"
    assert analysis.to_dict()["slowStages"] == []


def test_detector_queries_current_month_only(repository):
    detector = BottleneckDetector(repository)

    analysis = detector.detect_bottlenecks(datetime(2024, 1, 15))

    assert analysis.period == "2024-01"
    for name in ("fetch_stage_durations", "fetch_product_delays", "fetch_supplier_deliveries"):
        calls = repository.called(name)
        assert len(calls) == 1
        start, end = calls[0]
        assert start == datetime(2024, 1, 1)
        assert end == datetime(2024, 1, 31, 23, 59, 59, 999999)
    assert analysis.slow_stages[0].stage_name == "In Progress"


def test_detector_propagates_repository_error(repository):
    repository.failing = {"fetch_product_delays"}

    with pytest.raises(RepositoryError):
        BottleneckDetector(repository).detect_bottlenecks(datetime(2024, 1, 15))
