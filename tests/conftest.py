import threading
from datetime import datetime

import pytest

from core.db.records import (
    LeadTimeStats,
    LowStockItem,
    ProductDelayRow,
    ProductionTotals,
    StageDurationRow,
    SupplierDeliveryRow,
)
from core.errors import RepositoryError


class FakeRepository:
    """
    In-memory stand-in for OperationsRepository.

    Windowed figures are keyed by the YYYY-MM label of the window start so
    tests can give the analysed month and the previous month different data.
    Any method name listed in `failing` raises RepositoryError.
    """

    def __init__(self):
        self.production = {}
        self.consumed_hours = {}
        self.purchase_cost = {}
        self.units_produced = {}
        self.lead_times = {}
        self.active_staff = 0
        self.stage_rows = []
        self.product_rows = []
        self.supplier_rows = []
        self.low_stock = []
        self.failing = set()
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, name, *args):
        with self._lock:
            self.calls.append((name, args))
        if name in self.failing:
            raise RepositoryError(f"Failed to fetch {name}: connection refused", name)

    @staticmethod
    def _key(start: datetime) -> str:
        return f"{start.year:04d}-{start.month:02d}"

    def fetch_production_totals(self, start, end):
        self._record("fetch_production_totals", start, end)
        return self.production.get(self._key(start), ProductionTotals(0.0, 0.0))

    def fetch_active_staff_count(self):
        self._record("fetch_active_staff_count")
        return self.active_staff

    def fetch_consumed_hours(self, start, end):
        self._record("fetch_consumed_hours", start, end)
        return self.consumed_hours.get(self._key(start), 0.0)

    def fetch_purchase_cost(self, start, end):
        self._record("fetch_purchase_cost", start, end)
        return self.purchase_cost.get(self._key(start), 0.0)

    def fetch_units_produced(self, start, end):
        self._record("fetch_units_produced", start, end)
        return self.units_produced.get(self._key(start), 0.0)

    def fetch_lead_time_stats(self, start, end):
        self._record("fetch_lead_time_stats", start, end)
        return self.lead_times.get(self._key(start), LeadTimeStats(0.0, 0.0, 0.0))

    def fetch_stage_durations(self, start, end):
        self._record("fetch_stage_durations", start, end)
        return list(self.stage_rows)

    def fetch_product_delays(self, start, end):
        self._record("fetch_product_delays", start, end)
        return list(self.product_rows)

    def fetch_supplier_deliveries(self, start, end):
        self._record("fetch_supplier_deliveries", start, end)
        return list(self.supplier_rows)

    def fetch_low_stock_items(self, warning_ratio=1.2, limit=10):
        self._record("fetch_low_stock_items", warning_ratio, limit)
        return list(self.low_stock)[:limit]

    def called(self, name):
        return [args for call, args in self.calls if call == name]


@pytest.fixture
def empty_repository():
    return FakeRepository()


@pytest.fixture
def repository():
    """A January 2024 with a few problems in every category."""
    repo = FakeRepository()
    repo.production = {
        "2024-01": ProductionTotals(planned_units=1000.0, produced_units=600.0),
        "2023-12": ProductionTotals(planned_units=1000.0, produced_units=900.0),
    }
    repo.active_staff = 10
    repo.consumed_hours = {"2024-01": 800.0, "2023-12": 900.0}
    repo.purchase_cost = {"2024-01": 12000.0, "2023-12": 10000.0}
    repo.units_produced = {"2024-01": 600.0, "2023-12": 1000.0}
    repo.lead_times = {
        "2024-01": LeadTimeStats(average_days=12.0, min_days=4.0, max_days=20.0),
        "2023-12": LeadTimeStats(average_days=8.0, min_days=3.0, max_days=15.0),
    }
    repo.stage_rows = [
        StageDurationRow(stage="en_proceso", orders_count=8, average_duration=9.0),
        StageDurationRow(stage="pausada", orders_count=2, average_duration=30.0),
        StageDurationRow(stage="completada", orders_count=40, average_duration=4.0),
    ]
    repo.product_rows = [
        ProductDelayRow(product_id=1, product_name="Bracket A", total_orders=10,
                        delayed_orders=8, average_delay=6.0),
        ProductDelayRow(product_id=2, product_name="Hinge B", total_orders=5,
                        delayed_orders=0, average_delay=0.0),
    ]
    repo.supplier_rows = [
        SupplierDeliveryRow(supplier_id=7, supplier_name="Acme Steel", orders_count=10,
                            average_delivery_time=14.0, delayed_deliveries=6),
        SupplierDeliveryRow(supplier_id=8, supplier_name="Quick Parts", orders_count=10,
                            average_delivery_time=5.5, delayed_deliveries=0),
    ]
    repo.low_stock = [
        LowStockItem(code="MP-001", name="Steel sheet", current_quantity=5.0, minimum_quantity=10.0, unit="kg"),
        LowStockItem(code="MP-002", name="Bolts", current_quantity=110.0, minimum_quantity=100.0, unit="pcs"),
    ]
    return repo


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 1, 20, 9, 30, 0)
