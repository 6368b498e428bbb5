from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pandas as pd
import psycopg2
import pytest

from core.db.repository import OperationsRepository, coerce_numeric, first_row
from core.errors import RepositoryError

JANUARY = (datetime(2024, 1, 1), datetime(2024, 1, 31, 23, 59, 59, 999999))


class FakePool:
    """Hands out one mocked connection whose cursor returns canned rows."""

    def __init__(self, rows=None, columns=None, error=None):
        self.cursor = MagicMock()
        self.cursor.fetchall.return_value = rows or []
        self.cursor.description = [(name,) for name in (columns or [])]
        if error is not None:
            self.cursor.execute.side_effect = error

        self.connection = MagicMock()
        self.connection.cursor.return_value.__enter__.return_value = self.cursor
        self.borrowed = 0
        self.returned = 0

    @contextmanager
    def get_connection(self):
        self.borrowed += 1
        try:
            yield self.connection
        finally:
            self.returned += 1


def test_coerce_numeric_handles_decimal_and_null():
    df = pd.DataFrame({"a": [Decimal("1.5"), None], "b": ["x", "2"]})

    result = coerce_numeric(df, ["a", "b", "missing"])

    assert result["a"].tolist() == [1.5, 0.0]
    assert result["b"].tolist() == [0.0, 2.0]
    assert result["missing"].tolist() == [0.0, 0.0]


def test_first_row_of_empty_frame():
    assert first_row(pd.DataFrame(), ["planned", "produced"]) == {"planned": 0.0, "produced": 0.0}


def test_fetch_production_totals():
    pool = FakePool(rows=[(Decimal("1000"), Decimal("950.5"))], columns=["planned", "produced"])

    totals = OperationsRepository(pool).fetch_production_totals(*JANUARY)

    assert totals.planned_units == 1000.0
    assert totals.produced_units == 950.5
    query, params = pool.cursor.execute.call_args[0]
    assert "Ordenes_Produccion" in query
    assert params == list(JANUARY)
    assert pool.returned == 1


def test_null_aggregates_become_zero():
    pool = FakePool(rows=[(None, None, None)], columns=["avg_days", "min_days", "max_days"])

    stats = OperationsRepository(pool).fetch_lead_time_stats(*JANUARY)

    assert (stats.average_days, stats.min_days, stats.max_days) == (0.0, 0.0, 0.0)


def test_fetch_active_staff_count():
    pool = FakePool(rows=[(12,)], columns=["active_staff"])

    assert OperationsRepository(pool).fetch_active_staff_count() == 12


def test_fetch_stage_durations():
    pool = FakePool(
        rows=[("en_proceso", 8, Decimal("9.25")), ("pausada", 2, None)],
        columns=["stage_name", "orders_count", "average_duration"]
    )

    rows = OperationsRepository(pool).fetch_stage_durations(*JANUARY)

    assert [(r.stage, r.orders_count, r.average_duration) for r in rows] == [
        ("en_proceso", 8, 9.25),
        ("pausada", 2, 0.0),
    ]


def test_fetch_supplier_deliveries():
    pool = FakePool(
        rows=[(7, "Acme Steel", 10, Decimal("14.0"), 6)],
        columns=["supplier_id", "supplier_name", "orders_count", "avg_delivery_time", "delayed_deliveries"]
    )

    [row] = OperationsRepository(pool).fetch_supplier_deliveries(*JANUARY)

    assert row.supplier_id == 7
    assert row.supplier_name == "Acme Steel"
    assert row.average_delivery_time == 14.0
    assert row.delayed_deliveries == 6


def test_fetch_low_stock_items():
    pool = FakePool(
        rows=[("MP-001", "Steel sheet", Decimal("5"), Decimal("10"), None)],
        columns=["code", "name", "current_quantity", "minimum_quantity", "unit"]
    )

    [item] = OperationsRepository(pool).fetch_low_stock_items(warning_ratio=1.2, limit=5)

    assert item.name == "Steel sheet"
    assert item.below_minimum
    assert item.unit == ""
    _, params = pool.cursor.execute.call_args[0]
    assert params == [1.2, 5]


def test_empty_result_sets():
    repository = OperationsRepository(FakePool(columns=["product_id"]))

    assert repository.fetch_product_delays(*JANUARY) == []
    assert repository.fetch_stage_durations(*JANUARY) == []
    assert repository.fetch_units_produced(*JANUARY) == 0.0


def test_database_error_becomes_repository_error():
    pool = FakePool(error=psycopg2.OperationalError("server closed the connection"))

    with pytest.raises(RepositoryError) as excinfo:
        OperationsRepository(pool).fetch_purchase_cost(*JANUARY)

    assert excinfo.value.query_name == "purchase cost"
    assert isinstance(excinfo.value.__cause__, psycopg2.OperationalError)
    assert pool.returned == 1


def test_invalid_window_is_rejected_before_querying():
    pool = FakePool()

    with pytest.raises(ValueError):
        OperationsRepository(pool).fetch_consumed_hours(JANUARY[1], JANUARY[0])

    assert pool.borrowed == 0
