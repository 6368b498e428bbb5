"""
Operations Repository

Read-only aggregate queries over production orders, purchases, staff and
raw-material inventory. Query results are loaded into pandas DataFrames,
numeric columns are coerced (NULL/unparseable values become 0) and rows are
returned as typed records.

Any database failure is logged and re-raised as RepositoryError so that the
enclosing analysis aborts without partial results.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

import pandas as pd
import psycopg2

from core.errors import RepositoryError
from .pool import DatabasePool, get_pool
from .queries import AnalyticsQueryBuilder, analytics_query_builder
from .records import (
    LeadTimeStats,
    LowStockItem,
    ProductDelayRow,
    ProductionTotals,
    StageDurationRow,
    SupplierDeliveryRow,
)

logger = logging.getLogger(__name__)


def coerce_numeric(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """
    Convert columns to floats, replacing NULL or unparseable values with 0.

    PostgreSQL returns Decimal for NUMERIC aggregates and None for empty
    aggregates; both are normalised here.
    """
    df = df.copy()
    for col in columns:
        if col not in df.columns:
            df[col] = 0.0
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(float)
    return df


def first_row(df: pd.DataFrame, columns: Sequence[str]) -> dict:
    """Numeric values of the first row of a single-row aggregate (zeros if empty)."""
    if df.empty:
        return {col: 0.0 for col in columns}
    df = coerce_numeric(df, columns)
    return {col: float(df[col].iloc[0]) for col in columns}


class OperationsRepository:
    """Read-only access to the aggregate figures used by the analytics pipeline."""

    def __init__(
        self,
        db_pool: Optional[DatabasePool] = None,
        query_builder: Optional[AnalyticsQueryBuilder] = None
    ):
        self._db_pool = db_pool
        self.query_builder = query_builder or analytics_query_builder

    @property
    def db_pool(self) -> DatabasePool:
        if self._db_pool is None:
            self._db_pool = get_pool()
        return self._db_pool

    def _fetch_frame(self, query_name: str, query: str, parameters: list) -> pd.DataFrame:
        """
        Execute a query on a pooled connection and load the result into a DataFrame.

        Raises:
            RepositoryError: If the connection or the query fails
        """
        try:
            with self.db_pool.get_connection() as conn:
                with conn.cursor() as cursor:
                    cursor.execute(query, parameters)
                    rows = cursor.fetchall()
                    columns = [desc[0] for desc in cursor.description]
        except psycopg2.Error as e:
            logger.error(f"Error fetching {query_name}: {e}", exc_info=True)
            raise RepositoryError(f"Failed to fetch {query_name}: {e}", query_name) from e

        df = pd.DataFrame(rows, columns=columns)
        logger.debug(f"Fetched {len(df)} rows for {query_name}")
        return df

    # ------------------------------------------------------------------
    # KPI inputs
    # ------------------------------------------------------------------

    def fetch_production_totals(self, start: datetime, end: datetime) -> ProductionTotals:
        query, parameters = self.query_builder.build_production_totals_query(start, end)
        values = first_row(
            self._fetch_frame("production totals", query, parameters),
            ["planned", "produced"]
        )
        return ProductionTotals(planned_units=values["planned"], produced_units=values["produced"])

    def fetch_active_staff_count(self) -> int:
        query, parameters = self.query_builder.build_active_staff_query()
        values = first_row(self._fetch_frame("active staff", query, parameters), ["active_staff"])
        return int(values["active_staff"])

    def fetch_consumed_hours(self, start: datetime, end: datetime) -> float:
        query, parameters = self.query_builder.build_consumed_hours_query(start, end)
        values = first_row(self._fetch_frame("consumed hours", query, parameters), ["used_hours"])
        return values["used_hours"]

    def fetch_purchase_cost(self, start: datetime, end: datetime) -> float:
        query, parameters = self.query_builder.build_purchase_cost_query(start, end)
        values = first_row(self._fetch_frame("purchase cost", query, parameters), ["total_cost"])
        return values["total_cost"]

    def fetch_units_produced(self, start: datetime, end: datetime) -> float:
        query, parameters = self.query_builder.build_units_produced_query(start, end)
        values = first_row(self._fetch_frame("units produced", query, parameters), ["units"])
        return values["units"]

    def fetch_lead_time_stats(self, start: datetime, end: datetime) -> LeadTimeStats:
        query, parameters = self.query_builder.build_lead_time_query(start, end)
        values = first_row(
            self._fetch_frame("lead time", query, parameters),
            ["avg_days", "min_days", "max_days"]
        )
        return LeadTimeStats(
            average_days=values["avg_days"],
            min_days=values["min_days"],
            max_days=values["max_days"]
        )

    # ------------------------------------------------------------------
    # Bottleneck inputs
    # ------------------------------------------------------------------

    def fetch_stage_durations(self, start: datetime, end: datetime) -> List[StageDurationRow]:
        query, parameters = self.query_builder.build_stage_durations_query(start, end)
        df = self._fetch_frame("stage durations", query, parameters)
        if df.empty:
            return []

        df = coerce_numeric(df, ["orders_count", "average_duration"])
        return [
            StageDurationRow(
                stage=str(row.stage_name),
                orders_count=int(row.orders_count),
                average_duration=float(row.average_duration)
            )
            for row in df.itertuples(index=False)
        ]

    def fetch_product_delays(self, start: datetime, end: datetime) -> List[ProductDelayRow]:
        query, parameters = self.query_builder.build_product_delays_query(start, end)
        df = self._fetch_frame("product delays", query, parameters)
        if df.empty:
            return []

        df = coerce_numeric(df, ["product_id", "total_orders", "delayed_orders", "average_delay"])
        return [
            ProductDelayRow(
                product_id=int(row.product_id),
                product_name=str(row.product_name),
                total_orders=int(row.total_orders),
                delayed_orders=int(row.delayed_orders),
                average_delay=float(row.average_delay)
            )
            for row in df.itertuples(index=False)
        ]

    def fetch_supplier_deliveries(self, start: datetime, end: datetime) -> List[SupplierDeliveryRow]:
        query, parameters = self.query_builder.build_supplier_deliveries_query(start, end)
        df = self._fetch_frame("supplier deliveries", query, parameters)
        if df.empty:
            return []

        df = coerce_numeric(
            df, ["supplier_id", "orders_count", "avg_delivery_time", "delayed_deliveries"]
        )
        return [
            SupplierDeliveryRow(
                supplier_id=int(row.supplier_id),
                supplier_name=str(row.supplier_name),
                orders_count=int(row.orders_count),
                average_delivery_time=float(row.avg_delivery_time),
                delayed_deliveries=int(row.delayed_deliveries)
            )
            for row in df.itertuples(index=False)
        ]

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def fetch_low_stock_items(self, warning_ratio: float = 1.2, limit: int = 10) -> List[LowStockItem]:
        """Current raw materials at or below `warning_ratio` of their minimum."""
        query, parameters = self.query_builder.build_low_stock_query(warning_ratio, limit)
        df = self._fetch_frame("low stock items", query, parameters)
        if df.empty:
            return []

        df = coerce_numeric(df, ["current_quantity", "minimum_quantity"])
        if "unit" not in df.columns:
            df["unit"] = ""
        return [
            LowStockItem(
                code=str(row.code),
                name=str(row.name),
                current_quantity=float(row.current_quantity),
                minimum_quantity=float(row.minimum_quantity),
                unit="" if pd.isna(row.unit) else str(row.unit)
            )
            for row in df.itertuples(index=False)
        ]
