"""
Analytics Query Builder Module

Parameterized, read-only aggregate queries over the operations database
(production orders, purchases, staff and raw-material inventory).
Every builder returns a `(query, parameters)` tuple ready for `cursor.execute`.
"""

import logging
from datetime import datetime
from typing import List, Tuple, Any

logger = logging.getLogger(__name__)


class AnalyticsQueryBuilder:
    """Builds the aggregate queries consumed by the analytics pipeline."""

    @staticmethod
    def validate_window(start: datetime, end: datetime):
        """
        Validate a date range before it is bound into a query.

        Raises:
            ValueError: If either bound is not a datetime or end precedes start
        """
        if not isinstance(start, datetime) or not isinstance(end, datetime):
            raise ValueError(
                f"Query window bounds must be datetimes, got {type(start).__name__} "
                f"and {type(end).__name__}"
            )
        if end < start:
            raise ValueError(f"Window end ({end}) must not precede start ({start})")

    def build_production_totals_query(self, start: datetime, end: datetime) -> Tuple[str, List[Any]]:
        """Planned and produced units for orders finished within the window."""
        self.validate_window(start, end)
        query = """
            SELECT
                COALESCE(SUM(cantidad_planificada), 0) AS planned,
                COALESCE(SUM(cantidad_real), 0) AS produced
            FROM Ordenes_Produccion
            WHERE fecha_finalizacion >= %s
              AND fecha_finalizacion <= %s
              AND estado IN ('completada', 'en_proceso');
        """
        return query, [start, end]

    def build_active_staff_query(self) -> Tuple[str, List[Any]]:
        """Number of active operators (point in time, not range-bound)."""
        query = """
            SELECT COUNT(*) AS active_staff
            FROM Operarios
            WHERE estado = 'activo';
        """
        return query, []

    def build_consumed_hours_query(self, start: datetime, end: datetime) -> Tuple[str, List[Any]]:
        """Hours consumed by orders completed within the window."""
        self.validate_window(start, end)
        query = """
            SELECT
                COALESCE(SUM(
                    EXTRACT(EPOCH FROM (fecha_finalizacion - fecha_inicio)) / 3600
                ), 0) AS used_hours
            FROM Ordenes_Produccion
            WHERE fecha_finalizacion >= %s
              AND fecha_finalizacion <= %s
              AND estado = 'completada'
              AND fecha_inicio IS NOT NULL;
        """
        return query, [start, end]

    def build_purchase_cost_query(self, start: datetime, end: datetime) -> Tuple[str, List[Any]]:
        """Total cost of completed or received purchases placed within the window."""
        self.validate_window(start, end)
        query = """
            SELECT COALESCE(SUM(costo_total), 0) AS total_cost
            FROM Compras
            WHERE fecha_compra >= %s
              AND fecha_compra <= %s
              AND estado IN ('completada', 'recibida');
        """
        return query, [start, end]

    def build_units_produced_query(self, start: datetime, end: datetime) -> Tuple[str, List[Any]]:
        """Units actually produced by orders completed within the window."""
        self.validate_window(start, end)
        query = """
            SELECT COALESCE(SUM(cantidad_real), 0) AS units
            FROM Ordenes_Produccion
            WHERE fecha_finalizacion >= %s
              AND fecha_finalizacion <= %s
              AND estado = 'completada';
        """
        return query, [start, end]

    def build_lead_time_query(self, start: datetime, end: datetime) -> Tuple[str, List[Any]]:
        """Average, minimum and maximum days from start to completion."""
        self.validate_window(start, end)
        query = """
            SELECT
                AVG(EXTRACT(DAY FROM (fecha_finalizacion - fecha_inicio))) AS avg_days,
                MIN(EXTRACT(DAY FROM (fecha_finalizacion - fecha_inicio))) AS min_days,
                MAX(EXTRACT(DAY FROM (fecha_finalizacion - fecha_inicio))) AS max_days
            FROM Ordenes_Produccion
            WHERE fecha_finalizacion >= %s
              AND fecha_finalizacion <= %s
              AND estado = 'completada'
              AND fecha_inicio IS NOT NULL
              AND fecha_finalizacion > fecha_inicio;
        """
        return query, [start, end]

    def build_stage_durations_query(self, start: datetime, end: datetime) -> Tuple[str, List[Any]]:
        """
        Order count and average duration per order status.

        Groups are returned unfiltered; the minimum sample size is enforced by
        the bottleneck detector.
        """
        self.validate_window(start, end)
        query = """
            SELECT
                estado AS stage_name,
                COUNT(*) AS orders_count,
                COALESCE(AVG(EXTRACT(DAY FROM (fecha_fin_real - fecha_inicio))), 0) AS average_duration
            FROM Ordenes_Produccion
            WHERE fecha_fin_real >= %s
              AND fecha_fin_real <= %s
              AND fecha_inicio IS NOT NULL
              AND fecha_fin_real > fecha_inicio
            GROUP BY estado;
        """
        return query, [start, end]

    def build_product_delays_query(self, start: datetime, end: datetime) -> Tuple[str, List[Any]]:
        """Total orders, delayed orders and average delay (days) per product."""
        self.validate_window(start, end)
        query = """
            SELECT
                op.producto_id AS product_id,
                p.nombre_modelo AS product_name,
                COUNT(*) AS total_orders,
                COUNT(*) FILTER (
                    WHERE op.fecha_fin_real > op.fecha_fin_estimada
                ) AS delayed_orders,
                AVG(
                    CASE
                        WHEN op.fecha_fin_real > op.fecha_fin_estimada
                        THEN EXTRACT(DAY FROM (op.fecha_fin_real - op.fecha_fin_estimada))
                        ELSE 0
                    END
                ) AS average_delay
            FROM Ordenes_Produccion op
            JOIN Productos p ON op.producto_id = p.producto_id
            WHERE op.fecha_fin_real >= %s
              AND op.fecha_fin_real <= %s
              AND op.estado = 'completada'
            GROUP BY op.producto_id, p.nombre_modelo;
        """
        return query, [start, end]

    def build_supplier_deliveries_query(self, start: datetime, end: datetime) -> Tuple[str, List[Any]]:
        """Order count, average delivery time and late deliveries per supplier."""
        self.validate_window(start, end)
        query = """
            SELECT
                c.proveedor_id AS supplier_id,
                pr.nombre AS supplier_name,
                COUNT(*) AS orders_count,
                AVG(EXTRACT(EPOCH FROM (c.fecha_recepcion_real - c.fecha_pedido)) / 86400) AS avg_delivery_time,
                COUNT(*) FILTER (
                    WHERE c.fecha_recepcion_real > c.fecha_recepcion_estimada
                ) AS delayed_deliveries
            FROM Compras c
            JOIN Proveedores pr ON c.proveedor_id = pr.proveedor_id
            WHERE c.fecha_pedido >= %s
              AND c.fecha_pedido <= %s
              AND c.estado = 'recibida'
              AND c.fecha_recepcion_real IS NOT NULL
              AND c.fecha_recepcion_estimada IS NOT NULL
            GROUP BY c.proveedor_id, pr.nombre;
        """
        return query, [start, end]

    def build_low_stock_query(self, warning_ratio: float = 1.2, limit: int = 10) -> Tuple[str, List[Any]]:
        """
        Raw materials at or below `warning_ratio` times their minimum stock.

        Args:
            warning_ratio: Multiple of the minimum that still counts as low stock
            limit: Maximum number of items, most depleted first
        """
        if warning_ratio <= 0:
            raise ValueError(f"warning_ratio must be positive, got {warning_ratio}")
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")

        query = """
            SELECT
                codigo AS code,
                nombre AS name,
                cantidad_actual AS current_quantity,
                cantidad_minima AS minimum_quantity,
                unidad_medida AS unit
            FROM Materia_Prima
            WHERE cantidad_actual <= cantidad_minima * %s
            ORDER BY (cantidad_actual / NULLIF(cantidad_minima, 0)) ASC
            LIMIT %s;
        """
        logger.debug(f"Built low stock query (ratio={warning_ratio}, limit={limit})")
        return query, [warning_ratio, limit]


# Global instance for convenience
analytics_query_builder = AnalyticsQueryBuilder()
