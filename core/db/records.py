"""
Repository Result Records

Typed rows returned by the operations repository. Numeric columns are
coerced to floats (missing/NULL become 0) before a record is built, so the
calculators never see raw database values.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProductionTotals:
    """Planned vs produced units for orders finished in a window"""
    planned_units: float
    produced_units: float


@dataclass(frozen=True)
class LeadTimeStats:
    """Days from order start to completion for completed orders"""
    average_days: float
    min_days: float
    max_days: float


@dataclass(frozen=True)
class StageDurationRow:
    """Order count and average duration (days) for one order stage/status"""
    stage: str
    orders_count: int
    average_duration: float


@dataclass(frozen=True)
class ProductDelayRow:
    """Delivery performance of one product's completed orders"""
    product_id: int
    product_name: str
    total_orders: int
    delayed_orders: int
    average_delay: float


@dataclass(frozen=True)
class SupplierDeliveryRow:
    """Delivery performance of one supplier's received purchases"""
    supplier_id: int
    supplier_name: str
    orders_count: int
    average_delivery_time: float
    delayed_deliveries: int


@dataclass(frozen=True)
class LowStockItem:
    """Raw material at or near its minimum stock level"""
    code: str
    name: str
    current_quantity: float
    minimum_quantity: float
    unit: str = ""

    @property
    def below_minimum(self) -> bool:
        return self.current_quantity < self.minimum_quantity
