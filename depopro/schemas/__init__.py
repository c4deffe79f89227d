# Pydantic Schemas Package
from .product import ProductCreate, ProductUpdate, ProductResponse, CriticalReportMark
from .stock import (
    TransactionCreate, TransactionUpdate, TransactionResponse, StockAudit,
    CycleCountSubmit, CycleCountResult, ImportRequest, ImportResult,
)
from .order import (
    OrderCreate, OrderResponse, OrderItemResponse, OrderSummary, OrderShortage, AggregateShortage,
    SimulationResult,
)
from .picking import PickingStateResponse, ScanRequest, ScanResponse
from .backup import BackupDocument

__all__ = [
    "ProductCreate", "ProductUpdate", "ProductResponse", "CriticalReportMark",
    "TransactionCreate", "TransactionUpdate", "TransactionResponse", "StockAudit",
    "CycleCountSubmit", "CycleCountResult", "ImportRequest", "ImportResult",
    "OrderCreate", "OrderResponse", "OrderItemResponse", "OrderSummary", "OrderShortage", "AggregateShortage",
    "SimulationResult",
    "PickingStateResponse", "ScanRequest", "ScanResponse",
    "BackupDocument",
]
