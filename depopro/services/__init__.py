# Services Package
from .ledger_service import LedgerService
from .product_service import ProductService
from .bulk_import_service import BulkImportService
from .order_service import OrderService
from .shortage_service import ShortageService
from .picking_service import PickingService, PickingStateMachine
from .cycle_count_service import CycleCountService
from .report_service import ReportService
from .backup_service import BackupService

__all__ = [
    "LedgerService",
    "ProductService",
    "BulkImportService",
    "OrderService",
    "ShortageService",
    "PickingService",
    "PickingStateMachine",
    "CycleCountService",
    "ReportService",
    "BackupService",
]
