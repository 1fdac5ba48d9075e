from .auth_service import AuthService
from .customer_service import CustomerService
from .id_generator import IdGenerator, id_generator
from .inventory_service import InventoryService
from .payment_service import PaymentService
from .portal_service import PortalService
from .report_service import ReportKind, ReportService
from .sales_service import SalesService
from .supplier_service import SupplierService

__all__ = [
    "AuthService",
    "CustomerService",
    "IdGenerator",
    "id_generator",
    "InventoryService",
    "PaymentService",
    "PortalService",
    "ReportKind",
    "ReportService",
    "SalesService",
    "SupplierService",
]
