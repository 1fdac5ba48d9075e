"""
CSV exports of an owner's ledger, built with pandas.
"""
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List

import pandas as pd
from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload

from ..config.logging import get_logger
from ..models.billing import Bill, Payment
from ..models.customer import Customer
from ..models.product import Product
from ..models.supplier import Supplier
from ..repositories.bill_repo import BillRepository
from .bill_calculator import ZERO

logger = get_logger("services.reports")


class ReportKind(str, Enum):
    SALES = "sales"
    CUSTOMERS = "customers"
    PRODUCTS = "products"
    SUPPLIERS = "suppliers"
    PAYMENTS = "payments"


def report_filename(kind: ReportKind, on: date = None) -> str:
    return f"{ReportKind(kind).value}_report_{(on or date.today()).isoformat()}.csv"


def _money(value) -> str:
    return f"{value:.2f}"


class ReportService:
    def __init__(self):
        self.bill_repo = BillRepository()
        self._builders: Dict[ReportKind, Callable[[Session, int], List[Dict[str, Any]]]] = {
            ReportKind.SALES: self._sales_rows,
            ReportKind.CUSTOMERS: self._customer_rows,
            ReportKind.PRODUCTS: self._product_rows,
            ReportKind.SUPPLIERS: self._supplier_rows,
            ReportKind.PAYMENTS: self._payment_rows,
        }

    def build_report(self, db: Session, owner_id: int, kind: ReportKind) -> pd.DataFrame:
        kind = ReportKind(kind)
        rows = self._builders[kind](db, owner_id)
        df = pd.DataFrame(rows, columns=self._columns(kind))
        logger.info(f"Built {kind.value} report with {len(df)} rows for owner {owner_id}")
        return df

    def export_csv(self, db: Session, owner_id: int, kind: ReportKind) -> str:
        return self.build_report(db, owner_id, kind).to_csv(index=False)

    @staticmethod
    def _columns(kind: ReportKind) -> List[str]:
        return {
            ReportKind.SALES: [
                "Bill Number", "Date", "Customer ID", "Customer Name", "Subtotal",
                "Discount", "Tax", "Total", "Paid", "Pending", "Status",
            ],
            ReportKind.CUSTOMERS: ["Customer ID", "Name", "Phone", "Email", "Address", "Total Due", "Created"],
            ReportKind.PRODUCTS: [
                "Product ID", "Code", "Name", "Category", "Price", "Stock",
                "Reorder Level", "Unit", "Supplier", "Low Stock",
            ],
            ReportKind.SUPPLIERS: ["Supplier ID", "Name", "Company", "Phone", "Email", "GST Number", "Address"],
            ReportKind.PAYMENTS: ["Date", "Bill Number", "Customer Name", "Amount", "Mode", "Reference", "Notes"],
        }[kind]

    def _sales_rows(self, db: Session, owner_id: int) -> List[Dict[str, Any]]:
        bills = (
            db.query(Bill)
            .options(joinedload(Bill.customer))
            .filter(Bill.user_id == owner_id)
            .order_by(desc(Bill.bill_date), desc(Bill.id))
            .all()
        )
        paid = self.bill_repo.paid_totals(db, [bill.id for bill in bills])
        rows = []
        for bill in bills:
            paid_amount = paid.get(bill.id, ZERO)
            pending = bill.total_amount - paid_amount
            rows.append({
                "Bill Number": bill.bill_number,
                "Date": bill.bill_date.strftime("%Y-%m-%d %H:%M"),
                "Customer ID": bill.customer.customer_id if bill.customer else "",
                "Customer Name": bill.customer.name if bill.customer else "Walk-in",
                "Subtotal": _money(bill.subtotal),
                "Discount": _money(bill.discount_amount),
                "Tax": _money(bill.tax_amount),
                "Total": _money(bill.total_amount),
                "Paid": _money(paid_amount),
                "Pending": _money(pending if pending > ZERO else ZERO),
                "Status": bill.status.value,
            })
        return rows

    def _customer_rows(self, db: Session, owner_id: int) -> List[Dict[str, Any]]:
        customers = (
            db.query(Customer)
            .filter(Customer.user_id == owner_id)
            .order_by(desc(Customer.created_at), desc(Customer.id))
            .all()
        )
        return [
            {
                "Customer ID": customer.customer_id,
                "Name": customer.name,
                "Phone": customer.phone,
                "Email": customer.email or "",
                "Address": customer.address or "",
                "Total Due": _money(customer.total_due),
                "Created": customer.created_at.strftime("%Y-%m-%d"),
            }
            for customer in customers
        ]

    def _product_rows(self, db: Session, owner_id: int) -> List[Dict[str, Any]]:
        products = (
            db.query(Product)
            .options(joinedload(Product.supplier))
            .filter(Product.user_id == owner_id)
            .order_by(desc(Product.created_at), desc(Product.id))
            .all()
        )
        return [
            {
                "Product ID": product.product_id,
                "Code": product.product_code or "",
                "Name": product.name,
                "Category": product.category,
                "Price": _money(product.price),
                "Stock": product.stock,
                "Reorder Level": product.reorder_level,
                "Unit": product.unit or "",
                "Supplier": product.supplier.name if product.supplier else "",
                "Low Stock": "yes" if product.is_low_stock else "no",
            }
            for product in products
        ]

    def _supplier_rows(self, db: Session, owner_id: int) -> List[Dict[str, Any]]:
        suppliers = (
            db.query(Supplier)
            .filter(Supplier.user_id == owner_id)
            .order_by(desc(Supplier.created_at), desc(Supplier.id))
            .all()
        )
        return [
            {
                "Supplier ID": supplier.supplier_id,
                "Name": supplier.name,
                "Company": supplier.company or "",
                "Phone": supplier.phone,
                "Email": supplier.email or "",
                "GST Number": supplier.gst_number or "",
                "Address": supplier.address or "",
            }
            for supplier in suppliers
        ]

    def _payment_rows(self, db: Session, owner_id: int) -> List[Dict[str, Any]]:
        payments = (
            db.query(Payment)
            .options(joinedload(Payment.bill).joinedload(Bill.customer))
            .filter(Payment.user_id == owner_id)
            .order_by(desc(Payment.payment_date), desc(Payment.id))
            .all()
        )
        return [
            {
                "Date": payment.payment_date.strftime("%Y-%m-%d %H:%M"),
                "Bill Number": payment.bill.bill_number,
                "Customer Name": payment.bill.customer.name if payment.bill.customer else "Walk-in",
                "Amount": _money(payment.amount),
                "Mode": payment.payment_mode.value,
                "Reference": payment.reference_number or "",
                "Notes": payment.notes or "",
            }
            for payment in payments
        ]
