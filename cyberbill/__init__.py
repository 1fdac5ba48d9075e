"""CyberBill: billing, inventory and customer ledger API."""

__version__ = "1.0.0"
