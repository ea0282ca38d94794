"""Aggregate model imports for Alembic auto-detection."""

# Reference entities
from quotebook.models.company_info import CompanyInfo  # noqa: F401
from quotebook.models.client import Client  # noqa: F401
from quotebook.models.bank_info import BankInfo  # noqa: F401

# Documents
from quotebook.models.quotation import Quotation  # noqa: F401
from quotebook.models.invoice import Invoice  # noqa: F401
