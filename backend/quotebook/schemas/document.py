"""Pydantic schemas for quotation and invoice records.

Records are flat (storage shape): party snapshots as prefixed columns,
items as an embedded list of camelCase item objects, terms and notes as
newline-separated text.  Subtotal and total are accepted but always
recomputed by the server.
"""

import datetime
from typing import Any

from pydantic import BaseModel, Field, computed_field

from quotebook.core.document import DocumentKind
from quotebook.core.lifecycle import display_status


# ── Shared fields ────────────────────────────────────────────

class DocumentFields(BaseModel):
    status: str | None = None
    project_title: str | None = Field(None, max_length=255)
    po_number: str | None = Field(None, max_length=100)

    from_company_name: str | None = None
    from_company_registration: str | None = None
    from_company_address: str | None = None
    from_company_email: str | None = None
    from_company_phone: str | None = None
    from_company_logo_url: str | None = None

    client_name: str | None = None
    client_company: str | None = None
    client_address: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    client_logo_url: str | None = None

    items: list[dict[str, Any]] | None = None
    subtotal: float | None = None
    discount_value: float | None = Field(None, ge=0)
    shipping: float | None = Field(None, ge=0)
    total: float | None = None

    terms: str | None = None
    notes: str | None = None

    bank_name: str | None = None
    bank_account_number: str | None = None
    bank_account_name: str | None = None

    client_id: str | None = None
    company_info_id: str | None = None
    bank_info_id: str | None = None


class DocumentOut(BaseModel):
    id: str
    status: str
    project_title: str | None
    po_number: str | None

    from_company_name: str | None
    from_company_registration: str | None
    from_company_address: str | None
    from_company_email: str | None
    from_company_phone: str | None
    from_company_logo_url: str | None

    client_name: str | None
    client_company: str | None
    client_address: str | None
    client_email: str | None
    client_phone: str | None
    client_logo_url: str | None

    items: list[dict[str, Any]]
    subtotal: float
    discount_value: float
    shipping: float
    total: float

    terms: str | None
    notes: str | None

    bank_name: str | None
    bank_account_number: str | None
    bank_account_name: str | None

    client_id: str | None
    company_info_id: str | None
    bank_info_id: str | None

    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = {"from_attributes": True}


# ── Quotations ───────────────────────────────────────────────

class QuotationUpdate(DocumentFields):
    quotation_number: str | None = Field(None, max_length=50)
    date: datetime.date | None = None
    valid_until: datetime.date | None = None
    tax_rate: float | None = Field(None, ge=0, le=100)
    tax_amount: float | None = Field(None, ge=0)


class QuotationCreate(QuotationUpdate):
    # Only honoured by the draft upsert endpoint
    id: str | None = None


class QuotationOut(DocumentOut):
    quotation_number: str
    date: datetime.date
    valid_until: datetime.date | None
    tax_rate: float | None
    tax_amount: float

    @computed_field
    @property
    def display_status(self) -> str:
        return display_status(DocumentKind.QUOTATION, self.status, self.valid_until)


# ── Invoices ─────────────────────────────────────────────────

class InvoiceUpdate(DocumentFields):
    invoice_number: str | None = Field(None, max_length=50)
    invoice_date: datetime.date | None = None
    due_date: datetime.date | None = None
    sst_rate: float | None = Field(None, ge=0, le=100)
    sst_amount: float | None = Field(None, ge=0)
    quotation_id: str | None = None
    paid_date: datetime.date | None = None
    paid_amount: float | None = Field(None, ge=0)
    payment_reference: str | None = None


class InvoiceCreate(InvoiceUpdate):
    pass


class InvoiceOut(DocumentOut):
    invoice_number: str
    invoice_date: datetime.date
    due_date: datetime.date | None
    sst_rate: float | None
    sst_amount: float
    quotation_id: str | None
    paid_date: datetime.date | None
    paid_amount: float | None
    payment_reference: str | None

    @computed_field
    @property
    def display_status(self) -> str:
        return display_status(DocumentKind.INVOICE, self.status, self.due_date)


class InvoiceFromQuotation(BaseModel):
    bank_info_id: str | None = None
    po_number: str | None = None
    invoice_number: str | None = Field(None, max_length=50)


# ── Status changes ───────────────────────────────────────────

class StatusChange(BaseModel):
    status: str
    # Invoices only, when marking paid
    paid_date: datetime.date | None = None
    paid_amount: float | None = Field(None, ge=0)
    payment_reference: str | None = None
