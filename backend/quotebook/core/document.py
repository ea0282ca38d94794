"""In-memory document model shared by quotations and invoices.

Documents are immutable snapshots: every edit produces a new `Document`
via `with_changes()`, which re-runs validation.  Attributes are snake_case
in Python and serialize to the UI's nested camelCase shape
(`model_dump(by_alias=True)`).

The `from`/`to` parties are point-in-time copies of a company profile and
a client.  `client_id`, `company_info_id` and `bank_info_id` are soft
references kept only so an editor can restore its selections on reload.
"""

import enum
import time
from datetime import date, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from quotebook.config import settings


class DocumentKind(str, enum.Enum):
    QUOTATION = "quotation"
    INVOICE = "invoice"


class QuotationStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


STATUS_ENUMS: dict[DocumentKind, type[enum.Enum]] = {
    DocumentKind.QUOTATION: QuotationStatus,
    DocumentKind.INVOICE: InvoiceStatus,
}

DEFAULT_QUOTATION_TERMS = (
    "Payment is due within 30 days of invoice date.",
    "Delivery will be made within 14 days of receiving payment.",
    "This quotation is valid until the expiration date listed above.",
)

DEFAULT_INVOICE_TERMS = (
    "Payment is due within 30 days of invoice date.",
    "Please include the invoice number as payment reference.",
)


class _Snapshot(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class Party(_Snapshot):
    """Issuer or recipient details copied into the document."""

    name: str = ""
    registration_number: str = ""
    address: str = ""
    email: str = ""
    phone: str = ""
    logo_url: str = ""


class LineItem(_Snapshot):
    id: str
    description: str = ""
    unit_price: float = Field(0.0, ge=0)
    quantity: float = Field(0.0, ge=0)
    unit: str = ""
    # Derived: always unit_price * quantity (see core.totals)
    line_total: float = 0.0


class BankDetails(_Snapshot):
    bank_name: str = ""
    account_number: str = ""
    account_name: str = ""

    @property
    def is_complete(self) -> bool:
        return all(
            v.strip() for v in (self.bank_name, self.account_number, self.account_name)
        )

    def missing_fields(self) -> list[str]:
        return [
            name
            for name in ("bank_name", "account_number", "account_name")
            if not getattr(self, name).strip()
        ]


class Document(_Snapshot):
    id: str | None = None
    kind: DocumentKind = DocumentKind.QUOTATION

    # Header
    number: str = ""
    issue_date: date = Field(default_factory=date.today)
    # valid-until for quotations, due date for invoices
    due_date: date | None = None
    project_title: str = ""
    po_number: str = ""
    status: str = "draft"

    # Party snapshots
    from_party: Party = Field(default_factory=Party, alias="from")
    to_party: Party = Field(default_factory=Party, alias="to")

    # Lines and adjustments
    items: tuple[LineItem, ...] = ()
    subtotal: float = 0.0
    discount: float = Field(0.0, ge=0)
    tax_rate: float | None = Field(None, ge=0, le=100)
    tax: float = Field(0.0, ge=0)
    shipping: float = Field(0.0, ge=0)
    total: float = 0.0

    terms: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    bank: BankDetails = Field(default_factory=BankDetails, alias="bankInfo")

    # Soft references
    client_id: str | None = None
    company_info_id: str | None = None
    bank_info_id: str | None = None
    quotation_id: str | None = None

    # Payment tracking (invoices)
    paid_date: date | None = None
    paid_amount: float | None = None
    payment_reference: str | None = None

    updated_at: datetime | None = None

    @field_validator("terms", "notes", mode="after")
    @classmethod
    def _drop_empty_entries(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(entry for entry in value if entry)

    @field_validator("client_id", "company_info_id", "bank_info_id", "quotation_id")
    @classmethod
    def _blank_reference_is_none(cls, value: str | None) -> str | None:
        return value or None

    @model_validator(mode="after")
    def _status_matches_kind(self):
        allowed = {s.value for s in STATUS_ENUMS[self.kind]}
        if self.status not in allowed:
            raise ValueError(
                f"status '{self.status}' is not valid for a {self.kind.value}"
            )
        if self.kind is DocumentKind.QUOTATION and any(
            getattr(self, name) is not None
            for name in ("quotation_id", "paid_date", "paid_amount", "payment_reference")
        ):
            raise ValueError("payment tracking fields only apply to invoices")
        return self

    @property
    def is_saved(self) -> bool:
        return self.id is not None

    def with_changes(self, **changes: Any) -> "Document":
        """Return a validated copy with the given fields replaced."""
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)

    def item(self, item_id: str) -> LineItem | None:
        for line in self.items:
            if line.id == item_id:
                return line
        return None


class DraftSummary(BaseModel):
    """Listing entry for a saved draft; derived from the full document."""

    id: str
    document_number: str
    project_title: str
    updated_at: datetime | None = None


def summarize(document: Document) -> DraftSummary:
    if document.id is None:
        raise ValueError("Only saved documents can be summarized")
    return DraftSummary(
        id=document.id,
        document_number=document.number,
        project_title=document.project_title or "Untitled",
        updated_at=document.updated_at,
    )


def placeholder_number() -> str:
    """Temporary document number for a document that has none yet."""
    return f"DRAFT-{int(time.time() * 1000)}"


def new_document(
    kind: DocumentKind = DocumentKind.QUOTATION,
    *,
    today: date | None = None,
    number: str | None = None,
) -> Document:
    """Create an unsaved document seeded with placeholder header values."""
    today = today or date.today()
    if kind is DocumentKind.INVOICE:
        offset = settings.invoice_due_days
        terms = DEFAULT_INVOICE_TERMS
    else:
        offset = settings.quotation_valid_days
        terms = DEFAULT_QUOTATION_TERMS
    return Document(
        kind=kind,
        number=number or placeholder_number(),
        issue_date=today,
        due_date=today + timedelta(days=offset),
        status="draft",
        terms=terms,
    )
