"""Quotation and invoice status lifecycle.

Quotation:  draft → sent → accepted | rejected | expired,  expired → sent
Invoice:    draft → sent → paid | overdue,                  overdue → paid

`accepted`, `rejected` and `paid` are terminal.  The date-derived states
(`expired` for quotations past their validity date, `overdue` for invoices
past their due date) are computed by `display_status()` for presentation
and never written back; persisting them takes an explicit `transition()`.
"""

import secrets
import string
from datetime import date, timedelta

from quotebook.config import settings
from quotebook.core.document import (
    DEFAULT_INVOICE_TERMS,
    BankDetails,
    Document,
    DocumentKind,
    InvoiceStatus,
    QuotationStatus,
)
from quotebook.core.totals import apply_totals
from quotebook.middleware.exceptions import DocumentValidationError, InvalidTransitionError

QUOTATION_TRANSITIONS: dict[str, frozenset[str]] = {
    QuotationStatus.DRAFT: frozenset({QuotationStatus.SENT}),
    QuotationStatus.SENT: frozenset(
        {QuotationStatus.ACCEPTED, QuotationStatus.REJECTED, QuotationStatus.EXPIRED}
    ),
    QuotationStatus.EXPIRED: frozenset({QuotationStatus.SENT}),
    QuotationStatus.ACCEPTED: frozenset(),
    QuotationStatus.REJECTED: frozenset(),
}

INVOICE_TRANSITIONS: dict[str, frozenset[str]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID, InvoiceStatus.OVERDUE}),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID}),
    InvoiceStatus.PAID: frozenset(),
}

TRANSITIONS = {
    DocumentKind.QUOTATION: QUOTATION_TRANSITIONS,
    DocumentKind.INVOICE: INVOICE_TRANSITIONS,
}

TERMINAL_STATUSES = {
    DocumentKind.QUOTATION: frozenset({QuotationStatus.ACCEPTED, QuotationStatus.REJECTED}),
    DocumentKind.INVOICE: frozenset({InvoiceStatus.PAID}),
}


def _kind(kind: DocumentKind | str) -> DocumentKind:
    return DocumentKind(kind)


def is_terminal(kind: DocumentKind | str, status: str) -> bool:
    return status in TERMINAL_STATUSES[_kind(kind)]


def allowed_transitions(kind: DocumentKind | str, status: str) -> frozenset[str]:
    return TRANSITIONS[_kind(kind)].get(status, frozenset())


def can_transition(kind: DocumentKind | str, current: str, requested: str) -> bool:
    return requested in allowed_transitions(kind, current)


def check_transition(kind: DocumentKind | str, current: str, requested: str) -> None:
    if not can_transition(kind, current, requested):
        raise InvalidTransitionError(_kind(kind).value, current, requested)


def transition(document: Document, new_status: str, *, today: date | None = None) -> Document:
    """Return `document` moved to `new_status`.

    Marking an invoice paid stamps today's date as the paid date unless
    one is already recorded.
    """
    check_transition(document.kind, document.status, new_status)
    changes: dict = {"status": new_status}
    if new_status == InvoiceStatus.PAID and document.paid_date is None:
        changes["paid_date"] = today or date.today()
    return document.with_changes(**changes)


def display_status(
    kind: DocumentKind | str,
    status: str,
    due_date: date | None,
    today: date | None = None,
) -> str:
    """Status to show: the persisted one, or the date-derived expired/overdue."""
    kind = _kind(kind)
    if due_date is None or is_terminal(kind, status):
        return status
    today = today or date.today()
    if due_date < today:
        if kind is DocumentKind.QUOTATION:
            return QuotationStatus.EXPIRED.value
        return InvoiceStatus.OVERDUE.value
    return status


def random_invoice_number() -> str:
    """Fresh invoice number in the INV-XXXXXX form."""
    alphabet = string.ascii_uppercase + string.digits
    return "INV-" + "".join(secrets.choice(alphabet) for _ in range(6))


def invoice_from_quotation(
    quotation: Document,
    *,
    bank: BankDetails | None = None,
    bank_info_id: str | None = None,
    po_number: str = "",
    today: date | None = None,
    due_days: int | None = None,
    number: str | None = None,
) -> Document:
    """Derive a new draft invoice from a quotation.

    Party snapshots, items, adjustments, notes and soft references are
    copied; the invoice gets a fresh number, the default invoice terms and
    a back-reference to the quotation.  The due date is counted from the
    quotation's last save (today for an unsaved one).  The quotation itself
    is not touched.
    """
    if quotation.kind is not DocumentKind.QUOTATION:
        raise DocumentValidationError("Invoices can only be created from quotations")

    today = today or date.today()
    if due_days is None:
        due_days = settings.invoice_due_days
    saved_on = quotation.updated_at.date() if quotation.updated_at else today

    invoice = Document(
        kind=DocumentKind.INVOICE,
        number=number or random_invoice_number(),
        issue_date=today,
        due_date=saved_on + timedelta(days=due_days),
        project_title=quotation.project_title,
        po_number=po_number,
        status=InvoiceStatus.DRAFT.value,
        from_party=quotation.from_party,
        to_party=quotation.to_party,
        items=quotation.items,
        discount=quotation.discount,
        tax_rate=quotation.tax_rate,
        tax=quotation.tax,
        shipping=quotation.shipping,
        terms=DEFAULT_INVOICE_TERMS,
        notes=quotation.notes,
        bank=bank if bank is not None else quotation.bank,
        client_id=quotation.client_id,
        company_info_id=quotation.company_info_id,
        bank_info_id=bank_info_id or quotation.bank_info_id,
        quotation_id=quotation.id,
    )
    return apply_totals(invoice)
