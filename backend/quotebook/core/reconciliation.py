"""Draft reconciliation: in-memory documents <-> flat storage records.

Storage shape (one row per document, per kind):

    from.*            → from_company_name / _registration / _address / _email / _phone / _logo_url
    to.*              → client_name / _company / _address / _email / _phone / _logo_url
    number            → quotation_number | invoice_number
    issue_date        → date | invoice_date
    due_date          → valid_until | due_date
    tax_rate, tax     → tax_rate, tax_amount | sst_rate, sst_amount
    bank.*            → bank_name / bank_account_number / bank_account_name
    items             → embedded JSON list (camelCase item objects)
    terms, notes      → newline-joined text

Terms and notes are stored as newline-joined text, so an entry that itself
contains a line break cannot survive the round trip.  Such entries are
rejected by `to_storage()` before any I/O instead of being split silently.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol, Sequence, TypeVar

from pydantic import ValidationError

from quotebook.core.document import (
    BankDetails,
    Document,
    DocumentKind,
    DraftSummary,
    LineItem,
    Party,
    summarize,
)
from quotebook.core.totals import apply_totals
from quotebook.middleware.exceptions import (
    DocumentValidationError,
    ResourceNotFoundError,
)
from quotebook.storage.base import DocumentStore, Record

logger = logging.getLogger(__name__)

# Per-kind column names for the fields whose storage name differs
_HEADER_COLUMNS = {
    DocumentKind.QUOTATION: {
        "number": "quotation_number",
        "issue_date": "date",
        "due_date": "valid_until",
        "tax_rate": "tax_rate",
        "tax": "tax_amount",
    },
    DocumentKind.INVOICE: {
        "number": "invoice_number",
        "issue_date": "invoice_date",
        "due_date": "due_date",
        "tax_rate": "sst_rate",
        "tax": "sst_amount",
    },
}

_INVOICE_ONLY = ("quotation_id", "paid_date", "paid_amount", "payment_reference")

_LINE_BREAKS = ("\n", "\r")


# ── Translation ──────────────────────────────────────────────

def _check_entries(field: str, entries: Sequence[str]) -> list[str]:
    return [
        f"{field}[{index}] must not contain a line break"
        for index, entry in enumerate(entries)
        if any(br in entry for br in _LINE_BREAKS)
    ]


def _split_lines(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(line for line in value.split("\n") if line)


def to_storage(document: Document) -> Record:
    """Flatten a document into its storage record.

    Raises DocumentValidationError for terms/notes entries containing line
    breaks.  `id` is included only for saved documents.
    """
    errors = _check_entries("terms", document.terms) + _check_entries("notes", document.notes)
    if errors:
        raise DocumentValidationError("Terms and notes must be single lines", errors)

    columns = _HEADER_COLUMNS[document.kind]
    record: Record = {
        columns["number"]: document.number,
        columns["issue_date"]: document.issue_date.isoformat(),
        columns["due_date"]: document.due_date.isoformat() if document.due_date else None,
        "po_number": document.po_number,
        "project_title": document.project_title,
        "status": document.status,
        "from_company_name": document.from_party.name,
        "from_company_registration": document.from_party.registration_number,
        "from_company_address": document.from_party.address,
        "from_company_email": document.from_party.email,
        "from_company_phone": document.from_party.phone,
        "from_company_logo_url": document.from_party.logo_url,
        "client_name": document.to_party.name,
        "client_company": document.to_party.registration_number,
        "client_address": document.to_party.address,
        "client_email": document.to_party.email,
        "client_phone": document.to_party.phone,
        "client_logo_url": document.to_party.logo_url,
        "items": [item.model_dump(mode="json", by_alias=True) for item in document.items],
        "subtotal": document.subtotal,
        "discount_value": document.discount,
        columns["tax_rate"]: document.tax_rate,
        columns["tax"]: document.tax,
        "shipping": document.shipping,
        "total": document.total,
        "terms": "\n".join(document.terms),
        "notes": "\n".join(document.notes),
        "bank_name": document.bank.bank_name,
        "bank_account_number": document.bank.account_number,
        "bank_account_name": document.bank.account_name,
        "client_id": document.client_id,
        "company_info_id": document.company_info_id,
        "bank_info_id": document.bank_info_id,
    }
    if document.kind is DocumentKind.INVOICE:
        record.update(
            quotation_id=document.quotation_id,
            paid_date=document.paid_date.isoformat() if document.paid_date else None,
            paid_amount=document.paid_amount,
            payment_reference=document.payment_reference,
        )
    if document.id is not None:
        record["id"] = document.id
    return record


def from_storage(record: Record, kind: DocumentKind) -> Document:
    """Rebuild a document (soft references included) from a storage record."""
    try:
        return Document.model_validate(_document_data(record, kind))
    except ValidationError as exc:
        raise DocumentValidationError(
            "Stored record does not form a valid document",
            [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()],
        ) from exc


def _document_data(record: Record, kind: DocumentKind) -> dict[str, Any]:
    columns = _HEADER_COLUMNS[kind]
    get = record.get

    data: dict[str, Any] = {
        "id": get("id"),
        "kind": kind,
        "number": get(columns["number"]) or "",
        "due_date": get(columns["due_date"]) or None,
        "po_number": get("po_number") or "",
        "project_title": get("project_title") or "",
        "status": get("status") or "draft",
        "from_party": Party(
            name=get("from_company_name") or "",
            registration_number=get("from_company_registration") or "",
            address=get("from_company_address") or "",
            email=get("from_company_email") or "",
            phone=get("from_company_phone") or "",
            logo_url=get("from_company_logo_url") or "",
        ),
        "to_party": Party(
            name=get("client_name") or "",
            registration_number=get("client_company") or "",
            address=get("client_address") or "",
            email=get("client_email") or "",
            phone=get("client_phone") or "",
            logo_url=get("client_logo_url") or "",
        ),
        "items": tuple(LineItem.model_validate(item) for item in get("items") or ()),
        "subtotal": get("subtotal") or 0.0,
        "discount": get("discount_value") or 0.0,
        "tax_rate": get(columns["tax_rate"]),
        "tax": get(columns["tax"]) or 0.0,
        "shipping": get("shipping") or 0.0,
        "total": get("total") or 0.0,
        "terms": _split_lines(get("terms")),
        "notes": _split_lines(get("notes")),
        "bank": BankDetails(
            bank_name=get("bank_name") or "",
            account_number=get("bank_account_number") or "",
            account_name=get("bank_account_name") or "",
        ),
        "client_id": get("client_id"),
        "company_info_id": get("company_info_id"),
        "bank_info_id": get("bank_info_id"),
        "updated_at": get("updated_at"),
    }
    if get(columns["issue_date"]):
        data["issue_date"] = get(columns["issue_date"])
    if kind is DocumentKind.INVOICE:
        data.update({name: get(name) for name in _INVOICE_ONLY})
    return data


# ── Selection reconciliation ─────────────────────────────────

class _Identified(Protocol):
    id: str


T = TypeVar("T", bound=_Identified)


def company_fields(company: Any) -> dict[str, Any]:
    """Document fields set by choosing a company profile as issuer."""
    return {
        "from_party": Party(
            name=company.name,
            registration_number=company.registration_number or "",
            address=company.address or "",
            email=company.email or "",
            phone=company.phone or "",
            logo_url=company.logo_url or "",
        ),
        "company_info_id": company.id,
    }


def client_fields(client: Any) -> dict[str, Any]:
    return {
        "to_party": Party(
            name=client.name,
            registration_number=client.company or "",
            address=client.address or "",
            email=client.email or "",
            phone=client.phone or "",
        ),
        "client_id": client.id,
    }


def bank_account_fields(account: Any) -> dict[str, Any]:
    return {
        "bank": BankDetails(
            bank_name=account.bank_name,
            account_number=account.account_number,
            account_name=account.account_name,
        ),
        "bank_info_id": account.id,
    }


def select_company(document: Document, company: Any) -> Document:
    """Copy a company profile into the issuer snapshot and remember its id."""
    return document.with_changes(**company_fields(company))


def select_client(document: Document, client: Any) -> Document:
    return document.with_changes(**client_fields(client))


def select_bank_account(document: Document, account: Any) -> Document:
    return document.with_changes(**bank_account_fields(account))


def resolve_selection(soft_id: str | None, options: Iterable[T]) -> T | None:
    """Option to pre-select for a stored soft reference.

    Returns None when the id is unset or no longer among the options (the
    entity was deleted); the document keeps its snapshot either way.
    """
    if not soft_id:
        return None
    for option in options:
        if option.id == soft_id:
            return option
    logger.info("Soft reference %s no longer resolves; keeping snapshot", soft_id)
    return None


# ── Service ──────────────────────────────────────────────────

def check_bank_details(document: Document) -> None:
    """Invoices must always carry complete bank details."""
    if document.kind is DocumentKind.INVOICE and not document.bank.is_complete:
        raise DocumentValidationError(
            "Invoices require bank name, account number and account name",
            [f"bank.{name} must not be empty" for name in document.bank.missing_fields()],
        )


class DraftReconciliationService:
    """Create-or-update documents of one kind for one owner.

    The first successful `upsert` of an unsaved document returns it with the
    identifier assigned by storage; passing that document back updates the
    same record.  The owner id accompanies every storage call.
    """

    def __init__(
        self,
        store: DocumentStore,
        owner_id: str,
        kind: DocumentKind = DocumentKind.QUOTATION,
    ):
        self.store = store
        self.owner_id = owner_id
        self.kind = kind
        self.registry: dict[str, DraftSummary] = {}

    def _prepare(self, document: Document) -> Record:
        if document.kind is not self.kind:
            raise DocumentValidationError(
                f"Expected a {self.kind.value}, got a {document.kind.value}"
            )
        check_bank_details(document)
        return to_storage(apply_totals(document))

    def _remember(self, document: Document) -> None:
        if document.status == "draft":
            self.registry[document.id] = summarize(document)
        else:
            self.registry.pop(document.id, None)

    async def upsert(self, document: Document) -> Document:
        record = self._prepare(document)

        if document.id is None:
            stored = await self.store.create(self.kind, self.owner_id, record)
            logger.info("Created %s %s", self.kind.value, stored.get("id"))
        else:
            stored = await self.store.update(self.kind, self.owner_id, document.id, record)
            logger.debug("Updated %s %s", self.kind.value, document.id)

        saved = from_storage(stored, self.kind)
        self._remember(saved)
        return saved

    async def load(self, document_id: str) -> Document:
        stored = await self.store.get(self.kind, self.owner_id, document_id)
        document = from_storage(stored, self.kind)
        self._remember(document)
        return document

    async def delete(self, document_id: str) -> None:
        """Hard-delete a document; deleting an already deleted one is a no-op."""
        try:
            await self.store.delete(self.kind, self.owner_id, document_id)
        except ResourceNotFoundError:
            logger.info("%s %s already deleted", self.kind.value, document_id)
        self.registry.pop(document_id, None)

    async def list_drafts(self) -> list[DraftSummary]:
        records = await self.store.list(self.kind, self.owner_id, status="draft")
        summaries = [summarize(from_storage(r, self.kind)) for r in records]
        self.registry = {s.id: s for s in summaries}
        return summaries
