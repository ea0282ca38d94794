"""Quotation and invoice persistence, scoped to an owner.

Every write goes through `normalize_record()`, which parses the flat
record into a `Document`, recomputes line totals, subtotal, tax (when
rate-driven) and total, and flattens it again.  Stored amounts therefore
always agree with the totals formula, and invoices can never be stored
without complete bank details.

Used by the REST routers and by `DatabaseDocumentStore`.
"""

import logging
import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quotebook.core.document import DocumentKind, InvoiceStatus
from quotebook.core.lifecycle import check_transition, invoice_from_quotation
from quotebook.core.reconciliation import (
    bank_account_fields,
    check_bank_details,
    from_storage,
    to_storage,
)
from quotebook.core.totals import apply_totals
from quotebook.middleware.exceptions import ResourceNotFoundError
from quotebook.models.bank_info import BankInfo
from quotebook.models.invoice import Invoice
from quotebook.models.quotation import Quotation
from quotebook.utils.numbering import generate_code

logger = logging.getLogger(__name__)

MODELS = {
    DocumentKind.QUOTATION: Quotation,
    DocumentKind.INVOICE: Invoice,
}

NUMBER_COLUMNS = {
    DocumentKind.QUOTATION: "quotation_number",
    DocumentKind.INVOICE: "invoice_number",
}

_DATE_COLUMNS = {"date", "valid_until", "invoice_date", "due_date", "paid_date"}

# Never written from a client record
_PROTECTED = {"id", "user_id", "created_at", "updated_at"}


# ── Helpers ──────────────────────────────────────────────────

def record_to_dict(obj: Quotation | Invoice) -> dict[str, Any]:
    """Flat storage record for a row, every column included."""
    return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}


def _to_column_values(record: dict[str, Any]) -> dict[str, Any]:
    values = {k: v for k, v in record.items() if k not in _PROTECTED}
    for name in _DATE_COLUMNS & values.keys():
        if isinstance(values[name], str):
            values[name] = date.fromisoformat(values[name])
    return values


def normalize_record(kind: DocumentKind, record: dict[str, Any]) -> dict[str, Any]:
    """Validate a flat record and return column values with totals recomputed."""
    document = apply_totals(from_storage(record, kind))
    check_bank_details(document)
    return _to_column_values(to_storage(document))


async def get_owned(
    db: AsyncSession,
    kind: DocumentKind,
    owner_id: str,
    record_id: str,
    *,
    status: str | None = None,
) -> Quotation | Invoice:
    """Load a record by id; another owner's record is reported as not found."""
    model = MODELS[kind]
    query = select(model).where(model.id == record_id, model.user_id == owner_id)
    if status is not None:
        query = query.where(model.status == status)
    obj = (await db.execute(query)).scalar_one_or_none()
    if obj is None:
        raise ResourceNotFoundError(kind.value.capitalize(), record_id)
    return obj


# ── CRUD ─────────────────────────────────────────────────────

async def list_records(
    db: AsyncSession,
    kind: DocumentKind,
    owner_id: str,
    status: str | None = None,
) -> list[Quotation | Invoice]:
    """Owner's records, most recently updated first."""
    model = MODELS[kind]
    query = select(model).where(model.user_id == owner_id)
    if status is not None:
        query = query.where(model.status == status)
    query = query.order_by(model.updated_at.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_record(
    db: AsyncSession,
    kind: DocumentKind,
    owner_id: str,
    data: dict[str, Any],
) -> Quotation | Invoice:
    record = {k: v for k, v in data.items() if k not in _PROTECTED}
    number_column = NUMBER_COLUMNS[kind]
    if not record.get(number_column):
        record[number_column] = await generate_code(db, kind, owner_id)

    values = normalize_record(kind, record)
    obj = MODELS[kind](id=str(uuid.uuid4()), user_id=owner_id, **values)
    db.add(obj)
    await db.flush()
    logger.info("Created %s %s for owner %s", kind.value, obj.id, owner_id)
    return obj


async def update_record(
    db: AsyncSession,
    kind: DocumentKind,
    owner_id: str,
    record_id: str,
    changes: dict[str, Any],
    *,
    status: str | None = None,
) -> Quotation | Invoice:
    """Apply a (partial) record to an owned row.

    A status change carried in the record must be a valid transition.
    `status` restricts the update to rows currently in that status (the
    draft upsert passes "draft").
    """
    obj = await get_owned(db, kind, owner_id, record_id, status=status)
    current = record_to_dict(obj)
    merged = {**current, **{k: v for k, v in changes.items() if k not in _PROTECTED}}

    number_column = NUMBER_COLUMNS[kind]
    if not merged.get(number_column):
        merged[number_column] = current[number_column]

    requested = merged.get("status") or obj.status
    if requested != obj.status:
        check_transition(kind, obj.status, requested)

    values = normalize_record(kind, merged)
    for key, value in values.items():
        setattr(obj, key, value)
    obj.updated_at = datetime.utcnow()
    await db.flush()
    return obj


async def delete_record(
    db: AsyncSession,
    kind: DocumentKind,
    owner_id: str,
    record_id: str,
    *,
    status: str | None = None,
) -> None:
    """Hard delete."""
    obj = await get_owned(db, kind, owner_id, record_id, status=status)
    await db.delete(obj)
    await db.flush()
    logger.info("Deleted %s %s for owner %s", kind.value, record_id, owner_id)


async def change_status(
    db: AsyncSession,
    kind: DocumentKind,
    owner_id: str,
    record_id: str,
    new_status: str,
    *,
    paid_date: date | None = None,
    paid_amount: float | None = None,
    payment_reference: str | None = None,
) -> Quotation | Invoice:
    obj = await get_owned(db, kind, owner_id, record_id)
    check_transition(kind, obj.status, new_status)
    obj.status = new_status

    if kind is DocumentKind.INVOICE and new_status == InvoiceStatus.PAID:
        obj.paid_date = paid_date or obj.paid_date or date.today()
        if paid_amount is not None:
            obj.paid_amount = paid_amount
        if payment_reference is not None:
            obj.payment_reference = payment_reference

    obj.updated_at = datetime.utcnow()
    await db.flush()
    logger.info("%s %s moved to %s", kind.value.capitalize(), record_id, new_status)
    return obj


# ── Conversion ───────────────────────────────────────────────

async def _bank_for_invoice(
    db: AsyncSession, owner_id: str, bank_info_id: str | None
) -> BankInfo | None:
    query = select(BankInfo).where(BankInfo.user_id == owner_id)
    if bank_info_id:
        bank = (await db.execute(query.where(BankInfo.id == bank_info_id))).scalar_one_or_none()
        if bank is None:
            raise ResourceNotFoundError("Bank account", bank_info_id)
        return bank
    query = query.where(BankInfo.is_default == True)  # noqa: E712
    return (await db.execute(query)).scalars().first()


async def create_invoice_from_quotation(
    db: AsyncSession,
    owner_id: str,
    quotation_id: str,
    *,
    bank_info_id: str | None = None,
    po_number: str | None = None,
    invoice_number: str | None = None,
) -> Invoice:
    """Create a draft invoice from a quotation; the quotation is left as is.

    Bank details come from `bank_info_id`, else the owner's default bank
    account, else the quotation's own bank snapshot.
    """
    quotation = await get_owned(db, DocumentKind.QUOTATION, owner_id, quotation_id)
    source = from_storage(record_to_dict(quotation), DocumentKind.QUOTATION)

    options: dict[str, Any] = {"po_number": po_number or "", "number": invoice_number}
    bank = await _bank_for_invoice(db, owner_id, bank_info_id)
    if bank is not None:
        fields = bank_account_fields(bank)
        options.update(bank=fields["bank"], bank_info_id=fields["bank_info_id"])

    invoice = invoice_from_quotation(source, **options)
    return await create_record(db, DocumentKind.INVOICE, owner_id, to_storage(invoice))
