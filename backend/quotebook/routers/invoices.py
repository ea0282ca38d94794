"""Invoice router.

Endpoints:
    GET    /api/invoices/                       List invoices (optional ?status=)
    POST   /api/invoices/                       Create invoice (bank details required)
    POST   /api/invoices/from-quotation/{id}    Create a draft invoice from a quotation
    GET    /api/invoices/{id}                   Get invoice
    PATCH  /api/invoices/{id}                   Update invoice (bank details cannot be blanked)
    DELETE /api/invoices/{id}                   Delete invoice
    POST   /api/invoices/{id}/status            Change status; marking paid records payment
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from quotebook.auth.deps import get_current_owner
from quotebook.core.document import DocumentKind
from quotebook.database import get_db
from quotebook.schemas.document import (
    InvoiceCreate,
    InvoiceFromQuotation,
    InvoiceOut,
    InvoiceUpdate,
    StatusChange,
)
from quotebook.services import documents

router = APIRouter()

KIND = DocumentKind.INVOICE


@router.get("/", response_model=list[InvoiceOut])
async def list_invoices(
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    rows = await documents.list_records(db, KIND, owner_id, status=status)
    return [InvoiceOut.model_validate(i) for i in rows]


@router.post("/", response_model=InvoiceOut, status_code=201)
async def create_invoice(
    body: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    invoice = await documents.create_record(
        db, KIND, owner_id, body.model_dump(exclude_unset=True)
    )
    return InvoiceOut.model_validate(invoice)


@router.post("/from-quotation/{quotation_id}", response_model=InvoiceOut, status_code=201)
async def create_invoice_from_quotation(
    quotation_id: str,
    body: InvoiceFromQuotation | None = None,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    """Derive a draft invoice; the quotation's own status is not changed."""
    body = body or InvoiceFromQuotation()
    invoice = await documents.create_invoice_from_quotation(
        db,
        owner_id,
        quotation_id,
        bank_info_id=body.bank_info_id,
        po_number=body.po_number,
        invoice_number=body.invoice_number,
    )
    return InvoiceOut.model_validate(invoice)


@router.get("/{invoice_id}", response_model=InvoiceOut)
async def get_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    invoice = await documents.get_owned(db, KIND, owner_id, invoice_id)
    return InvoiceOut.model_validate(invoice)


@router.patch("/{invoice_id}", response_model=InvoiceOut)
async def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    invoice = await documents.update_record(
        db, KIND, owner_id, invoice_id, body.model_dump(exclude_unset=True)
    )
    return InvoiceOut.model_validate(invoice)


@router.delete("/{invoice_id}", status_code=204)
async def delete_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    await documents.delete_record(db, KIND, owner_id, invoice_id)
    return Response(status_code=204)


@router.post("/{invoice_id}/status", response_model=InvoiceOut)
async def change_invoice_status(
    invoice_id: str,
    body: StatusChange,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    invoice = await documents.change_status(
        db,
        KIND,
        owner_id,
        invoice_id,
        body.status,
        paid_date=body.paid_date,
        paid_amount=body.paid_amount,
        payment_reference=body.payment_reference,
    )
    return InvoiceOut.model_validate(invoice)
