"""Quotation router.

Endpoints:
    GET    /api/quotations/               List quotations (optional ?status=)
    POST   /api/quotations/               Create quotation
    GET    /api/quotations/draft          List drafts, most recently updated first
    POST   /api/quotations/draft          Upsert a draft (201 on create, 200 on update)
    GET    /api/quotations/draft/{id}     Get a draft
    DELETE /api/quotations/draft/{id}     Delete a draft
    GET    /api/quotations/{id}           Get quotation
    PATCH  /api/quotations/{id}           Update quotation
    DELETE /api/quotations/{id}           Delete quotation
    POST   /api/quotations/{id}/status    Change status (validated transition)

The draft upsert carries an optional `id`: without one a new draft is
created, with one the owner's draft with that id is updated (404 when it
does not exist, belongs to someone else or is no longer a draft).
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from quotebook.auth.deps import get_current_owner
from quotebook.core.document import DocumentKind, QuotationStatus
from quotebook.database import get_db
from quotebook.schemas.document import (
    QuotationCreate,
    QuotationOut,
    QuotationUpdate,
    StatusChange,
)
from quotebook.services import documents

router = APIRouter()

KIND = DocumentKind.QUOTATION
DRAFT = QuotationStatus.DRAFT.value


@router.get("/", response_model=list[QuotationOut])
async def list_quotations(
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    rows = await documents.list_records(db, KIND, owner_id, status=status)
    return [QuotationOut.model_validate(q) for q in rows]


@router.post("/", response_model=QuotationOut, status_code=201)
async def create_quotation(
    body: QuotationCreate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    data = body.model_dump(exclude_unset=True, exclude={"id"})
    quotation = await documents.create_record(db, KIND, owner_id, data)
    return QuotationOut.model_validate(quotation)


# ── Drafts (declared before /{quotation_id}) ─────────────────

@router.get("/draft", response_model=list[QuotationOut])
async def list_drafts(
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    rows = await documents.list_records(db, KIND, owner_id, status=DRAFT)
    return [QuotationOut.model_validate(q) for q in rows]


@router.post("/draft", response_model=QuotationOut, status_code=201)
async def upsert_draft(
    body: QuotationCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    """Create a draft, or update the owner's draft identified by `id`."""
    data = body.model_dump(exclude_unset=True, exclude={"id"})
    if body.id:
        quotation = await documents.update_record(
            db, KIND, owner_id, body.id, data, status=DRAFT
        )
        response.status_code = 200
    else:
        data.setdefault("status", DRAFT)
        quotation = await documents.create_record(db, KIND, owner_id, data)
    return QuotationOut.model_validate(quotation)


@router.get("/draft/{quotation_id}", response_model=QuotationOut)
async def get_draft(
    quotation_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    quotation = await documents.get_owned(db, KIND, owner_id, quotation_id, status=DRAFT)
    return QuotationOut.model_validate(quotation)


@router.delete("/draft/{quotation_id}", status_code=204)
async def delete_draft(
    quotation_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    await documents.delete_record(db, KIND, owner_id, quotation_id, status=DRAFT)
    return Response(status_code=204)


# ── Single quotation ─────────────────────────────────────────

@router.get("/{quotation_id}", response_model=QuotationOut)
async def get_quotation(
    quotation_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    quotation = await documents.get_owned(db, KIND, owner_id, quotation_id)
    return QuotationOut.model_validate(quotation)


@router.patch("/{quotation_id}", response_model=QuotationOut)
async def update_quotation(
    quotation_id: str,
    body: QuotationUpdate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    quotation = await documents.update_record(
        db, KIND, owner_id, quotation_id, body.model_dump(exclude_unset=True)
    )
    return QuotationOut.model_validate(quotation)


@router.delete("/{quotation_id}", status_code=204)
async def delete_quotation(
    quotation_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    await documents.delete_record(db, KIND, owner_id, quotation_id)
    return Response(status_code=204)


@router.post("/{quotation_id}/status", response_model=QuotationOut)
async def change_quotation_status(
    quotation_id: str,
    body: StatusChange,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    """Move a quotation along its lifecycle (e.g. draft → sent → accepted)."""
    quotation = await documents.change_status(db, KIND, owner_id, quotation_id, body.status)
    return QuotationOut.model_validate(quotation)
