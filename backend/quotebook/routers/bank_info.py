"""Bank account router.

Endpoints:
    GET    /api/bank-info/          List the owner's bank accounts (default first)
    POST   /api/bank-info/          Create bank account
    GET    /api/bank-info/{id}      Get bank account
    PATCH  /api/bank-info/{id}      Update bank account
    DELETE /api/bank-info/{id}      Delete bank account

One default per owner, as for company profiles.  Invoices copy the
account details, so deleting an account leaves existing invoices intact.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quotebook.auth.deps import get_current_owner
from quotebook.database import get_db
from quotebook.models.bank_info import BankInfo
from quotebook.schemas.bank_info import BankInfoCreate, BankInfoOut, BankInfoUpdate
from quotebook.services.reference import clear_other_defaults
from quotebook.utils.cache import cached, invalidate_cache, owner_key

router = APIRouter()


async def _get_bank(db: AsyncSession, owner_id: str, bank_id: str) -> BankInfo:
    result = await db.execute(
        select(BankInfo).where(BankInfo.id == bank_id, BankInfo.user_id == owner_id)
    )
    bank = result.scalar_one_or_none()
    if not bank:
        raise HTTPException(status_code=404, detail="Bank info not found")
    return bank


@router.get("/", response_model=list[BankInfoOut])
@cached(prefix="bank_info", key_builder=owner_key("bank_info"))
async def list_bank_info(
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    result = await db.execute(
        select(BankInfo)
        .where(BankInfo.user_id == owner_id)
        .order_by(BankInfo.is_default.desc(), BankInfo.bank_name)
    )
    return [BankInfoOut.model_validate(b) for b in result.scalars().all()]


@router.post("/", response_model=BankInfoOut, status_code=201)
async def create_bank_info(
    body: BankInfoCreate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    existing = await db.execute(
        select(func.count(BankInfo.id)).where(BankInfo.user_id == owner_id)
    )
    data = body.model_dump()
    if not existing.scalar():
        data["is_default"] = True

    bank = BankInfo(id=str(uuid.uuid4()), user_id=owner_id, **data)
    db.add(bank)
    await db.flush()
    if bank.is_default:
        await clear_other_defaults(db, BankInfo, owner_id, bank.id)
    await invalidate_cache(f"bank_info:{owner_id}*")
    return BankInfoOut.model_validate(bank)


@router.get("/{bank_id}", response_model=BankInfoOut)
async def get_bank_info(
    bank_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    return BankInfoOut.model_validate(await _get_bank(db, owner_id, bank_id))


@router.patch("/{bank_id}", response_model=BankInfoOut)
async def update_bank_info(
    bank_id: str,
    body: BankInfoUpdate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    bank = await _get_bank(db, owner_id, bank_id)

    updates = body.model_dump(exclude_unset=True)
    for key, value in updates.items():
        setattr(bank, key, value)
    await db.flush()
    if updates.get("is_default"):
        await clear_other_defaults(db, BankInfo, owner_id, bank.id)
    await invalidate_cache(f"bank_info:{owner_id}*")
    return BankInfoOut.model_validate(bank)


@router.delete("/{bank_id}", status_code=204)
async def delete_bank_info(
    bank_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    bank = await _get_bank(db, owner_id, bank_id)
    await db.delete(bank)
    await db.flush()
    await invalidate_cache(f"bank_info:{owner_id}*")
    return Response(status_code=204)
