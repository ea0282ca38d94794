"""Company profile router.

Endpoints:
    GET    /api/company-info/          List the owner's company profiles (default first)
    POST   /api/company-info/          Create profile
    GET    /api/company-info/{id}      Get profile
    PATCH  /api/company-info/{id}      Update profile
    DELETE /api/company-info/{id}      Delete profile

At most one profile per owner is the default; marking one as default
clears the flag on the others.  The first profile an owner creates
becomes the default.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quotebook.auth.deps import get_current_owner
from quotebook.database import get_db
from quotebook.models.company_info import CompanyInfo
from quotebook.schemas.company_info import (
    CompanyInfoCreate,
    CompanyInfoOut,
    CompanyInfoUpdate,
)
from quotebook.services.reference import clear_other_defaults
from quotebook.utils.cache import cached, invalidate_cache, owner_key

router = APIRouter()


async def _get_company(db: AsyncSession, owner_id: str, company_id: str) -> CompanyInfo:
    result = await db.execute(
        select(CompanyInfo).where(
            CompanyInfo.id == company_id, CompanyInfo.user_id == owner_id
        )
    )
    company = result.scalar_one_or_none()
    if not company:
        raise HTTPException(status_code=404, detail="Company info not found")
    return company


@router.get("/", response_model=list[CompanyInfoOut])
@cached(prefix="company_info", key_builder=owner_key("company_info"))
async def list_company_info(
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    result = await db.execute(
        select(CompanyInfo)
        .where(CompanyInfo.user_id == owner_id)
        .order_by(CompanyInfo.is_default.desc(), CompanyInfo.name)
    )
    return [CompanyInfoOut.model_validate(c) for c in result.scalars().all()]


@router.post("/", response_model=CompanyInfoOut, status_code=201)
async def create_company_info(
    body: CompanyInfoCreate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    existing = await db.execute(
        select(func.count(CompanyInfo.id)).where(CompanyInfo.user_id == owner_id)
    )
    data = body.model_dump()
    if not existing.scalar():
        data["is_default"] = True

    company = CompanyInfo(id=str(uuid.uuid4()), user_id=owner_id, **data)
    db.add(company)
    await db.flush()
    if company.is_default:
        await clear_other_defaults(db, CompanyInfo, owner_id, company.id)
    await invalidate_cache(f"company_info:{owner_id}*")
    return CompanyInfoOut.model_validate(company)


@router.get("/{company_id}", response_model=CompanyInfoOut)
async def get_company_info(
    company_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    return CompanyInfoOut.model_validate(await _get_company(db, owner_id, company_id))


@router.patch("/{company_id}", response_model=CompanyInfoOut)
async def update_company_info(
    company_id: str,
    body: CompanyInfoUpdate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    company = await _get_company(db, owner_id, company_id)

    updates = body.model_dump(exclude_unset=True)
    for key, value in updates.items():
        setattr(company, key, value)
    await db.flush()
    if updates.get("is_default"):
        await clear_other_defaults(db, CompanyInfo, owner_id, company.id)
    await invalidate_cache(f"company_info:{owner_id}*")
    return CompanyInfoOut.model_validate(company)


@router.delete("/{company_id}", status_code=204)
async def delete_company_info(
    company_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    company = await _get_company(db, owner_id, company_id)
    await db.delete(company)
    await db.flush()
    await invalidate_cache(f"company_info:{owner_id}*")
    return Response(status_code=204)
