"""Helpers shared by the reference-entity routers (company, client, bank)."""

from sqlalchemy import update

from quotebook.models.bank_info import BankInfo
from quotebook.models.company_info import CompanyInfo


async def clear_other_defaults(
    db,
    model: type[CompanyInfo] | type[BankInfo],
    owner_id: str,
    keep_id: str,
) -> None:
    """Keep at most one default row per owner: unset it everywhere but `keep_id`."""
    await db.execute(
        update(model)
        .where(
            model.user_id == owner_id,
            model.id != keep_id,
            model.is_default == True,  # noqa: E712
        )
        .values(is_default=False)
    )
