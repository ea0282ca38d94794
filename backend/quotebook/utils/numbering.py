"""Document number generation.

Format templates come from settings (`QUOTATION_NUMBER_FORMAT`,
`INVOICE_NUMBER_FORMAT`).

Format tokens:
  {year}       → YYYY
  {date}       → YYYYMMDD
  {seq:N}      → zero-padded sequence number, N digits, counted per owner
                 among existing numbers sharing the same prefix

Default formats:
  quotation: QT-{year}-{seq:4}
  invoice:   INV-{year}-{seq:4}
"""

import re
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quotebook.config import settings
from quotebook.core.document import DocumentKind
from quotebook.models.invoice import Invoice
from quotebook.models.quotation import Quotation

_SEQ = re.compile(r"\{seq:(\d+)\}")


def _get_format(kind: DocumentKind) -> str:
    if kind is DocumentKind.INVOICE:
        return settings.invoice_number_format
    return settings.quotation_number_format


def _fill_dates(fmt: str, today: date) -> str:
    return fmt.replace("{year}", today.strftime("%Y")).replace(
        "{date}", today.strftime("%Y%m%d")
    )


def _build_prefix(fmt: str, today: date) -> str:
    """Static part of the code before {seq:N}, used to count existing codes."""
    prefix = _fill_dates(fmt, today)
    # Remove the {seq:N} part and everything after it
    return re.sub(r"\{seq:\d+\}.*$", "", prefix)


async def _count_existing(
    db: AsyncSession, kind: DocumentKind, owner_id: str, prefix: str
) -> int:
    if kind is DocumentKind.INVOICE:
        model, column = Invoice, Invoice.invoice_number
    else:
        model, column = Quotation, Quotation.quotation_number
    result = await db.execute(
        select(func.count(model.id)).where(
            model.user_id == owner_id,
            column.like(f"{prefix}%"),
        )
    )
    return result.scalar() or 0


async def generate_code(
    db: AsyncSession,
    kind: DocumentKind,
    owner_id: str,
    today: date | None = None,
) -> str:
    """Generate the next sequential document number for an owner.

    Returns:
        Generated code string, e.g. "QT-2026-0007"
    """
    fmt = _get_format(kind)
    today = today or date.today()

    prefix = _build_prefix(fmt, today)
    count = await _count_existing(db, kind, owner_id, prefix)
    seq_num = count + 1

    seq_match = _SEQ.search(fmt)
    seq_width = int(seq_match.group(1)) if seq_match else 4

    code = _fill_dates(fmt, today)
    if seq_match:
        code = _SEQ.sub(f"{seq_num:0{seq_width}d}", code)
    return code
