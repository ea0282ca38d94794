"""Totals calculator.

    line_total = round2(unit_price * quantity)
    subtotal   = round2(sum(line_total))
    total      = round2(subtotal - discount + tax + shipping)

Negative prices, quantities or adjustments are rejected rather than
clamped.  When a document carries a `tax_rate` (SST), its tax amount is
derived from the discounted subtotal; otherwise the entered tax amount
is used as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from quotebook.core.document import Document, LineItem
from quotebook.middleware.exceptions import DocumentValidationError

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round half-up to two decimals (money rounding, not banker's)."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class Totals:
    item_totals: tuple[float, ...]
    subtotal: float
    total: float


def _check_non_negative(**values: float) -> None:
    errors = [f"{name} must not be negative" for name, v in values.items() if v < 0]
    if errors:
        raise DocumentValidationError("Negative amounts are not allowed", errors)


def line_total(unit_price: float, quantity: float) -> float:
    _check_non_negative(unit_price=unit_price, quantity=quantity)
    return round2(unit_price * quantity)


def recompute(
    items: Sequence[LineItem],
    discount: float = 0.0,
    tax: float = 0.0,
    shipping: float = 0.0,
) -> Totals:
    _check_non_negative(discount=discount, tax=tax, shipping=shipping)
    item_totals = tuple(line_total(i.unit_price, i.quantity) for i in items)
    subtotal = round2(sum(item_totals))
    total = round2(subtotal - discount + tax + shipping)
    return Totals(item_totals=item_totals, subtotal=subtotal, total=total)


def tax_from_rate(subtotal: float, discount: float, rate: float) -> float:
    _check_non_negative(rate=rate)
    return round2(max(subtotal - discount, 0.0) * rate / 100)


def _with_line_totals(items: Iterable[LineItem], totals: Sequence[float]) -> tuple[LineItem, ...]:
    return tuple(
        item if item.line_total == value else item.model_copy(update={"line_total": value})
        for item, value in zip(items, totals)
    )


def apply_totals(document: Document) -> Document:
    """Return `document` with every derived amount brought in line.

    Idempotent: applying it to its own output changes nothing.
    """
    tax = document.tax
    if document.tax_rate is not None:
        base = recompute(document.items)
        tax = tax_from_rate(base.subtotal, document.discount, document.tax_rate)

    totals = recompute(document.items, document.discount, tax, document.shipping)
    items = _with_line_totals(document.items, totals.item_totals)

    if (
        items == document.items
        and tax == document.tax
        and totals.subtotal == document.subtotal
        and totals.total == document.total
    ):
        return document
    return document.model_copy(
        update={
            "items": items,
            "tax": tax,
            "subtotal": totals.subtotal,
            "total": totals.total,
        }
    )


def totals_agree(document: Document) -> bool:
    """True when the stored amounts match the formula for the document's inputs."""
    return apply_totals(document) is document
