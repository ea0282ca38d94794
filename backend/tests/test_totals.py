"""Totals calculator tests."""

import pytest

from quotebook.core.document import DocumentKind, LineItem, new_document
from quotebook.core.totals import (
    apply_totals,
    recompute,
    round2,
    tax_from_rate,
    totals_agree,
)
from quotebook.middleware.exceptions import DocumentValidationError


def _item(item_id: str, unit_price: float, quantity: float) -> LineItem:
    return LineItem(id=item_id, unit_price=unit_price, quantity=quantity)


@pytest.mark.unit
class TestRecompute:

    def test_basic_document(self):
        items = [_item("a", 10, 2), _item("b", 5.5, 3)]
        totals = recompute(items, discount=5, tax=1.5, shipping=10)

        assert totals.item_totals == (20.0, 16.5)
        assert totals.subtotal == 36.5
        assert totals.total == 43.0

    def test_empty_items(self):
        totals = recompute([], discount=0, tax=0, shipping=0)
        assert totals.item_totals == ()
        assert totals.subtotal == 0.0
        assert totals.total == 0.0

    def test_shipping_only(self):
        assert recompute([], shipping=15).total == 15.0

    def test_discount_may_exceed_subtotal(self):
        totals = recompute([_item("a", 10, 1)], discount=25)
        assert totals.total == -15.0

    def test_line_totals_round_half_up(self):
        totals = recompute([_item("a", 0.125, 1), _item("b", 1.005, 1)])
        assert totals.item_totals == (0.13, 1.01)
        assert totals.subtotal == 1.14

    def test_fractional_quantities(self):
        totals = recompute([_item("a", 19.99, 0.5)])
        assert totals.item_totals == (10.0,)

    @pytest.mark.parametrize(
        "kwargs",
        [{"discount": -1}, {"tax": -0.01}, {"shipping": -5}],
    )
    def test_negative_adjustments_rejected(self, kwargs):
        with pytest.raises(DocumentValidationError):
            recompute([], **kwargs)

    def test_negative_item_values_rejected(self):
        # Bypass model validation to reach the calculator itself
        item = LineItem.model_construct(id="a", unit_price=-1.0, quantity=1.0)
        with pytest.raises(DocumentValidationError) as exc_info:
            recompute([item])
        assert "unit_price must not be negative" in exc_info.value.errors


@pytest.mark.unit
class TestRounding:

    @pytest.mark.parametrize(
        "value, expected",
        [(2.675, 2.68), (0.005, 0.01), (1.004, 1.0), (-1.005, -1.01), (10, 10.0)],
    )
    def test_round2(self, value, expected):
        assert round2(value) == expected

    def test_tax_from_rate_uses_discounted_subtotal(self):
        assert tax_from_rate(100, 10, 6) == 5.4

    def test_tax_from_rate_never_negative(self):
        assert tax_from_rate(10, 50, 8) == 0.0


@pytest.mark.unit
class TestApplyTotals:

    def test_fills_derived_amounts(self):
        doc = new_document(DocumentKind.QUOTATION).with_changes(
            items=[_item("a", 450, 4), _item("b", 120, 1)],
            discount=20,
            shipping=50,
        )
        doc = apply_totals(doc)

        assert [i.line_total for i in doc.items] == [1800.0, 120.0]
        assert doc.subtotal == 1920.0
        assert doc.total == 1950.0

    def test_rate_driven_tax(self):
        doc = new_document(DocumentKind.INVOICE).with_changes(
            items=[_item("a", 100, 1)], tax_rate=8, tax=999
        )
        doc = apply_totals(doc)
        assert doc.tax == 8.0
        assert doc.total == 108.0

    def test_entered_tax_kept_without_rate(self):
        doc = apply_totals(
            new_document().with_changes(items=[_item("a", 100, 1)], tax=7.25)
        )
        assert doc.tax == 7.25
        assert doc.total == 107.25

    def test_idempotent(self):
        doc = apply_totals(
            new_document().with_changes(items=[_item("a", 3.33, 3)], discount=1)
        )
        assert apply_totals(doc) is doc
        assert totals_agree(doc)

    def test_stale_totals_detected(self):
        doc = apply_totals(new_document().with_changes(items=[_item("a", 10, 1)]))
        stale = doc.model_copy(update={"total": 99.0})
        assert not totals_agree(stale)
