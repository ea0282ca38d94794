"""Editing session for one open document.

Holds the current `Document`, its baseline and the auto-saver explicitly;
nothing here is global.  Every mutation goes through `_replace()`, which
recomputes totals before the document is stored or scheduled for saving.

Typical use:

    session = DocumentSession(DraftReconciliationService(store, owner_id))
    session.start_new()
    await session.apply_defaults(load_default_company)
    session.edit(project_title="Office fit-out")
    session.add_item(description="Desk", unit_price=450, quantity=4)
    ...
    await session.close()
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Iterable

from pydantic import ValidationError

from quotebook.config import settings
from quotebook.core.autosave import AutoSaver, SaveStatus
from quotebook.core.document import Document, DocumentKind, LineItem, new_document
from quotebook.core.fingerprint import BaselineTracker
from quotebook.core.reconciliation import (
    DraftReconciliationService,
    bank_account_fields,
    client_fields,
    company_fields,
)
from quotebook.core.totals import apply_totals
from quotebook.middleware.exceptions import DocumentValidationError, ResourceNotFoundError

logger = logging.getLogger("quotebook.session")

DefaultsLoader = Callable[[], Awaitable[dict[str, Any] | None]]


def _validation_errors(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(p) for p in error['loc']) or 'document'}: {error['msg']}"
        for error in exc.errors()
    ]


class DocumentSession:
    """One open quotation or invoice being edited."""

    def __init__(
        self,
        service: DraftReconciliationService,
        *,
        autosave: bool = True,
        quiet_period: float | None = None,
    ):
        if quiet_period is None:
            quiet_period = settings.autosave_quiet_period_ms / 1000
        self.service = service
        self.autosave = autosave
        self.baseline = BaselineTracker()
        self.saver = AutoSaver(
            service.upsert,
            quiet_period=quiet_period,
            on_saved=self._on_saved,
        )
        self.document: Document | None = None
        # Fields the user set explicitly; late defaults never override them
        self._touched: set[str] = set()
        self._generation = 0

    # ── State ────────────────────────────────────────────────

    @property
    def kind(self) -> DocumentKind:
        return self.service.kind

    @property
    def document_id(self) -> str | None:
        return self.saver.document_id

    @property
    def is_dirty(self) -> bool:
        if self.document is None:
            return False
        return self.baseline.is_dirty(self.document)

    @property
    def save_status(self) -> SaveStatus:
        return self.saver.status

    @property
    def last_saved_at(self) -> datetime | None:
        return self.saver.last_saved_at

    @property
    def last_error(self) -> Exception | None:
        return self.saver.last_error

    def _require_document(self) -> Document:
        if self.document is None:
            raise RuntimeError("No document is open")
        return self.document

    def _begin(self, document: Document) -> Document:
        self._generation += 1
        self._touched = set()
        self.baseline.clear()
        self.saver.reset(document.id)
        self.document = apply_totals(document)
        self.baseline.capture(self.document)
        return self.document

    # ── Opening ──────────────────────────────────────────────

    def start_new(self, *, today: date | None = None) -> Document:
        """Open a fresh, unsaved document with placeholder header values."""
        return self._begin(new_document(self.kind, today=today))

    async def open(self, document_id: str) -> Document:
        document = await self.service.load(document_id)
        logger.info("Opened %s %s", self.kind.value, document_id)
        return self._begin(document)

    async def apply_defaults(self, loader: DefaultsLoader) -> Document | None:
        """Apply asynchronously loaded default values to a new document.

        The loader returns document field values (e.g. `company_fields(...)`
        for the owner's default company).  They are applied to the baseline
        and to the current document alike, skipping any field the user set
        while the loader was running, so defaults alone never make the
        document dirty.  Results arriving after another document was opened
        are dropped.
        """
        generation = self._generation
        saves_before = self.saver.save_count
        self.baseline.expect_defaults()
        try:
            defaults = await loader()
        finally:
            self.baseline.defaults_done()

        if generation != self._generation or self.document is None:
            logger.debug("Discarding defaults for a document that is no longer open")
            return None
        if not defaults:
            return self.document

        fields = {k: v for k, v in defaults.items() if k not in self._touched}
        if not fields:
            return self.document

        was_dirty = self.is_dirty
        # A save that finished meanwhile fixed the baseline without these values
        saved_meanwhile = self.saver.save_count != saves_before
        if not saved_meanwhile:
            self.baseline.apply_default(lambda doc: apply_totals(doc.with_changes(**fields)))
        document = apply_totals(self.document.with_changes(**fields))
        self.document = document
        if was_dirty or saved_meanwhile:
            self._schedule(document)
        return document

    # ── Mutations ────────────────────────────────────────────

    def _replace(self, document: Document, touched: Iterable[str] = ()) -> Document:
        document = apply_totals(document)
        self.document = document
        self._touched.update(touched)
        self._schedule(document)
        return document

    def _schedule(self, document: Document) -> None:
        if not self.autosave:
            return
        if self.baseline.is_dirty(document):
            self.saver.schedule(document)
        else:
            self.saver.cancel()

    def edit(self, **changes: Any) -> Document:
        """Replace document fields, e.g. `edit(project_title="Fit-out", discount=20)`."""
        current = self._require_document()
        try:
            updated = current.with_changes(**changes)
        except ValidationError as exc:
            raise DocumentValidationError("Invalid document change", _validation_errors(exc)) from exc
        return self._replace(updated, touched=changes)

    def add_item(
        self,
        description: str = "",
        unit_price: float = 0.0,
        quantity: float = 1.0,
        unit: str = "",
    ) -> LineItem:
        current = self._require_document()
        try:
            item = LineItem(
                id=str(uuid.uuid4()),
                description=description,
                unit_price=unit_price,
                quantity=quantity,
                unit=unit,
            )
        except ValidationError as exc:
            raise DocumentValidationError("Invalid line item", _validation_errors(exc)) from exc
        document = self._replace(
            current.with_changes(items=current.items + (item,)), touched=("items",)
        )
        return document.item(item.id)

    def update_item(self, item_id: str, **changes: Any) -> LineItem:
        current = self._require_document()
        existing = current.item(item_id)
        if existing is None:
            raise ResourceNotFoundError("Line item", item_id)
        try:
            replacement = LineItem.model_validate({**existing.model_dump(), **changes})
        except ValidationError as exc:
            raise DocumentValidationError("Invalid line item", _validation_errors(exc)) from exc
        items = tuple(replacement if i.id == item_id else i for i in current.items)
        document = self._replace(current.with_changes(items=items), touched=("items",))
        return document.item(item_id)

    def remove_item(self, item_id: str) -> Document:
        current = self._require_document()
        if current.item(item_id) is None:
            raise ResourceNotFoundError("Line item", item_id)
        items = tuple(i for i in current.items if i.id != item_id)
        return self._replace(current.with_changes(items=items), touched=("items",))

    def select_company(self, company: Any) -> Document:
        return self.edit(**company_fields(company))

    def select_client(self, client: Any) -> Document:
        return self.edit(**client_fields(client))

    def select_bank_account(self, account: Any) -> Document:
        return self.edit(**bank_account_fields(account))

    # ── Persistence ──────────────────────────────────────────

    def _on_saved(self, sent: Document, stored: Document) -> None:
        self.baseline.capture(sent)
        if self.document is not None and self.document.id != stored.id:
            self.document = self.document.model_copy(
                update={"id": stored.id, "updated_at": stored.updated_at}
            )
        elif self.document is not None:
            self.document = self.document.model_copy(update={"updated_at": stored.updated_at})

    async def save_now(self) -> str:
        """Save immediately ("Save" button); returns the document id."""
        document = self._require_document()
        return await self.saver.trigger_now(document)

    async def delete(self) -> None:
        """Hard-delete the open document and close it."""
        document = self._require_document()
        # A first save may still be creating the record
        await self.saver.wait_idle()
        document_id = self.saver.document_id or document.id
        self.saver.reset()
        if document_id is not None:
            await self.service.delete(document_id)
        self._generation += 1
        self.document = None
        self.baseline.clear()
        self._touched = set()

    async def close(self) -> None:
        """Tear down: cancel the pending auto-save, let an in-flight one finish."""
        self._generation += 1
        await self.saver.close()
