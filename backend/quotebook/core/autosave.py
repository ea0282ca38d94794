"""Debounced auto-save for a single open document.

State machine:

    idle ──schedule──▶ pending ──quiet period──▶ saving ──▶ saved | error
                          ▲                                    │
                          └──────────── schedule ──────────────┘

- Debounce, not throttle: every `schedule()` with new content re-arms the
  timer, so only the last edit inside a quiet window is written.
- At most one save in flight.  A timer that fires while a save is running
  queues exactly one follow-up save, which picks up whatever the latest
  scheduled document is once the running save resolves.
- `trigger_now()` cancels the timer and saves immediately.
- Failures set status `error` and are never retried automatically.
- `close()` cancels the pending timer.  A save that is already on its way
  to storage is allowed to finish; its result is dropped.

The timer is a plain `loop.call_later` handle, cancelled and re-armed on
every edit.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from quotebook.core.document import Document
from quotebook.core.fingerprint import fingerprint

logger = logging.getLogger("quotebook.autosave")

SaveFn = Callable[[Document], Awaitable[Document]]
SavedCallback = Callable[[Document, Document], None]
ErrorCallback = Callable[[Document, Exception], None]


class SaveStatus(str, enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class AutoSaver:
    """Coalesces edits of one document into debounced, serialized saves.

    Args:
        save: coroutine persisting a document and returning the stored copy
            (with its identifier).
        quiet_period: seconds of inactivity before an auto-save fires.
        on_saved: called with (sent_document, stored_document) after success.
        on_error: called with (sent_document, exception) after a failure.
        document_id: identifier of an already persisted document, if any.
    """

    def __init__(
        self,
        save: SaveFn,
        *,
        quiet_period: float = 2.0,
        on_saved: SavedCallback | None = None,
        on_error: ErrorCallback | None = None,
        document_id: str | None = None,
    ):
        self._save = save
        self.quiet_period = quiet_period
        self._on_saved = on_saved
        self._on_error = on_error

        self.status = SaveStatus.IDLE
        self.last_saved_at: datetime | None = None
        self.last_error: Exception | None = None
        self.save_count = 0

        self._document_id = document_id
        self._timer: asyncio.TimerHandle | None = None
        self._pending: Document | None = None
        self._last_scheduled_fp: str | None = None
        self._queued = False
        self._drain_task: asyncio.Task | None = None
        self._lock = asyncio.Lock()
        self._closed = False
        # Bumped by reset(); saves started under an older generation are stale
        self._generation = 0

    # ── Introspection ────────────────────────────────────────

    @property
    def document_id(self) -> str | None:
        return self._document_id

    @property
    def has_pending(self) -> bool:
        return self._timer is not None or self._pending is not None

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    @property
    def closed(self) -> bool:
        return self._closed

    # ── Scheduling ───────────────────────────────────────────

    def schedule(self, document: Document) -> None:
        """Note a new document state; save it once edits go quiet."""
        if self._closed:
            raise RuntimeError("AutoSaver is closed")

        fp = fingerprint(document)
        if fp == self._last_scheduled_fp:
            return
        self._last_scheduled_fp = fp
        self._pending = document

        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.quiet_period, self._on_timer)
        if not self.in_flight:
            self.status = SaveStatus.PENDING

    async def trigger_now(self, document: Document | None = None) -> str:
        """Save immediately, bypassing the quiet period.

        Saves `document` if given, else the latest scheduled state.  Waits
        for any in-flight save first.  Returns the document identifier or
        raises the error reported by storage.
        """
        if self._closed:
            raise RuntimeError("AutoSaver is closed")

        self._cancel_timer()
        if document is None:
            document = self._pending
        else:
            self._last_scheduled_fp = fingerprint(document)
        self._pending = None
        self._queued = False

        if document is None:
            if self._document_id is None:
                raise ValueError("Nothing to save")
            return self._document_id

        stored = await self._save_once(document)
        return stored.id

    def cancel(self) -> None:
        """Drop a scheduled save that has not started yet."""
        self._cancel_timer()
        self._pending = None
        self._queued = False
        self._last_scheduled_fp = None
        if self.status is SaveStatus.PENDING:
            self.status = SaveStatus.SAVED if self.last_saved_at else SaveStatus.IDLE

    def reset(self, document_id: str | None = None) -> None:
        """Forget pending work and re-pin the identifier ("start new document").

        A save already in flight still completes, but its result no longer
        updates this saver.
        """
        self._generation += 1
        self._cancel_timer()
        self._pending = None
        self._queued = False
        self._last_scheduled_fp = None
        self._document_id = document_id
        self.status = SaveStatus.IDLE
        self.last_saved_at = None
        self.last_error = None

    async def close(self) -> None:
        """Cancel any pending timer; let an in-flight save finish quietly."""
        self._closed = True
        self._cancel_timer()
        self._pending = None
        self._queued = False
        if self._drain_task is not None:
            # _drain records failures itself and never raises them
            await asyncio.shield(self._drain_task)

    async def wait_idle(self) -> None:
        """Drop scheduled work and wait for an in-flight save to resolve.

        Afterwards `document_id` reflects the outcome of that save.
        """
        self._cancel_timer()
        self._pending = None
        self._queued = False
        if self._drain_task is not None and not self._drain_task.done():
            await asyncio.shield(self._drain_task)
        async with self._lock:
            pass

    # ── Internals ────────────────────────────────────────────

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self._closed:
            return
        if self._drain_task is not None and not self._drain_task.done():
            # A save is running; the drain loop picks this up when it ends.
            self._queued = True
            return
        self._drain_task = asyncio.ensure_future(self._drain())

    async def _drain(self) -> None:
        while self._pending is not None and not self._closed:
            document, self._pending = self._pending, None
            self._queued = False
            try:
                await self._save_once(document)
            except Exception:
                # Already recorded in status / last_error and reported to on_error
                pass
            if not self._queued:
                break

    def _is_stale(self, generation: int) -> bool:
        return self._closed or generation != self._generation

    async def _save_once(self, document: Document) -> Document:
        async with self._lock:
            generation = self._generation
            if self._document_id is not None and document.id != self._document_id:
                document = document.with_changes(id=self._document_id)

            self.status = SaveStatus.SAVING
            try:
                stored = await self._save(document)
            except Exception as exc:
                if self._is_stale(generation):
                    logger.info("Dropping failed save of a closed document: %s", exc)
                    raise
                self.last_error = exc
                self.status = SaveStatus.ERROR
                logger.warning(
                    "Save failed for document %s: %s",
                    document.id or "<new>",
                    exc,
                )
                if self._on_error is not None:
                    self._on_error(document, exc)
                raise

            self.save_count += 1
            if self._is_stale(generation):
                logger.info("Discarding save result for closed document %s", stored.id)
                return stored

            self._document_id = stored.id
            self.last_saved_at = datetime.now(timezone.utc)
            self.last_error = None
            self.status = SaveStatus.PENDING if self.has_pending else SaveStatus.SAVED
            logger.info("Saved document %s", stored.id)
            if self._on_saved is not None:
                self._on_saved(document, stored)
            return stored
