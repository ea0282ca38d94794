"""Debounced auto-save tests."""

import asyncio
from datetime import datetime

import pytest

from quotebook.core.autosave import AutoSaver, SaveStatus
from quotebook.core.document import new_document
from quotebook.middleware.exceptions import StorageUnavailableError

QUIET = 0.02


async def settle(periods: float = 3):
    await asyncio.sleep(QUIET * periods)


class RecordingSave:
    """Save function that records every document it receives."""

    def __init__(self):
        self.calls = []
        self.gate: asyncio.Event | None = None
        self.error: Exception | None = None

    async def __call__(self, document):
        self.calls.append(document)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return document.model_copy(
            update={"id": document.id or "doc-1", "updated_at": datetime.utcnow()}
        )


@pytest.fixture
def save():
    return RecordingSave()


@pytest.fixture
def document():
    return new_document(number="QT-TEST-1")


@pytest.mark.unit
@pytest.mark.asyncio
class TestDebounce:

    async def test_burst_of_edits_saves_once(self, save, document):
        saver = AutoSaver(save, quiet_period=QUIET)
        for title in ("a", "ab", "abc"):
            saver.schedule(document.with_changes(project_title=title))
        assert saver.status is SaveStatus.PENDING

        await settle()

        assert len(save.calls) == 1
        assert save.calls[0].project_title == "abc"
        assert saver.status is SaveStatus.SAVED
        assert saver.last_saved_at is not None

    async def test_identical_content_ignored(self, save, document):
        saver = AutoSaver(save, quiet_period=QUIET)
        edited = document.with_changes(project_title="x")
        saver.schedule(edited)
        await settle()
        saver.schedule(edited.with_changes())
        await settle()

        assert len(save.calls) == 1

    async def test_identifier_pinned_after_first_save(self, save, document):
        saver = AutoSaver(save, quiet_period=QUIET)
        saver.schedule(document.with_changes(project_title="first"))
        await settle()
        saver.schedule(document.with_changes(project_title="second"))
        await settle()

        assert [c.id for c in save.calls] == [None, "doc-1"]
        assert saver.document_id == "doc-1"

    async def test_cancel_drops_unstarted_save(self, save, document):
        saver = AutoSaver(save, quiet_period=QUIET)
        saver.schedule(document.with_changes(project_title="x"))
        saver.cancel()
        await settle()

        assert save.calls == []
        assert saver.status is SaveStatus.IDLE


@pytest.mark.unit
@pytest.mark.asyncio
class TestSerializedSaves:

    async def test_edits_during_save_queue_one_follow_up(self, save, document):
        save.gate = asyncio.Event()
        saver = AutoSaver(save, quiet_period=QUIET)

        saver.schedule(document.with_changes(project_title="one"))
        await settle()
        assert saver.in_flight
        assert saver.status is SaveStatus.SAVING

        saver.schedule(document.with_changes(project_title="two"))
        await settle()
        saver.schedule(document.with_changes(project_title="three"))
        await settle()
        assert len(save.calls) == 1

        save.gate.set()
        await settle()

        assert [c.project_title for c in save.calls] == ["one", "three"]
        assert save.calls[1].id == "doc-1"
        assert saver.status is SaveStatus.SAVED

    async def test_trigger_now_bypasses_quiet_period(self, save, document):
        saver = AutoSaver(save, quiet_period=10)
        saver.schedule(document.with_changes(project_title="x"))

        document_id = await saver.trigger_now()

        assert document_id == "doc-1"
        assert len(save.calls) == 1
        assert not saver.has_pending

    async def test_trigger_now_with_explicit_document(self, save, document):
        saver = AutoSaver(save, quiet_period=10)
        assert await saver.trigger_now(document) == "doc-1"

    async def test_trigger_now_without_anything_to_save(self, save):
        saver = AutoSaver(save, quiet_period=QUIET)
        with pytest.raises(ValueError):
            await saver.trigger_now()

        pinned = AutoSaver(save, quiet_period=QUIET, document_id="existing")
        assert await pinned.trigger_now() == "existing"
        assert save.calls == []


@pytest.mark.unit
@pytest.mark.asyncio
class TestFailures:

    async def test_failure_sets_error_and_does_not_retry(self, save, document):
        save.error = StorageUnavailableError()
        errors = []
        saver = AutoSaver(
            save,
            quiet_period=QUIET,
            on_error=lambda doc, exc: errors.append(exc),
        )
        saver.schedule(document.with_changes(project_title="x"))
        await settle(6)

        assert len(save.calls) == 1
        assert saver.status is SaveStatus.ERROR
        assert saver.last_error is save.error
        assert errors == [save.error]
        assert saver.document_id is None

    async def test_trigger_now_raises_storage_error(self, save, document):
        save.error = StorageUnavailableError()
        saver = AutoSaver(save, quiet_period=QUIET)
        with pytest.raises(StorageUnavailableError):
            await saver.trigger_now(document)

    async def test_next_successful_save_clears_error(self, save, document):
        save.error = StorageUnavailableError()
        saver = AutoSaver(save, quiet_period=QUIET)
        saver.schedule(document.with_changes(project_title="x"))
        await settle()

        save.error = None
        saver.schedule(document.with_changes(project_title="y"))
        await settle()

        assert saver.status is SaveStatus.SAVED
        assert saver.last_error is None

    async def test_unexpected_error_keeps_saver_usable(self, save, document):
        save.error = RuntimeError("driver blew up")
        saver = AutoSaver(save, quiet_period=QUIET)
        saver.schedule(document.with_changes(project_title="x"))
        await settle()

        assert saver.status is SaveStatus.ERROR
        assert saver.last_error is save.error
        assert not saver.in_flight

        save.error = None
        saver.schedule(document.with_changes(project_title="y"))
        await settle()
        assert saver.status is SaveStatus.SAVED
        await saver.close()


@pytest.mark.unit
@pytest.mark.asyncio
class TestTeardown:

    async def test_close_cancels_pending_save(self, save, document):
        saver = AutoSaver(save, quiet_period=QUIET)
        saver.schedule(document.with_changes(project_title="x"))
        await saver.close()
        await settle()

        assert save.calls == []
        assert saver.closed
        with pytest.raises(RuntimeError):
            saver.schedule(document)

    async def test_close_discards_in_flight_result(self, save, document):
        save.gate = asyncio.Event()
        saved = []
        saver = AutoSaver(save, quiet_period=QUIET, on_saved=lambda s, r: saved.append(r))
        saver.schedule(document.with_changes(project_title="x"))
        await settle()
        assert saver.in_flight

        closing = asyncio.ensure_future(saver.close())
        save.gate.set()
        await closing

        assert len(save.calls) == 1
        assert saved == []
        assert saver.document_id is None

    async def test_reset_discards_in_flight_result(self, save, document):
        save.gate = asyncio.Event()
        saver = AutoSaver(save, quiet_period=QUIET)
        saver.schedule(document.with_changes(project_title="x"))
        await settle()

        saver.reset()
        save.gate.set()
        await settle()

        assert saver.document_id is None
        assert saver.status is SaveStatus.IDLE

    async def test_close_swallows_failing_in_flight_save(self, save, document):
        save.gate = asyncio.Event()
        save.error = RuntimeError("connection reset")
        saver = AutoSaver(save, quiet_period=QUIET)
        saver.schedule(document.with_changes(project_title="x"))
        await settle()
        assert saver.in_flight

        closing = asyncio.ensure_future(saver.close())
        save.gate.set()
        await closing

        assert saver.closed
        assert len(save.calls) == 1

    async def test_wait_idle_lets_first_save_pin_identifier(self, save, document):
        save.gate = asyncio.Event()
        saver = AutoSaver(save, quiet_period=QUIET)
        saver.schedule(document.with_changes(project_title="x"))
        await settle()
        assert saver.in_flight
        assert saver.document_id is None

        waiting = asyncio.ensure_future(saver.wait_idle())
        await asyncio.sleep(0)
        assert not waiting.done()
        save.gate.set()
        await waiting

        assert saver.document_id == "doc-1"
        assert not saver.in_flight
