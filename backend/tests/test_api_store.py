"""HTTP document store tests.

The happy paths run the store against the real application through
httpx's ASGI transport; error mapping uses `httpx.MockTransport`.
"""

import asyncio

import httpx
import pytest
from httpx import AsyncClient

from quotebook.core.document import BankDetails, DocumentKind, new_document
from quotebook.core.reconciliation import DraftReconciliationService
from quotebook.core.session import DocumentSession
from quotebook.middleware.exceptions import (
    BusinessLogicError,
    DocumentValidationError,
    PermissionDeniedError,
    ResourceNotFoundError,
    StorageUnavailableError,
    UnauthorizedError,
)
from quotebook.storage.api_store import ApiDocumentStore

QUIET = 0.02


@pytest.fixture
def api_store(client: AsyncClient, test_token: str) -> ApiDocumentStore:
    return ApiDocumentStore(test_token, client=client)


def _store_answering(status_code: int, body=None) -> ApiDocumentStore:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body if body is not None else {})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    return ApiDocumentStore("token", client=client)


@pytest.mark.integration
@pytest.mark.asyncio
class TestAgainstApplication:

    async def test_draft_upsert_round_trip(self, api_store, owner_id):
        service = DraftReconciliationService(api_store, owner_id)
        doc = new_document(number="QT-API-1").with_changes(project_title="Over HTTP")

        created = await service.upsert(doc)
        updated = await service.upsert(created.with_changes(project_title="Renamed"))
        loaded = await service.load(created.id)

        assert updated.id == created.id
        assert loaded.project_title == "Renamed"
        assert loaded.number == "QT-API-1"
        assert [d.id for d in await service.list_drafts()] == [created.id]

    async def test_status_change_goes_through_patch(self, api_store, owner_id):
        service = DraftReconciliationService(api_store, owner_id)
        created = await service.upsert(new_document())

        sent = await service.upsert(created.with_changes(status="sent"))

        assert sent.status == "sent"
        assert await service.list_drafts() == []

    async def test_invoice_round_trip(self, api_store, owner_id):
        service = DraftReconciliationService(api_store, owner_id, DocumentKind.INVOICE)
        doc = new_document(DocumentKind.INVOICE).with_changes(
            bank=BankDetails(bank_name="Maybank", account_number="1", account_name="My Co"),
        )

        created = await service.upsert(doc)
        loaded = await service.load(created.id)

        assert loaded.bank == doc.bank
        assert loaded.kind is DocumentKind.INVOICE

    async def test_delete_twice(self, api_store, owner_id):
        service = DraftReconciliationService(api_store, owner_id)
        created = await service.upsert(new_document())

        await service.delete(created.id)
        await service.delete(created.id)

        with pytest.raises(ResourceNotFoundError):
            await service.load(created.id)

    async def test_session_autosave_over_http(self, api_store, owner_id):
        service = DraftReconciliationService(api_store, owner_id)
        session = DocumentSession(service, quiet_period=QUIET)
        session.start_new()
        session.add_item(description="Desk", unit_price=450, quantity=2)

        await asyncio.sleep(QUIET * 5)

        assert session.document_id is not None
        assert (await service.load(session.document_id)).total == 900.0
        await session.close()

    async def test_invalid_token(self, client: AsyncClient):
        store = ApiDocumentStore("expired", client=client)
        with pytest.raises(UnauthorizedError):
            await store.list(DocumentKind.QUOTATION, "owner-1", status="draft")


@pytest.mark.unit
@pytest.mark.asyncio
class TestErrorMapping:

    @pytest.mark.parametrize(
        "status_code, expected",
        [
            (401, UnauthorizedError),
            (403, PermissionDeniedError),
            (404, ResourceNotFoundError),
            (422, DocumentValidationError),
            (409, BusinessLogicError),
            (500, StorageUnavailableError),
            (503, StorageUnavailableError),
        ],
    )
    async def test_status_codes(self, status_code, expected):
        store = _store_answering(status_code)
        with pytest.raises(expected):
            await store.get(DocumentKind.QUOTATION, "owner-1", "doc-1")

    async def test_validation_details_preserved(self):
        body = {
            "error": {
                "code": "DOCUMENT_INVALID",
                "message": "Invoices require bank name, account number and account name",
                "details": {"errors": ["bank.bank_name must not be empty"]},
            }
        }
        store = _store_answering(422, body)
        with pytest.raises(DocumentValidationError) as exc_info:
            await store.create(DocumentKind.INVOICE, "owner-1", {})
        assert exc_info.value.errors == ["bank.bank_name must not be empty"]

    async def test_connection_failure_is_retryable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
        store = ApiDocumentStore("token", client=client)

        with pytest.raises(StorageUnavailableError) as exc_info:
            await store.list(DocumentKind.INVOICE, "owner-1")
        assert exc_info.value.retryable

    async def test_draft_quotations_use_upsert_endpoint(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json={"id": "doc-1"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
        store = ApiDocumentStore("token", client=client)

        await store.create(DocumentKind.QUOTATION, "owner-1", {"status": "draft"})
        await store.update(DocumentKind.QUOTATION, "owner-1", "doc-1", {"status": "draft"})
        await store.update(DocumentKind.QUOTATION, "owner-1", "doc-1", {"status": "sent"})
        await store.create(DocumentKind.INVOICE, "owner-1", {"status": "draft"})

        assert seen == [
            ("POST", "/api/quotations/draft"),
            ("POST", "/api/quotations/draft"),
            ("PATCH", "/api/quotations/doc-1"),
            ("POST", "/api/invoices/"),
        ]
