"""DocumentStore backed by the Quotebook REST API (httpx).

The bearer token scopes every request to its owner; the `owner_id`
arguments are accepted for interface parity and checked against nothing
on this side.

HTTP failures are translated into the application exception kinds so
callers can tell them apart:

    401            → UnauthorizedError        (fatal for the session)
    403            → PermissionDeniedError
    404            → ResourceNotFoundError    (deleted or not ours)
    400 / 422      → DocumentValidationError
    409            → BusinessLogicError       (e.g. invalid status transition)
    5xx, timeouts,
    connect errors → StorageUnavailableError  (retryable)
"""

import logging
from typing import Any

import httpx

from quotebook.config import settings
from quotebook.core.document import DocumentKind
from quotebook.middleware.exceptions import (
    BusinessLogicError,
    DocumentValidationError,
    PermissionDeniedError,
    QuotebookException,
    ResourceNotFoundError,
    StorageUnavailableError,
    UnauthorizedError,
)
from quotebook.storage.base import Record

logger = logging.getLogger(__name__)

COLLECTIONS = {
    DocumentKind.QUOTATION: "/api/quotations",
    DocumentKind.INVOICE: "/api/invoices",
}


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"]
    return {}


def raise_for_response(
    response: httpx.Response,
    kind: DocumentKind,
    record_id: str | None = None,
) -> None:
    """Raise the application exception matching a failed response."""
    if response.is_success:
        return

    error = _error_body(response)
    message = error.get("message") or response.reason_phrase or "Request failed"
    code = response.status_code

    if code == 401:
        raise UnauthorizedError(message)
    if code == 403:
        raise PermissionDeniedError(message)
    if code == 404:
        raise ResourceNotFoundError(kind.value.capitalize(), record_id or "")
    if code in (400, 422):
        details = error.get("details") or {}
        errors = [
            e if isinstance(e, str) else f"{e.get('field', '')}: {e.get('message', '')}"
            for e in details.get("errors", [])
        ]
        raise DocumentValidationError(message, errors or None)
    if code == 409:
        raise BusinessLogicError(
            message, error_code=error.get("code", "CONFLICT"), status_code=409
        )
    if code >= 500:
        raise StorageUnavailableError(message)
    raise QuotebookException(message, status_code=code, error_code=error.get("code", "ERROR"))


class ApiDocumentStore:
    """Talks to `/api/quotations` and `/api/invoices` with a bearer token.

    Draft quotations are written through the draft upsert endpoint; every
    other write goes through the regular collection endpoints.

    Pass `client` to reuse an existing `httpx.AsyncClient` (its base URL
    is used as-is).
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout or settings.api_timeout_seconds,
        )
        self._headers = {"Authorization": f"Bearer {token}"}

    async def __aenter__(self) -> "ApiDocumentStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        kind: DocumentKind,
        record_id: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out", method, url)
            raise StorageUnavailableError(f"Request timed out: {method} {url}") from exc
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise StorageUnavailableError(f"Storage unreachable: {exc}") from exc
        raise_for_response(response, kind, record_id)
        return response

    # ── DocumentStore ────────────────────────────────────────

    async def create(self, kind: DocumentKind, owner_id: str, record: Record) -> Record:
        body = {k: v for k, v in record.items() if k != "id"}
        if kind is DocumentKind.QUOTATION and body.get("status", "draft") == "draft":
            url = f"{COLLECTIONS[kind]}/draft"
        else:
            url = f"{COLLECTIONS[kind]}/"
        response = await self._request("POST", url, kind, json=body)
        return response.json()

    async def get(self, kind: DocumentKind, owner_id: str, record_id: str) -> Record:
        response = await self._request("GET", f"{COLLECTIONS[kind]}/{record_id}", kind, record_id)
        return response.json()

    async def update(
        self, kind: DocumentKind, owner_id: str, record_id: str, record: Record
    ) -> Record:
        body = {k: v for k, v in record.items() if k != "id"}
        if kind is DocumentKind.QUOTATION and body.get("status") == "draft":
            response = await self._request(
                "POST", f"{COLLECTIONS[kind]}/draft", kind, record_id, json={**body, "id": record_id}
            )
        else:
            response = await self._request(
                "PATCH", f"{COLLECTIONS[kind]}/{record_id}", kind, record_id, json=body
            )
        return response.json()

    async def delete(self, kind: DocumentKind, owner_id: str, record_id: str) -> None:
        await self._request("DELETE", f"{COLLECTIONS[kind]}/{record_id}", kind, record_id)

    async def list(
        self, kind: DocumentKind, owner_id: str, *, status: str | None = None
    ) -> list[Record]:
        if kind is DocumentKind.QUOTATION and status == "draft":
            response = await self._request("GET", f"{COLLECTIONS[kind]}/draft", kind)
        else:
            params = {"status": status} if status else None
            response = await self._request("GET", f"{COLLECTIONS[kind]}/", kind, params=params)
        return response.json()
