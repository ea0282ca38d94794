"""Quotation endpoint tests."""

import pytest
from httpx import AsyncClient

DRAFT = {
    "quotation_number": "QT-TEST-0001",
    "date": "2026-03-01",
    "valid_until": "2026-03-31",
    "project_title": "Office fit-out",
    "client_name": "Jane Tan",
    "client_company": "Acme Sdn Bhd",
    "items": [
        {"id": "i1", "description": "Desk", "unitPrice": 450, "quantity": 4, "unit": "pcs"},
        {"id": "i2", "description": "Chair", "unitPrice": 120, "quantity": 4},
    ],
    "discount_value": 100,
    "shipping": 50,
    "terms": "Payment within 30 days\nDelivery in 14 days",
    "client_id": "client-1",
}


@pytest.mark.api
@pytest.mark.asyncio
class TestDraftUpsert:

    async def test_create_draft(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/api/quotations/draft", json=DRAFT, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["id"]
        assert data["status"] == "draft"
        assert data["quotation_number"] == "QT-TEST-0001"
        assert data["subtotal"] == 2280.0
        assert data["total"] == 2230.0
        assert data["items"][0]["lineTotal"] == 1800.0
        assert data["client_id"] == "client-1"

    async def test_update_draft_by_id(self, client: AsyncClient, auth_headers: dict):
        created = (
            await client.post("/api/quotations/draft", json=DRAFT, headers=auth_headers)
        ).json()

        response = await client.post(
            "/api/quotations/draft",
            json={"id": created["id"], "project_title": "Renamed", "shipping": 0},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == created["id"]
        assert data["project_title"] == "Renamed"
        assert data["total"] == 2180.0
        assert data["quotation_number"] == "QT-TEST-0001"

        drafts = (await client.get("/api/quotations/draft", headers=auth_headers)).json()
        assert len(drafts) == 1

    async def test_client_totals_are_recomputed(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/quotations/draft",
            json={**DRAFT, "subtotal": 1, "total": 1},
            headers=auth_headers,
        )
        assert response.json()["total"] == 2230.0

    async def test_number_generated_when_missing(self, client: AsyncClient, auth_headers: dict):
        body = {k: v for k, v in DRAFT.items() if k != "quotation_number"}
        first = (await client.post("/api/quotations/draft", json=body, headers=auth_headers)).json()
        second = (await client.post("/api/quotations/draft", json=body, headers=auth_headers)).json()

        assert first["quotation_number"].startswith("QT-")
        assert first["quotation_number"].endswith("-0001")
        assert second["quotation_number"].endswith("-0002")

    async def test_update_unknown_draft(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/quotations/draft",
            json={**DRAFT, "id": "does-not-exist"},
            headers=auth_headers,
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    async def test_drafts_listed_newest_first(self, client: AsyncClient, auth_headers: dict):
        first = (await client.post("/api/quotations/draft", json=DRAFT, headers=auth_headers)).json()
        second = (await client.post("/api/quotations/draft", json=DRAFT, headers=auth_headers)).json()
        await client.post(
            "/api/quotations/draft",
            json={"id": first["id"], "project_title": "Touched"},
            headers=auth_headers,
        )

        drafts = (await client.get("/api/quotations/draft", headers=auth_headers)).json()
        assert [d["id"] for d in drafts] == [first["id"], second["id"]]

    async def test_sent_quotation_leaves_draft_list(self, client: AsyncClient, auth_headers: dict):
        created = (await client.post("/api/quotations/draft", json=DRAFT, headers=auth_headers)).json()
        await client.post(
            f"/api/quotations/{created['id']}/status",
            json={"status": "sent"},
            headers=auth_headers,
        )

        drafts = (await client.get("/api/quotations/draft", headers=auth_headers)).json()
        assert drafts == []
        response = await client.get(f"/api/quotations/draft/{created['id']}", headers=auth_headers)
        assert response.status_code == 404


@pytest.mark.api
@pytest.mark.asyncio
class TestQuotationCRUD:

    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/quotations/")
        assert response.status_code == 401

        response = await client.get(
            "/api/quotations/", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    async def test_get_patch_delete(self, client: AsyncClient, auth_headers: dict):
        created = (await client.post("/api/quotations/", json=DRAFT, headers=auth_headers)).json()
        url = f"/api/quotations/{created['id']}"

        response = await client.get(url, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["terms"] == DRAFT["terms"]

        response = await client.patch(url, json={"tax_amount": 12.5}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 2242.5

        response = await client.delete(url, headers=auth_headers)
        assert response.status_code == 204
        assert (await client.get(url, headers=auth_headers)).status_code == 404

    async def test_blank_term_lines_dropped(self, client: AsyncClient, auth_headers: dict):
        # Stored text is split on newlines; blank lines are dropped
        response = await client.post(
            "/api/quotations/",
            json={**DRAFT, "terms": "First\n\nSecond\n"},
            headers=auth_headers,
        )
        assert response.json()["terms"] == "First\nSecond"

    async def test_negative_amount_rejected(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/quotations/", json={**DRAFT, "shipping": -1}, headers=auth_headers
        )
        assert response.status_code == 422

    async def test_owner_isolation(
        self, client: AsyncClient, auth_headers: dict, other_headers: dict
    ):
        created = (await client.post("/api/quotations/", json=DRAFT, headers=auth_headers)).json()

        response = await client.get(f"/api/quotations/{created['id']}", headers=other_headers)
        assert response.status_code == 404
        response = await client.post(
            "/api/quotations/draft",
            json={"id": created["id"], "project_title": "Hijack"},
            headers=other_headers,
        )
        assert response.status_code == 404
        assert (await client.get("/api/quotations/", headers=other_headers)).json() == []

    async def test_status_filter(self, client: AsyncClient, auth_headers: dict):
        created = (await client.post("/api/quotations/", json=DRAFT, headers=auth_headers)).json()
        await client.post("/api/quotations/", json=DRAFT, headers=auth_headers)
        await client.post(
            f"/api/quotations/{created['id']}/status", json={"status": "sent"}, headers=auth_headers
        )

        sent = (await client.get("/api/quotations/?status=sent", headers=auth_headers)).json()
        assert [q["id"] for q in sent] == [created["id"]]


@pytest.mark.api
@pytest.mark.asyncio
class TestQuotationStatus:

    async def test_lifecycle(self, client: AsyncClient, auth_headers: dict):
        created = (await client.post("/api/quotations/", json=DRAFT, headers=auth_headers)).json()
        url = f"/api/quotations/{created['id']}/status"

        response = await client.post(url, json={"status": "sent"}, headers=auth_headers)
        assert response.status_code == 200
        response = await client.post(url, json={"status": "accepted"}, headers=auth_headers)
        assert response.json()["status"] == "accepted"

        response = await client.post(url, json={"status": "sent"}, headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"

    async def test_patch_status_is_validated(self, client: AsyncClient, auth_headers: dict):
        created = (await client.post("/api/quotations/", json=DRAFT, headers=auth_headers)).json()
        response = await client.patch(
            f"/api/quotations/{created['id']}", json={"status": "accepted"}, headers=auth_headers
        )
        assert response.status_code == 409

    async def test_expired_display_status(self, client: AsyncClient, auth_headers: dict):
        body = {**DRAFT, "date": "2020-01-01", "valid_until": "2020-01-31"}
        created = (await client.post("/api/quotations/", json=body, headers=auth_headers)).json()
        assert created["status"] == "draft"
        assert created["display_status"] == "expired"
