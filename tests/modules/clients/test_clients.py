from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.company.models import Company


class TestClientEndpoints:
    """Tests for client and provider CRUD endpoints."""

    async def test_create_uses_company_payment_terms(
        self, client: AsyncClient, company: Company
    ):
        response = await client.post("/api/v1/clients", json={"name": "  Bodegas Sur  "})
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "Bodegas Sur"
        assert data["payment_terms_days"] == 30
        assert data["company_id"] == company.id

    async def test_blank_name_rejected(self, client: AsyncClient, company: Company):
        response = await client.post("/api/v1/clients", json={"name": "   "})
        assert response.status_code == 422

    async def test_update_search_and_delete(self, client: AsyncClient, company: Company):
        created = await client.post(
            "/api/v1/clients", json={"name": "Clínica Dental Mar", "tax_id": "B11111111"}
        )
        client_id = created.json()["data"]["id"]

        updated = await client.put(f"/api/v1/clients/{client_id}", json={"payment_terms_days": 45})
        assert updated.status_code == 200
        assert updated.json()["data"]["payment_terms_days"] == 45

        found = await client.get("/api/v1/clients", params={"q": "B1111"})
        assert found.json()["data"]["total"] == 1

        deleted = await client.delete(f"/api/v1/clients/{client_id}")
        assert deleted.status_code == 200
        assert (await client.get(f"/api/v1/clients/{client_id}")).status_code == 404

    async def test_provider_crud(self, client: AsyncClient, company: Company):
        created = await client.post(
            "/api/v1/providers", json={"name": "Papelería Central", "payment_terms_days": 0}
        )
        assert created.status_code == 201
        provider_id = created.json()["data"]["id"]
        assert created.json()["data"]["payment_terms_days"] == 0

        listing = await client.get("/api/v1/providers")
        assert listing.json()["data"]["total"] == 1

        assert (await client.delete(f"/api/v1/providers/{provider_id}")).status_code == 200
        assert (await client.get(f"/api/v1/providers/{provider_id}")).status_code == 404

    async def test_audit_trail(self, client: AsyncClient, db_session: AsyncSession, company: Company):
        created = await client.post("/api/v1/clients", json={"name": "Hotel Brisa"})
        client_id = created.json()["data"]["id"]

        response = await client.get(
            "/api/v1/audit", params={"entity_type": "Client", "entity_id": client_id}
        )
        assert response.status_code == 200
        items = response.json()["data"]["items"]
        assert [item["action"] for item in items] == ["CREATE"]

    async def test_duplicate_tax_id(self, client: AsyncClient, company: Company):
        first = await client.post("/api/v1/clients", json={"name": "Uno", "tax_id": "B22222222"})
        assert first.status_code == 201

        second = await client.post("/api/v1/clients", json={"name": "Dos", "tax_id": "B22222222"})
        assert second.status_code == 409
        assert second.json()["errors"][0]["field"] == "tax_id"
