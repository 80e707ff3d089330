import logging

from controlclin.core.config import settings
from controlclin.db.models import Clinic
from tests.helpers import auth_headers

API = settings.API_V1_STR


class TestAuthEndpoints:
    async def test_dev_bypass_login(self, client, monkeypatch, caplog):
        monkeypatch.setattr(settings, "DEV_AUTH_BYPASS", True)
        with caplog.at_level(logging.WARNING, logger="controlclin"):
            response = await client.post(f"{API}/auth/login", json={
                "clinic_slug": "control", "email": "camila@control.com", "password": "123",
            })

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["professional_id"] == "p2"
        assert "INSECURE" in caplog.text

        me = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.json()["id"] == "u2"

    async def test_bad_credentials(self, client):
        response = await client.post(f"{API}/auth/login", json={
            "clinic_slug": "control", "email": "camila@control.com", "password": "123",
        })
        assert response.status_code == 401

    async def test_unknown_clinic(self, client):
        response = await client.post(f"{API}/auth/login", json={
            "clinic_slug": "nowhere", "email": "a@b.com", "password": "x",
        })
        assert response.status_code == 404

    async def test_token_required(self, client):
        assert (await client.get(f"{API}/patients/")).status_code == 401
        bad = await client.get(f"{API}/patients/", headers={"Authorization": "Bearer not-a-token"})
        assert bad.status_code == 401


class TestPatientEndpoints:
    async def test_professional_sees_own_patients(self, client, store, professional):
        store.state.patients.update("pt2", assigned_professional_id="p2")
        response = await client.get(f"{API}/patients/", headers=auth_headers(professional))

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == ["pt2"]

    async def test_professional_cannot_widen_scope(self, client, professional):
        response = await client.get(f"{API}/patients/", params={"mode": "ADMIN"}, headers=auth_headers(professional))
        assert response.json() == []

    async def test_admin_sees_everyone(self, client, clinic_admin):
        response = await client.get(f"{API}/patients/", headers=auth_headers(clinic_admin))
        assert len(response.json()) == 3

    async def test_hidden_patient_is_404(self, client, professional):
        response = await client.get(f"{API}/patients/pt1", headers=auth_headers(professional))
        assert response.status_code == 404

    async def test_create_and_report(self, client, clinic_admin):
        created = await client.post(f"{API}/patients/", json={"name": "Joana Lima", "gender": "FEMALE"},
                                    headers=auth_headers(clinic_admin))
        assert created.status_code == 200
        patient_id = created.json()["id"]

        report = await client.get(f"{API}/patients/{patient_id}/report", headers=auth_headers(clinic_admin))
        assert report.status_code == 200
        assert report.json()["anthropometry"]["has_sufficient_data"] is False

    async def test_validation_error_status(self, client, clinic_admin):
        response = await client.post(f"{API}/patients/pt2/notes", json={"content": "  "},
                                     headers=auth_headers(clinic_admin))
        assert response.status_code == 422


class TestDashboardAndSync:
    async def test_dashboard(self, client, clinic_admin):
        response = await client.get(f"{API}/dashboard/", headers=auth_headers(clinic_admin))
        assert response.status_code == 200

    async def test_sync_status(self, client, clinic_admin):
        response = await client.get(f"{API}/sync/status", headers=auth_headers(clinic_admin))
        body = response.json()
        assert body["remote_enabled"] is False
        assert body["active_tenant_id"] == "c1"

    async def test_force_sync_without_remote(self, client, clinic_admin, professional):
        assert (await client.post(f"{API}/sync/force", headers=auth_headers(professional))).status_code == 403
        assert (await client.post(f"{API}/sync/force", headers=auth_headers(clinic_admin))).status_code == 502

    async def test_backfill(self, client, clinic_admin):
        response = await client.post(f"{API}/sync/backfill", headers=auth_headers(clinic_admin))
        assert response.json() == {"tenant_id": "c1", "created": 6}

    async def test_force_sync_targets_caller_clinic(self, client, store, remote_store, document_client, clinic_admin):
        store.remote = remote_store
        store.state.tenants.add(Clinic(id="c2", name="Other Clinic", slug="other"))
        store.active_tenant_id = "c2"

        response = await client.post(f"{API}/sync/force", headers=auth_headers(clinic_admin))

        assert response.status_code == 200
        assert "tenants/c1/data/main" in document_client.documents
        assert "tenants/c2/data/main" not in document_client.documents
