import pytest

from controlclin.core.config import settings
from controlclin.core.exceptions import AuthenticationFailed, NotFound, PermissionDenied
from controlclin.core.security import decode_access_token
from controlclin.db.models import Role
from controlclin.schemas.auth import LoginRequest
from controlclin.schemas.clinic import ClinicCreate
from controlclin.services.auth_service import AuthService
from controlclin.services.clinic_service import ClinicService


@pytest.fixture
def dev_bypass(monkeypatch):
    monkeypatch.setattr(settings, "DEV_AUTH_BYPASS", True)


@pytest.fixture
async def acme(store, identity, super_admin):
    created = await ClinicService(store, identity).create_clinic(
        ClinicCreate(name="Acme", admin_name="Ada Admin", admin_email="ada@acme.com"), super_admin
    )
    return created


class TestDevBypass:
    async def test_unknown_email_provisions_professional(self, store, identity, acme, dev_bypass):
        response = await AuthService(store, identity).login(
            LoginRequest(clinic_slug="acme", email="doc@acme.com", password="123")
        )

        assert response.user.clinic_id == acme.clinic.id
        assert response.user.role == Role.PROFESSIONAL
        user = store.state.users.get(response.user.id)
        assert user.tenant_id == acme.clinic.id
        professional = store.state.professionals.get(user.professional_id)
        assert professional.tenant_id == acme.clinic.id
        assert professional.user_id == user.id
        assert professional.email == "doc@acme.com"

        persisted = store.local.load_all()
        assert any(u["id"] == user.id for u in persisted["users"])
        assert decode_access_token(response.access_token)["tenant_id"] == acme.clinic.id

    async def test_existing_user_is_reused(self, store, identity, dev_bypass):
        response = await AuthService(store, identity).login(
            LoginRequest(clinic_slug="control", email="camila@control.com", password="123")
        )
        assert response.user.id == "u2"
        assert len(store.state.users) == 4

    async def test_bypass_is_off_by_default(self, store, identity, acme):
        assert settings.DEV_AUTH_BYPASS is False
        with pytest.raises(AuthenticationFailed):
            await AuthService(store, identity).login(
                LoginRequest(clinic_slug="acme", email="doc@acme.com", password="123")
            )


class TestCredentialLogin:
    async def test_generated_admin_password_works(self, store, identity, acme):
        response = await AuthService(store, identity).login(LoginRequest(
            clinic_slug="acme", email="ada@acme.com", password=acme.admin_credentials.password,
        ))

        assert response.user.role == Role.CLINIC_ADMIN
        assert response.token_type == "bearer"
        assert decode_access_token(response.access_token)["sub"] == acme.admin.id

    async def test_wrong_password(self, store, identity, acme):
        with pytest.raises(AuthenticationFailed):
            await AuthService(store, identity).login(
                LoginRequest(clinic_slug="acme", email="ada@acme.com", password="nope")
            )

    async def test_login_without_profile_is_forbidden(self, store, identity):
        identity.register("stranger@control.com", "s3cret")
        with pytest.raises(PermissionDenied):
            await AuthService(store, identity).login(
                LoginRequest(clinic_slug="control", email="stranger@control.com", password="s3cret")
            )

    async def test_first_login_links_credential(self, store, identity):
        credential = identity.register("rangel@control.com", "s3cret")
        await AuthService(store, identity).login(
            LoginRequest(clinic_slug="control", email="Rangel@Control.com", password="s3cret")
        )
        assert store.state.users.get("u3").credential_ref == credential.uid

    async def test_super_admin_logs_into_any_clinic(self, store, identity, dev_bypass):
        response = await AuthService(store, identity).login(
            LoginRequest(clinic_slug="control", email="root@control.com", password="123")
        )
        assert response.user.role == Role.SUPER_ADMIN
        assert response.user.clinic_id == "c1"

    async def test_unknown_clinic(self, store, identity):
        with pytest.raises(NotFound):
            await AuthService(store, identity).login(
                LoginRequest(clinic_slug="nowhere", email="a@b.com", password="x")
            )

    async def test_disabled_credential(self, store, identity):
        credential = identity.register("rangel@control.com", "s3cret")
        identity.disable(credential.uid)
        with pytest.raises(AuthenticationFailed):
            await AuthService(store, identity).login(
                LoginRequest(clinic_slug="control", email="rangel@control.com", password="s3cret")
            )


class TestIdentityProvider:
    def test_sign_in_stamps_last_sign_in(self, identity):
        registered = identity.register(" Nova@Control.com ", "s3cret")
        assert registered.last_sign_in_at is None

        signed_in = identity.sign_in("nova@control.com", "s3cret")
        assert signed_in.uid == registered.uid
        assert signed_in.last_sign_in_at is not None
        assert identity.get_by_email("NOVA@control.com").last_sign_in_at is not None
