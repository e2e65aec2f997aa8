"""Integration tests for authentication endpoints."""

import pytest
from sqlmodel import select
from tests.conftest import auth_headers

from taskflow.core.security import create_access_token
from taskflow.models import User
from taskflow.services.identity import (
    FIREBASE_PROVIDER,
    TokenVerificationError,
    TokenVerifier,
    VerifiedIdentity,
    get_external_verifier,
)
from taskflow.main import app


class FakeExternalVerifier(TokenVerifier):
    """External verifier that accepts a single known token."""

    def __init__(self, identity: VerifiedIdentity | None = None, available: bool = True):
        self.identity = identity
        self.available = available

    @property
    def name(self) -> str:
        return FIREBASE_PROVIDER

    @property
    def is_available(self) -> bool:
        return self.available

    async def verify(self, token: str) -> VerifiedIdentity:
        if self.identity is None or token != "good-token":
            raise TokenVerificationError(self.name, "rejected")
        return self.identity


@pytest.mark.asyncio
class TestLogin:
    """Tests for login endpoint."""

    async def test_login_success(self, client, regular_user):
        """Test successful login."""
        response = await client.post(
            "/api/auth/login",
            json={"email": "user@test.com", "password": "user123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Login successful"
        assert data["token"]
        assert data["user"]["email"] == "user@test.com"
        assert data["user"]["role"] == "user"
        assert data["user"]["lastLogin"] is not None
        assert "hashedPassword" not in data["user"]

    async def test_login_email_is_case_insensitive(self, client, regular_user):
        """Test login normalizes the email address."""
        response = await client.post(
            "/api/auth/login",
            json={"email": "USER@Test.com", "password": "user123"},
        )

        assert response.status_code == 200

    async def test_login_wrong_password(self, client, regular_user):
        """Test login with wrong password."""
        response = await client.post(
            "/api/auth/login",
            json={"email": "user@test.com", "password": "wrongpassword"},
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid credentials"}

    async def test_login_nonexistent_user(self, client):
        """Test login with nonexistent user."""
        response = await client.post(
            "/api/auth/login",
            json={"email": "nobody@test.com", "password": "password"},
        )

        assert response.status_code == 401

    async def test_login_inactive_user(self, client, inactive_user):
        """Test inactive accounts cannot log in."""
        response = await client.post(
            "/api/auth/login",
            json={"email": "inactive@test.com", "password": "inactive123"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Account is inactive."

    async def test_login_validation_error(self, client):
        """Test malformed login payload returns field errors."""
        response = await client.post("/api/auth/login", json={"email": "not-an-email"})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Validation failed"
        fields = {error["field"] for error in data["errors"]}
        assert {"email", "password"} <= fields


@pytest.mark.asyncio
class TestRegister:
    """Tests for self-registration."""

    async def test_register_success(self, client):
        """Test registering creates a regular user and returns a token."""
        response = await client.post(
            "/api/auth/register",
            json={"name": " New User ", "email": "New@Test.com", "password": "secret1"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User registered successfully"
        assert data["user"]["name"] == "New User"
        assert data["user"]["email"] == "new@test.com"
        assert data["user"]["role"] == "user"
        assert data["user"]["status"] == "active"

        profile = await client.get("/api/auth/profile", headers=auth_headers(data["token"]))
        assert profile.status_code == 200

    async def test_register_duplicate_email(self, client, regular_user):
        """Test registering an existing email fails."""
        response = await client.post(
            "/api/auth/register",
            json={"name": "Dup", "email": "user@test.com", "password": "secret1"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "User with this email already exists"

    async def test_register_short_password(self, client):
        """Test passwords shorter than six characters are rejected."""
        response = await client.post(
            "/api/auth/register",
            json={"name": "Short", "email": "short@test.com", "password": "123"},
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "password"


@pytest.mark.asyncio
class TestProfile:
    """Tests for current user endpoint."""

    async def test_profile_authenticated(self, client, user_token):
        """Test getting current user when authenticated."""
        response = await client.get(
            "/api/auth/profile",
            headers=auth_headers(user_token),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["user"]["email"] == "user@test.com"

    async def test_profile_no_token(self, client):
        """Test getting current user when not authenticated."""
        response = await client.get("/api/auth/profile")

        assert response.status_code == 401
        assert response.json()["message"] == "Access denied. No token provided."

    async def test_profile_invalid_token(self, client):
        """Test a garbage token is rejected."""
        response = await client.get("/api/auth/profile", headers=auth_headers("garbage"))

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token."
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_profile_unknown_user(self, client):
        """Test a valid token for a missing user is rejected."""
        token = create_access_token(subject=9999)
        response = await client.get("/api/auth/profile", headers=auth_headers(token))

        assert response.status_code == 401
        assert response.json()["message"] == "User not found."

    async def test_profile_inactive_user(self, client, inactive_user):
        """Test a token for a deactivated account is rejected."""
        token = create_access_token(subject=inactive_user.id)
        response = await client.get("/api/auth/profile", headers=auth_headers(token))

        assert response.status_code == 401
        assert response.json()["message"] == "Account is inactive."


@pytest.mark.asyncio
class TestGoogleLogin:
    """Tests for external identity sign-in."""

    @pytest.fixture
    def external_identity(self):
        identity = VerifiedIdentity(
            provider=FIREBASE_PROVIDER,
            subject="firebase-uid-1",
            email="Google.User@test.com",
            name="Google User",
            claims={"email_verified": True},
        )
        app.dependency_overrides[get_external_verifier] = lambda: FakeExternalVerifier(identity)
        yield identity
        app.dependency_overrides.pop(get_external_verifier, None)

    async def test_google_creates_user(self, client, external_identity):
        """Test first sign-in creates a regular user."""
        response = await client.post("/api/auth/google", json={"token": "good-token"})

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == "google.user@test.com"
        assert data["user"]["name"] == "Google User"
        assert data["user"]["role"] == "user"

        again = await client.post("/api/auth/google", json={"token": "good-token"})
        assert again.json()["user"]["id"] == data["user"]["id"]

    async def test_google_links_existing_email(self, client, external_identity):
        """Test sign-in links to an existing account with the same email."""
        register = await client.post(
            "/api/auth/register",
            json={"name": "Existing", "email": "google.user@test.com", "password": "secret1"},
        )
        response = await client.post("/api/auth/google", json={"token": "good-token"})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == register.json()["user"]["id"]

    async def test_google_unverified_email_does_not_link(self, client, test_session, admin_user):
        """Test an unverified email cannot take over an existing account."""
        identity = VerifiedIdentity(
            provider=FIREBASE_PROVIDER,
            subject="attacker-uid",
            email="admin@test.com",
            claims={"email_verified": False},
        )
        app.dependency_overrides[get_external_verifier] = lambda: FakeExternalVerifier(identity)
        try:
            response = await client.post("/api/auth/google", json={"token": "good-token"})
        finally:
            app.dependency_overrides.pop(get_external_verifier, None)

        assert response.status_code == 401
        assert "token" not in response.json()
        await test_session.refresh(admin_user)
        assert admin_user.firebase_uid is None

    async def test_google_missing_verification_claim_creates_nothing(self, client, test_session):
        """Test an identity without the verification claim does not create a user."""
        identity = VerifiedIdentity(
            provider=FIREBASE_PROVIDER,
            subject="unverified-uid",
            email="new.person@test.com",
        )
        app.dependency_overrides[get_external_verifier] = lambda: FakeExternalVerifier(identity)
        try:
            response = await client.post("/api/auth/google", json={"token": "good-token"})
        finally:
            app.dependency_overrides.pop(get_external_verifier, None)

        assert response.status_code == 401
        result = await test_session.execute(select(User).where(User.email == "new.person@test.com"))
        assert result.scalar_one_or_none() is None

    async def test_google_rejects_bad_token(self, client, external_identity):
        """Test a token the provider rejects returns 401."""
        response = await client.post("/api/auth/google", json={"token": "bad-token"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token."

    async def test_google_not_configured(self, client):
        """Test sign-in is unavailable without a configured provider."""
        app.dependency_overrides[get_external_verifier] = lambda: FakeExternalVerifier(
            available=False
        )
        try:
            response = await client.post("/api/auth/google", json={"token": "good-token"})
        finally:
            app.dependency_overrides.pop(get_external_verifier, None)

        assert response.status_code == 503
