"""Tests for registration, login, and bearer token validation."""

import pytest
from datetime import timedelta

import jwt as pyjwt

from taskmanager.auth.jwt import (
    JWT_ALGORITHM,
    JWT_SECRET_KEY,
    create_access_token,
    decode_access_token,
    get_user_id_from_token,
)
from taskmanager.auth.passwords import hash_password, verify_password
from taskmanager.services.auth_service import (
    AuthService,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidPasswordError,
    UserExistsError,
)


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = hash_password("s3cret!")
        assert hashed != "s3cret!"
        assert verify_password("s3cret!", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_verify_against_garbage_hash(self):
        assert verify_password("s3cret!", "not-a-bcrypt-hash") is False


class TestTokens:

    def test_round_trip(self):
        token = create_access_token("user-1")
        payload = decode_access_token(token)

        assert payload["sub"] == "user-1"
        assert payload["exp"] - payload["iat"] == 15 * 60

    def test_expired_token_is_rejected(self):
        token = create_access_token("user-1", expires_delta=timedelta(seconds=-1))
        assert get_user_id_from_token(token) is None

    def test_wrong_signature_is_rejected(self):
        token = pyjwt.encode({"sub": "user-1"}, "another-secret", algorithm=JWT_ALGORITHM)
        assert get_user_id_from_token(token) is None

    def test_malformed_token_is_rejected(self):
        assert decode_access_token("not.a.token") is None


class TestAuthService:

    @pytest.fixture
    def auth_service(self, user_repository):
        return AuthService(user_repository)

    def test_register_and_login(self, auth_service):
        user = auth_service.register("New@Example.com", "hunter22")

        assert user.email == "new@example.com"
        assert user.password_hash != "hunter22"

        token = auth_service.login("new@example.com", "hunter22")
        assert get_user_id_from_token(token) == user.id

    @pytest.mark.parametrize("email", ["", "plainaddress", "a@b", "two words@example.com"])
    def test_invalid_email(self, auth_service, email):
        with pytest.raises(InvalidEmailError):
            auth_service.register(email, "hunter22")

    def test_short_password(self, auth_service):
        with pytest.raises(InvalidPasswordError):
            auth_service.register("short@example.com", "12345")

    def test_duplicate_email(self, auth_service):
        auth_service.register("dup@example.com", "hunter22")
        with pytest.raises(UserExistsError):
            auth_service.register("DUP@example.com", "different")

    def test_login_wrong_password(self, auth_service):
        auth_service.register("me@example.com", "hunter22")
        with pytest.raises(InvalidCredentialsError):
            auth_service.login("me@example.com", "hunter23")

    def test_login_unknown_email(self, auth_service):
        with pytest.raises(InvalidCredentialsError):
            auth_service.login("nobody@example.com", "hunter22")


class TestAuthEndpoints:

    def test_register(self, test_client):
        response = test_client.post("/api/auth/register", json={"email": "api@example.com", "password": "hunter22"})

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "api@example.com"
        assert "password_hash" not in data

    def test_register_validation_errors(self, test_client):
        bad_email = test_client.post("/api/auth/register", json={"email": "nope", "password": "hunter22"})
        short_password = test_client.post("/api/auth/register", json={"email": "ok@example.com", "password": "123"})
        missing_field = test_client.post("/api/auth/register", json={"email": "ok@example.com"})

        assert bad_email.status_code == 400
        assert short_password.status_code == 400
        assert missing_field.status_code == 400

    def test_register_existing_email_conflicts(self, test_client):
        # test@example.com is seeded by the fixtures
        response = test_client.post("/api/auth/register", json={"email": "test@example.com", "password": "hunter22"})
        assert response.status_code == 409

    def test_login(self, test_client, test_user_id):
        response = test_client.post("/api/auth/login", json={"email": "test@example.com", "password": "password123"})

        assert response.status_code == 200
        assert get_user_id_from_token(response.json()["token"]) == test_user_id

    def test_login_bad_password(self, test_client):
        response = test_client.post("/api/auth/login", json={"email": "test@example.com", "password": "nope-nope"})
        assert response.status_code == 401

    def test_protected_route_requires_token(self, test_client):
        assert test_client.get("/api/tasks").status_code == 401

    def test_expired_token(self, test_client, test_user_id):
        token = create_access_token(test_user_id, expires_delta=timedelta(seconds=-1))
        response = test_client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_malformed_token(self, test_client):
        response = test_client.get("/api/tasks", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    def test_token_for_unknown_user(self, test_client):
        token = create_access_token("deleted-user")
        response = test_client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_token_forged_with_other_secret(self, test_client, test_user_id):
        token = pyjwt.encode({"sub": test_user_id}, JWT_SECRET_KEY + "-forged", algorithm=JWT_ALGORITHM)
        response = test_client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
