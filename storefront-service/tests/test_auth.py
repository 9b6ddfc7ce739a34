import jwt
import pytest

from storefront import auth, config
from storefront.errors import InvalidCredentialsError, Unauthorized, UserExistsError, WeakPasswordError


class TestSessions:
    def test_issued_token_resolves_to_user(self, session, user):
        token = auth.issue_session(user.id)
        assert auth.verify_session(session, token) == user.id

    def test_token_has_no_expiry_by_default(self, user):
        claims = jwt.decode(auth.issue_session(user.id), options={"verify_signature": False})
        assert claims == {"id": user.id}

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
    def test_missing_or_malformed_token(self, session, token):
        with pytest.raises(Unauthorized):
            auth.verify_session(session, token)

    def test_token_signed_with_another_secret(self, session, user):
        forged = jwt.encode({"id": user.id}, "someone-else", algorithm="HS256")
        with pytest.raises(Unauthorized):
            auth.verify_session(session, forged)

    def test_token_for_deleted_user(self, session, user):
        token = auth.issue_session(user.id)
        session.delete(user)
        session.commit()
        with pytest.raises(Unauthorized):
            auth.verify_session(session, token)

    def test_expired_token_when_ttl_configured(self, session, user, monkeypatch):
        monkeypatch.setattr(config, "SESSION_TTL_SECONDS", -60)
        token = auth.issue_session(user.id)
        with pytest.raises(Unauthorized):
            auth.verify_session(session, token)


class TestRegistration:
    def test_register_returns_usable_token(self, session):
        token = auth.register_user(session, "Ann", "ann@example.com", "long-enough")
        user_id = auth.verify_session(session, token)
        assert auth.get_user(session, user_id).email == "ann@example.com"

    def test_password_is_hashed(self, session):
        auth.register_user(session, "Ann", "ann@example.com", "long-enough")
        user = auth.get_user_by_email(session, "ann@example.com")
        assert user.password_hash != "long-enough"
        assert auth.verify_password("long-enough", user.password_hash)

    def test_duplicate_email(self, session, user):
        with pytest.raises(UserExistsError):
            auth.register_user(session, "Jane again", user.email, "long-enough")

    def test_short_password(self, session):
        with pytest.raises(WeakPasswordError):
            auth.register_user(session, "Ann", "ann@example.com", "short")

    def test_login(self, session, user):
        token = auth.authenticate_user(session, user.email, "s3cret-pass")
        assert auth.verify_session(session, token) == user.id

    @pytest.mark.parametrize("email,password", [("jane@example.com", "wrong"), ("nobody@example.com", "s3cret-pass")])
    def test_login_rejected(self, session, user, email, password):
        with pytest.raises(InvalidCredentialsError):
            auth.authenticate_user(session, email, password)


class TestAuthEndpoints:
    def test_register_and_use_token(self, client, menu):
        r = client.post(
            "/v1/auth/register",
            json={"name": "Ann", "email": "ann@example.com", "password": "long-enough"},
        )
        assert r.status_code == 201
        token = r.json()["token"]

        r = client.post("/v1/cart/add", json={"food_item_id": menu["pizza"].id}, headers={"token": token})
        assert r.status_code == 200

    def test_register_invalid_email(self, client):
        r = client.post("/v1/auth/register", json={"name": "Ann", "email": "nope", "password": "long-enough"})
        assert r.status_code == 422

    def test_register_duplicate(self, client, user):
        r = client.post(
            "/v1/auth/register",
            json={"name": "Jane", "email": user.email, "password": "long-enough"},
        )
        assert r.status_code == 409
        assert r.json()["detail"]["code"] == "USER_EXISTS"

    def test_login(self, client, user):
        r = client.post("/v1/auth/login", json={"email": user.email, "password": "s3cret-pass"})
        assert r.status_code == 200
        assert r.json()["token"]

    def test_login_wrong_password(self, client, user):
        r = client.post("/v1/auth/login", json={"email": user.email, "password": "wrong-pass"})
        assert r.status_code == 401
        assert r.json()["detail"]["code"] == "INVALID_CREDENTIALS"

    def test_bearer_header_is_accepted(self, client, user):
        token = auth.issue_session(user.id)
        r = client.get("/v1/cart", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 200

    def test_missing_token(self, client):
        r = client.get("/v1/cart")
        assert r.status_code == 401
        assert r.json()["detail"]["code"] == "UNAUTHORIZED"
