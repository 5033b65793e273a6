import pytest
from fastapi import HTTPException
from firebase_admin import auth as fb_auth
from firebase_admin import exceptions as fb_exceptions
from starlette.websockets import WebSocketDisconnect

from storefront.config import Settings
from storefront.core import auth as core_auth
from storefront.core.errors import RemoteQueryError


@pytest.fixture
def firebase(monkeypatch):
    """Replaces token verification; set `.result` or `.error`."""
    class _Verifier:
        result = None
        error = None
        calls = []

        def __call__(self, token, app=None, check_revoked=False):
            self.calls.append((token, check_revoked))
            if self.error is not None:
                raise self.error
            return self.result

    verifier = _Verifier()
    verifier.calls = []
    monkeypatch.setattr(core_auth.fb_auth, "verify_id_token", verifier)
    monkeypatch.setattr(core_auth, "get_firebase_app", lambda: None)
    return verifier


def test_verified_token_becomes_principal(firebase):
    firebase.result = {"uid": "u1", "email": "u1@example.com", "name": "User One",
                       "firebase": {"sign_in_provider": "password"}}
    principal = core_auth.principal_from_token("real-token", Settings())
    assert principal.uid == "u1"
    assert principal.email == "u1@example.com"
    assert principal.display_name == "User One"
    assert principal.provider == "password"
    assert firebase.calls == [("real-token", True)]


@pytest.mark.parametrize("error,detail", [
    (fb_auth.ExpiredIdTokenError("expired", None), "Token expired"),
    (fb_auth.RevokedIdTokenError("revoked"), "Session revoked"),
    (fb_auth.InvalidIdTokenError("bad signature"), "Invalid authentication token"),
    (ValueError("malformed"), "Invalid authentication token"),
])
def test_rejected_tokens_are_401(firebase, error, detail):
    firebase.error = error
    with pytest.raises(HTTPException) as exc_info:
        core_auth.principal_from_token("tok", Settings())
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == detail


@pytest.mark.parametrize("error", [
    fb_exceptions.UnavailableError("revocation lookup failed"),
    fb_exceptions.InternalError("backend error"),
])
def test_verification_outage_is_remote_error(firebase, error):
    firebase.error = error
    with pytest.raises(RemoteQueryError) as exc_info:
        core_auth.principal_from_token("tok", Settings())
    assert exc_info.value.operation == "verify_id_token"


def test_verification_outage_is_retryable_502(client, firebase):
    firebase.error = fb_exceptions.UnavailableError("revocation lookup failed")
    r = client.get("/orders", headers={"Authorization": "Bearer real-token"})
    assert r.status_code == 502
    assert r.json() == {"detail": "revocation lookup failed", "retryable": True}


def test_verification_outage_closes_cart_feed(client, firebase):
    firebase.error = fb_exceptions.UnavailableError("revocation lookup failed")
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/cart/ws?token=real-token") as ws:
            ws.receive_json()
    assert exc_info.value.code == 1011


def test_missing_token_is_401():
    with pytest.raises(HTTPException) as exc_info:
        core_auth.principal_from_token(None, Settings())
    assert exc_info.value.status_code == 401


def test_token_without_uid_is_401(firebase):
    firebase.result = {"email": "x@example.com"}
    with pytest.raises(HTTPException):
        core_auth.principal_from_token("tok", Settings())


def test_mock_tokens_only_when_enabled(firebase):
    firebase.error = fb_auth.InvalidIdTokenError("not a jwt")
    with pytest.raises(HTTPException):
        core_auth.principal_from_token("mock_jwt_token_alice", Settings(allow_mock_tokens=False))

    principal = core_auth.principal_from_token("mock_jwt_token_anonymous_42", Settings(allow_mock_tokens=True))
    assert principal.uid == "anonymous_42"
    assert principal.provider == "anonymous"
    assert firebase.calls == [("mock_jwt_token_alice", True)]


def test_me_returns_identity_fields(client, auth):
    body = client.get("/users/me", headers=auth("alice")).json()
    assert body["uid"] == "alice"
    assert body["provider"] == "password"


@pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer a b"])
def test_malformed_authorization_header(client, header):
    assert client.get("/users/me", headers={"Authorization": header}).status_code == 401
