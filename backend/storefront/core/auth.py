# storefront/core/auth.py
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from firebase_admin import auth as fb_auth
from firebase_admin import exceptions as fb_exceptions

from storefront.config import Settings, get_firebase_app, get_settings
from storefront.core.errors import RemoteQueryError
from storefront.schemas.principal import Principal

logger = logging.getLogger("storefront.auth")

MOCK_PREFIX = "mock_jwt_token_"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_bearer_token(request: Request) -> Optional[str]:
    """
    Reads the token from `Authorization: Bearer <id_token>`.
    Returns None when the header is missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _decode_mock_token(mock_token: str) -> dict:
    """
    Format: mock_jwt_token_<uid>, e.g. mock_jwt_token_anonymous_1234567890
    """
    uid = mock_token[len(MOCK_PREFIX):]
    if not uid:
        raise _unauthorized("Invalid mock token format")
    return {
        "uid": uid,
        "email": None,
        "name": None,
        "firebase": {
            "sign_in_provider": "anonymous" if "anonymous" in uid else "password"
        },
    }


def decode_id_token(id_token: str, settings: Settings) -> dict:
    """
    Verifies a Firebase ID token (revocation checked).
    Mock tokens are accepted only when ALLOW_MOCK_TOKENS is on.
    """
    if id_token.startswith(MOCK_PREFIX) and settings.allow_mock_tokens:
        return _decode_mock_token(id_token)

    firebase_app = get_firebase_app()
    try:
        return fb_auth.verify_id_token(id_token, app=firebase_app, check_revoked=True)
    except fb_auth.ExpiredIdTokenError:
        raise _unauthorized("Token expired")
    except fb_auth.RevokedIdTokenError:
        raise _unauthorized("Session revoked")
    except fb_auth.UserDisabledError:
        raise _unauthorized("User disabled")
    except (ValueError, fb_auth.InvalidIdTokenError, fb_auth.CertificateFetchError,
            fb_auth.UserNotFoundError) as exc:
        logger.debug("ID token rejected: %s", exc)
        raise _unauthorized("Invalid authentication token")
    except fb_exceptions.FirebaseError as exc:
        # Revocation lookup could not reach Firebase
        logger.warning("ID token verification failed: %s", exc)
        raise RemoteQueryError(str(exc), "verify_id_token") from exc


def token_to_principal(decoded: dict) -> Principal:
    uid = decoded.get("uid") or decoded.get("user_id")
    if not uid:
        raise _unauthorized("Token missing uid.")

    firebase_info = decoded.get("firebase") or {}
    return Principal(
        uid=uid,
        email=decoded.get("email"),
        display_name=decoded.get("name"),
        provider=firebase_info.get("sign_in_provider"),
    )


def principal_from_token(token: Optional[str], settings: Settings) -> Principal:
    if not token:
        raise _unauthorized("Authentication credentials were not provided")
    return token_to_principal(decode_id_token(token, settings))


# --------- FastAPI Dependencies --------- #

def get_principal(request: Request, settings: Settings = Depends(get_settings)) -> Principal:
    """Token required: verifies it and returns the caller."""
    return principal_from_token(_extract_bearer_token(request), settings)
