"""
storefront/config.py - Application configuration and Firebase initialization.

This module defines a Pydantic BaseSettings class to load configuration from environment,
and lazily initializes the Firebase Admin SDK (Firestore DB) using the provided credentials.
Other modules import `get_settings()` and `get_db()` instead of module level globals so the
app can be imported (and tested) without credentials on disk.
"""
import logging
from functools import lru_cache
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("storefront.config")


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""
    firebase_cred_file: str = Field('firebase_service_account.json', description="Service account JSON path")
    firebase_project_id: Optional[str] = Field(None, description="Defaults to the project in the credentials")
    firebase_collection_prefix: str = Field('', description="Prefix for every collection name (e.g. 'dev_')")

    # Firebase credentials from environment variables (for Cloud Run)
    firebase_private_key_id: Optional[str] = None
    firebase_private_key: Optional[str] = None
    firebase_client_email: Optional[str] = None
    firebase_client_id: Optional[str] = None
    firebase_token_uri: str = "https://oauth2.googleapis.com/token"

    debug: bool = False
    log_level: str = "INFO"
    allowed_origins: str = Field('*', description="Comma-separated list or '*' for all")
    # Accept "mock_jwt_token_<uid>" bearer tokens. Development only.
    allow_mock_tokens: bool = False

    catalog_page_size: int = Field(12, ge=1)
    catalog_max_page_size: int = Field(100, ge=1)
    featured_limit: int = Field(8, ge=1)

    cart_max_line_quantity: int = Field(99, ge=1)
    # Re-clamp the merged quantity to min(stock, cap) when an existing line is incremented.
    cart_clamp_on_increment: bool = True

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def origins(self) -> list:
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(',') if origin.strip()]

    def collection(self, name: str) -> str:
        prefix = (self.firebase_collection_prefix or "").strip()
        return f"{prefix}{name}" if prefix else name


@lru_cache
def get_settings() -> Settings:
    return Settings()


def _credentials(settings: Settings):
    # Cloud Run: credentials come from the environment
    if all([
        settings.firebase_private_key_id,
        settings.firebase_private_key,
        settings.firebase_client_email,
        settings.firebase_client_id,
    ]):
        cred_dict = {
            "type": "service_account",
            "project_id": settings.firebase_project_id,
            "private_key_id": settings.firebase_private_key_id,
            "private_key": settings.firebase_private_key.replace("\\n", "\n"),
            "client_email": settings.firebase_client_email,
            "client_id": settings.firebase_client_id,
            "token_uri": settings.firebase_token_uri,
        }
        return credentials.Certificate(cred_dict)
    # Local development: service account file
    return credentials.Certificate(settings.firebase_cred_file)


@lru_cache
def get_firebase_app() -> firebase_admin.App:
    settings = get_settings()
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    options = {'projectId': settings.firebase_project_id} if settings.firebase_project_id else None
    app = firebase_admin.initialize_app(_credentials(settings), options)
    logger.info("Firebase app initialized (project=%s)", app.project_id)
    return app


@lru_cache
def get_db():
    """Firestore client bound to the default Firebase app."""
    return firestore.client(app=get_firebase_app())
