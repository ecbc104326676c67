"""
havendrip/config.py - Application configuration and Firebase initialization.

This module defines a Pydantic BaseSettings class to load configuration from environment,
and lazily initializes the Firebase Admin SDK (Firestore) using the provided credentials.
Other modules import `get_settings()` and `get_db()` instead of module-level globals so
that importing the package never opens a connection.
"""
from functools import lru_cache
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""
    firebase_cred_file: str = Field('firebase_service_account.json', alias='FIREBASE_CRED_FILE')
    firebase_project_id: Optional[str] = Field(None, alias='FIREBASE_PROJECT_ID')

    # Firebase credentials from environment variables (for Cloud Run)
    firebase_private_key_id: Optional[str] = Field(None, alias='FIREBASE_PRIVATE_KEY_ID')
    firebase_private_key: Optional[str] = Field(None, alias='FIREBASE_PRIVATE_KEY')
    firebase_client_email: Optional[str] = Field(None, alias='FIREBASE_CLIENT_EMAIL')
    firebase_client_id: Optional[str] = Field(None, alias='FIREBASE_CLIENT_ID')
    firebase_token_uri: str = Field('https://oauth2.googleapis.com/token', alias='FIREBASE_TOKEN_URI')

    # Collections are shared between environments; staging uses a prefix (e.g. "stg_").
    collection_prefix: str = Field('', alias='FIREBASE_COLLECTION_PREFIX')

    # Remote call policy
    remote_timeout_seconds: float = Field(10.0, alias='HAVENDRIP_REMOTE_TIMEOUT_SECONDS')
    read_retry_deadline_seconds: float = Field(20.0, alias='HAVENDRIP_READ_RETRY_DEADLINE_SECONDS')

    currency: str = Field('INR', alias='CURRENCY')
    debug: bool = Field(False, alias='DEBUG')
    log_level: str = Field('INFO', alias='LOG_LEVEL')
    allowed_origins: str = Field('*', alias='ALLOWED_ORIGINS')  # Comma-separated list or '*' for all

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    def collection(self, name: str) -> str:
        """Prefix-aware collection name."""
        prefix = (self.collection_prefix or "").strip()
        return f"{prefix}{name}" if prefix else name

    @property
    def origins(self) -> list:
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(',') if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()


def _credential(settings: Settings):
    # Cloud Run passes the service account inline; local development uses the JSON file.
    if all([
        settings.firebase_private_key_id,
        settings.firebase_private_key,
        settings.firebase_client_email,
        settings.firebase_client_id,
    ]):
        return credentials.Certificate({
            "type": "service_account",
            "project_id": settings.firebase_project_id,
            "private_key_id": settings.firebase_private_key_id,
            "private_key": settings.firebase_private_key.replace("\\n", "\n"),
            "client_email": settings.firebase_client_email,
            "client_id": settings.firebase_client_id,
            "token_uri": settings.firebase_token_uri,
        })
    return credentials.Certificate(settings.firebase_cred_file)


@lru_cache()
def get_firebase_app() -> firebase_admin.App:
    settings = get_settings()
    try:
        return firebase_admin.get_app()
    except ValueError:
        # No default app yet
        options = {'projectId': settings.firebase_project_id} if settings.firebase_project_id else None
        return firebase_admin.initialize_app(_credential(settings), options)


@lru_cache()
def get_db():
    """Firestore client bound to the default Firebase app."""
    return firestore.client(app=get_firebase_app())
