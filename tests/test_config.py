"""
Tests for settings validation and the health endpoints.
"""

import pytest
from pydantic import ValidationError

from app.core.config import Settings


class TestSettings:
    def test_production_requires_session_secret(self):
        with pytest.raises(ValidationError, match="SESSION_SECRET"):
            Settings(ENVIRONMENT="production", SESSION_SECRET="", DATABASE_URL="postgresql://db/portal")

    def test_production_requires_database(self):
        with pytest.raises(ValidationError, match="DATABASE_URL"):
            Settings(ENVIRONMENT="production", SESSION_SECRET="s3cret", DATABASE_URL="")

    def test_production_with_secrets(self):
        settings = Settings(ENVIRONMENT="production", SESSION_SECRET="s3cret", DATABASE_URL="postgresql://db/portal")
        assert settings.is_production
        assert settings.session_signing_key == "s3cret"

    def test_development_defaults(self):
        settings = Settings(ENVIRONMENT="development", SESSION_SECRET="", DATABASE_URL="")
        assert not settings.is_production
        assert settings.SQLALCHEMY_DATABASE_URL == settings.DEV_DATABASE_URL
        assert settings.SESSION_TTL_SECONDS == 7 * 24 * 60 * 60

    def test_cors_origins_from_comma_list(self):
        settings = Settings(BACKEND_CORS_ORIGINS="http://a.example, http://b.example")
        assert settings.BACKEND_CORS_ORIGINS == ["http://a.example", "http://b.example"]


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_detailed_health(self, client):
        response = client.get("/health/detailed")
        assert response.status_code == 200
        assert response.json()["checks"]["database"]["status"] == "healthy"
