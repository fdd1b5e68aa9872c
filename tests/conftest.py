"""Shared test fixtures."""

import json
from unittest.mock import MagicMock

import pytest

from config import Settings

DEFAULT_SETTINGS = dict(
    ves_api_key="ves-key",
    ves_api_url="https://ves.example/vehicles",
    ves_enabled=True,
    demo_mode=False,
    mot_api_key="mot-key",
    mot_api_url="https://mot.example",
    mot_token_url="https://login.example/token",
    mot_client_id="client-id",
    mot_client_secret="client-secret",
    mot_scope="https://tapi.dvsa.gov.uk/.default",
    timeout=5.0,
    token_expiry_margin=30.0,
    rate_limit_window=60,
    rate_limit_max_requests=10,
    cors_allow_origin=["*"],
    workers=2,
    log_level="INFO",
)


def build_settings(**overrides):
    return Settings(**{**DEFAULT_SETTINGS, **overrides})


def build_response(status_code=200, body=None, text=None):
    """Stand-in for requests.Response with just what the clients read."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text if text is not None else json.dumps(body)
    return response


@pytest.fixture
def make_settings():
    return build_settings


@pytest.fixture
def settings():
    return build_settings()


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def session():
    """Fake requests.Session; set .post/.get return values per test."""
    return MagicMock()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable load_settings() reads."""
    for name in (
        "VES_API_KEY", "DVLA_API_KEY", "VES_API_URL", "VES_ENABLED", "LOOKUP_DEMO_MODE",
        "MOT_API_KEY", "DVSA_API_KEY", "MOT_API_TOKEN", "MOT_API_URL", "DVSA_BASE_URL",
        "MOT_TOKEN_URL", "DVSA_TOKEN_URL", "MOT_CLIENT_ID", "DVSA_CLIENT_ID",
        "MOT_CLIENT_SECRET", "DVSA_CLIENT_SECRET", "MOT_SCOPE", "DVSA_SCOPE_URL",
        "UPSTREAM_TIMEOUT", "TOKEN_EXPIRY_MARGIN", "RATE_LIMIT_WINDOW",
        "RATE_LIMIT_MAX_REQUESTS", "CORS_ALLOW_ORIGIN", "LOOKUP_WORKERS", "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
