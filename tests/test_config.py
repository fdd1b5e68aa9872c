"""Tests for environment-driven settings."""

import logging

from config import MOT_API_URL, MOT_SCOPE, VES_API_URL, load_settings, setup_logging


class TestLoadSettings:
    def test_defaults(self, clean_env):
        settings = load_settings()
        assert settings.ves_api_key is None
        assert settings.ves_api_url == VES_API_URL
        assert settings.ves_enabled is True
        assert settings.demo_mode is False
        assert settings.mot_api_url == MOT_API_URL
        assert settings.mot_scope == MOT_SCOPE
        assert settings.timeout == 5.0
        assert settings.token_expiry_margin == 30.0
        assert settings.cors_allow_origin == ["*"]

    def test_read_at_call_time(self, clean_env):
        assert load_settings().mot_api_key is None
        clean_env.setenv("MOT_API_KEY", "later")
        assert load_settings().mot_api_key == "later"

    def test_legacy_names(self, clean_env):
        clean_env.setenv("DVLA_API_KEY", "dvla")
        clean_env.setenv("DVSA_API_KEY", "dvsa")
        clean_env.setenv("DVSA_BASE_URL", "https://history.example/")
        clean_env.setenv("DVSA_TOKEN_URL", "https://login.example/token")
        clean_env.setenv("DVSA_SCOPE_URL", "scope")

        settings = load_settings()

        assert settings.ves_api_key == "dvla"
        assert settings.mot_api_key == "dvsa"
        assert settings.mot_api_url == "https://history.example"
        assert settings.mot_token_url == "https://login.example/token"
        assert settings.mot_scope == "scope"

    def test_blank_values_are_missing(self, clean_env):
        clean_env.setenv("VES_API_KEY", "   ")
        assert load_settings().ves_api_key is None

    def test_booleans_and_numbers(self, clean_env):
        clean_env.setenv("VES_ENABLED", "false")
        clean_env.setenv("LOOKUP_DEMO_MODE", "Yes")
        clean_env.setenv("UPSTREAM_TIMEOUT", "2.5")
        clean_env.setenv("RATE_LIMIT_MAX_REQUESTS", "not a number")
        clean_env.setenv("CORS_ALLOW_ORIGIN", "https://a.example, https://b.example")

        settings = load_settings()

        assert settings.ves_enabled is False
        assert settings.demo_mode is True
        assert settings.timeout == 2.5
        assert settings.rate_limit_max_requests == 10
        assert settings.cors_allow_origin == ["https://a.example", "https://b.example"]


class TestSetupLogging:
    def test_idempotent(self):
        root = logging.getLogger()
        setup_logging("DEBUG")
        count = len(root.handlers)
        setup_logging("DEBUG")
        assert len(root.handlers) == count
        assert root.level == logging.DEBUG

    def test_invalid_level_falls_back_to_info(self, caplog):
        with caplog.at_level(logging.WARNING, logger="config"):
            setup_logging("VERBOSE")
        assert logging.getLogger().level == logging.INFO
        assert "VERBOSE" in caplog.text

    def test_invalid_level_from_environment(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "verbose")
        setup_logging()
        assert logging.getLogger().level == logging.INFO
