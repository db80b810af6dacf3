"""Settings and startup validation."""

import pytest

from frontdesk.core.config import Settings
from frontdesk.core.env_validation import check_settings, validate_environment


class TestSettings:
    def test_locales_put_default_first(self):
        settings = Settings(supported_locales="es, en", default_locale="en")
        assert settings.locales == ["en", "es"]

    def test_origins_are_split(self):
        settings = Settings(allowed_origins="http://a.test, http://b.test")
        assert settings.origins == ["http://a.test", "http://b.test"]


class TestCheckSettings:
    def test_defaults_are_valid(self):
        assert check_settings(Settings()) == []

    def test_api_url_must_be_http(self):
        problems = check_settings(Settings(api_base_url="ftp://hotel.test"))
        assert any("API_BASE_URL" in problem for problem in problems)

    def test_default_locale_must_be_supported(self):
        problems = check_settings(Settings(default_locale="fr"))
        assert any("DEFAULT_LOCALE" in problem for problem in problems)

    def test_wildcard_cors_only_in_debug(self):
        assert check_settings(Settings(allowed_origins="*", debug=True)) == []
        assert check_settings(Settings(allowed_origins="*"))


class TestValidateEnvironment:
    def test_invalid_config_exits(self, monkeypatch, capsys):
        monkeypatch.setenv("API_BASE_URL", "hotel.test")
        with pytest.raises(SystemExit) as exc_info:
            validate_environment()
        assert exc_info.value.code == 1
        assert "FATAL" in capsys.readouterr().err

    def test_unparseable_value_exits(self, monkeypatch):
        monkeypatch.setenv("API_TIMEOUT_SECONDS", "soon")
        with pytest.raises(SystemExit):
            validate_environment()

    def test_valid_config_passes(self, monkeypatch, capsys):
        monkeypatch.setenv("SUPPORTED_LOCALES", "en,es")
        settings = validate_environment()
        assert settings.default_locale == "en"
        assert "Environment validation passed" in capsys.readouterr().out
