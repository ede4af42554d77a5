"""Tests for Settings and the provider catalog."""

import pytest

from gamefeed._config import (
    DEFAULT_CACHE_TTL,
    DEFAULT_ENTRY_URLS,
    DEFAULT_FAILURE_TTL,
    Settings,
)
from gamefeed._providers import (
    CATALOG_VERSION,
    PROVIDERS,
    get_provider,
    list_providers,
)

# ---------------------------------------------------------------------------
# Settings.from_env
# ---------------------------------------------------------------------------


class TestSettingsFromEnv:
    def test_defaults_when_unset(self):
        s = Settings.from_env({})
        assert s == Settings()
        assert s.cache_ttl == DEFAULT_CACHE_TTL == 900
        assert s.failure_ttl == DEFAULT_FAILURE_TTL == 300
        assert s.entry_urls == DEFAULT_ENTRY_URLS
        assert s.headless is True
        assert s.serve_fallback is True

    def test_values_read(self):
        s = Settings.from_env(
            {
                "REDIS_URL": "redis://cache:6380/2",
                "GAMEFEED_ENTRY_URLS": "https://a.test/x, https://b.test/y,",
                "GAMEFEED_DEFAULT_PROVIDER": "jili",
                "GAMEFEED_CACHE_TTL": "600",
                "GAMEFEED_FAILURE_TTL": "60",
                "GAMEFEED_LOCAL_TTL": "30.5",
                "GAMEFEED_DEADLINE": "45",
                "GAMEFEED_HEADLESS": "false",
                "GAMEFEED_BROWSER_CHANNEL": "chrome",
                "GAMEFEED_PREFLIGHT_URL": "https://probe.test/",
                "GAMEFEED_SERVE_FALLBACK": "0",
                "GAMEFEED_ENV": "production",
            }
        )
        assert s.redis_url == "redis://cache:6380/2"
        assert s.entry_urls == ("https://a.test/x", "https://b.test/y")
        assert s.default_provider == "jili"
        assert s.cache_ttl == 600
        assert s.failure_ttl == 60
        assert s.local_ttl == 30.5
        assert s.deadline == 45.0
        assert s.headless is False
        assert s.browser_channel == "chrome"
        assert s.preflight_url == "https://probe.test/"
        assert s.serve_fallback is False
        assert s.environment == "production"

    def test_empty_values_keep_defaults(self):
        s = Settings.from_env(
            {"GAMEFEED_DEADLINE": "", "GAMEFEED_ENTRY_URLS": " , "}
        )
        assert s.deadline == 60.0
        assert s.entry_urls == DEFAULT_ENTRY_URLS

    def test_malformed_number_names_variable(self):
        with pytest.raises(ValueError, match="GAMEFEED_CACHE_TTL"):
            Settings.from_env({"GAMEFEED_CACHE_TTL": "soon"})

    def test_malformed_bool_names_variable(self):
        with pytest.raises(ValueError, match="GAMEFEED_HEADLESS"):
            Settings.from_env({"GAMEFEED_HEADLESS": "maybe"})

    def test_with_overrides_returns_copy(self):
        s = Settings()
        t = s.with_overrides(headless=False)
        assert t.headless is False
        assert s.headless is True


# ---------------------------------------------------------------------------
# Provider catalog
# ---------------------------------------------------------------------------


class TestProviders:
    def test_catalog_contents(self):
        ids = [p.id for p in list_providers()]
        assert ids == ["pg-soft", "pragmatic-play", "jili", "microgaming"]
        assert CATALOG_VERSION >= 1

    def test_selectors_target_provider_images(self):
        for p in PROVIDERS:
            assert p.selector == f'img[alt="{p.name}"]'

    def test_known_id(self):
        p = get_provider("pragmatic-play")
        assert p.display_name == "Pragmatic Play"

    def test_unknown_id_falls_back_to_default(self):
        assert get_provider("nope").id == "pg-soft"
        assert get_provider("nope", default="jili").id == "jili"

    def test_missing_id_uses_default(self):
        assert get_provider(None, default="microgaming").id == "microgaming"

    def test_unknown_default_uses_first_entry(self):
        assert get_provider(None, default="nope") is PROVIDERS[0]

    def test_list_is_a_copy(self):
        providers = list_providers()
        providers.clear()
        assert len(PROVIDERS) == 4
