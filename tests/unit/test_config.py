"""
Unit tests for configuration.
"""

import pytest

from lookupserver.config import ServerConfig, ConfigError, normalize_route


class TestNormalizeRoute:

    @pytest.mark.parametrize("route", ["/items/", "items", "/items", "items/", "  /items/  "])
    def test_single_segment(self, route):
        assert normalize_route(route) == "items"

    @pytest.mark.parametrize("route", ["/a/b/", "a/b", "/items/123/"])
    def test_more_than_one_segment(self, route):
        with pytest.raises(ConfigError, match="only one component"):
            normalize_route(route)

    @pytest.mark.parametrize("route", ["/", "", "   "])
    def test_empty_segment(self, route):
        with pytest.raises(ConfigError):
            normalize_route(route)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            normalize_route("/a/b/")


class TestServerConfig:

    def test_defaults(self):
        config = ServerConfig(auth_token="tok")

        assert config.route == "items"
        assert config.port == 8080
        assert config.processing_delay_ms == 0
        assert config.concurrency_limit == 5
        assert config.content_type == "text/json"
        config.validate()

    def test_route_normalized_on_construction(self):
        assert ServerConfig(route="/users", auth_token="tok").route == "users"

    def test_invalid_route_rejected_on_construction(self):
        with pytest.raises(ConfigError):
            ServerConfig(route="/a/b/", auth_token="tok")

    def test_processing_delay_seconds(self):
        assert ServerConfig(processing_delay_ms=250).processing_delay == 0.25

    def test_token_is_trimmed(self):
        assert ServerConfig(auth_token="  tok ").auth_token == "tok"

    @pytest.mark.parametrize("overrides", [
        dict(auth_token=""),
        dict(port=-1),
        dict(port=70000),
        dict(processing_delay_ms=-5),
        dict(concurrency_limit=0),
        dict(min_workers=0),
        dict(min_workers=10, max_workers=9),
        dict(max_workers=5),
        dict(buffer_size=10),
        dict(timeout=0),
        dict(log_format="xml"),
    ])
    def test_validate_rejects(self, overrides):
        values = dict(auth_token="tok")
        values.update(overrides)
        config = ServerConfig(**values)

        with pytest.raises(ConfigError):
            config.validate()

    def test_port_zero_allowed(self):
        ServerConfig(auth_token="tok", port=0).validate()


class TestFromEnv:

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("LOOKUP_PORT", "9000")
        monkeypatch.setenv("LOOKUP_ROUTE", "/users/")
        monkeypatch.setenv("LOOKUP_AUTH_TOKEN", "env-token")
        monkeypatch.setenv("LOOKUP_PROCESSING_DELAY_MS", "150")

        config = ServerConfig.from_env()

        assert config.port == 9000
        assert config.route == "users"
        assert config.auth_token == "env-token"
        assert config.processing_delay_ms == 150

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("LOOKUP_PORT", "9000")
        monkeypatch.setenv("LOOKUP_AUTH_TOKEN", "env-token")

        config = ServerConfig.from_env(port=3000, auth_token=None)

        assert config.port == 3000
        assert config.auth_token == "env-token"

    def test_bad_number(self, monkeypatch):
        monkeypatch.setenv("LOOKUP_PORT", "eighty")

        with pytest.raises(ConfigError):
            ServerConfig.from_env()
