"""Tests for markfluence.config — env-var config loading and validation.

NOT to be confused with test_config_loader.py (hierarchical YAML config)
or test_config_schema.py (Pydantic models). This tests the runtime
bootstrap path: validate_config() and load_config().
"""

import logging

import pytest

from markfluence.config import (
    Config,
    ConfigError,
    get_bool_env,
    load_config,
    normalize_domain,
    validate_config,
)

REQUIRED = dict(
    domain="acme.atlassian.net",
    space="DOCS",
    email="dev@example.com",
    api_token="token",
)

# -------------------------------------------------------------------------
# normalize_domain()
# -------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("acme.atlassian.net", "acme.atlassian.net"),
        ("https://acme.atlassian.net", "acme.atlassian.net"),
        ("https://acme.atlassian.net/wiki/", "acme.atlassian.net"),
        ("acme.atlassian.net/wiki", "acme.atlassian.net"),
        ("  acme.atlassian.net  ", "acme.atlassian.net"),
    ],
)
def test_normalize_domain(raw, expected):
    assert normalize_domain(raw) == expected


# -------------------------------------------------------------------------
# validate_config()
# -------------------------------------------------------------------------


class TestValidateConfig:
    """Tests for validate_config() — required field checks."""

    def test_valid_config(self):
        validate_config(Config(**REQUIRED))  # should not raise

    def test_domain_normalised_in_place(self):
        config = Config(**{**REQUIRED, "domain": "https://acme.atlassian.net/"})
        validate_config(config)
        assert config.domain == "acme.atlassian.net"

    def test_missing_domain(self):
        config = Config(**{**REQUIRED, "domain": ""})
        with pytest.raises(ConfigError, match="Missing Confluence domain"):
            validate_config(config)

    def test_missing_space(self):
        config = Config(**{**REQUIRED, "space": "  "})
        with pytest.raises(ConfigError, match="CONFLUENCE_SPACE"):
            validate_config(config)

    def test_every_missing_field_reported(self):
        config = Config(domain="", space="", email="", api_token="")
        with pytest.raises(ConfigError) as exc_info:
            validate_config(config)
        lines = str(exc_info.value).splitlines()
        assert len(lines) == 4
        assert "--user or CONFLUENCE_EMAIL" in lines[2]
        assert "--token or CONFLUENCE_API_TOKEN" in lines[3]

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)


# -------------------------------------------------------------------------
# get_bool_env()
# -------------------------------------------------------------------------


class TestGetBoolEnv:
    @pytest.mark.parametrize("value", ["true", "1", "YES", "on"])
    def test_truthy(self, monkeypatch, value):
        monkeypatch.setenv("MARKFLUENCE_MERMAID", value)
        assert get_bool_env("MARKFLUENCE_MERMAID") is True

    def test_falsy(self, monkeypatch):
        monkeypatch.setenv("MARKFLUENCE_MERMAID", "false")
        assert get_bool_env("MARKFLUENCE_MERMAID") is False

    def test_unset_or_empty(self, monkeypatch):
        assert get_bool_env("MARKFLUENCE_MERMAID") is None
        monkeypatch.setenv("MARKFLUENCE_MERMAID", "")
        assert get_bool_env("MARKFLUENCE_MERMAID") is None


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    def test_cli_args(self):
        config = load_config(**REQUIRED, parent_page_id="42")
        assert config.domain == "acme.atlassian.net"
        assert config.parent_page_id == "42"
        assert config.mermaid is True
        assert config.dry_run is False
        assert config.mermaid_cli == "mmdc"

    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("CONFLUENCE_DOMAIN", "env.atlassian.net")
        monkeypatch.setenv("CONFLUENCE_SPACE", "ENV")
        monkeypatch.setenv("CONFLUENCE_EMAIL", "env@example.com")
        monkeypatch.setenv("CONFLUENCE_API_TOKEN", "env-token")
        monkeypatch.setenv("CONFLUENCE_PARENT_PAGE_ID", "7")

        config = load_config()

        assert config.domain == "env.atlassian.net"
        assert config.space == "ENV"
        assert config.parent_page_id == "7"

    def test_cli_beats_env(self, monkeypatch):
        monkeypatch.setenv("CONFLUENCE_SPACE", "ENV")
        config = load_config(**REQUIRED)
        assert config.space == "DOCS"

    def test_env_beats_yaml(self, monkeypatch):
        monkeypatch.setenv("CONFLUENCE_SPACE", "ENV")
        fallbacks = {**REQUIRED, "space": "YAML"}
        config = load_config(yaml_fallbacks=fallbacks)
        assert config.space == "ENV"

    def test_yaml_fallbacks(self):
        fallbacks = {
            **REQUIRED,
            "parent_page_id": "9",
            "mermaid": False,
            "verbose": True,
            "mermaid_cli": "/opt/mmdc",
        }
        config = load_config(yaml_fallbacks=fallbacks)
        assert config.parent_page_id == "9"
        assert config.mermaid is False
        assert config.verbose is True
        assert config.mermaid_cli == "/opt/mmdc"

    def test_no_mermaid_flag_beats_env(self, monkeypatch):
        monkeypatch.setenv("MARKFLUENCE_MERMAID", "true")
        config = load_config(**REQUIRED, mermaid=False)
        assert config.mermaid is False

    def test_mermaid_env_beats_yaml(self, monkeypatch):
        monkeypatch.setenv("MARKFLUENCE_MERMAID", "false")
        config = load_config(yaml_fallbacks={**REQUIRED, "mermaid": True})
        assert config.mermaid is False

    def test_mermaid_cli_env(self, monkeypatch):
        monkeypatch.setenv("MERMAID_CLI", "/usr/local/bin/mmdc")
        assert load_config(**REQUIRED).mermaid_cli == "/usr/local/bin/mmdc"

    def test_missing_everything_raises(self):
        with pytest.raises(ConfigError, match="Missing Confluence domain"):
            load_config()

    def test_dry_run_logged(self, caplog):
        with caplog.at_level(logging.INFO):
            config = load_config(**REQUIRED, dry_run=True)
        assert config.dry_run is True
        assert "Dry run" in caplog.text
