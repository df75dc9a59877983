"""Tests for Buildkite configuration."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from mcp_buildkite.config import DEFAULT_GRAPHQL_URL, DEFAULT_REST_URL, BuildkiteConfig


def test_config_from_env():
    env = {"BUILDKITE_ORGANIZATION": "acme", "BUILDKITE_API_TOKEN": "bkua_abc123"}
    with patch.dict(os.environ, env, clear=True):
        config = BuildkiteConfig.from_env()
    assert config.organization == "acme"
    assert config.token == "bkua_abc123"
    assert config.rest_url == DEFAULT_REST_URL
    assert config.graphql_url == DEFAULT_GRAPHQL_URL
    assert config.read_only is False
    assert config.timeout == 30
    assert config.ssl_verify is True


def test_config_from_env_with_aliases():
    env = {"BUILDKITE_ORG": "acme", "BUILDKITE_TOKEN": "bkua_xyz"}
    with patch.dict(os.environ, env, clear=True):
        config = BuildkiteConfig.from_env()
    assert config.organization == "acme"
    assert config.token == "bkua_xyz"


def test_config_token_priority():
    """BUILDKITE_API_TOKEN takes precedence over BUILDKITE_TOKEN."""
    env = {
        "BUILDKITE_ORGANIZATION": "acme",
        "BUILDKITE_API_TOKEN": "winner",
        "BUILDKITE_TOKEN": "loser",
    }
    with patch.dict(os.environ, env, clear=True):
        config = BuildkiteConfig.from_env()
    assert config.token == "winner"


def test_config_read_only_and_ssl():
    env = {
        "BUILDKITE_ORGANIZATION": "acme",
        "BUILDKITE_API_TOKEN": "x",
        "BUILDKITE_READ_ONLY": "yes",
        "BUILDKITE_SSL_VERIFY": "false",
        "BUILDKITE_TIMEOUT": "5",
    }
    with patch.dict(os.environ, env, clear=True):
        config = BuildkiteConfig.from_env()
    assert config.read_only is True
    assert config.ssl_verify is False
    assert config.timeout == 5


def test_config_rest_url_gets_trailing_slash():
    env = {
        "BUILDKITE_ORGANIZATION": "acme",
        "BUILDKITE_API_TOKEN": "x",
        "BUILDKITE_REST_URL": "https://bk.example.com/api",
    }
    with patch.dict(os.environ, env, clear=True):
        config = BuildkiteConfig.from_env()
    assert config.rest_url == "https://bk.example.com/api/"


def test_config_auth_headers():
    config = BuildkiteConfig(organization="acme", token="x")
    assert config.auth_headers == {"Authorization": "Bearer x"}


def test_config_validate_missing_organization():
    config = BuildkiteConfig(organization="", token="x")
    with pytest.raises(ValueError, match="BUILDKITE_ORGANIZATION"):
        config.validate()


def test_config_validate_missing_token():
    config = BuildkiteConfig(organization="acme", token="")
    with pytest.raises(ValueError, match="BUILDKITE_API_TOKEN"):
        config.validate()
