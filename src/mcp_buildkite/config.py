"""Buildkite MCP server configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_REST_URL = "https://api.buildkite.com/"
DEFAULT_GRAPHQL_URL = "https://graphql.buildkite.com/v1"


@dataclass
class BuildkiteConfig:
    """Configuration for the Buildkite clients, loaded from environment variables."""

    organization: str = ""
    token: str = ""
    rest_url: str = DEFAULT_REST_URL
    graphql_url: str = DEFAULT_GRAPHQL_URL
    read_only: bool = False
    timeout: int = 30
    ssl_verify: bool = True

    @classmethod
    def from_env(cls) -> BuildkiteConfig:
        organization = os.getenv("BUILDKITE_ORGANIZATION") or os.getenv("BUILDKITE_ORG", "")
        token = os.getenv("BUILDKITE_API_TOKEN") or os.getenv("BUILDKITE_TOKEN", "")
        # Relative paths resolve against the base, which needs its trailing slash.
        rest_url = os.getenv("BUILDKITE_REST_URL", DEFAULT_REST_URL).rstrip("/") + "/"
        graphql_url = os.getenv("BUILDKITE_GRAPHQL_URL", DEFAULT_GRAPHQL_URL)
        read_only = os.getenv("BUILDKITE_READ_ONLY", "false").lower() in (
            "true",
            "1",
            "yes",
        )
        timeout = int(os.getenv("BUILDKITE_TIMEOUT", "30"))
        ssl_verify = os.getenv("BUILDKITE_SSL_VERIFY", "true").lower() not in (
            "false",
            "0",
            "no",
        )

        return cls(
            organization=organization,
            token=token,
            rest_url=rest_url,
            graphql_url=graphql_url,
            read_only=read_only,
            timeout=timeout,
            ssl_verify=ssl_verify,
        )

    @property
    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def validate(self) -> None:
        if not self.organization:
            msg = "BUILDKITE_ORGANIZATION environment variable is required"
            raise ValueError(msg)
        if not self.token:
            msg = "Buildkite token is required. Set one of: BUILDKITE_API_TOKEN or BUILDKITE_TOKEN"
            raise ValueError(msg)
