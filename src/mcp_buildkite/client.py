"""Buildkite REST API client using httpx.

Only the parts of a pipeline the GraphQL API cannot reach go through here:
branch configuration, provider settings, and deletion.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from . import __version__
from .config import BuildkiteConfig
from .exceptions import BuildkiteApiError
from .models.base import BuildkiteModel
from .models.pipelines import RESTPipeline

logger = logging.getLogger(__name__)

USER_AGENT = f"mcp-buildkite/{__version__}"


class BuildkiteRestClient:
    """Async HTTP client for the Buildkite REST API v2."""

    def __init__(
        self, config: BuildkiteConfig | None = None, http_client: httpx.AsyncClient | None = None
    ) -> None:
        self.config = config or BuildkiteConfig.from_env()
        self.config.validate()
        self.organization = self.config.organization
        self._client = http_client or httpx.AsyncClient(
            headers=self.config.auth_headers,
            timeout=self.config.timeout,
            verify=self.config.ssl_verify,
        )
        self.base_url = httpx.URL(self.config.rest_url)
        self.pipelines = PipelinesService(self)

    async def close(self) -> None:
        await self._client.aclose()

    # ── HTTP helpers ──────────────────────────────────────────────

    def build_request(self, method: str, path: str, body: Any = None) -> httpx.Request:
        """Build a request for *path*, resolved against the REST base URL.

        Paths are relative and carry no leading slash. A *body* is JSON encoded;
        models are encoded through ``to_request_body`` or ``to_dict``.
        """
        url = self.base_url.join(path)
        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}

        content = None
        if body is not None:
            if hasattr(body, "to_request_body"):
                body = body.to_request_body()
            elif isinstance(body, BuildkiteModel):
                body = body.to_dict()
            content = json.dumps(body).encode()

        return self._client.build_request(method, url, content=content, headers=headers)

    async def send(self, request: httpx.Request, result: Any = None) -> httpx.Response:
        """Send *request* and decode a successful response into *result*.

        A model or dict *result* is updated in place; an object with ``write`` receives
        the raw body untouched; ``None`` discards the body. Any status outside
        200..299 raises ``BuildkiteApiError`` carrying the response.
        """
        logger.debug("%s %s", request.method, request.url)
        resp = await self._client.send(request)

        if not 200 <= resp.status_code <= 299:
            raise _error_from_response(resp)

        if result is None or not resp.content:
            return resp

        if hasattr(result, "write"):
            result.write(resp.content)
        elif isinstance(result, BuildkiteModel):
            result.update_from(resp.json())
        else:
            result.update(resp.json())
        return resp


def _error_from_response(resp: httpx.Response) -> BuildkiteApiError:
    body = resp.content
    message = ""
    try:
        data = json.loads(body) if body else {}
    except ValueError:
        data = {}
    if isinstance(data, dict):
        message = str(data.get("message") or "")

    return BuildkiteApiError(
        resp.request.method,
        str(resp.request.url),
        resp.status_code,
        message,
        body=body,
        response=resp,
    )


class PipelinesService:
    """Pipeline endpoints, addressed by slug. Creation goes through GraphQL."""

    def __init__(self, client: BuildkiteRestClient) -> None:
        self.client = client

    def _path(self, slug: str) -> str:
        return f"v2/organizations/{self.client.organization}/pipelines/{slug}"

    async def get(self, slug: str) -> RESTPipeline:
        request = self.client.build_request("GET", self._path(slug))
        pipeline = RESTPipeline()
        await self.client.send(request, pipeline)
        return pipeline

    async def update(self, pipeline: RESTPipeline) -> None:
        """PATCH branch configuration and the full provider settings.

        *pipeline* is overwritten with the server's echo.
        """
        request = self.client.build_request("PATCH", self._path(pipeline.slug), pipeline)
        await self.client.send(request, pipeline)

    async def delete(self, slug: str) -> None:
        request = self.client.build_request("DELETE", self._path(slug))
        await self.client.send(request)
