"""Buildkite GraphQL API client using httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import BuildkiteConfig
from .exceptions import BuildkiteApiError, BuildkiteGraphQLError, BuildkiteNotFoundError
from .models.pipelines import (
    PIPELINE_FIELDS,
    PipelineNode,
    PipelineState,
    graphql_input_from_state,
)

logger = logging.getLogger(__name__)

ORGANIZATION_QUERY = """
query OrganizationID($slug: ID!) {
  organization(slug: $slug) { id }
}
"""

PIPELINE_QUERY = (
    """
query PipelineNode($id: ID!) {
  node(id: $id) {
    __typename
    ...PipelineFields
  }
}
"""
    + PIPELINE_FIELDS
)

PIPELINE_CREATE = (
    """
mutation PipelineCreate($input: PipelineCreateInput!) {
  pipelineCreate(input: $input) {
    pipeline { ...PipelineFields }
  }
}
"""
    + PIPELINE_FIELDS
)

PIPELINE_UPDATE = (
    """
mutation PipelineUpdate($input: PipelineUpdateInput!) {
  pipelineUpdate(input: $input) {
    pipeline { ...PipelineFields }
  }
}
"""
    + PIPELINE_FIELDS
)


class BuildkiteGraphQLClient:
    """Async client for the Buildkite GraphQL API.

    Owns the core pipeline fields. There is no delete mutation; deletion goes
    through the REST client.
    """

    def __init__(
        self, config: BuildkiteConfig | None = None, http_client: httpx.AsyncClient | None = None
    ) -> None:
        self.config = config or BuildkiteConfig.from_env()
        self.config.validate()
        self._client = http_client or httpx.AsyncClient(
            headers={**self.config.auth_headers, "Content-Type": "application/json"},
            timeout=self.config.timeout,
            verify=self.config.ssl_verify,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run *query* and return its ``data``.

        Raises ``BuildkiteApiError`` on a non-2xx response and
        ``BuildkiteGraphQLError`` when the response carries ``errors``.
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        logger.debug("POST %s", self.config.graphql_url)
        resp = await self._client.post(self.config.graphql_url, json=payload)
        if not resp.is_success:
            raise BuildkiteApiError(
                "POST",
                self.config.graphql_url,
                resp.status_code,
                resp.reason_phrase or "",
                body=resp.content,
                response=resp,
            )

        try:
            result = resp.json()
        except ValueError:
            result = None
        if not isinstance(result, dict):
            raise BuildkiteApiError(
                "POST",
                self.config.graphql_url,
                resp.status_code,
                "",
                body=resp.content,
                response=resp,
            )

        if result.get("errors"):
            messages = [e.get("message", str(e)) for e in result["errors"]]
            raise BuildkiteGraphQLError(messages)
        return result.get("data") or {}

    # ── Organizations ─────────────────────────────────────────────

    async def get_organization_id(self, slug: str) -> str:
        data = await self.execute(ORGANIZATION_QUERY, {"slug": slug})
        organization = data.get("organization")
        if not organization:
            raise BuildkiteNotFoundError("Organization", slug)
        return organization["id"]

    # ── Pipelines ─────────────────────────────────────────────────

    async def create_pipeline(self, state: PipelineState) -> PipelineNode:
        org_id = await self.get_organization_id(self.config.organization)
        pipeline_input = {"organizationId": org_id, **graphql_input_from_state(state)}
        data = await self.execute(PIPELINE_CREATE, {"input": pipeline_input})
        return PipelineNode.model_validate(data["pipelineCreate"]["pipeline"])

    async def get_pipeline(self, pipeline_id: str) -> PipelineNode:
        data = await self.execute(PIPELINE_QUERY, {"id": pipeline_id})
        node = data.get("node")
        if not node or node.get("__typename") != "Pipeline":
            raise BuildkiteNotFoundError("Pipeline", pipeline_id)
        return PipelineNode.model_validate(node)

    async def update_pipeline(self, pipeline_id: str, state: PipelineState) -> PipelineNode:
        pipeline_input = {"id": pipeline_id, **graphql_input_from_state(state)}
        data = await self.execute(PIPELINE_UPDATE, {"input": pipeline_input})
        return PipelineNode.model_validate(data["pipelineUpdate"]["pipeline"])
