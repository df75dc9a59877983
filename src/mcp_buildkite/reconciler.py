"""Create, read, update and delete a pipeline across both Buildkite APIs.

Each operation is a fixed sequence of remote calls. The local state is
changed only after a call succeeds, so it always reflects the last
successful remote view. Nothing is retried or rolled back: when the REST
step of a create or update fails, the GraphQL side has already been
written and the error is re-raised as is.
"""

from __future__ import annotations

import logging

from .client import BuildkiteRestClient
from .graphql import BuildkiteGraphQLClient
from .models.pipelines import (
    PipelineState,
    apply_pipeline_node,
    apply_rest_pipeline,
    rest_pipeline_from_state,
)

logger = logging.getLogger(__name__)


class PipelineReconciler:
    def __init__(self, graphql: BuildkiteGraphQLClient, rest: BuildkiteRestClient) -> None:
        self.graphql = graphql
        self.rest = rest

    async def close(self) -> None:
        await self.graphql.close()
        await self.rest.close()

    async def create(self, state: PipelineState) -> PipelineState:
        node = await self.graphql.create_pipeline(state)
        apply_pipeline_node(state, node)
        await self._write_provider_settings(state, "create")
        logger.info("Created pipeline %s (%s)", state.slug, state.id)
        return state

    async def read(self, state: PipelineState) -> PipelineState:
        _require(state.id, "id")
        node = await self.graphql.get_pipeline(state.id)
        apply_pipeline_node(state, node)

        pipeline = await self.rest.pipelines.get(state.slug)
        apply_rest_pipeline(state, pipeline)
        return state

    async def update(self, state: PipelineState) -> PipelineState:
        _require(state.id, "id")
        node = await self.graphql.update_pipeline(state.id, state)
        apply_pipeline_node(state, node)
        await self._write_provider_settings(state, "update")
        logger.info("Updated pipeline %s (%s)", state.slug, state.id)
        return state

    async def delete(self, state: PipelineState) -> None:
        # No delete mutation exists on the GraphQL side.
        _require(state.slug, "slug")
        await self.rest.pipelines.delete(state.slug)
        logger.info("Deleted pipeline %s", state.slug)

    async def _write_provider_settings(self, state: PipelineState, operation: str) -> None:
        pipeline = rest_pipeline_from_state(state)
        try:
            await self.rest.pipelines.update(pipeline)
        except Exception:
            logger.warning(
                "Pipeline %s (%s): %s applied over GraphQL but provider settings were not written",
                state.slug,
                state.id,
                operation,
            )
            raise
        apply_rest_pipeline(state, pipeline)


def _require(value: str, field: str) -> None:
    if not value:
        msg = f"Pipeline {field} is required for this operation"
        raise ValueError(msg)
