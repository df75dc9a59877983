"""Buildkite MCP server — pipeline tool registrations."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastmcp import Context, FastMCP
from pydantic import Field

from ..client import BuildkiteRestClient
from ..config import BuildkiteConfig
from ..exceptions import BuildkiteWriteDisabledError
from ..graphql import BuildkiteGraphQLClient
from ..models.pipelines import PipelineState
from ..reconciler import PipelineReconciler
from ._helpers import _apply_overrides, _parse_buildkite_pipeline_url


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    config = BuildkiteConfig.from_env()
    config.validate()
    reconciler = PipelineReconciler(BuildkiteGraphQLClient(config), BuildkiteRestClient(config))
    try:
        yield {"reconciler": reconciler, "config": config}
    finally:
        await reconciler.close()


mcp = FastMCP(
    name="Buildkite MCP Server",
    instructions=(
        "Provides tools for managing Buildkite pipelines"
        " — steps, repository, intermediate builds, and trigger settings."
    ),
    lifespan=lifespan,
)


def _get_reconciler(ctx: Context) -> PipelineReconciler:
    return ctx.request_context.lifespan_context["reconciler"]


def _get_config(ctx: Context) -> BuildkiteConfig:
    return ctx.request_context.lifespan_context["config"]


def _check_write(ctx: Context) -> None:
    if _get_config(ctx).read_only:
        raise BuildkiteWriteDisabledError


def _ok(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def _err(error: Exception) -> str:
    detail: dict[str, Any] = {"error": str(error)}
    from ..exceptions import (
        BuildkiteApiError,
        BuildkiteGraphQLError,
        BuildkiteNotFoundError,
        BuildkiteWriteDisabledError,
    )

    if isinstance(error, BuildkiteNotFoundError):
        detail["hint"] = "Verify the pipeline ID. Use buildkite_get_pipeline to confirm it exists."
    elif isinstance(error, BuildkiteWriteDisabledError):
        detail["hint"] = (
            "Server is in read-only mode. Set BUILDKITE_READ_ONLY=false to enable writes."
        )
    elif isinstance(error, BuildkiteGraphQLError):
        detail["messages"] = error.messages
    elif isinstance(error, BuildkiteApiError):
        detail["status_code"] = error.status_code
        detail["message"] = error.message
        if error.status_code in (401, 403):
            detail["hint"] = "Check BUILDKITE_API_TOKEN scopes (read/write pipelines, GraphQL)."
        elif error.status_code == 404:
            detail["hint"] = "Verify the pipeline slug and BUILDKITE_ORGANIZATION."
        elif error.status_code == 422:
            detail["hint"] = "Validation failed — check branch filters and trigger settings."
        elif error.status_code == 429:
            detail["hint"] = "Rate limited. Wait before retrying."
    return json.dumps(detail, indent=2, ensure_ascii=False)


# ════════════════════════════════════════════════════════════════════
# Pipelines
# ════════════════════════════════════════════════════════════════════


@mcp.tool(
    tags={"buildkite", "pipelines", "write"},
    annotations={"readOnlyHint": False, "openWorldHint": True},
)
async def buildkite_create_pipeline(
    ctx: Context,
    name: Annotated[str, Field(description="Pipeline name", min_length=1)],
    repository: Annotated[str, Field(description="Repository clone URL", min_length=1)],
    steps: Annotated[str, Field(description="Pipeline steps YAML", min_length=1)],
    description: Annotated[str | None, Field(description="Pipeline description")] = None,
    default_branch: Annotated[str | None, Field(description="Default branch")] = None,
    skip_intermediate_builds: Annotated[
        bool | None, Field(description="Skip queued builds superseded by newer commits")
    ] = None,
    skip_intermediate_builds_branch_filter: Annotated[
        str | None, Field(description="Branch filter for skipping intermediate builds")
    ] = None,
    cancel_intermediate_builds: Annotated[
        bool | None, Field(description="Cancel running builds superseded by newer commits")
    ] = None,
    cancel_intermediate_builds_branch_filter: Annotated[
        str | None, Field(description="Branch filter for cancelling intermediate builds")
    ] = None,
    branch_configuration: Annotated[
        str | None, Field(description="Branches to build, e.g. 'main release/*'")
    ] = None,
    trigger_mode: Annotated[
        str | None, Field(description="code, deployment, fork, or none (default: code)")
    ] = None,
    build_pull_requests: Annotated[
        bool | None, Field(description="Build pull requests (default: true)")
    ] = None,
    pull_request_branch_filter_enabled: Annotated[
        bool | None, Field(description="Only build pull requests from matching branches")
    ] = None,
    pull_request_branch_filter_configuration: Annotated[
        str | None, Field(description="Pull request branch filter")
    ] = None,
    skip_pull_request_builds_for_existing_commits: Annotated[
        bool | None, Field(description="Skip PR builds for already-built commits (default: true)")
    ] = None,
    build_pull_request_forks: Annotated[
        bool | None, Field(description="Build pull requests from forks")
    ] = None,
    prefix_pull_request_fork_branch_names: Annotated[
        bool | None, Field(description="Prefix fork branch names (default: true)")
    ] = None,
    build_tags: Annotated[bool | None, Field(description="Build tags")] = None,
    publish_commit_status: Annotated[
        bool | None, Field(description="Publish commit status (default: true)")
    ] = None,
    publish_commit_status_per_step: Annotated[
        bool | None, Field(description="Publish a commit status per step")
    ] = None,
    separate_pull_request_statuses: Annotated[
        bool | None, Field(description="Separate statuses for pull request builds")
    ] = None,
    publish_blocked_as_pending: Annotated[
        bool | None, Field(description="Report blocked builds as pending")
    ] = None,
) -> str:
    """Create a Buildkite pipeline, then apply its branch and trigger settings."""
    try:
        _check_write(ctx)
        state = _apply_overrides(
            PipelineState(name=name, repository=repository, steps=steps),
            {
                "description": description,
                "default_branch": default_branch,
                "skip_intermediate_builds": skip_intermediate_builds,
                "skip_intermediate_builds_branch_filter": skip_intermediate_builds_branch_filter,
                "cancel_intermediate_builds": cancel_intermediate_builds,
                "cancel_intermediate_builds_branch_filter": (
                    cancel_intermediate_builds_branch_filter
                ),
                "branch_configuration": branch_configuration,
                "trigger_mode": trigger_mode,
                "build_pull_requests": build_pull_requests,
                "pull_request_branch_filter_enabled": pull_request_branch_filter_enabled,
                "pull_request_branch_filter_configuration": (
                    pull_request_branch_filter_configuration
                ),
                "skip_pull_request_builds_for_existing_commits": (
                    skip_pull_request_builds_for_existing_commits
                ),
                "build_pull_request_forks": build_pull_request_forks,
                "prefix_pull_request_fork_branch_names": prefix_pull_request_fork_branch_names,
                "build_tags": build_tags,
                "publish_commit_status": publish_commit_status,
                "publish_commit_status_per_step": publish_commit_status_per_step,
                "separate_pull_request_statuses": separate_pull_request_statuses,
                "publish_blocked_as_pending": publish_blocked_as_pending,
            },
        )
        await _get_reconciler(ctx).create(state)
        return _ok(state.to_dict())
    except Exception as e:
        return _err(e)


@mcp.tool(
    tags={"buildkite", "pipelines", "read"},
    annotations={"readOnlyHint": True, "idempotentHint": True, "openWorldHint": True},
)
async def buildkite_get_pipeline(
    ctx: Context,
    pipeline_id: Annotated[str, Field(description="GraphQL pipeline ID", min_length=1)],
) -> str:
    """Get a Buildkite pipeline, merging its GraphQL and REST views."""
    try:
        state = await _get_reconciler(ctx).read(PipelineState(id=pipeline_id))
        return _ok(state.to_dict())
    except Exception as e:
        return _err(e)


@mcp.tool(
    tags={"buildkite", "pipelines", "write"},
    annotations={"readOnlyHint": False, "idempotentHint": True, "openWorldHint": True},
)
async def buildkite_update_pipeline(
    ctx: Context,
    pipeline_id: Annotated[str, Field(description="GraphQL pipeline ID", min_length=1)],
    name: Annotated[str | None, Field(description="Pipeline name")] = None,
    repository: Annotated[str | None, Field(description="Repository clone URL")] = None,
    steps: Annotated[str | None, Field(description="Pipeline steps YAML")] = None,
    description: Annotated[str | None, Field(description="Pipeline description")] = None,
    default_branch: Annotated[str | None, Field(description="Default branch")] = None,
    skip_intermediate_builds: Annotated[
        bool | None, Field(description="Skip queued builds superseded by newer commits")
    ] = None,
    skip_intermediate_builds_branch_filter: Annotated[
        str | None, Field(description="Branch filter for skipping intermediate builds")
    ] = None,
    cancel_intermediate_builds: Annotated[
        bool | None, Field(description="Cancel running builds superseded by newer commits")
    ] = None,
    cancel_intermediate_builds_branch_filter: Annotated[
        str | None, Field(description="Branch filter for cancelling intermediate builds")
    ] = None,
    branch_configuration: Annotated[
        str | None, Field(description="Branches to build, e.g. 'main release/*'")
    ] = None,
    trigger_mode: Annotated[
        str | None, Field(description="code, deployment, fork, or none")
    ] = None,
    build_pull_requests: Annotated[bool | None, Field(description="Build pull requests")] = None,
    pull_request_branch_filter_enabled: Annotated[
        bool | None, Field(description="Only build pull requests from matching branches")
    ] = None,
    pull_request_branch_filter_configuration: Annotated[
        str | None, Field(description="Pull request branch filter")
    ] = None,
    skip_pull_request_builds_for_existing_commits: Annotated[
        bool | None, Field(description="Skip PR builds for already-built commits")
    ] = None,
    build_pull_request_forks: Annotated[
        bool | None, Field(description="Build pull requests from forks")
    ] = None,
    prefix_pull_request_fork_branch_names: Annotated[
        bool | None, Field(description="Prefix fork branch names")
    ] = None,
    build_tags: Annotated[bool | None, Field(description="Build tags")] = None,
    publish_commit_status: Annotated[
        bool | None, Field(description="Publish commit status")
    ] = None,
    publish_commit_status_per_step: Annotated[
        bool | None, Field(description="Publish a commit status per step")
    ] = None,
    separate_pull_request_statuses: Annotated[
        bool | None, Field(description="Separate statuses for pull request builds")
    ] = None,
    publish_blocked_as_pending: Annotated[
        bool | None, Field(description="Report blocked builds as pending")
    ] = None,
) -> str:
    """Update a Buildkite pipeline. Omitted fields keep their current values."""
    try:
        _check_write(ctx)
        reconciler = _get_reconciler(ctx)
        state = await reconciler.read(PipelineState(id=pipeline_id))
        _apply_overrides(
            state,
            {
                "name": name,
                "repository": repository,
                "steps": steps,
                "description": description,
                "default_branch": default_branch,
                "skip_intermediate_builds": skip_intermediate_builds,
                "skip_intermediate_builds_branch_filter": skip_intermediate_builds_branch_filter,
                "cancel_intermediate_builds": cancel_intermediate_builds,
                "cancel_intermediate_builds_branch_filter": (
                    cancel_intermediate_builds_branch_filter
                ),
                "branch_configuration": branch_configuration,
                "trigger_mode": trigger_mode,
                "build_pull_requests": build_pull_requests,
                "pull_request_branch_filter_enabled": pull_request_branch_filter_enabled,
                "pull_request_branch_filter_configuration": (
                    pull_request_branch_filter_configuration
                ),
                "skip_pull_request_builds_for_existing_commits": (
                    skip_pull_request_builds_for_existing_commits
                ),
                "build_pull_request_forks": build_pull_request_forks,
                "prefix_pull_request_fork_branch_names": prefix_pull_request_fork_branch_names,
                "build_tags": build_tags,
                "publish_commit_status": publish_commit_status,
                "publish_commit_status_per_step": publish_commit_status_per_step,
                "separate_pull_request_statuses": separate_pull_request_statuses,
                "publish_blocked_as_pending": publish_blocked_as_pending,
            },
        )
        await reconciler.update(state)
        return _ok(state.to_dict())
    except Exception as e:
        return _err(e)


@mcp.tool(
    tags={"buildkite", "pipelines", "write"},
    annotations={"destructiveHint": True, "readOnlyHint": False, "openWorldHint": True},
)
async def buildkite_delete_pipeline(
    ctx: Context,
    pipeline: Annotated[
        str,
        Field(
            description="Pipeline slug or URL (e.g. 'https://buildkite.com/my-org/my-pipeline')",
            min_length=1,
        ),
    ],
) -> str:
    """Delete a Buildkite pipeline. This action is irreversible."""
    try:
        _check_write(ctx)
        organization, slug = _parse_buildkite_pipeline_url(pipeline)
        configured = _get_config(ctx).organization
        if organization and organization != configured:
            msg = (
                f"Pipeline URL belongs to organization '{organization}', "
                f"but this server manages '{configured}'"
            )
            raise ValueError(msg)
        await _get_reconciler(ctx).delete(PipelineState(slug=slug))
        return _ok({"status": "deleted", "slug": slug})
    except Exception as e:
        return _err(e)
