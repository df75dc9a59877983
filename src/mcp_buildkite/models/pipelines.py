"""Pipeline models and the field mapping between local state and both APIs.

The GraphQL view and the REST view own disjoint field sets of the same
pipeline. ``PipelineState`` holds both sets; the functions at the bottom of
this module copy fields between the state and each wire view.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from .base import BuildkiteModel

# ── GraphQL view ──────────────────────────────────────────────


class Repository(BuildkiteModel):
    url: str = ""


class Steps(BuildkiteModel):
    yaml: str = ""


class PipelineNode(BuildkiteModel):
    """A pipeline as returned by the GraphQL API."""

    id: str = ""
    uuid: str = ""
    slug: str = ""
    name: str = ""
    description: str = ""
    repository: Repository = Field(default_factory=Repository)
    steps: Steps = Field(default_factory=Steps)
    default_branch: str = Field("", alias="defaultBranch")
    webhook_url: str = Field("", alias="webhookURL")
    skip_intermediate_builds: bool = Field(False, alias="skipIntermediateBuilds")
    skip_intermediate_builds_branch_filter: str = Field(
        "", alias="skipIntermediateBuildsBranchFilter"
    )
    cancel_intermediate_builds: bool = Field(False, alias="cancelIntermediateBuilds")
    cancel_intermediate_builds_branch_filter: str = Field(
        "", alias="cancelIntermediateBuildsBranchFilter"
    )


# Selection set shared by every pipeline query and mutation.
PIPELINE_FIELDS = """
fragment PipelineFields on Pipeline {
  id
  uuid
  slug
  name
  description
  repository { url }
  steps { yaml }
  defaultBranch
  webhookURL
  skipIntermediateBuilds
  skipIntermediateBuildsBranchFilter
  cancelIntermediateBuilds
  cancelIntermediateBuildsBranchFilter
}
"""

# ── REST view ─────────────────────────────────────────────────


class SourceProviderSettings(BuildkiteModel):
    """Trigger policies; always written as one whole object."""

    trigger_mode: str = ""
    build_pull_requests: bool = False
    pull_request_branch_filter_enabled: bool = False
    pull_request_branch_filter_configuration: str = ""
    skip_pull_request_builds_for_existing_commits: bool = False
    build_pull_request_forks: bool = False
    prefix_pull_request_fork_branch_names: bool = False
    build_tags: bool = False
    publish_commit_status: bool = False
    publish_commit_status_per_step: bool = False
    separate_pull_request_statuses: bool = False
    publish_blocked_as_pending: bool = False


class SourceProvider(BuildkiteModel):
    id: str = ""
    settings: SourceProviderSettings = Field(default_factory=SourceProviderSettings)


class RESTPipeline(BuildkiteModel):
    """A pipeline as seen by the REST API.

    ``provider`` is what the API returns; ``provider_settings`` is what it
    accepts on writes.
    """

    slug: str = ""
    branch_configuration: str = ""
    provider: SourceProvider = Field(default_factory=SourceProvider)
    provider_settings: SourceProviderSettings = Field(default_factory=SourceProviderSettings)

    def to_request_body(self) -> dict[str, Any]:
        # Every setting is sent, falsy ones included, so the PATCH replaces the whole object.
        return {
            "branch_configuration": self.branch_configuration,
            "provider_settings": self.provider_settings.model_dump(mode="json"),
        }


PROVIDER_SETTINGS_FIELDS = tuple(SourceProviderSettings.model_fields)

# ── Local state ───────────────────────────────────────────────


class PipelineState(BuildkiteModel):
    """Declared values in, observed values out.

    ``id``, ``uuid``, ``slug`` and ``webhook_url`` are assigned by Buildkite
    and are only ever written from a remote response.
    """

    # GraphQL-owned
    id: str = ""
    uuid: str = ""
    slug: str = ""
    webhook_url: str = ""
    name: str = ""
    description: str = ""
    repository: str = ""
    steps: str = ""
    default_branch: str = ""
    skip_intermediate_builds: bool = False
    skip_intermediate_builds_branch_filter: str = ""
    cancel_intermediate_builds: bool = False
    cancel_intermediate_builds_branch_filter: str = ""

    # REST-owned
    branch_configuration: str = ""
    trigger_mode: str = "code"
    build_pull_requests: bool = True
    pull_request_branch_filter_enabled: bool = False
    pull_request_branch_filter_configuration: str = ""
    skip_pull_request_builds_for_existing_commits: bool = True
    build_pull_request_forks: bool = False
    prefix_pull_request_fork_branch_names: bool = True
    build_tags: bool = False
    publish_commit_status: bool = True
    publish_commit_status_per_step: bool = False
    separate_pull_request_statuses: bool = False
    publish_blocked_as_pending: bool = False


def graphql_input_from_state(state: PipelineState) -> dict[str, Any]:
    """GraphQL-owned declared fields, in the shape of a pipeline mutation input."""
    return {
        "name": state.name,
        "description": state.description,
        "repository": {"url": state.repository},
        "steps": {"yaml": state.steps},
        "defaultBranch": state.default_branch,
        "skipIntermediateBuilds": state.skip_intermediate_builds,
        "skipIntermediateBuildsBranchFilter": state.skip_intermediate_builds_branch_filter,
        "cancelIntermediateBuilds": state.cancel_intermediate_builds,
        "cancelIntermediateBuildsBranchFilter": state.cancel_intermediate_builds_branch_filter,
    }


def apply_pipeline_node(state: PipelineState, node: PipelineNode) -> None:
    state.id = node.id
    state.uuid = node.uuid
    state.slug = node.slug
    state.webhook_url = node.webhook_url
    state.name = node.name
    state.description = node.description
    state.repository = node.repository.url
    state.steps = node.steps.yaml
    state.default_branch = node.default_branch
    state.skip_intermediate_builds = node.skip_intermediate_builds
    state.skip_intermediate_builds_branch_filter = node.skip_intermediate_builds_branch_filter
    state.cancel_intermediate_builds = node.cancel_intermediate_builds
    state.cancel_intermediate_builds_branch_filter = node.cancel_intermediate_builds_branch_filter


def apply_rest_pipeline(state: PipelineState, pipeline: RESTPipeline) -> None:
    state.branch_configuration = pipeline.branch_configuration
    settings = pipeline.provider.settings
    for name in PROVIDER_SETTINGS_FIELDS:
        setattr(state, name, getattr(settings, name))


def rest_pipeline_from_state(state: PipelineState) -> RESTPipeline:
    settings = SourceProviderSettings(
        **{name: getattr(state, name) for name in PROVIDER_SETTINGS_FIELDS}
    )
    return RESTPipeline(
        slug=state.slug,
        branch_configuration=state.branch_configuration,
        provider_settings=settings,
    )
