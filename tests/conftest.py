"""Shared test fixtures for mcp-buildkite."""

from __future__ import annotations

import json
import re

import httpx
import pytest
import respx

from mcp_buildkite.client import BuildkiteRestClient
from mcp_buildkite.config import BuildkiteConfig
from mcp_buildkite.graphql import BuildkiteGraphQLClient
from mcp_buildkite.reconciler import PipelineReconciler

TEST_ORG = "acme"
TEST_TOKEN = "test-token"
REST_URL = "https://api.buildkite.com/"
GRAPHQL_URL = "https://graphql.buildkite.com/v1"
PIPELINES_PATH = f"/v2/organizations/{TEST_ORG}/pipelines/"

# Settings Buildkite applies to a pipeline created without any REST update.
SERVER_DEFAULT_SETTINGS = {
    "trigger_mode": "code",
    "build_pull_requests": True,
    "pull_request_branch_filter_enabled": False,
    "pull_request_branch_filter_configuration": "",
    "skip_pull_request_builds_for_existing_commits": True,
    "build_pull_request_forks": False,
    "prefix_pull_request_fork_branch_names": True,
    "build_tags": False,
    "publish_commit_status": True,
    "publish_commit_status_per_step": False,
    "separate_pull_request_statuses": False,
    "publish_blocked_as_pending": False,
}


class FakeBuildkite:
    """In-memory Buildkite answering both the GraphQL and the REST endpoints."""

    def __init__(self) -> None:
        self.pipelines: dict[str, dict] = {}
        self.graphql_calls: list[dict] = []
        self.rest_calls: list[tuple[str, str, dict | None]] = []
        self.fail_rest_patch = False

    def install(self, router: respx.MockRouter) -> None:
        router.post(GRAPHQL_URL).mock(side_effect=self.graphql)
        router.route(host="api.buildkite.com", path__startswith=PIPELINES_PATH).mock(
            side_effect=self.rest
        )

    # ── GraphQL ──────────────────────────────────────────────────

    def graphql(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.graphql_calls.append(payload)
        query = payload["query"]
        variables = payload.get("variables", {})

        if "organization(" in query:
            if variables["slug"] != TEST_ORG:
                return httpx.Response(200, json={"data": {"organization": None}})
            return httpx.Response(200, json={"data": {"organization": {"id": "T3JnLWFjbWU="}}})

        if "pipelineCreate" in query:
            node = self._create(variables["input"])
            return httpx.Response(200, json={"data": {"pipelineCreate": {"pipeline": node}}})

        if "pipelineUpdate" in query:
            pipeline = self._by_id(variables["input"]["id"])
            if pipeline is None:
                return httpx.Response(
                    200, json={"data": None, "errors": [{"message": "No pipeline found"}]}
                )
            pipeline["node"].update(_node_fields(variables["input"]))
            node = pipeline["node"]
            return httpx.Response(200, json={"data": {"pipelineUpdate": {"pipeline": node}}})

        if "node(" in query:
            pipeline = self._by_id(variables["id"])
            node = pipeline["node"] if pipeline else None
            return httpx.Response(200, json={"data": {"node": node}})

        return httpx.Response(200, json={"errors": [{"message": "unsupported query"}]})

    def _create(self, pipeline_input: dict) -> dict:
        slug = re.sub(r"[^a-z0-9]+", "-", pipeline_input["name"].lower()).strip("-")
        number = len(self.pipelines) + 1
        node = {
            "__typename": "Pipeline",
            "id": f"UGlwZWxpbmUt{number}",
            "uuid": f"0186-{number:04d}",
            "slug": slug,
            "webhookURL": f"https://webhook.buildkite.com/deliver/{slug}",
            **_node_fields(pipeline_input),
        }
        self.pipelines[slug] = {
            "node": node,
            "branch_configuration": None,
            "settings": dict(SERVER_DEFAULT_SETTINGS),
        }
        return node

    def _by_id(self, pipeline_id: str) -> dict | None:
        for pipeline in self.pipelines.values():
            if pipeline["node"]["id"] == pipeline_id:
                return pipeline
        return None

    # ── REST ─────────────────────────────────────────────────────

    def rest(self, request: httpx.Request) -> httpx.Response:
        slug = request.url.path[len(PIPELINES_PATH) :]
        body = json.loads(request.content) if request.content else None
        self.rest_calls.append((request.method, slug, body))

        pipeline = self.pipelines.get(slug)
        if pipeline is None:
            return httpx.Response(404, json={"message": "No pipeline found"})

        if request.method == "DELETE":
            del self.pipelines[slug]
            return httpx.Response(204)
        if request.method == "PATCH":
            if self.fail_rest_patch:
                return httpx.Response(422, json={"message": "Provider settings are invalid"})
            pipeline["branch_configuration"] = body["branch_configuration"]
            pipeline["settings"] = dict(body["provider_settings"])
        return httpx.Response(200, json=self._rest_view(slug, pipeline))

    @staticmethod
    def _rest_view(slug: str, pipeline: dict) -> dict:
        return {
            "slug": slug,
            "name": pipeline["node"]["name"],
            "branch_configuration": pipeline["branch_configuration"],
            "provider": {"id": "github", "settings": dict(pipeline["settings"])},
        }


def _node_fields(pipeline_input: dict) -> dict:
    return {
        key: pipeline_input[key]
        for key in (
            "name",
            "description",
            "repository",
            "steps",
            "defaultBranch",
            "skipIntermediateBuilds",
            "skipIntermediateBuildsBranchFilter",
            "cancelIntermediateBuilds",
            "cancelIntermediateBuildsBranchFilter",
        )
    }


@pytest.fixture
def config() -> BuildkiteConfig:
    return BuildkiteConfig(organization=TEST_ORG, token=TEST_TOKEN)


@pytest.fixture
async def rest_client(config: BuildkiteConfig):
    client = BuildkiteRestClient(config)
    yield client
    await client.close()


@pytest.fixture
async def graphql_client(config: BuildkiteConfig):
    client = BuildkiteGraphQLClient(config)
    yield client
    await client.close()


@pytest.fixture
def reconciler(
    graphql_client: BuildkiteGraphQLClient, rest_client: BuildkiteRestClient
) -> PipelineReconciler:
    return PipelineReconciler(graphql_client, rest_client)


@pytest.fixture
def mock_api() -> respx.MockRouter:
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
def fake_buildkite(mock_api: respx.MockRouter) -> FakeBuildkite:
    fake = FakeBuildkite()
    fake.install(mock_api)
    return fake
