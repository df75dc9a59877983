"""Shared helper functions for server modules."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import unquote

from ..models.pipelines import PipelineState

# ════════════════════════════════════════════════════════════════════
# Buildkite URL parsing
# ════════════════════════════════════════════════════════════════════

# Matches:  <host>/<organization>/<pipeline-slug>[/builds/...]
_PIPELINE_RE = re.compile(r"https?://[^/]+/([^/]+)/([^/?#]+)")


def _parse_buildkite_pipeline_url(value: str) -> tuple[str, str]:
    """Extract (organization, pipeline_slug) from a Buildkite pipeline URL.

    If *value* is not a URL, returns it unchanged as ("", value).
    """
    m = _PIPELINE_RE.match(value)
    if m:
        return unquote(m.group(1)), unquote(m.group(2))
    return "", value


def _apply_overrides(state: PipelineState, values: dict[str, Any]) -> PipelineState:
    """Set every non-None entry of *values* on *state*."""
    for name, value in values.items():
        if value is not None:
            setattr(state, name, value)
    return state
