# relay_control/generator/artifacts.py
"""Render every policy artifact for a snapshot, in write order."""

from typing import Dict, List

from relay_control.core.models import (
    ArtifactKind, GeneratedArtifact, PolicyPaths, Snapshot, WRITE_ORDER
)
from relay_control.generator.policy_lua import generate_init_lua
from relay_control.generator.toml_files import (
    generate_dkim_data,
    generate_listener_domains,
    generate_queues,
    generate_sources,
)


def render_all(snapshot: Snapshot, paths: PolicyPaths) -> Dict[ArtifactKind, str]:
    """Content of each artifact keyed by kind."""
    return {
        ArtifactKind.SOURCES: generate_sources(snapshot),
        ArtifactKind.QUEUES: generate_queues(snapshot),
        ArtifactKind.LISTENER_DOMAINS: generate_listener_domains(snapshot),
        ArtifactKind.DKIM_DATA: generate_dkim_data(snapshot, paths.dkim_dir),
        ArtifactKind.INIT_LUA: generate_init_lua(snapshot, paths),
    }


def generate_all(snapshot: Snapshot, paths: PolicyPaths) -> List[GeneratedArtifact]:
    """
    All five artifacts ordered for writing (bootstrap policy last).

    Raises GenerationError for a malformed snapshot.
    """
    rendered = render_all(snapshot, paths)
    return [
        GeneratedArtifact(kind=kind, path=paths.path_for(kind), content=rendered[kind])
        for kind in WRITE_ORDER
    ]
