"""omnilink: detect architecture drift across a small fleet of repositories."""

from __future__ import annotations

from .grapher.impact import analyze_impact
from .models import EcosystemGraph, RepoManifest
from .orchestrator import GraphBuildError, GraphOrchestrator, build_ecosystem_graph

__all__ = [
    "EcosystemGraph",
    "GraphBuildError",
    "GraphOrchestrator",
    "RepoManifest",
    "analyze_impact",
    "build_ecosystem_graph",
]
