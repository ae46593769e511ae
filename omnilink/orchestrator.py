"""Pipeline orchestration: fuse repo manifests into one ecosystem graph."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, List, Sequence

from .config import GrapherConfig, OmniLinkConfig, RepoConfig
from .grapher.api_contracts import map_api_contracts
from .grapher.dependency_graph import build_internal_deps, detect_cross_repo_deps
from .grapher.impact import ChangedFile, analyze_impact
from .grapher.matchers import TextMatcher, substring_match, whole_word_match
from .grapher.mismatches import find_contract_mismatches
from .grapher.type_flow import map_type_flows
from .logging import get_logger
from .models import Dependencies, EcosystemGraph, RepoManifest

Scanner = Callable[[RepoConfig], RepoManifest]

_TYPE_MARKERS = ("type", "model", "schema", "interface")
_ROUTE_MARKERS = ("route", "api", "endpoint")


class GraphBuildError(RuntimeError):
    """Raised when manifests cannot be produced and the graph cannot proceed."""


def infer_change_kind(file: str) -> str:
    """Guess a change kind from a file name alone."""
    lower = file.lower()
    if any(marker in lower for marker in _TYPE_MARKERS):
        return "type-change"
    if any(marker in lower for marker in _ROUTE_MARKERS):
        return "route-change"
    return "implementation-change"


def summarize_graph(graph: EcosystemGraph) -> str:
    """Return a one-line count of the graph's sections."""
    breaking = sum(1 for record in graph.contract_mismatches if record.severity == "breaking")
    return (
        f"{len(graph.repos)} repos, {len(graph.bridges)} bridges, "
        f"{len(graph.shared_types)} shared concepts, "
        f"{len(graph.contract_mismatches)} mismatches ({breaking} breaking), "
        f"{len(graph.impact_paths)} impact paths"
    )


def collect_uncommitted_changes(manifests: Sequence[RepoManifest]) -> List[ChangedFile]:
    return [
        ChangedFile(repo=manifest.repo_id, file=file, change=infer_change_kind(file))
        for manifest in manifests
        for file in manifest.git_state.uncommitted_changes
    ]


class GraphOrchestrator:
    """Sequences the graph builders and assembles an :class:`EcosystemGraph`.

    Matchers are injectable so the text heuristics can be replaced without
    touching assembly. A run never mutates the manifests it is given.
    """

    def __init__(
        self,
        grapher_config: GrapherConfig | None = None,
        *,
        word_matcher: TextMatcher = whole_word_match,
        substring_matcher: TextMatcher = substring_match,
    ) -> None:
        self.grapher_config = grapher_config or GrapherConfig()
        self.word_matcher = word_matcher
        self.substring_matcher = substring_matcher
        self.logger = get_logger("orchestrator")

    def build(self, manifests: Sequence[RepoManifest]) -> EcosystemGraph:
        """Build the full graph from already-scanned manifests."""
        self.logger.debug("Building ecosystem graph for %d repos", len(manifests))

        repos = [self._enrich(manifest) for manifest in manifests]

        # Cross-repo signals surface through bridges and lineages; the edges are not stored.
        cross_edges = detect_cross_repo_deps(
            repos,
            word_matcher=self.word_matcher,
            substring_matcher=self.substring_matcher,
        )
        self.logger.debug("Detected %d cross-repo reference edges", len(cross_edges))

        bridges = map_api_contracts(repos, matcher=self.substring_matcher)
        shared_types = map_type_flows(
            repos, similarity_threshold=self.grapher_config.similarity_threshold
        )
        mismatches = find_contract_mismatches(bridges, repos)

        partial = EcosystemGraph(
            repos=repos,
            bridges=bridges,
            shared_types=shared_types,
            contract_mismatches=mismatches,
        )
        impact_paths = analyze_impact(partial, collect_uncommitted_changes(repos))

        graph = replace(partial, impact_paths=impact_paths)
        self.logger.debug("Graph built: %s", summarize_graph(graph))
        return graph

    def run(self, config: OmniLinkConfig, scanner: Scanner) -> EcosystemGraph:
        """Scan every configured repo with ``scanner`` and build the graph."""
        manifests: List[RepoManifest] = []
        for repo in config.repos:
            self.logger.info("Scanning %s at %s", repo.name, repo.path)
            try:
                manifests.append(scanner(repo))
            except Exception as exc:
                raise GraphBuildError(f"Cannot proceed: scanning {repo.name} failed: {exc}") from exc
        graph = self.build(manifests)
        self.logger.info("Graph built: %s", summarize_graph(graph))
        return graph

    def _enrich(self, manifest: RepoManifest) -> RepoManifest:
        internal = build_internal_deps(manifest, word_matcher=self.word_matcher)
        added = len(internal) - len(manifest.dependencies.internal)
        if added:
            self.logger.debug("Inferred %d dependency edges in %s", added, manifest.repo_id)
        return replace(
            manifest,
            dependencies=Dependencies(
                internal=internal,
                external=list(manifest.dependencies.external),
            ),
        )


def build_ecosystem_graph(
    manifests: Sequence[RepoManifest], *, grapher_config: GrapherConfig | None = None
) -> EcosystemGraph:
    """Build an ecosystem graph with the default matchers."""
    return GraphOrchestrator(grapher_config).build(manifests)


__all__ = [
    "GraphBuildError",
    "GraphOrchestrator",
    "Scanner",
    "build_ecosystem_graph",
    "collect_uncommitted_changes",
    "infer_change_kind",
    "summarize_graph",
]
