"""Trace change ripples within and across repositories."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Sequence

from ..logging import get_logger
from ..models import AffectedEntry, ApiBridge, ChangeTrigger, EcosystemGraph, ImpactPath
from .api_contracts import declares_endpoint

logger = get_logger("grapher.impact")

CHANGE_TYPE = "type-change"
CHANGE_ROUTE = "route-change"
CHANGE_RENAME = "rename"
CHANGE_DELETE = "delete"
CHANGE_IMPLEMENTATION = "implementation-change"
CHANGE_OTHER = "other"

_BREAKING_CHANGES = {CHANGE_TYPE, CHANGE_ROUTE, CHANGE_RENAME, CHANGE_DELETE}

# Checked in order; the first category with a matching token wins.
_CHANGE_TOKENS = (
    (CHANGE_TYPE, ("type-change", "type change")),
    (CHANGE_ROUTE, ("route-change", "route change")),
    (CHANGE_IMPLEMENTATION, ("implementation-change", "implementation change")),
    (CHANGE_RENAME, ("rename",)),
    (CHANGE_DELETE, ("delete", "remove")),
)


class ChangedFile(NamedTuple):
    """One queued change: ``(repo, file, change)``."""

    repo: str
    file: str
    change: str


@dataclass(frozen=True)
class InternalDependent:
    file: str
    imported_names: Sequence[str]


def classify_change(change: str) -> str:
    """Map a free-text change description onto a change category."""
    lowered = (change or "").lower()
    for category, tokens in _CHANGE_TOKENS:
        if any(token in lowered for token in tokens):
            return category
    return CHANGE_OTHER


def assess_severity(change: str) -> str:
    """Severity of a change for both same-repo dependents and remote consumers.

    An implementation-only change behind a stable contract cannot break a
    consumer, so it is reported as a warning on both sides.
    """
    category = classify_change(change)
    if category in _BREAKING_CHANGES:
        return "breaking"
    if category == CHANGE_IMPLEMENTATION:
        return "warning"
    return "info"


def find_internal_dependents(graph: EcosystemGraph, repo_id: str, changed_file: str) -> List[InternalDependent]:
    """Breadth-first walk of reversed import edges starting at ``changed_file``."""
    repo = graph.repo(repo_id)
    if repo is None:
        return []

    importers: Dict[str, List[InternalDependent]] = {}
    for edge in repo.dependencies.internal:
        importers.setdefault(edge.to_file, []).append(
            InternalDependent(file=edge.from_file, imported_names=tuple(edge.imported_names))
        )

    visited = {changed_file}
    queue = deque([changed_file])
    reached: List[InternalDependent] = []
    while queue:
        current = queue.popleft()
        for dependent in importers.get(current, []):
            if dependent.file in visited:
                continue
            visited.add(dependent.file)
            reached.append(dependent)
            queue.append(dependent.file)
    return reached


def find_bridge_consumers(graph: EcosystemGraph, repo_id: str, changed_file: str) -> List[ApiBridge]:
    """Return bridges whose provider endpoint is declared in ``changed_file``."""
    provider = graph.repo(repo_id)
    if provider is None:
        return []
    return [
        bridge
        for bridge in graph.bridges
        if bridge.provider.repo == repo_id and declares_endpoint(provider, bridge.provider.route, changed_file)
    ]


def analyze_impact(graph: EcosystemGraph, changed_files: Iterable[Sequence[str]]) -> List[ImpactPath]:
    """Compute one :class:`ImpactPath` per ``(repo, file, change)`` triple, in order."""
    paths: List[ImpactPath] = []
    for raw in changed_files:
        changed = ChangedFile(*raw)
        severity = assess_severity(changed.change)
        affected: List[AffectedEntry] = []

        for dependent in find_internal_dependents(graph, changed.repo, changed.file):
            affected.append(
                AffectedEntry(
                    repo=changed.repo,
                    file=dependent.file,
                    line=0,
                    reason=f"imports from {changed.file} via [{', '.join(dependent.imported_names)}]",
                    severity=severity,
                )
            )

        for bridge in find_bridge_consumers(graph, changed.repo, changed.file):
            affected.append(
                AffectedEntry(
                    repo=bridge.consumer.repo,
                    file=bridge.consumer.file,
                    line=bridge.consumer.line,
                    reason=f"consumes {bridge.provider.route} from {bridge.provider.repo}",
                    severity=severity,
                )
            )

        logger.debug(
            "Change %s:%s (%s) affects %d locations",
            changed.repo,
            changed.file,
            changed.change,
            len(affected),
        )
        paths.append(
            ImpactPath(
                trigger=ChangeTrigger(repo=changed.repo, file=changed.file, change=changed.change),
                affected=affected,
            )
        )
    return paths


__all__ = [
    "ChangedFile",
    "analyze_impact",
    "assess_severity",
    "classify_change",
    "find_bridge_consumers",
    "find_internal_dependents",
]
