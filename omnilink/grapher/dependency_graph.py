"""Internal and cross-repo dependency mapping."""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Set, Tuple

from ..models import CrossRepoEdge, ExportDef, InternalDependencyEdge, RepoManifest
from .matchers import TextMatcher, substring_match, whole_word_match

# Type-like declarations rarely import anything through their signature.
_TYPE_LIKE_KINDS = {"type", "interface", "enum"}
_SHARED_TYPE_KINDS = {"type", "interface"}


def build_internal_deps(
    manifest: RepoManifest,
    *,
    word_matcher: TextMatcher = whole_word_match,
) -> List[InternalDependencyEdge]:
    """Return the repo's explicit import edges enriched with inferred ones.

    Explicit edges are copied verbatim. Inferred edges come from export
    signatures that mention a symbol declared in a different file; an
    inferred edge whose ``(from, to)`` pair already exists only extends that
    edge's imported names.
    """
    edges: List[InternalDependencyEdge] = [
        InternalDependencyEdge(
            from_file=edge.from_file,
            to_file=edge.to_file,
            imported_names=list(edge.imported_names),
        )
        for edge in manifest.dependencies.internal
    ]

    for inferred in _infer_from_signatures(manifest.api_surface.exports, word_matcher):
        existing = next(
            (
                edge
                for edge in edges
                if edge.from_file == inferred.from_file and edge.to_file == inferred.to_file
            ),
            None,
        )
        if existing is None:
            edges.append(inferred)
            continue
        for name in inferred.imported_names:
            if name not in existing.imported_names:
                existing.imported_names.append(name)

    return edges


def _infer_from_signatures(
    exports: Sequence[ExportDef], word_matcher: TextMatcher
) -> List[InternalDependencyEdge]:
    declared_in: Dict[str, List[str]] = {}
    for export in exports:
        files = declared_in.setdefault(export.name, [])
        if export.file not in files:
            files.append(export.file)

    found: Dict[str, Dict[str, Set[str]]] = {}
    for export in exports:
        if export.kind in _TYPE_LIKE_KINDS:
            continue
        for name, files in declared_in.items():
            if name == export.name:
                continue
            if not word_matcher(name, export.signature):
                continue
            for target in files:
                if target == export.file:
                    continue
                found.setdefault(export.file, {}).setdefault(target, set()).add(name)

    return [
        InternalDependencyEdge(from_file=source, to_file=target, imported_names=sorted(names))
        for source, targets in found.items()
        for target, names in targets.items()
    ]


class _ReferenceCollector:
    """Accumulates labelled repo-to-repo references, ignoring self edges."""

    def __init__(self) -> None:
        self._refs: Dict[Tuple[str, str], Set[str]] = {}

    def add(self, from_repo: str, to_repo: str, label: str) -> None:
        if from_repo == to_repo:
            return
        self._refs.setdefault((from_repo, to_repo), set()).add(label)

    def edges(self) -> List[CrossRepoEdge]:
        return [
            CrossRepoEdge(from_repo=source, to_repo=target, references=sorted(labels))
            for (source, target), labels in self._refs.items()
        ]


def detect_cross_repo_deps(
    manifests: Sequence[RepoManifest],
    *,
    word_matcher: TextMatcher = whole_word_match,
    substring_matcher: TextMatcher = substring_match,
) -> List[CrossRepoEdge]:
    """Detect repo-to-repo references from shared types, URLs and handler names."""
    if len(manifests) < 2:
        return []

    collector = _ReferenceCollector()
    _detect_shared_type_names(manifests, collector)
    _detect_url_references(manifests, collector, substring_matcher)
    _detect_handler_references(manifests, collector, word_matcher)
    return collector.edges()


def _detect_shared_type_names(
    manifests: Sequence[RepoManifest], collector: _ReferenceCollector
) -> None:
    names_by_repo: List[Tuple[str, Set[str]]] = []
    for manifest in manifests:
        names = {shape.name for shape in manifest.type_registry.types}
        names.update(
            export.name
            for export in manifest.api_surface.exports
            if export.kind in _SHARED_TYPE_KINDS
        )
        names_by_repo.append((manifest.repo_id, names))

    for index, (repo_a, names_a) in enumerate(names_by_repo):
        for repo_b, names_b in names_by_repo[index + 1 :]:
            for name in sorted(names_a & names_b):
                label = f"shared-type:{name}"
                collector.add(repo_a, repo_b, label)
                collector.add(repo_b, repo_a, label)


def _export_texts(exports: Iterable[ExportDef]) -> Iterable[Tuple[str, str]]:
    for export in exports:
        yield export.signature, export.name


def _detect_url_references(
    manifests: Sequence[RepoManifest],
    collector: _ReferenceCollector,
    matcher: TextMatcher,
) -> None:
    for provider in manifests:
        paths = [route.path for route in provider.api_surface.routes]
        if not paths:
            continue
        for consumer in manifests:
            if consumer.repo_id == provider.repo_id:
                continue
            for signature, name in _export_texts(consumer.api_surface.exports):
                for path in paths:
                    if matcher(path, signature) or matcher(path, name):
                        collector.add(consumer.repo_id, provider.repo_id, path)


def _detect_handler_references(
    manifests: Sequence[RepoManifest],
    collector: _ReferenceCollector,
    matcher: TextMatcher,
) -> None:
    for provider in manifests:
        handlers = sorted({route.handler for route in provider.api_surface.routes if route.handler})
        if not handlers:
            continue
        for consumer in manifests:
            if consumer.repo_id == provider.repo_id:
                continue
            for signature, name in _export_texts(consumer.api_surface.exports):
                for handler in handlers:
                    if matcher(handler, signature) or matcher(handler, name):
                        collector.add(consumer.repo_id, provider.repo_id, f"handler:{handler}")


__all__ = ["build_internal_deps", "detect_cross_repo_deps"]
