"""Cross-repo concept lineage detection for types, schemas and models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Sequence, Set, Tuple

from ..logging import get_logger
from ..models import ConceptLineage, RepoManifest, TypeField, TypeInstance, TypeShape

# Ordered; stripping walks this list once, so "TaskFormData" -> "TaskForm" -> "Task".
CONCEPT_SUFFIXES: Tuple[str, ...] = (
    "DTO", "Dto", "dto",
    "Model", "model",
    "Entity", "entity",
    "Schema", "schema",
    "Response", "response",
    "Request", "request",
    "Input", "input",
    "Output", "output",
    "Payload", "payload",
    "Data", "data",
    "Type", "type",
    "Params", "params",
    "Args", "args",
    "Form", "form",
    "FormData",
)

DEFAULT_SIMILARITY_THRESHOLD = 0.5
_MIN_CONCEPT_LENGTH = 2

logger = get_logger("grapher.type_flow")


@dataclass
class _Bucket:
    concept: str
    instances: List[TypeInstance] = field(default_factory=list)

    def add(self, repo: str, shape: TypeShape) -> None:
        if any(item.repo == repo and item.type.name == shape.name for item in self.instances):
            return
        self.instances.append(TypeInstance(repo=repo, type=shape))

    def repos(self) -> Set[str]:
        return {item.repo for item in self.instances}


class _BucketIndex:
    """Concept buckets keyed case-insensitively, keeping first-seen casing."""

    def __init__(self) -> None:
        self._buckets: Dict[str, _Bucket] = {}

    def get_or_create(self, concept: str) -> _Bucket:
        key = concept.lower()
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = _Bucket(concept=concept)
            self._buckets[key] = bucket
        return bucket

    def get(self, concept: str) -> _Bucket | None:
        return self._buckets.get(concept.lower())

    def __iter__(self) -> Iterator[_Bucket]:
        return iter(self._buckets.values())


def concept_names(type_name: str) -> List[str]:
    """Return the literal name plus every single-suffix-stripped variant."""
    names = [type_name]
    for suffix in CONCEPT_SUFFIXES:
        if type_name.endswith(suffix) and len(type_name) > len(suffix):
            stripped = type_name[: -len(suffix)]
            if len(stripped) >= _MIN_CONCEPT_LENGTH and stripped not in names:
                names.append(stripped)
    return names


def strip_all_suffixes(name: str) -> str:
    result = name
    for suffix in CONCEPT_SUFFIXES:
        if result.endswith(suffix) and len(result) > len(suffix):
            result = result[: -len(suffix)]
    return result


def pick_concept_name(name_a: str, name_b: str) -> str:
    """Derive a concept name for two types matched on field similarity."""
    stripped_a = strip_all_suffixes(name_a)
    stripped_b = strip_all_suffixes(name_b)
    if stripped_a.lower() == stripped_b.lower():
        return stripped_a
    return stripped_a if len(name_a) <= len(name_b) else stripped_b


def jaccard_similarity(fields_a: Iterable[TypeField], fields_b: Iterable[TypeField]) -> float:
    """Jaccard index of field names, case-insensitive; two empty sets score 1."""
    names_a = {item.name.lower() for item in fields_a}
    names_b = {item.name.lower() for item in fields_b}
    if not names_a and not names_b:
        return 1.0
    union = names_a | names_b
    return len(names_a & names_b) / len(union)


def determine_alignment(shapes: Sequence[TypeShape]) -> str:
    """Classify a lineage as ``aligned``, ``subset`` or ``diverged``."""
    if len(shapes) < 2:
        return "aligned"
    field_sets = [shape.field_names() for shape in shapes]
    if all(names == field_sets[0] for names in field_sets):
        return "aligned"
    for index, names in enumerate(field_sets):
        for other_index, other in enumerate(field_sets):
            if index != other_index and names < other:
                return "subset"
    return "diverged"


def _collect_shapes(manifests: Sequence[RepoManifest]) -> List[Tuple[str, List[TypeShape]]]:
    return [(manifest.repo_id, manifest.type_registry.all_shapes()) for manifest in manifests]


def map_type_flows(
    manifests: Sequence[RepoManifest],
    *,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> List[ConceptLineage]:
    """Cluster declarations from all repos into cross-repo concept lineages.

    Declarations are grouped by name (literal and suffix-stripped). Those
    still confined to a single repo are then paired across repos on
    field-name Jaccard similarity strictly above ``similarity_threshold``.
    Only buckets spanning two or more repos become lineages.
    """
    if len(manifests) < 2:
        return []

    shapes_by_repo = _collect_shapes(manifests)
    index = _BucketIndex()

    for repo_id, shapes in shapes_by_repo:
        for shape in shapes:
            for concept in concept_names(shape.name):
                index.get_or_create(concept).add(repo_id, shape)

    ungrouped: List[Tuple[str, List[TypeShape]]] = []
    for repo_id, shapes in shapes_by_repo:
        loose = [shape for shape in shapes if not _is_grouped(index, shape)]
        if loose:
            ungrouped.append((repo_id, loose))

    for position, (repo_a, shapes_a) in enumerate(ungrouped):
        for repo_b, shapes_b in ungrouped[position + 1 :]:
            if repo_a == repo_b:
                continue
            for shape_a in shapes_a:
                if not shape_a.fields:
                    continue
                for shape_b in shapes_b:
                    if not shape_b.fields:
                        continue
                    score = jaccard_similarity(shape_a.fields, shape_b.fields)
                    if score <= similarity_threshold:
                        continue
                    concept = pick_concept_name(shape_a.name, shape_b.name)
                    logger.debug(
                        "Field similarity %.2f links %s:%s and %s:%s as %s",
                        score,
                        repo_a,
                        shape_a.name,
                        repo_b,
                        shape_b.name,
                        concept,
                    )
                    bucket = index.get_or_create(concept)
                    bucket.add(repo_a, shape_a)
                    bucket.add(repo_b, shape_b)

    lineages: List[ConceptLineage] = []
    for bucket in index:
        if len(bucket.repos()) < 2:
            continue
        instances = list(bucket.instances)
        lineages.append(
            ConceptLineage(
                concept=bucket.concept,
                instances=instances,
                alignment=determine_alignment([item.type for item in instances]),
            )
        )
    logger.debug("Mapped %d concept lineages across %d repos", len(lineages), len(manifests))
    return lineages


def _is_grouped(index: _BucketIndex, shape: TypeShape) -> bool:
    for concept in concept_names(shape.name):
        bucket = index.get(concept)
        if bucket is not None and len(bucket.repos()) > 1:
            return True
    return False


__all__ = [
    "CONCEPT_SUFFIXES",
    "concept_names",
    "determine_alignment",
    "jaccard_similarity",
    "map_type_flows",
    "pick_concept_name",
    "strip_all_suffixes",
]
