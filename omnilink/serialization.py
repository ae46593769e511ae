"""Conversion between scanner JSON, manifest models and exported graphs.

Scanner output and downstream consumers use camelCase keys; the models use
snake_case attributes. Ingestion is lenient: missing optional keys fall back
to empty values, since absence is "no signal" rather than an error.
"""

from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .models import (
    ApiSurface,
    CommitSummary,
    Conventions,
    Dependencies,
    EcosystemGraph,
    ExportDef,
    GitState,
    InternalDependencyEdge,
    ModelDef,
    PackageDependency,
    ProcedureDef,
    RepoManifest,
    RouteDefinition,
    SchemaDef,
    SourceLocation,
    TypeField,
    TypeRegistry,
    TypeShape,
)

# Attribute names whose wire form is not a plain camelCase conversion.
_WIRE_NAMES = {
    "from_file": "from",
    "to_file": "to",
    "imported_names": "imports",
    "from_repo": "from",
    "to_repo": "to",
    "validation_kind": "kind",
}


class ManifestError(RuntimeError):
    """Raised when a manifest document cannot be read or is not a mapping."""


def load_manifest(path: Path) -> RepoManifest:
    """Read a scanner manifest JSON document from disk."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ManifestError(f"Failed to read manifest {path}: {exc}") from exc
    return manifest_from_dict(data)


def manifest_from_dict(data: Any) -> RepoManifest:
    if not isinstance(data, Mapping):
        raise ManifestError("Manifest must be a mapping")

    git = _as_mapping(data.get("gitState"))
    surface = _as_mapping(data.get("apiSurface"))
    registry = _as_mapping(data.get("typeRegistry"))
    conventions = _as_mapping(data.get("conventions"))
    dependencies = _as_mapping(data.get("dependencies"))
    repo_id = str(data.get("repoId", ""))

    return RepoManifest(
        repo_id=repo_id,
        path=str(data.get("path", "")),
        language=str(data.get("language", "")),
        git_state=GitState(
            branch=str(git.get("branch", "")),
            head_sha=str(git.get("headSha", "")),
            uncommitted_changes=_as_str_list(git.get("uncommittedChanges")),
            recent_commits=[
                CommitSummary(
                    sha=str(item.get("sha", "")),
                    message=str(item.get("message", "")),
                    author=str(item.get("author", "")),
                    date=str(item.get("date", "")),
                    files_changed=_as_str_list(item.get("filesChanged")),
                )
                for item in _as_mappings(git.get("recentCommits"))
            ],
        ),
        api_surface=ApiSurface(
            routes=[
                RouteDefinition(
                    method=str(item.get("method", "")).upper(),
                    path=str(item.get("path", "")),
                    handler=str(item.get("handler", "")),
                    file=str(item.get("file", "")),
                    line=_as_int(item.get("line")),
                    input_type=_optional_str(item.get("inputType")),
                    output_type=_optional_str(item.get("outputType")),
                )
                for item in _as_mappings(surface.get("routes"))
            ],
            procedures=[
                ProcedureDef(
                    name=str(item.get("name", "")),
                    kind=str(item.get("kind", "query")),
                    file=str(item.get("file", "")),
                    line=_as_int(item.get("line")),
                    input_type=_optional_str(item.get("inputType")),
                    output_type=_optional_str(item.get("outputType")),
                )
                for item in _as_mappings(surface.get("procedures"))
            ],
            exports=[
                ExportDef(
                    name=str(item.get("name", "")),
                    kind=str(item.get("kind", "")),
                    signature=str(item.get("signature", "")),
                    file=str(item.get("file", "")),
                    line=_as_int(item.get("line")),
                )
                for item in _as_mappings(surface.get("exports"))
            ],
        ),
        type_registry=TypeRegistry(
            types=[_shape_from_dict(item, repo_id, TypeShape) for item in _as_mappings(registry.get("types"))],
            schemas=[
                _shape_from_dict(item, repo_id, SchemaDef, validation_kind=str(item.get("kind", "other")))
                for item in _as_mappings(registry.get("schemas"))
            ],
            models=[
                _shape_from_dict(item, repo_id, ModelDef, table_name=_optional_str(item.get("tableName")))
                for item in _as_mappings(registry.get("models"))
            ],
        ),
        conventions=Conventions(
            naming=str(conventions.get("naming", "mixed")),
            file_organization=str(conventions.get("fileOrganization", "")),
            error_handling=str(conventions.get("errorHandling", "")),
            patterns=_as_str_list(conventions.get("patterns")),
            testing_patterns=str(conventions.get("testingPatterns", "")),
        ),
        dependencies=Dependencies(
            internal=[
                InternalDependencyEdge(
                    from_file=str(item.get("from", "")),
                    to_file=str(item.get("to", "")),
                    imported_names=_as_str_list(item.get("imports")),
                )
                for item in _as_mappings(dependencies.get("internal"))
            ],
            external=[
                PackageDependency(
                    name=str(item.get("name", "")),
                    version=str(item.get("version", "")),
                    dev=bool(item.get("dev", False)),
                )
                for item in _as_mappings(dependencies.get("external"))
            ],
        ),
        health=dict(_as_mapping(data.get("health"))),
    )


def _shape_from_dict(item: Mapping[str, Any], repo_id: str, cls: type, **extra: Any) -> Any:
    source = _as_mapping(item.get("source"))
    return cls(
        name=str(item.get("name", "")),
        fields=[
            TypeField(
                name=str(entry.get("name", "")),
                type=str(entry.get("type", "")),
                optional=bool(entry.get("optional", False)),
            )
            for entry in _as_mappings(item.get("fields"))
        ],
        source=SourceLocation(
            repo=str(source.get("repo", repo_id)),
            file=str(source.get("file", "unknown")),
            line=_as_int(source.get("line")),
        ),
        parent_names=_as_str_list(item.get("parentNames")),
        **extra,
    )


def to_wire(value: Any) -> Any:
    """Convert models (recursively) into JSON-ready camelCase structures."""
    if is_dataclass(value) and not isinstance(value, type):
        return {_wire_name(item.name): to_wire(getattr(value, item.name)) for item in fields(value)}
    if isinstance(value, Mapping):
        return {str(key): to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_wire(item) for item in value]
    return value


def graph_to_dict(graph: EcosystemGraph) -> Dict[str, Any]:
    """Export an assembled graph as plain data for downstream consumers."""
    return to_wire(graph)


def dump_graph(graph: EcosystemGraph, *, indent: Optional[int] = 2) -> str:
    return json.dumps(graph_to_dict(graph), indent=indent)


def _wire_name(name: str) -> str:
    if name in _WIRE_NAMES:
        return _WIRE_NAMES[name]
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_mappings(value: Any) -> List[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, str) and value else None


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return 0
    return 0


__all__ = [
    "ManifestError",
    "dump_graph",
    "graph_to_dict",
    "load_manifest",
    "manifest_from_dict",
    "to_wire",
]
