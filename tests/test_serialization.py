"""Tests for manifest ingestion and graph export."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from omnilink import build_ecosystem_graph
from omnilink.serialization import ManifestError, dump_graph, graph_to_dict, load_manifest, manifest_from_dict

_BACKEND = {
    "repoId": "backend",
    "path": "/repos/backend",
    "language": "typescript",
    "gitState": {
        "branch": "main",
        "headSha": "abc123",
        "uncommittedChanges": ["src/routes/items.ts"],
        "recentCommits": [{"sha": "abc123", "message": "add items", "author": "dev", "date": "2024-01-01"}],
    },
    "apiSurface": {
        "routes": [
            {
                "method": "get",
                "path": "/api/items",
                "handler": "listItems",
                "file": "src/routes/items.ts",
                "line": 4,
                "outputType": "ItemList",
            }
        ],
        "procedures": [],
        "exports": [],
    },
    "typeRegistry": {
        "types": [
            {
                "name": "ItemList",
                "fields": [{"name": "items", "type": "Item[]"}, {"name": "total", "type": "number"}],
                "source": {"repo": "backend", "file": "src/types.ts", "line": 2},
            }
        ],
        "schemas": [
            {
                "name": "ItemSchema",
                "kind": "zod",
                "fields": [{"name": "id", "type": "string", "optional": True}],
                "source": {"repo": "backend", "file": "src/schemas.ts", "line": 1},
            }
        ],
        "models": [],
    },
    "conventions": {"naming": "camelCase", "fileOrganization": "feature-based", "patterns": ["repository"]},
    "dependencies": {
        "internal": [{"from": "src/app.ts", "to": "src/routes/items.ts", "imports": ["router"]}],
        "external": [{"name": "express", "version": "4.18.2", "dev": False}],
    },
    "health": {"testCoverage": None, "lintErrors": 0},
}

_CLIENT = {
    "repoId": "web",
    "apiSurface": {
        "exports": [
            {"name": "fetchItems", "kind": "function", "signature": "get('/api/items')", "file": "src/api.ts", "line": 3}
        ]
    },
    "typeRegistry": {
        "types": [
            {"name": "ItemList", "fields": [{"name": "items", "type": "Item[]"}, {"name": "total", "type": "number"}]}
        ]
    },
}


def test_manifest_from_dict_maps_scanner_keys() -> None:
    manifest = manifest_from_dict(_BACKEND)

    assert manifest.repo_id == "backend"
    assert manifest.git_state.uncommitted_changes == ["src/routes/items.ts"]
    assert manifest.git_state.recent_commits[0].message == "add items"
    assert manifest.api_surface.routes[0].method == "GET"
    assert manifest.api_surface.routes[0].output_type == "ItemList"
    assert manifest.api_surface.routes[0].input_type is None
    assert manifest.type_registry.schemas[0].validation_kind == "zod"
    assert manifest.type_registry.schemas[0].fields[0].optional is True
    assert manifest.conventions.file_organization == "feature-based"
    assert manifest.dependencies.internal[0].imported_names == ["router"]
    assert manifest.dependencies.external[0].name == "express"
    assert manifest.health == {"testCoverage": None, "lintErrors": 0}


def test_missing_sections_are_empty_not_errors() -> None:
    manifest = manifest_from_dict(_CLIENT)

    assert manifest.git_state.uncommitted_changes == []
    assert manifest.api_surface.routes == []
    assert manifest.dependencies.internal == []
    # Source location defaults to the owning repo.
    assert manifest.type_registry.types[0].source.repo == "web"


def test_manifest_from_dict_rejects_non_mapping() -> None:
    with pytest.raises(ManifestError):
        manifest_from_dict(["not", "a", "manifest"])


def test_load_manifest_reads_json(write_manifest, tmp_path: Path) -> None:
    assert load_manifest(write_manifest("backend", _BACKEND)).repo_id == "backend"

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(ManifestError, match="Failed to read manifest"):
        load_manifest(broken)
    with pytest.raises(ManifestError):
        load_manifest(tmp_path / "missing.json")


def test_graph_export_uses_wire_names() -> None:
    graph = build_ecosystem_graph([manifest_from_dict(_BACKEND), manifest_from_dict(_CLIENT)])

    data = graph_to_dict(graph)

    assert set(data) == {"repos", "bridges", "sharedTypes", "contractMismatches", "impactPaths"}
    bridge = data["bridges"][0]
    assert bridge["provider"]["route"] == "GET /api/items"
    assert bridge["contract"]["matchStatus"] == "exact"
    edge = data["repos"][0]["dependencies"]["internal"][0]
    assert edge == {"from": "src/app.ts", "to": "src/routes/items.ts", "imports": ["router"]}
    assert data["repos"][0]["typeRegistry"]["schemas"][0]["kind"] == "zod"
    assert data["impactPaths"][0]["trigger"]["change"] == "route-change"

    assert json.loads(dump_graph(graph)) == data
