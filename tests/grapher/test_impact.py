"""Tests for change impact tracing."""

from __future__ import annotations

import pytest

from omnilink.grapher.api_contracts import map_api_contracts
from omnilink.grapher.impact import analyze_impact, assess_severity, classify_change
from omnilink.models import EcosystemGraph
from tests._fixtures.manifest_builder import edge, export, make_manifest, procedure, route


def _backend(**kwargs):
    return make_manifest(
        "backend",
        routes=[route("GET", "/api/items", handler="listItems", file="src/routes.ts")],
        **kwargs,
    )


def _graph_with_bridge() -> EcosystemGraph:
    backend = _backend(internal=[edge("src/app.ts", "src/routes.ts", "router")])
    ios = make_manifest(
        "ios-app",
        exports=[export("fetchItems", 'get("/api/items")', file="Api/Items.swift", line=21)],
    )
    repos = [backend, ios]
    return EcosystemGraph(repos=repos, bridges=map_api_contracts(repos))


def test_type_change_reaches_direct_dependents_as_breaking() -> None:
    backend = make_manifest(
        "backend",
        internal=[
            edge("src/routes.ts", "src/types/user.ts", "User"),
            edge("src/service.ts", "src/types/user.ts", "User", "UserId"),
        ],
    )
    graph = EcosystemGraph(repos=[backend])

    paths = analyze_impact(graph, [("backend", "src/types/user.ts", "type-change")])

    assert len(paths) == 1
    affected = paths[0].affected
    assert sorted(item.file for item in affected) == ["src/routes.ts", "src/service.ts"]
    assert {item.severity for item in affected} == {"breaking"}
    service = next(item for item in affected if item.file == "src/service.ts")
    assert service.reason == "imports from src/types/user.ts via [User, UserId]"
    assert service.line == 0


def test_dependents_are_traced_transitively() -> None:
    backend = make_manifest(
        "backend",
        internal=[
            edge("src/service.ts", "src/db.ts", "query"),
            edge("src/routes.ts", "src/service.ts", "getUser"),
            edge("src/app.ts", "src/routes.ts", "router"),
        ],
    )

    paths = analyze_impact(EcosystemGraph(repos=[backend]), [("backend", "src/db.ts", "rename")])

    assert [item.file for item in paths[0].affected] == ["src/service.ts", "src/routes.ts", "src/app.ts"]


def test_cyclic_edges_terminate_without_revisits() -> None:
    backend = make_manifest(
        "backend",
        internal=[
            edge("src/a.ts", "src/b.ts", "b"),
            edge("src/b.ts", "src/a.ts", "a"),
            edge("src/c.ts", "src/a.ts", "a"),
        ],
    )

    paths = analyze_impact(EcosystemGraph(repos=[backend]), [("backend", "src/a.ts", "type-change")])

    files = [item.file for item in paths[0].affected]
    assert sorted(files) == ["src/b.ts", "src/c.ts"]
    assert len(files) == len(set(files))


def test_cross_repo_consumer_of_changed_route_file() -> None:
    graph = _graph_with_bridge()

    paths = analyze_impact(graph, [("backend", "src/routes.ts", "route-change")])

    cross = [item for item in paths[0].affected if item.repo == "ios-app"]
    assert len(cross) == 1
    assert (cross[0].file, cross[0].line) == ("Api/Items.swift", 21)
    assert cross[0].reason == "consumes GET /api/items from backend"
    assert cross[0].severity == "breaking"


def test_implementation_change_is_only_a_warning_across_repos() -> None:
    graph = _graph_with_bridge()

    paths = analyze_impact(graph, [("backend", "src/routes.ts", "implementation-change")])

    cross = [item for item in paths[0].affected if item.repo == "ios-app"]
    assert [item.severity for item in cross] == ["warning"]
    internal = [item for item in paths[0].affected if item.repo == "backend"]
    assert [item.severity for item in internal] == ["warning"]


@pytest.mark.parametrize(
    ("change", "severity"),
    [("implementation-change", "warning"), ("type-change", "breaking")],
)
def test_procedure_file_change_reaches_bridge_consumer(change: str, severity: str) -> None:
    backend = make_manifest(
        "backend",
        procedures=[procedure("user.getProfile", file="src/trpc/user.ts", line=7)],
    )
    web = make_manifest(
        "web",
        exports=[export("useProfile", "trpc.user.getProfile.useQuery()", file="src/hooks.ts", line=4)],
    )
    repos = [backend, web]
    graph = EcosystemGraph(repos=repos, bridges=map_api_contracts(repos))

    paths = analyze_impact(graph, [("backend", "src/trpc/user.ts", change)])

    assert [(item.repo, item.file, item.line, item.severity) for item in paths[0].affected] == [
        ("web", "src/hooks.ts", 4, severity)
    ]
    assert paths[0].affected[0].reason == "consumes user.getProfile from backend"

    # A different file in the provider repo does not declare the procedure.
    other = analyze_impact(graph, [("backend", "src/trpc/post.ts", change)])
    assert other[0].affected == []


def test_bridge_is_not_hit_by_unrelated_file() -> None:
    graph = _graph_with_bridge()

    paths = analyze_impact(graph, [("backend", "src/util.ts", "type-change")])

    assert paths[0].affected == []


def test_one_path_per_change_even_when_unaffected() -> None:
    graph = _graph_with_bridge()
    changes = [
        ("backend", "src/util.ts", "implementation-change"),
        ("unknown-repo", "src/x.ts", "delete"),
        ("backend", "src/routes.ts", "type-change"),
    ]

    paths = analyze_impact(graph, changes)

    assert [(path.trigger.repo, path.trigger.file) for path in paths] == [
        ("backend", "src/util.ts"),
        ("unknown-repo", "src/x.ts"),
        ("backend", "src/routes.ts"),
    ]
    assert paths[1].affected == []
    assert analyze_impact(graph, []) == []


@pytest.mark.parametrize(
    ("change", "category", "severity"),
    [
        ("type-change", "type-change", "breaking"),
        ("route change", "route-change", "breaking"),
        ("rename", "rename", "breaking"),
        ("removed file", "delete", "breaking"),
        ("implementation-change", "implementation-change", "warning"),
        ("docs tweak", "other", "info"),
        ("", "other", "info"),
    ],
)
def test_change_classification_and_severity(change: str, category: str, severity: str) -> None:
    assert classify_change(change) == category
    assert assess_severity(change) == severity
