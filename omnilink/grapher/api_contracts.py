"""API contract mapping: bridge detection and payload comparison across repos."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

from ..logging import get_logger
from ..models import (
    ApiBridge,
    ConsumerLocation,
    Contract,
    ExportDef,
    ProcedureDef,
    ProviderEndpointRef,
    RepoManifest,
    RouteDefinition,
    SourceLocation,
    TypeShape,
)
from .matchers import TextMatcher, substring_match

MATCH_EXACT = "exact"
MATCH_COMPATIBLE = "compatible"
MATCH_MISMATCH = "mismatch"

ENDPOINT_ROUTE = "route"
ENDPOINT_PROCEDURE = "procedure"

# Status recorded when either side of a contract cannot be resolved.
NEUTRAL_MATCH_STATUS = MATCH_COMPATIBLE

logger = get_logger("grapher.api_contracts")


@dataclass(frozen=True)
class ProviderEndpoint:
    """A route or procedure offered by one repository."""

    manifest: RepoManifest
    kind: str
    endpoint: Union[RouteDefinition, ProcedureDef]

    @property
    def repo_id(self) -> str:
        return self.manifest.repo_id

    @property
    def label(self) -> str:
        return self.endpoint.label

    @property
    def handler(self) -> str:
        if isinstance(self.endpoint, RouteDefinition):
            return self.endpoint.handler
        return self.endpoint.name

    @property
    def input_type(self) -> Optional[str]:
        return self.endpoint.input_type

    @property
    def output_type(self) -> Optional[str]:
        return self.endpoint.output_type

    def needles(self) -> List[str]:
        """Return the literal strings a consumer reference must contain."""
        if isinstance(self.endpoint, RouteDefinition):
            # "GET /api/items" contains "/api/items", so the path alone covers both forms.
            return [self.endpoint.path]
        return [self.endpoint.name]


def compare_types(provider_type: TypeShape, consumer_type: TypeShape) -> str:
    """Compare two shapes by field names.

    ``exact`` when the field sets are equal, ``compatible`` when the consumer
    reads a strict subset of what the provider exposes, and ``mismatch``
    when the consumer expects a field the provider does not have.
    """
    provider_fields = provider_type.field_names()
    consumer_fields = consumer_type.field_names()
    if not consumer_fields <= provider_fields:
        return MATCH_MISMATCH
    if consumer_fields == provider_fields:
        return MATCH_EXACT
    return MATCH_COMPATIBLE


def find_type(manifest: RepoManifest, type_name: str) -> Optional[TypeShape]:
    """Resolve a declared type by name: types, then schemas, then models."""
    for shape in manifest.type_registry.all_shapes():
        if shape.name == type_name:
            return shape
    return None


def placeholder_type(name: Optional[str], repo: str) -> TypeShape:
    return TypeShape(name=name or "unknown", fields=[], source=SourceLocation(repo=repo, file="unknown", line=0))


def collect_providers(manifests: Sequence[RepoManifest]) -> List[ProviderEndpoint]:
    providers: List[ProviderEndpoint] = []
    for manifest in manifests:
        providers.extend(
            ProviderEndpoint(manifest=manifest, kind=ENDPOINT_ROUTE, endpoint=route)
            for route in manifest.api_surface.routes
        )
        providers.extend(
            ProviderEndpoint(manifest=manifest, kind=ENDPOINT_PROCEDURE, endpoint=procedure)
            for procedure in manifest.api_surface.procedures
        )
    return providers


def find_consumer_references(
    consumer: RepoManifest,
    provider: ProviderEndpoint,
    matcher: TextMatcher = substring_match,
) -> List[ExportDef]:
    """Return the consumer exports that textually reference ``provider``."""
    needles = provider.needles()
    return [
        export
        for export in consumer.api_surface.exports
        if any(matcher(needle, export.signature) or matcher(needle, export.name) for needle in needles)
    ]


def map_api_contracts(
    manifests: Sequence[RepoManifest],
    *,
    matcher: TextMatcher = substring_match,
) -> List[ApiBridge]:
    """Pair every provider route/procedure with consumer references to it."""
    providers = collect_providers(manifests)
    if not providers:
        return []

    bridges: List[ApiBridge] = []
    for provider in providers:
        for consumer in manifests:
            if consumer.repo_id == provider.repo_id:
                continue
            for export in find_consumer_references(consumer, provider, matcher):
                bridges.append(_build_bridge(provider, consumer, export))

    logger.debug("Detected %d API bridges from %d providers", len(bridges), len(providers))
    return bridges


def _build_bridge(provider: ProviderEndpoint, consumer: RepoManifest, export: ExportDef) -> ApiBridge:
    output_name = provider.output_type
    provider_output = find_type(provider.manifest, output_name) if output_name else None
    consumer_output = find_type(consumer, output_name) if output_name else None

    resolved = provider_output is not None and consumer_output is not None
    if resolved:
        match_status = compare_types(provider_output, consumer_output)
    else:
        match_status = NEUTRAL_MATCH_STATUS

    return ApiBridge(
        consumer=ConsumerLocation(repo=consumer.repo_id, file=export.file, line=export.line),
        provider=ProviderEndpointRef(repo=provider.repo_id, route=provider.label, handler=provider.handler),
        contract=Contract(
            input_type=_resolve_input_type(provider),
            output_type=provider_output or placeholder_type(output_name, provider.repo_id),
            match_status=match_status,
            resolved=resolved,
        ),
    )


def _resolve_input_type(provider: ProviderEndpoint) -> TypeShape:
    name = provider.input_type
    if name:
        found = find_type(provider.manifest, name)
        if found is not None:
            return found
    return placeholder_type(name, provider.repo_id)


def declares_endpoint(manifest: RepoManifest, label: str, file: str) -> bool:
    """Return True when ``file`` declares the route or procedure named ``label``."""
    endpoints: Iterable = (*manifest.api_surface.routes, *manifest.api_surface.procedures)
    return any(endpoint.label == label and endpoint.file == file for endpoint in endpoints)


__all__ = [
    "ENDPOINT_PROCEDURE",
    "ENDPOINT_ROUTE",
    "MATCH_COMPATIBLE",
    "MATCH_EXACT",
    "MATCH_MISMATCH",
    "ProviderEndpoint",
    "collect_providers",
    "compare_types",
    "declares_endpoint",
    "find_type",
    "map_api_contracts",
]
