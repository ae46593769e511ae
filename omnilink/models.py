"""Core data models shared across omnilink components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Scanner output (manifest)
# ---------------------------------------------------------------------------


@dataclass
class CommitSummary:
    """One recent commit as reported by the scanner."""

    sha: str
    message: str = ""
    author: str = ""
    date: str = ""
    files_changed: List[str] = field(default_factory=list)


@dataclass
class GitState:
    """Branch, head and working-tree state of a repository."""

    branch: str = ""
    head_sha: str = ""
    uncommitted_changes: List[str] = field(default_factory=list)
    recent_commits: List[CommitSummary] = field(default_factory=list)


@dataclass
class ExportDef:
    """Exported symbol with its signature text."""

    name: str
    kind: str
    signature: str
    file: str
    line: int = 0


@dataclass
class RouteDefinition:
    """HTTP route declared by a provider repository."""

    method: str
    path: str
    handler: str
    file: str
    line: int = 0
    input_type: Optional[str] = None
    output_type: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.method} {self.path}"


@dataclass
class ProcedureDef:
    """RPC-style procedure (query, mutation or subscription)."""

    name: str
    kind: str
    file: str
    line: int = 0
    input_type: Optional[str] = None
    output_type: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name


@dataclass
class TypeField:
    name: str
    type: str = ""
    optional: bool = False


@dataclass
class SourceLocation:
    repo: str
    file: str
    line: int = 0


@dataclass
class TypeShape:
    """A declared type, schema or model reduced to its field list."""

    name: str
    fields: List[TypeField] = field(default_factory=list)
    source: SourceLocation = field(default_factory=lambda: SourceLocation(repo="", file="unknown"))
    parent_names: List[str] = field(default_factory=list)

    def field_names(self) -> set[str]:
        return {item.name for item in self.fields}


@dataclass
class SchemaDef(TypeShape):
    """Validation schema (zod, pydantic, codable, ...)."""

    validation_kind: str = "other"


@dataclass
class ModelDef(TypeShape):
    """Persistence model, optionally bound to a table."""

    table_name: Optional[str] = None


@dataclass
class ApiSurface:
    routes: List[RouteDefinition] = field(default_factory=list)
    procedures: List[ProcedureDef] = field(default_factory=list)
    exports: List[ExportDef] = field(default_factory=list)


@dataclass
class TypeRegistry:
    types: List[TypeShape] = field(default_factory=list)
    schemas: List[SchemaDef] = field(default_factory=list)
    models: List[ModelDef] = field(default_factory=list)

    def all_shapes(self) -> List[TypeShape]:
        """Return types, schemas and models in resolution order."""
        return [*self.types, *self.schemas, *self.models]


@dataclass
class Conventions:
    naming: str = "mixed"
    file_organization: str = ""
    error_handling: str = ""
    patterns: List[str] = field(default_factory=list)
    testing_patterns: str = ""


@dataclass
class InternalDependencyEdge:
    """File-level import fact inside one repository."""

    from_file: str
    to_file: str
    imported_names: List[str] = field(default_factory=list)


@dataclass
class PackageDependency:
    name: str
    version: str = ""
    dev: bool = False


@dataclass
class Dependencies:
    internal: List[InternalDependencyEdge] = field(default_factory=list)
    external: List[PackageDependency] = field(default_factory=list)


@dataclass
class RepoManifest:
    """Normalized fact sheet produced by the scanner for one repository."""

    repo_id: str
    path: str = ""
    language: str = ""
    git_state: GitState = field(default_factory=GitState)
    api_surface: ApiSurface = field(default_factory=ApiSurface)
    type_registry: TypeRegistry = field(default_factory=TypeRegistry)
    conventions: Conventions = field(default_factory=Conventions)
    dependencies: Dependencies = field(default_factory=Dependencies)
    # Opaque scaffold owned by downstream health scoring.
    health: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Grapher output
# ---------------------------------------------------------------------------


@dataclass
class CrossRepoEdge:
    from_repo: str
    to_repo: str
    references: List[str] = field(default_factory=list)


@dataclass
class TypeInstance:
    repo: str
    type: TypeShape


@dataclass
class ConceptLineage:
    """Same-concept type declarations spanning at least two repositories."""

    concept: str
    instances: List[TypeInstance]
    alignment: str


@dataclass
class ConsumerLocation:
    repo: str
    file: str
    line: int = 0


@dataclass
class ProviderEndpointRef:
    repo: str
    route: str
    handler: str


@dataclass
class Contract:
    input_type: TypeShape
    output_type: TypeShape
    match_status: str = "compatible"
    resolved: bool = False


@dataclass
class ApiBridge:
    """Pairing of a provider route/procedure with a consumer reference."""

    consumer: ConsumerLocation
    provider: ProviderEndpointRef
    contract: Contract


@dataclass
class MismatchSide:
    repo: str
    file: str
    line: int = 0
    field: Optional[str] = None


@dataclass
class MismatchRecord:
    kind: str
    description: str
    provider: MismatchSide
    consumer: MismatchSide
    severity: str


@dataclass
class ChangeTrigger:
    repo: str
    file: str
    change: str


@dataclass
class AffectedEntry:
    repo: str
    file: str
    line: int
    reason: str
    severity: str


@dataclass
class ImpactPath:
    trigger: ChangeTrigger
    affected: List[AffectedEntry] = field(default_factory=list)


@dataclass
class EcosystemGraph:
    """Assembled cross-repo consistency graph."""

    repos: List[RepoManifest] = field(default_factory=list)
    bridges: List[ApiBridge] = field(default_factory=list)
    shared_types: List[ConceptLineage] = field(default_factory=list)
    contract_mismatches: List[MismatchRecord] = field(default_factory=list)
    impact_paths: List[ImpactPath] = field(default_factory=list)

    def repo(self, repo_id: str) -> Optional[RepoManifest]:
        for manifest in self.repos:
            if manifest.repo_id == repo_id:
                return manifest
        return None
