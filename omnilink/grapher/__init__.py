"""Graph builders that fuse per-repo manifests into cross-repo facts."""

from __future__ import annotations

from .api_contracts import compare_types, map_api_contracts
from .dependency_graph import build_internal_deps, detect_cross_repo_deps
from .impact import ChangedFile, analyze_impact, assess_severity, classify_change
from .matchers import TextMatcher, substring_match, whole_word_match
from .mismatches import find_contract_mismatches
from .type_flow import map_type_flows

__all__ = [
    "ChangedFile",
    "TextMatcher",
    "analyze_impact",
    "assess_severity",
    "build_internal_deps",
    "classify_change",
    "compare_types",
    "detect_cross_repo_deps",
    "find_contract_mismatches",
    "map_api_contracts",
    "map_type_flows",
    "substring_match",
    "whole_word_match",
]
