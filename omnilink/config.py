"""Configuration loading for omnilink (.omnilink.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .grapher.type_flow import DEFAULT_SIMILARITY_THRESHOLD

CONFIG_FILENAME = ".omnilink.yml"
MAX_REPOS = 4


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is invalid."""


@dataclass
class RepoConfig:
    """One repository participating in the ecosystem."""

    name: str
    path: Path
    language: str
    role: Optional[str] = None


@dataclass
class GrapherConfig:
    """Tuning knobs for the graph builder heuristics."""

    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD


@dataclass
class OmniLinkConfig:
    """Represents the settings defined in .omnilink.yml."""

    root: Path
    repos: List[RepoConfig] = field(default_factory=list)
    grapher: GrapherConfig = field(default_factory=GrapherConfig)


def load_config(config_path: Path) -> OmniLinkConfig:
    """Load configuration from disk; a missing or empty file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return OmniLinkConfig(root=root)

    data = _read_config(config_file)
    if data is None:
        return OmniLinkConfig(root=root)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    errors = validate_config(data)
    if errors:
        raise ConfigError(f"Invalid {CONFIG_FILENAME}:\n" + "\n".join(errors))

    repos = [
        RepoConfig(
            name=str(entry["name"]),
            path=(root / str(entry["path"])).resolve(),
            language=str(entry["language"]),
            role=_as_str(entry.get("role")),
        )
        for entry in data["repos"]
    ]

    grapher = GrapherConfig()
    grapher_data = _as_dict(data.get("grapher"))
    threshold = _as_float(grapher_data.get("similarity_threshold"))
    if threshold is not None:
        grapher.similarity_threshold = threshold

    return OmniLinkConfig(root=root, repos=repos, grapher=grapher)


def validate_config(data: Dict[str, Any]) -> List[str]:
    """Return human-readable problems with a raw configuration mapping."""
    errors: List[str] = []
    repos = data.get("repos")
    if not isinstance(repos, list) or not repos:
        errors.append("repos: must have at least 1 repo")
    elif len(repos) > MAX_REPOS:
        errors.append(f"repos: maximum {MAX_REPOS} repos allowed")
    else:
        for index, entry in enumerate(repos):
            if not isinstance(entry, dict):
                errors.append(f"repos[{index}]: must be a mapping")
                continue
            for key in ("name", "path", "language"):
                if not _as_str(entry.get(key)):
                    errors.append(f"repos[{index}]: missing {key}")

    threshold = _as_dict(data.get("grapher")).get("similarity_threshold")
    if threshold is not None:
        value = _as_float(threshold)
        if value is None or not 0.0 <= value <= 1.0:
            errors.append("grapher.similarity_threshold: must be a number between 0 and 1")
    return errors


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return None
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None
