from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Mapping

import pytest


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[[str, Mapping[str, Any]], Path]:
    """Write scanner manifest JSON files under the pytest tmp_path."""

    def _write(name: str, data: Mapping[str, Any]) -> Path:
        path = tmp_path / f"{name}.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
