"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import tomlkit


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Create a temporary changegate.toml file."""
    content = """\
shared = ["pnpm-lock.yaml"]

[environments]
release = "staging"

[targets.server]
paths = ["apps/server/", "packages/shared/"]

[targets.web]
paths = ["apps/web/", "*.config.js"]
"""
    config = tmp_path / "changegate.toml"
    config.write_text(content)
    return config


@pytest.fixture
def sample_pyproject_doc() -> tomlkit.TOMLDocument:
    """Create a pyproject document carrying a [tool.changegate] table."""
    content = """\
[project]
name = "my-app"
version = "1.0.0"

[tool.changegate]
shared = ["uv.lock"]

[tool.changegate.targets.api]
paths = ["src/api/"]
"""
    return tomlkit.parse(content)


@pytest.fixture
def push_event(tmp_path: Path) -> Path:
    """Write a GitHub push event payload."""
    payload = {
        "before": "a" * 40,
        "after": "b" * 40,
        "repository": {"default_branch": "main"},
    }
    path = tmp_path / "event.json"
    path.write_text(json.dumps(payload))
    return path


@pytest.fixture
def pull_request_event(tmp_path: Path) -> Path:
    """Write a GitHub pull_request event payload."""
    payload = {
        "pull_request": {
            "base": {"sha": "c" * 40, "ref": "main"},
            "head": {"sha": "d" * 40, "ref": "feature/login"},
        },
        "repository": {"default_branch": "main"},
    }
    path = tmp_path / "event.json"
    path.write_text(json.dumps(payload))
    return path
