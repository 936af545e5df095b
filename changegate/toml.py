"""Rule configuration loading.

Uses tomlkit to read deployment targets from ``[tool.changegate]`` in a
pyproject.toml, or from the root table of a standalone changegate.toml.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import ParseError

from .errors import ConfigurationError
from .models import DEFAULT_BRANCH_ENVIRONMENTS, DeployTarget, GateConfig

DEFAULT_CONFIG_FILES = ("changegate.toml", "pyproject.toml")

# Step output keys the github command writes alongside one key per target.
RESERVED_TARGET_NAMES = frozenset({"environment", "targets"})
TARGET_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


def load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file.

    Raises:
        ConfigurationError: If the file is missing or not valid TOML.
    """
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        return tomlkit.parse(path.read_text())
    except ParseError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc


def get_gate_table(doc: tomlkit.TOMLDocument, path: Path) -> dict[str, Any]:
    """Return the changegate table, unwrapped to plain Python values.

    pyproject.toml keeps it under ``[tool.changegate]``; other files use the
    root table.
    """
    if path.name == "pyproject.toml":
        table = doc.get("tool", {}).get("changegate")
        if table is None:
            raise ConfigurationError(f"No [tool.changegate] table in {path}")
        return table.unwrap()
    return doc.unwrap()


def validate_target_name(name: str) -> str:
    """Check a target name is usable as a TOML key, a GitHub step output and
    a workflow job id.

    Raises:
        ConfigurationError: If the name has other characters than letters,
            digits, ``-`` and ``_``, or clashes with a reserved output key.
    """
    if not TARGET_NAME_PATTERN.match(name):
        raise ConfigurationError(
            f"Invalid target name {name!r}: use letters, digits, '-' and '_'"
        )
    if name in RESERVED_TARGET_NAMES:
        raise ConfigurationError(
            f"Target name {name!r} is reserved for the github command's outputs"
        )
    return name


def _table(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigurationError(f"{where} must be a table")
    return value


def _string_list(value: Any, where: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"{where} must be a list of strings")
    return tuple(value)


def parse_config(table: dict[str, Any]) -> GateConfig:
    """Validate a changegate table and build a GateConfig.

    Raises:
        ConfigurationError: On a malformed table, an invalid target name, a
            missing or malformed ``paths`` list, or a non-string environment
            label.
    """
    table = _table(table, "changegate config")
    targets: dict[str, DeployTarget] = {}
    for name, spec in _table(table.get("targets", {}), "targets").items():
        validate_target_name(name)
        if not isinstance(spec, dict) or "paths" not in spec:
            raise ConfigurationError(f"Target {name!r} has no 'paths' list")
        paths = _string_list(spec["paths"], f"targets.{name}.paths")
        if not paths:
            raise ConfigurationError(f"Target {name!r} has an empty 'paths' list")
        targets[name] = DeployTarget(name=name, paths=paths)

    shared = _string_list(table.get("shared", []), "shared")

    environments = dict(DEFAULT_BRANCH_ENVIRONMENTS)
    for branch, label in _table(
        table.get("environments", {}), "environments"
    ).items():
        if not isinstance(label, str) or not label:
            raise ConfigurationError(
                f"environments.{branch} must be a non-empty string"
            )
        environments[branch] = label

    return GateConfig(
        targets=targets,
        shared_paths=shared,
        branch_environments=environments,
    )


def find_config(root: Path) -> Path:
    """Locate the config file in ``root``, preferring changegate.toml.

    A pyproject.toml only counts if it has a ``[tool.changegate]`` table.

    Raises:
        ConfigurationError: If neither file provides a configuration.
    """
    for name in DEFAULT_CONFIG_FILES:
        candidate = root / name
        if not candidate.exists():
            continue
        if name == "pyproject.toml":
            doc = load_toml(candidate)
            if doc.get("tool", {}).get("changegate") is None:
                continue
        return candidate
    raise ConfigurationError(
        f"No changegate.toml or [tool.changegate] in pyproject.toml under {root}"
    )


def load_config(path: Path) -> GateConfig:
    """Load rule configuration from a TOML file."""
    doc = load_toml(path)
    return parse_config(get_gate_table(doc, path))
