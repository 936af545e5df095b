"""Tests for bundled templates."""

from __future__ import annotations

from pathlib import Path

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "changegate" / "templates"


def test_deploy_template_has_placeholders() -> None:
    template = (TEMPLATES_DIR / "deploy.yml").read_text()

    assert "Generated with changegate" in template
    assert "__GATE_OUTPUTS__" in template
    assert "__DEPLOY_JOBS__" in template
    assert "__CHANGEGATE_VERSION__" in template


def test_deploy_template_runs_gate_on_every_trigger() -> None:
    template = (TEMPLATES_DIR / "deploy.yml").read_text()

    assert "push:" in template
    assert "pull_request:" in template
    assert "workflow_dispatch:" in template
    assert "changegate github" in template
    assert "fetch-depth: 0" in template
