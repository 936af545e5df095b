"""CLI entry point for changegate."""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from importlib.metadata import version as pkg_version
from pathlib import Path
from typing import IO

import click
import tomlkit

from .errors import ConfigurationError, GitError
from .gate import evaluate, evaluate_targets, require_rules
from .github import (
    diff_refs_from_env,
    load_event_payload,
    trigger_from_env,
    write_output,
)
from .models import (
    DEFAULT_BRANCH_ENVIRONMENTS,
    DeployDecision,
    EventKind,
    GateConfig,
    TriggerContext,
)
from .shell import info, step
from .toml import find_config, load_config, validate_target_name
from .vcs import changed_files

__version__ = pkg_version("changegate")
TEMPLATES_DIR = Path(__file__).parent / "templates"


class ConfigurationFailure(click.ClickException):
    """Reported as ``Error: ...`` on stderr with exit code 2."""

    exit_code = 2


@contextmanager
def _errors_to_exit_codes() -> Iterator[None]:
    try:
        yield
    except ConfigurationError as exc:
        raise ConfigurationFailure(str(exc)) from exc
    except GitError as exc:
        raise click.ClickException(str(exc)) from exc


def _version_range() -> str:
    """Compute pip version range: >=current,<next_minor."""
    v = __version__
    major, minor, *_ = v.split(".")
    return f'"changegate>={v},<{major}.{int(minor) + 1}.0"'


def _load_gate_config(config: str | None) -> GateConfig:
    path = Path(config) if config else find_config(Path.cwd())
    return load_config(path)


def _report(name: str, decision: DeployDecision) -> None:
    verdict = "deploy" if decision.should_deploy else "skip"
    info(f"{name}: {verdict} ({decision.environment_label})")
    for path in decision.matched_paths:
        info(f"  matched {path}")


@click.group()
@click.version_option(__version__, prog_name="changegate")
def cli() -> None:
    """Deployment gate for CI pipelines — only deploys what changed."""


@cli.command(name="evaluate")
@click.option("--base", default=None, help="Base ref or SHA to diff from.")
@click.option("--head", default="HEAD", show_default=True, help="Head ref or SHA.")
@click.option(
    "--rule",
    "rules",
    multiple=True,
    help="Path prefix or glob scoping the target (repeatable).",
)
@click.option(
    "--event",
    required=True,
    help="Trigger event: push, pull_request or manual.",
)
@click.option("--branch", default=None, help="Branch the run is for.")
@click.option(
    "--default-branch",
    "is_default_branch",
    is_flag=True,
    help="The branch is the repository's default branch.",
)
@click.option(
    "--target",
    default=None,
    help="Add the rules of a target defined in the config file.",
)
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    default=None,
    help="Rules file (default: changegate.toml or pyproject.toml in cwd).",
)
@click.option(
    "--changes-from",
    type=click.File("r"),
    default=None,
    help="Read changed paths from a file, one per line ('-' for stdin), "
    "instead of running git diff.",
)
@click.option(
    "--github-output",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also append should_deploy/environment_label to this step output file.",
)
def evaluate_cmd(
    base: str | None,
    head: str,
    rules: tuple[str, ...],
    event: str,
    branch: str | None,
    is_default_branch: bool,
    target: str | None,
    config: str | None,
    changes_from: IO[str] | None,
    github_output: str | None,
) -> None:
    """Decide whether one deployment target should run."""
    with _errors_to_exit_codes():
        trigger = TriggerContext.from_event(event, branch, is_default_branch)

        path_rules = list(rules)
        environments = DEFAULT_BRANCH_ENVIRONMENTS
        if target or config:
            gate_config = _load_gate_config(config)
            environments = gate_config.branch_environments
            if target:
                path_rules.extend(gate_config.rules_for(target))

        # Fail on missing rules before touching git.
        require_rules(path_rules, trigger.event_kind)

        if changes_from is not None:
            change_set = tuple(
                line.strip() for line in changes_from if line.strip()
            )
        elif trigger.event_kind is EventKind.MANUAL:
            change_set = ()
        else:
            change_set = changed_files(
                base,
                head,
                merge_base=trigger.event_kind is EventKind.PULL_REQUEST,
            )

        decision = evaluate(change_set, path_rules, trigger, environments)

    step("Deployment decision")
    _report(target or "target", decision)
    click.echo(decision.to_line())

    if github_output:
        write_output(
            github_output, "should_deploy", str(decision.should_deploy).lower()
        )
        write_output(github_output, "environment_label", decision.environment_label)


@cli.command()
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    default=None,
    help="Rules file (default: changegate.toml or pyproject.toml in cwd).",
)
@click.option(
    "--target",
    "targets",
    multiple=True,
    help="Only evaluate these targets (repeatable). Default: all.",
)
def github(config: str | None, targets: tuple[str, ...]) -> None:
    """Evaluate configured targets from the GitHub Actions environment.

    Writes ``<target>=true|false``, ``environment`` and ``targets`` (JSON list
    of targets to deploy) to $GITHUB_OUTPUT when it is set.
    """
    environ = os.environ
    with _errors_to_exit_codes():
        payload = load_event_payload(environ)
        trigger = trigger_from_env(environ, payload)
        gate_config = _load_gate_config(config)

        step(
            f"Trigger: {trigger.event_kind.value} on {trigger.branch or '<no branch>'}"
        )
        if trigger.event_kind is EventKind.MANUAL:
            info("Manual run: skipping change detection")
            change_set: tuple[str, ...] = ()
        else:
            base, head = diff_refs_from_env(trigger, environ, payload)
            change_set = changed_files(
                base,
                head,
                merge_base=trigger.event_kind is EventKind.PULL_REQUEST,
            )

        decisions = evaluate_targets(change_set, gate_config, trigger, targets)

    step("Deployment decisions")
    for name, decision in decisions.items():
        _report(name, decision)
        click.echo(f"target={name} {decision.to_line()}")

    output = environ.get("GITHUB_OUTPUT")
    if not output:
        return
    for name, decision in decisions.items():
        write_output(output, name, str(decision.should_deploy).lower())
    label = next(iter(decisions.values())).environment_label
    write_output(output, "environment", label)
    deploying = [name for name, d in decisions.items() if d.should_deploy]
    write_output(output, "targets", json.dumps(deploying))


def _deploy_jobs(targets: list[str]) -> str:
    lines: list[str] = []
    for name in targets:
        lines.extend(
            [
                f"  deploy-{name}:",
                "    needs: gate",
                f"    if: needs.gate.outputs.{name} == 'true'",
                "    runs-on: ubuntu-latest",
                "    environment: ${{ needs.gate.outputs.environment }}",
                "    steps:",
                "      - uses: actions/checkout@v4",
                f"      - name: Deploy {name}",
                f'        run: echo "Deploying {name} to '
                '${{ needs.gate.outputs.environment }}"',
                "",
            ]
        )
    return "\n".join(lines).rstrip()


def _gate_outputs(targets: list[str]) -> str:
    return "\n".join(
        f"      {name}: ${{{{ steps.gate.outputs.{name} }}}}" for name in targets
    )


def _starter_config(targets: list[str]) -> str:
    doc = tomlkit.document()
    table = tomlkit.table(is_super_table=True)
    for name in targets:
        target = tomlkit.table()
        target.add("paths", [f"{name}/"])
        table.add(name, target)
    doc.add("targets", table)
    return tomlkit.dumps(doc)


@cli.command()
@click.option(
    "--workflow-dir",
    type=click.Path(),
    default=".github/workflows",
    show_default=True,
    help="Directory to write the workflow file.",
)
@click.option(
    "-t",
    "--target",
    "targets",
    multiple=True,
    help="Deployment target to scaffold (repeatable). Default: app.",
)
def init(workflow_dir: str, targets: tuple[str, ...]) -> None:
    """Scaffold a gated deploy workflow and a starter changegate.toml."""
    root = Path.cwd()

    if not (root / ".git").exists():
        raise click.ClickException("Not a git repository. Run from the repo root.")

    names = list(dict.fromkeys(targets)) or ["app"]
    with _errors_to_exit_codes():
        for name in names:
            validate_target_name(name)

    dest_dir = root / workflow_dir
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest = dest_dir / "deploy.yml"

    rendered = (
        (TEMPLATES_DIR / "deploy.yml")
        .read_text()
        .replace("__GATE_OUTPUTS__", _gate_outputs(names))
        .replace("__DEPLOY_JOBS__", _deploy_jobs(names))
        .replace("__CHANGEGATE_VERSION__", _version_range())
    )
    dest.write_text(rendered)
    click.echo(f"✓ Wrote workflow to {dest.relative_to(root)}")

    config = root / "changegate.toml"
    if config.exists():
        click.echo("changegate.toml already exists, leaving it alone")
    else:
        config.write_text(_starter_config(names))
        click.echo("✓ Wrote changegate.toml")

    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Edit the paths in changegate.toml for each target")
    click.echo("  2. Replace the placeholder deploy steps in the workflow")
    click.echo("  3. Commit and push both files")
