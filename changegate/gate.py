"""The deployment gate: decide whether a target should deploy.

Everything here is pure. Callers capture the change set and trigger context
up front (see ``changegate.vcs`` and ``changegate.github``) and pass them in,
so the decision can be tested without git or a CI environment.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from fnmatch import fnmatchcase

from .errors import ConfigurationError
from .models import (
    DEFAULT_BRANCH_ENVIRONMENTS,
    NO_ENVIRONMENT,
    PREVIEW_LABEL,
    DeployDecision,
    EventKind,
    GateConfig,
    TriggerContext,
)

GLOB_CHARS = frozenset("*?[")


def _normalize(path: str) -> str:
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


def path_matches(path: str, rule: str) -> bool:
    """Check whether a changed path falls under a path rule.

    Rules containing glob characters use fnmatch semantics, where ``*``
    also crosses directory separators. Other rules are plain string
    prefixes of the normalised path.

    Examples:
        path_matches("apps/server/index.js", "apps/server/") → True
        path_matches("apps/server/index.js", "apps/server") → True
        path_matches("apps/server2/index.js", "apps/server") → True
        path_matches("apps/web/index.js", "apps/server") → False
        path_matches("docs/guide.md", "docs/*.md") → True
    """
    path = _normalize(path)
    rule = _normalize(rule)
    if not rule:
        return False
    if GLOB_CHARS.intersection(rule):
        return fnmatchcase(path, rule)
    return path.startswith(rule)


def environment_label(
    branch: str | None,
    event_kind: EventKind | str,
    branch_environments: Mapping[str, str] = DEFAULT_BRANCH_ENVIRONMENTS,
) -> str:
    """Derive the environment label for a trigger.

    Pull requests always deploy to ``preview``. Pushes use the branch
    mapping (``main`` → ``production``, ``staging`` → ``staging`` by
    default). Everything else, manual runs included, is ``none``.

    Raises:
        ConfigurationError: If the event kind is not recognised.
    """
    kind = EventKind.parse(event_kind)
    if kind is EventKind.PULL_REQUEST:
        return PREVIEW_LABEL
    if kind is EventKind.PUSH and branch:
        return branch_environments.get(branch, NO_ENVIRONMENT)
    return NO_ENVIRONMENT


def require_rules(path_rules: Iterable[str], kind: EventKind) -> list[str]:
    """Return the non-blank rules, or fail for a non-manual trigger with none.

    Without rules a push or pull-request trigger could never deploy, which
    is always a misconfiguration.

    Raises:
        ConfigurationError: If no usable rules remain.
    """
    rules = [r for r in path_rules if r.strip()]
    if not rules and kind is not EventKind.MANUAL:
        raise ConfigurationError(
            f"No path rules given for a {kind.value} trigger; "
            "the deployment would always be skipped"
        )
    return rules


def evaluate(
    change_set: Sequence[str],
    path_rules: Iterable[str],
    trigger: TriggerContext,
    branch_environments: Mapping[str, str] = DEFAULT_BRANCH_ENVIRONMENTS,
) -> DeployDecision:
    """Decide whether a deployment target should run.

    A manual trigger always deploys. Otherwise the target deploys iff at
    least one changed path matches at least one rule. The environment label
    is reported either way.

    Args:
        change_set: Paths changed between the base and head refs. May be
                    empty.
        path_rules: Prefix or glob rules scoping the target.
        trigger: The event that invoked the pipeline.
        branch_environments: Push branch → label overrides.

    Returns:
        The DeployDecision for this target.

    Raises:
        ConfigurationError: If the trigger kind is unknown, or no rules are
            given for a push or pull-request trigger.
    """
    kind = EventKind.parse(trigger.event_kind)
    label = environment_label(trigger.branch, kind, branch_environments)

    if kind is EventKind.MANUAL:
        return DeployDecision(should_deploy=True, environment_label=label)

    rules = require_rules(path_rules, kind)
    matched = tuple(p for p in change_set if any(path_matches(p, r) for r in rules))
    return DeployDecision(
        should_deploy=bool(matched),
        environment_label=label,
        matched_paths=matched,
    )


def evaluate_targets(
    change_set: Sequence[str],
    config: GateConfig,
    trigger: TriggerContext,
    names: Iterable[str] | None = None,
) -> dict[str, DeployDecision]:
    """Evaluate several configured targets against one change set.

    Args:
        change_set: Paths changed between the base and head refs.
        config: Loaded rule configuration.
        trigger: The event that invoked the pipeline.
        names: Targets to evaluate. Defaults to every configured target,
               in sorted order.

    Raises:
        ConfigurationError: If no targets are configured, a requested target
            is unknown, or the trigger is invalid.
    """
    selected = list(names) if names else sorted(config.targets)
    if not selected:
        raise ConfigurationError("No deployment targets configured")

    return {
        name: evaluate(
            change_set,
            config.rules_for(name),
            trigger,
            config.branch_environments,
        )
        for name in selected
    }
