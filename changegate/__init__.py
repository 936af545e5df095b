"""changegate: decide whether a CI deployment step should run.

A pure gate over (changed paths, path rules, trigger) plus the git and
GitHub Actions glue needed to feed it.
"""

from .errors import ChangeGateError, ConfigurationError, GitError
from .gate import environment_label, evaluate, evaluate_targets, path_matches
from .models import (
    DeployDecision,
    DeployTarget,
    EventKind,
    GateConfig,
    TriggerContext,
)

__all__ = [
    "ChangeGateError",
    "ConfigurationError",
    "DeployDecision",
    "DeployTarget",
    "EventKind",
    "GateConfig",
    "GitError",
    "TriggerContext",
    "environment_label",
    "evaluate",
    "evaluate_targets",
    "path_matches",
]
