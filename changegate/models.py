"""Data models for changegate.

These Pydantic models represent the inputs and output of a single gate
evaluation, plus the rule configuration loaded from TOML. Inputs and
decisions are frozen: they are captured once per pipeline run.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError

DEFAULT_BRANCH_ENVIRONMENTS: dict[str, str] = {
    "main": "production",
    "staging": "staging",
}
PREVIEW_LABEL = "preview"
NO_ENVIRONMENT = "none"


class EventKind(str, Enum):
    """The kind of event that triggered the pipeline."""

    PUSH = "push"
    PULL_REQUEST = "pull_request"
    MANUAL = "manual"

    @classmethod
    def parse(cls, value: EventKind | str) -> EventKind:
        """Convert a CLI or CI event name to an EventKind.

        Accepts the canonical names plus the GitHub Actions aliases
        ``workflow_dispatch`` and ``pull_request_target``.

        Raises:
            ConfigurationError: If the event name is not recognised.
        """
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower().replace("-", "_")
        name = _EVENT_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ConfigurationError(
                f"Unknown trigger event {value!r} (expected one of: {valid})"
            ) from None


_EVENT_ALIASES = {
    "workflow_dispatch": "manual",
    "pull_request_target": "pull_request",
}


class TriggerContext(BaseModel):
    """The event that invoked the pipeline.

    Attributes:
        event_kind: push, pull_request or manual.
        branch: Branch the run is for. For pull requests this is the head
                branch. None when the CI system does not report one.
        is_default_branch: Whether ``branch`` is the repository's default
                branch.
    """

    model_config = ConfigDict(frozen=True)

    event_kind: EventKind
    branch: str | None = None
    is_default_branch: bool = False

    @classmethod
    def from_event(
        cls,
        event: EventKind | str,
        branch: str | None = None,
        is_default_branch: bool = False,
    ) -> TriggerContext:
        """Build a context from a raw event name, raising ConfigurationError
        instead of a validation error when the name is unknown."""
        return cls(
            event_kind=EventKind.parse(event),
            branch=branch or None,
            is_default_branch=is_default_branch,
        )


class DeployDecision(BaseModel):
    """Result of evaluating the gate for one deployment target.

    Attributes:
        should_deploy: Whether the deploy step should run.
        environment_label: Label the deployment uses (or would have used).
        matched_paths: Changed paths that matched a rule. Empty for manual
                       triggers and for skipped deployments.
    """

    model_config = ConfigDict(frozen=True)

    should_deploy: bool
    environment_label: str
    matched_paths: tuple[str, ...] = ()

    def to_line(self) -> str:
        """Render as a single line of key=value pairs."""
        flag = "true" if self.should_deploy else "false"
        return f"shouldDeploy={flag} environmentLabel={self.environment_label}"


class DeployTarget(BaseModel):
    """A named deployable unit and the path rules that scope it."""

    model_config = ConfigDict(frozen=True)

    name: str
    paths: tuple[str, ...]


class GateConfig(BaseModel):
    """Rule configuration loaded from ``[tool.changegate]``.

    Attributes:
        targets: Map of target name → DeployTarget.
        shared_paths: Rules whose changes affect every target (e.g. a root
                      lockfile).
        branch_environments: Push branch → environment label.
    """

    model_config = ConfigDict(frozen=True)

    targets: dict[str, DeployTarget] = Field(default_factory=dict)
    shared_paths: tuple[str, ...] = ()
    branch_environments: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_BRANCH_ENVIRONMENTS)
    )

    def rules_for(self, name: str) -> tuple[str, ...]:
        """Return the target's own rules followed by the shared rules.

        Raises:
            ConfigurationError: If no target with that name is configured.
        """
        target = self.targets.get(name)
        if target is None:
            known = ", ".join(sorted(self.targets)) or "<none>"
            raise ConfigurationError(
                f"Unknown deployment target {name!r} (configured: {known})"
            )
        return target.paths + self.shared_paths
