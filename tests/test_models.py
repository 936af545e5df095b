"""Tests for changegate.models."""

from __future__ import annotations

import pydantic
import pytest

from changegate.errors import ConfigurationError
from changegate.models import (
    DeployDecision,
    DeployTarget,
    EventKind,
    GateConfig,
    TriggerContext,
)


class TestEventKind:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("push", EventKind.PUSH),
            ("pull_request", EventKind.PULL_REQUEST),
            ("pull-request", EventKind.PULL_REQUEST),
            ("manual", EventKind.MANUAL),
            ("MANUAL", EventKind.MANUAL),
            ("workflow_dispatch", EventKind.MANUAL),
            ("pull_request_target", EventKind.PULL_REQUEST),
        ],
    )
    def test_parse(self, raw: str, expected: EventKind) -> None:
        assert EventKind.parse(raw) is expected

    def test_parse_passes_enum_through(self) -> None:
        assert EventKind.parse(EventKind.PUSH) is EventKind.PUSH

    def test_unknown_raises_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown"):
            EventKind.parse("unknown")


class TestTriggerContext:
    def test_from_event(self) -> None:
        trigger = TriggerContext.from_event("push", "main", True)
        assert trigger.event_kind is EventKind.PUSH
        assert trigger.branch == "main"
        assert trigger.is_default_branch is True

    def test_empty_branch_becomes_none(self) -> None:
        assert TriggerContext.from_event("manual", "").branch is None

    def test_from_event_unknown_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            TriggerContext.from_event("schedule")

    def test_is_frozen(self) -> None:
        trigger = TriggerContext(event_kind=EventKind.PUSH, branch="main")
        with pytest.raises(pydantic.ValidationError):
            trigger.branch = "staging"  # type: ignore[misc]


class TestDeployDecision:
    def test_to_line_true(self) -> None:
        decision = DeployDecision(should_deploy=True, environment_label="production")
        assert decision.to_line() == "shouldDeploy=true environmentLabel=production"

    def test_to_line_false(self) -> None:
        decision = DeployDecision(should_deploy=False, environment_label="none")
        assert decision.to_line() == "shouldDeploy=false environmentLabel=none"

    def test_matched_paths_default_empty(self) -> None:
        decision = DeployDecision(should_deploy=True, environment_label="none")
        assert decision.matched_paths == ()


class TestGateConfig:
    def test_default_branch_environments(self) -> None:
        config = GateConfig()
        assert config.branch_environments == {
            "main": "production",
            "staging": "staging",
        }

    def test_rules_for_appends_shared(self) -> None:
        config = GateConfig(
            targets={"api": DeployTarget(name="api", paths=("src/api/",))},
            shared_paths=("uv.lock",),
        )
        assert config.rules_for("api") == ("src/api/", "uv.lock")

    def test_rules_for_unknown_target(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown deployment target"):
            GateConfig().rules_for("missing")
