"""GitHub Actions integration.

Translates the runner's environment variables and event payload into an
explicit TriggerContext and diff refs, and writes step outputs. This is the
only module that reads CI environment state.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .models import EventKind, TriggerContext


def load_event_payload(environ: Mapping[str, str]) -> dict[str, Any]:
    """Read the webhook payload GitHub stores at ``$GITHUB_EVENT_PATH``.

    Returns an empty dict when the variable is unset or the file is missing.

    Raises:
        ConfigurationError: If the file exists but is not valid JSON.
    """
    event_path = environ.get("GITHUB_EVENT_PATH")
    if not event_path:
        return {}
    path = Path(event_path)
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid event payload in {path}: {exc}") from exc


def trigger_from_env(
    environ: Mapping[str, str],
    payload: Mapping[str, Any] | None = None,
) -> TriggerContext:
    """Build a TriggerContext from GitHub Actions environment variables.

    Args:
        environ: Usually ``os.environ``.
        payload: Event payload; read from ``GITHUB_EVENT_PATH`` if omitted.

    Raises:
        ConfigurationError: If ``GITHUB_EVENT_NAME`` is unset or unknown.
    """
    event_name = environ.get("GITHUB_EVENT_NAME")
    if not event_name:
        raise ConfigurationError(
            "GITHUB_EVENT_NAME is not set; is this running inside GitHub Actions?"
        )
    kind = EventKind.parse(event_name)
    if payload is None:
        payload = load_event_payload(environ)

    # Pull request runs check out a merge ref; the head branch is what users
    # think of as "the branch".
    if kind is EventKind.PULL_REQUEST:
        branch = environ.get("GITHUB_HEAD_REF") or environ.get("GITHUB_REF_NAME")
    else:
        branch = environ.get("GITHUB_REF_NAME")

    default_branch = payload.get("repository", {}).get("default_branch")
    return TriggerContext(
        event_kind=kind,
        branch=branch or None,
        is_default_branch=bool(branch) and branch == default_branch,
    )


def diff_refs_from_env(
    trigger: TriggerContext,
    environ: Mapping[str, str],
    payload: Mapping[str, Any] | None = None,
) -> tuple[str | None, str | None]:
    """Return the (base, head) refs to diff for this run.

    Pushes diff ``before``..``after``; pull requests diff from the merge base
    of the PR base SHA and its head SHA. A deleted branch yields the all-zero
    ``after`` SHA, which the diff treats as "no changes". Manual runs skip
    diffing and return (None, None).
    """
    if trigger.event_kind is EventKind.MANUAL:
        return None, None
    if payload is None:
        payload = load_event_payload(environ)

    if trigger.event_kind is EventKind.PULL_REQUEST:
        pr = payload.get("pull_request", {})
        base = pr.get("base", {}).get("sha")
        head = pr.get("head", {}).get("sha")
    else:
        base = payload.get("before")
        head = payload.get("after")

    return base, head or environ.get("GITHUB_SHA") or "HEAD"


def write_output(output_path: str, name: str, value: str) -> None:
    """Append a ``name=value`` step output to the ``$GITHUB_OUTPUT`` file."""
    with open(output_path, "a") as fh:
        fh.write(f"{name}={value}\n")
