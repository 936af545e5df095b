"""Exceptions raised by changegate."""

from __future__ import annotations


class ChangeGateError(Exception):
    """Base class for all changegate errors."""


class ConfigurationError(ChangeGateError):
    """The gate was given inputs it cannot decide on safely.

    Raised for an unrecognised trigger kind, missing path rules on a
    push/pull-request trigger, or an invalid rules file. Never recovered
    automatically: either default (deploy or skip) could be wrong.
    """


class GitError(ChangeGateError):
    """A git command needed to compute the change set failed."""
