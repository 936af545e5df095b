"""Change set capture from git.

The diff is taken once per run and handed to the gate as an immutable tuple.
"""

from __future__ import annotations

from .shell import git, info, step, warn

NULL_SHA = "0" * 40


def is_null_ref(ref: str | None) -> bool:
    """True for a missing ref or the all-zero SHA GitHub reports when a
    branch is first pushed or deleted."""
    return not ref or not ref.strip("0")


def changed_files(
    base: str | None,
    head: str | None = "HEAD",
    merge_base: bool = False,
) -> tuple[str, ...]:
    """List files changed between two refs.

    Rename detection is off, so a file moved out of a directory is reported
    under both its old and new path. When either ref is missing (first
    commit, new or deleted branch, manual run) there is nothing to diff and
    an empty change set is returned.

    Args:
        base: Base ref or SHA.
        head: Head ref or SHA.
        merge_base: Diff from the merge base of the two refs (``base...head``)
                    so commits that landed only on ``base`` are ignored. Used
                    for pull requests.

    Returns:
        Changed paths, relative to the repository root, in git's order.

    Raises:
        GitError: If either ref cannot be resolved.
    """
    step(f"Detecting changes {base or '<none>'}..{head or '<none>'}")

    if is_null_ref(base):
        warn("No base ref to diff against; treating the change set as empty")
        return ()
    if is_null_ref(head):
        warn("No head ref (deleted branch?); treating the change set as empty")
        return ()

    if merge_base:
        refs = [f"{base}...{head}"]
    else:
        refs = [base, head]
    output = git("diff", "--name-only", "--no-renames", *refs)
    files = tuple(line for line in output.splitlines() if line)
    for f in files:
        info(f)
    if not files:
        info("<no changes>")
    return files
