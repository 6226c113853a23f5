"""Commit classification.

Each commit in a topic branch plays one of four roles in the patch view:

- LINEAR: one parent, becomes a patch file
- RESET_MERGE: two parents and no content change against the first one;
  marks the point where the branch was reset back onto upstream
- MERGE: any other two-parent commit, skipped
- UNSUPPORTED: no parents or more than two, aborts the run
"""

from collections.abc import Callable
from enum import Enum

from topicview.git import Commit


class CommitKind(str, Enum):
    LINEAR = "linear"
    RESET_MERGE = "reset-merge"
    MERGE = "merge"
    UNSUPPORTED = "unsupported"


def classify_commit(commit: Commit, diff_is_empty: Callable[[str, str], bool]) -> CommitKind:
    """Classify a commit by its parents.

    Args:
        commit: Commit with its ordered parent list
        diff_is_empty: Backend check ``(old, new) -> bool`` for identical content

    Returns:
        The commit's CommitKind
    """
    parents = len(commit.parents)
    if parents == 1:
        return CommitKind.LINEAR
    if parents == 2:
        if diff_is_empty(commit.parents[0], commit.sha):
            return CommitKind.RESET_MERGE
        return CommitKind.MERGE
    return CommitKind.UNSUPPORTED
