"""topicview: browse a long-lived topic branch as a reviewable patch series."""

__version__ = "1.0.0"

from topicview.builder import (  # noqa: E402
    UNTAGGED_AT_END,
    UNTAGGED_BEFORE_RESET,
    BuildResult,
    Checkpoint,
    CheckpointBuilder,
    patch_filename,
)
from topicview.classify import CommitKind, classify_commit  # noqa: E402
from topicview.config import PatchViewConfig  # noqa: E402
from topicview.normalize import normalize_patch  # noqa: E402
from topicview.session import run_patch_view  # noqa: E402

__all__ = [
    "__version__",
    "BuildResult",
    "Checkpoint",
    "CheckpointBuilder",
    "CommitKind",
    "PatchViewConfig",
    "UNTAGGED_AT_END",
    "UNTAGGED_BEFORE_RESET",
    "classify_commit",
    "normalize_patch",
    "patch_filename",
    "run_patch_view",
]
