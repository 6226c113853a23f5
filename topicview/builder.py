"""Checkpoint builder.

Walks the commit range oldest to newest and replays it into the scratch
repository as a patch series:

- Every linear commit adds (or overwrites) one ``<subject>.patch`` file.
- Every tagged commit commits the current patch files as a checkpoint whose
  message is the tag annotation.
- A reset-merge drops all patch files. If the files gathered since the last
  checkpoint were never tagged, they are committed first under
  ``UNTAGGED_BEFORE_RESET`` so they are not lost.
- At the end, untagged trailing work is committed under ``UNTAGGED_AT_END``.

State is carried serially from one commit to the next, so the walk is
strictly sequential.
"""

import re
from dataclasses import dataclass, field

from topicview.classify import CommitKind, classify_commit
from topicview.config import PatchViewConfig
from topicview.errors import UnsupportedCommitError
from topicview.git import Commit, ScratchRepo, SourceRepo, Tag
from topicview.logging import get_logger
from topicview.normalize import normalize_patch

logger = get_logger(__name__)

UNTAGGED_BEFORE_RESET = "!!! Untagged changes preceding reset to upstream"
UNTAGGED_AT_END = "!!! Untagged changes at end"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_]")


def patch_filename(subject: str) -> str:
    """Turn a commit subject into a patch file name.

    Every character other than ASCII letters, digits and underscore becomes
    '-'. Distinct subjects can map to the same name; the later commit wins.
    """
    return _UNSAFE_CHARS.sub("-", subject) + ".patch"


def tag_message(tags: tuple[Tag, ...]) -> str:
    """Combine all tags on one commit into one checkpoint message."""
    return "\n\n".join(tag.message for tag in tags)


@dataclass(frozen=True)
class Checkpoint:
    """A commit made in the scratch repository."""

    message: str
    sha: str
    files: tuple[str, ...]  # Patch files present at this checkpoint
    trigger: str  # tag, reset, end


@dataclass(frozen=True)
class BuildResult:
    """Outcome of replaying a commit range."""

    checkpoints: tuple[Checkpoint, ...]
    skipped_merges: tuple[str, ...]  # Non-reset merges, for diagnostics
    commits: int  # Commits visited

    @property
    def summary(self) -> str:
        text = f"{self.commits} commits, {len(self.checkpoints)} checkpoints"
        if self.skipped_merges:
            text += f", {len(self.skipped_merges)} merges skipped"
        return text


@dataclass
class BuilderState:
    """What has accumulated since the last checkpoint or reset."""

    files: dict[str, str] = field(default_factory=dict)  # filename -> commit sha
    pending: int = 0  # Linear commits since the last checkpoint
    tagged_since_clear: bool = False


class CheckpointBuilder:
    """Replays commits into a scratch repository one at a time.

    Call ``process`` for each commit in order, then ``finish`` once.
    """

    def __init__(self, source: SourceRepo, scratch: ScratchRepo, config: PatchViewConfig):
        self.source = source
        self.scratch = scratch
        self.config = config
        self.state = BuilderState()
        self._checkpoints: list[Checkpoint] = []
        self._skipped: list[str] = []
        self._visited = 0

    def build(self, commits: tuple[Commit, ...]) -> BuildResult:
        """Process a whole range and return the result."""
        for commit in commits:
            self.process(commit)
        return self.finish()

    def process(self, commit: Commit) -> None:
        """Apply one commit to the scratch repository.

        Raises:
            UnsupportedCommitError: commit has 0 or more than 2 parents
        """
        self._visited += 1
        kind = classify_commit(commit, self.source.diff_is_empty)
        logger.debug(f"{commit.short} {kind.value}")

        if kind is CommitKind.LINEAR:
            self._add_patch(commit)
        elif kind is CommitKind.RESET_MERGE:
            self._reset(commit)
        elif kind is CommitKind.MERGE:
            logger.info(f"Skipping merge {commit.short}: changes content, not a reset")
            self._skipped.append(commit.sha)
        else:
            raise UnsupportedCommitError(commit.sha, len(commit.parents))

        tags = self.source.tags_at(commit.sha)
        if tags:
            self._checkpoint(tag_message(tags), trigger="tag")
            self.state.tagged_since_clear = True

    def finish(self) -> BuildResult:
        """Commit trailing untagged work and return the result."""
        if not self.state.tagged_since_clear:
            self._checkpoint(UNTAGGED_AT_END, trigger="end")

        return BuildResult(
            checkpoints=tuple(self._checkpoints),
            skipped_merges=tuple(self._skipped),
            commits=self._visited,
        )

    def _add_patch(self, commit: Commit) -> None:
        filename = patch_filename(self.source.subject(commit.sha))
        text = normalize_patch(self.source.format_patch(commit.sha), self.config.accurate)

        if filename in self.state.files:
            logger.warning(
                f"{commit.short} overwrites {filename} from {self.state.files[filename][:12]}"
            )
        self.scratch.write_patch(filename, text)
        self.state.files[filename] = commit.sha
        self.state.pending += 1
        self.state.tagged_since_clear = False

    def _reset(self, commit: Commit) -> None:
        if not self.state.tagged_since_clear and (self.state.files or self.state.pending):
            self._checkpoint(UNTAGGED_BEFORE_RESET, trigger="reset")

        logger.debug(f"{commit.short} resets to upstream, dropping {len(self.state.files)} patches")
        self.scratch.clear()
        self.state.files.clear()
        self.state.pending = 0
        self.state.tagged_since_clear = False

    def _checkpoint(self, message: str, trigger: str) -> Checkpoint:
        sha = self.scratch.commit(message)
        checkpoint = Checkpoint(
            message=message,
            sha=sha,
            files=tuple(self.state.files),
            trigger=trigger,
        )
        self._checkpoints.append(checkpoint)
        self.state.pending = 0
        logger.debug(f"Checkpoint {sha[:12]}: {message.splitlines()[0] if message else ''}")
        return checkpoint
