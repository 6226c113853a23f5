"""Git backend for topicview.

Everything topicview knows about a repository comes from the git CLI:
- Resolving branch/upstream names and listing the commit range
- Producing single-commit patches and checking merges for content changes
- Enumerating the tags that point at a commit
- Assembling checkpoints in a disposable scratch clone

Unlike a best-effort helper, every call here is fail-fast: an unexpected
return code raises ``GitCommandError``. Each invocation is logged at DEBUG.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from topicview.errors import GitCommandError, ResolutionError
from topicview.logging import get_logger

logger = get_logger(__name__)

# Separators used in for-each-ref output (%00 and %1e)
_FIELD_SEP = "\x00"
_RECORD_SEP = "\x1e"


# =============================================================================
# Data Types
# =============================================================================


@dataclass(frozen=True)
class Commit:
    """A commit in the range, with its direct parents in order."""

    sha: str
    parents: tuple[str, ...]

    @property
    def short(self) -> str:
        return self.sha[:12]


@dataclass(frozen=True)
class Tag:
    """A tag pointing at a commit."""

    name: str
    subject: str
    body: str = ""

    @property
    def message(self) -> str:
        """Checkpoint message for this tag: 'name: subject' plus body."""
        text = f"{self.name}: {self.subject}"
        if self.body.strip():
            text += "\n\n" + self.body.strip()
        return text


@dataclass(frozen=True)
class Identity:
    """Committer identity to use in the scratch repository."""

    name: str | None = None
    email: str | None = None

    def config_args(self) -> list[str]:
        args = []
        if self.name:
            args += ["-c", f"user.name={self.name}"]
        if self.email:
            args += ["-c", f"user.email={self.email}"]
        return args


# =============================================================================
# Git CLI Helpers
# =============================================================================


def run_git(
    args: list[str],
    cwd: Path | None = None,
    ok_codes: tuple[int, ...] = (0,),
    strip: bool = True,
) -> subprocess.CompletedProcess:
    """Run a git command and return the completed process.

    Args:
        args: Git command arguments (without 'git' prefix)
        cwd: Working directory (defaults to current)
        ok_codes: Return codes that count as success
        strip: Strip surrounding whitespace from stdout

    Returns:
        CompletedProcess with text stdout/stderr

    Raises:
        GitCommandError: git could not be run or returned another code
    """
    cmd = ["git", *args]
    logger.debug(f"+ {' '.join(cmd)}" + (f"  (in {cwd})" if cwd else ""))
    try:
        # Security: shell=False (default), args are a list
        result = subprocess.run(
            cmd,  # noqa: S603, S607
            capture_output=True,
            encoding="utf-8",
            errors="surrogateescape",
            cwd=cwd,
        )
    except (FileNotFoundError, OSError) as e:
        raise GitCommandError(f"Could not run git: {e}", command=cmd) from e

    if result.returncode not in ok_codes:
        raise GitCommandError(
            f"git {_subcommand(args)} failed with exit code {result.returncode}",
            command=cmd,
            returncode=result.returncode,
            stderr=result.stderr.strip(),
        )

    if strip:
        result.stdout = result.stdout.strip()
    return result


def _subcommand(args: list[str]) -> str:
    """First argument that is not a global option or its value."""
    for i, arg in enumerate(args):
        if not arg.startswith("-") and (i == 0 or args[i - 1] != "-c"):
            return arg
    return args[0] if args else ""


def _git_output(args: list[str], cwd: Path | None = None) -> str:
    return run_git(args, cwd=cwd).stdout


def toplevel(cwd: Path | None = None) -> Path:
    """Get the root of the repository containing cwd."""
    return Path(_git_output(["rev-parse", "--show-toplevel"], cwd=cwd))


def resolve_commit(name: str, cwd: Path | None = None) -> str:
    """Resolve any revision name to a full commit hash.

    Raises:
        ResolutionError: name does not resolve to a commit
    """
    result = run_git(
        ["rev-parse", "--verify", "--quiet", f"{name}^{{commit}}"],
        cwd=cwd,
        ok_codes=(0, 1),
    )
    if result.returncode != 0 or not result.stdout:
        raise ResolutionError(f"Unknown revision: {name}", revision=name)
    return result.stdout


def list_range(
    branch: str,
    upstream: str,
    extra_args: tuple[str, ...] = (),
    cwd: Path | None = None,
) -> tuple[Commit, ...]:
    """List commits reachable from branch but not upstream, oldest first.

    Args:
        branch: Commit hash (or name) of the topic branch tip
        upstream: Commit hash (or name) of the upstream
        extra_args: Extra rev-list arguments, passed through verbatim after
            the revisions, so a trailing "-- PATH..." limits by path
        cwd: Repository path

    Returns:
        Tuple of Commit in topological, oldest-to-newest order
    """
    output = _git_output(
        [
            "rev-list",
            "--reverse",
            "--topo-order",
            "--parents",
            branch,
            f"^{upstream}",
            *extra_args,
        ],
        cwd=cwd,
    )
    commits = []
    for line in output.splitlines():
        fields = line.split()
        if not fields:
            continue
        commits.append(Commit(sha=fields[0], parents=tuple(fields[1:])))
    return tuple(commits)


def commit_subject(sha: str, cwd: Path | None = None) -> str:
    """Get the subject line of a commit."""
    return _git_output(["show", "-s", "--format=%s", sha], cwd=cwd)


def format_patch(sha: str, cwd: Path | None = None) -> str:
    """Get the mailbox-formatted patch for a single commit, unmodified."""
    return run_git(
        ["format-patch", "-1", "--stdout", sha],
        cwd=cwd,
        strip=False,
    ).stdout


def diff_is_empty(old: str, new: str, cwd: Path | None = None) -> bool:
    """Check whether two commits have identical content."""
    result = run_git(["diff", "--quiet", old, new], cwd=cwd, ok_codes=(0, 1))
    return result.returncode == 0


def tags_at(sha: str, cwd: Path | None = None) -> tuple[Tag, ...]:
    """Get the tags pointing at a commit, in for-each-ref order.

    Annotated tags are matched through their peeled commit.
    """
    output = run_git(
        [
            "for-each-ref",
            f"--points-at={sha}",
            "--format=%(refname:short)%00%(subject)%00%(body)%1e",
            "refs/tags",
        ],
        cwd=cwd,
        strip=False,
    ).stdout

    tags = []
    for record in output.split(_RECORD_SEP):
        record = record.lstrip("\n")
        if not record:
            continue
        name, subject, body = (record.split(_FIELD_SEP) + ["", ""])[:3]
        tags.append(Tag(name=name, subject=subject, body=body))
    return tuple(tags)


def identity(cwd: Path | None = None) -> Identity:
    """Get user.name/user.email as seen from a repository, if set."""
    values = {}
    for key in ("user.name", "user.email"):
        result = run_git(["config", "--get", key], cwd=cwd, ok_codes=(0, 1))
        values[key] = result.stdout or None
    return Identity(name=values["user.name"], email=values["user.email"])


# =============================================================================
# Source Repository
# =============================================================================


class SourceRepo:
    """Read-only view of the repository being browsed."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def subject(self, sha: str) -> str:
        return commit_subject(sha, cwd=self.path)

    def format_patch(self, sha: str) -> str:
        return format_patch(sha, cwd=self.path)

    def diff_is_empty(self, old: str, new: str) -> bool:
        return diff_is_empty(old, new, cwd=self.path)

    def tags_at(self, sha: str) -> tuple[Tag, ...]:
        return tags_at(sha, cwd=self.path)


# =============================================================================
# Scratch Repository
# =============================================================================


class ScratchRepo:
    """A disposable clone that shares object storage with the source.

    Its history starts as an orphan line with an empty index, and only ever
    grows by ``commit``.
    """

    BRANCH = "topicview"

    def __init__(self, path: Path, ident: Identity | None = None):
        self.path = Path(path)
        self.identity = ident or Identity()

    @classmethod
    def create(
        cls,
        source: Path,
        path: Path,
        ident: Identity | None = None,
    ) -> ScratchRepo:
        """Clone source into path (which may exist but must be empty)."""
        run_git(["clone", "--shared", "--no-checkout", "--quiet", str(source), str(path)])
        repo = cls(path, ident)
        repo._git(["checkout", "--quiet", "--orphan", cls.BRANCH])
        return repo

    def _git(self, args: list[str], **kwargs) -> subprocess.CompletedProcess:
        return run_git(args, cwd=self.path, **kwargs)

    def write_patch(self, filename: str, text: str) -> Path:
        """Write a patch file into the working tree and stage it."""
        target = self.path / filename
        target.write_text(text, encoding="utf-8", errors="surrogateescape")
        self._git(["add", "--", filename])
        return target

    def clear(self) -> None:
        """Remove every tracked file from the index and working tree."""
        self._git(["rm", "-r", "-f", "-q", "--ignore-unmatch", "--", "."])

    def commit(self, message: str) -> str:
        """Commit the current index as a checkpoint and return its hash."""
        self._git(
            [
                *self.identity.config_args(),
                "-c",
                "commit.gpgsign=false",
                "commit",
                "--quiet",
                "--allow-empty",
                "--no-verify",
                "-m",
                message,
            ]
        )
        return self._git(["rev-parse", "HEAD"]).stdout

    def tracked_files(self) -> tuple[str, ...]:
        """List files currently staged in the scratch index."""
        output = self._git(["ls-files"]).stdout
        return tuple(output.splitlines()) if output else ()
