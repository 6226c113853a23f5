"""Shared fixtures for topicview tests."""

import shutil
import subprocess
from pathlib import Path

import pytest


def run_git(path: Path, *args: str) -> str:
    """Run git in path and return stripped stdout; raise on failure."""
    result = subprocess.run(
        ["git", *args],
        cwd=path,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


class GitRepo:
    """A throwaway repository with helpers for shaping history."""

    def __init__(self, path: Path):
        self.path = path
        self._counter = 0

    def git(self, *args: str) -> str:
        return run_git(self.path, *args)

    def head(self) -> str:
        return self.git("rev-parse", "HEAD")

    def commit(self, message: str, files: dict[str, str] | None = None) -> str:
        """Write files (or one fresh file) and commit them."""
        if files is None:
            self._counter += 1
            files = {f"file{self._counter}.txt": f"{message}\n"}
        for name, content in files.items():
            target = self.path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        self.git("add", "-A")
        self.git("commit", "-q", "-m", message)
        return self.head()

    def tag(self, name: str, *messages: str, ref: str = "HEAD") -> None:
        """Create a lightweight tag, or an annotated one if messages given."""
        if messages:
            args = ["tag", "-a", name]
            for message in messages:
                args += ["-m", message]
            self.git(*args, ref)
        else:
            self.git("tag", name, ref)

    def merge_commit(self, message: str, *parents: str, tree_of: str | None = None) -> str:
        """Create a commit with the given parents and move the branch to it.

        The tree is taken from tree_of, or from the first parent, which makes
        the result a merge with no content change against its first parent.
        """
        tree = self.git("rev-parse", f"{tree_of or parents[0]}^{{tree}}")
        args = ["commit-tree", tree]
        for parent in parents:
            args += ["-p", parent]
        sha = self.git(*args, "-m", message)
        self.git("reset", "-q", "--hard", sha)
        return sha

    def checkout(self, name: str, create: bool = False) -> None:
        if create:
            self.git("checkout", "-q", "-b", name)
        else:
            self.git("checkout", "-q", name)


def _init_git_repo(path: Path) -> GitRepo | None:
    """Initialize a repo with a 'main' branch and a 'topic' branch off it."""
    try:
        path.mkdir(parents=True, exist_ok=True)
        run_git(path, "init", "-q")
        run_git(path, "symbolic-ref", "HEAD", "refs/heads/main")
        # Configure git user and signing for commits
        run_git(path, "config", "user.email", "test@test.com")
        run_git(path, "config", "user.name", "Test User")
        run_git(path, "config", "commit.gpgsign", "false")
        run_git(path, "config", "tag.gpgsign", "false")
        repo = GitRepo(path)
        repo.commit("Initial commit", {"README.md": "Test repo\n"})
        repo.checkout("topic", create=True)
        return repo
    except (subprocess.CalledProcessError, OSError):
        return None


@pytest.fixture
def repo(tmp_path: Path) -> GitRepo:
    """A git repository on branch 'topic', one commit ahead of nothing."""
    if shutil.which("git") is None:
        pytest.skip("Git not available")
    created = _init_git_repo(tmp_path / "repo")
    if created is None:
        pytest.skip("Git not available")
    return created


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch):
    """Keep the user's ~/.topicview and TOPICVIEW_TOOL out of tests."""
    monkeypatch.setattr("topicview.config.CONFIG_PATH", tmp_path / "home" / "config.yaml")
    monkeypatch.delenv("TOPICVIEW_TOOL", raising=False)
