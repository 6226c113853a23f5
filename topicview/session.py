"""Patch-view session.

Owns one run from start to finish:

1. Resolve branch and upstream to commit hashes
2. Clone the repository into a scratch directory (shared objects, orphan
   branch, empty tree)
3. List the commit range and replay it through the CheckpointBuilder
4. Run the browsing tool inside the scratch clone

The original repository is only read. The scratch directory is removed on
every exit path, including errors, Ctrl-C and SIGTERM.
"""

from __future__ import annotations

import shutil
import signal
import subprocess
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from topicview.builder import BuildResult, CheckpointBuilder
from topicview.config import SCRATCH_PREFIX, PatchViewConfig
from topicview.errors import BrowseToolError, Result, TopicViewError, TopicViewException, err, ok
from topicview.git import ScratchRepo, SourceRepo, identity, list_range, resolve_commit, toplevel
from topicview.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def scratch_directory(parent: Path) -> Iterator[Path]:
    """Create a uniquely named directory under parent, removed on exit."""
    path = Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=parent))
    logger.debug(f"Scratch directory: {path}")
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug(f"Removed scratch directory: {path}")


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


@contextmanager
def terminate_as_interrupt() -> Iterator[None]:
    """Turn SIGTERM into KeyboardInterrupt so cleanup handlers run.

    Signal handlers can only be installed from the main thread; elsewhere
    this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        yield
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)


def launch_tool(tool: str, cwd: Path) -> int:
    """Run the browsing tool through the shell inside cwd.

    While the tool runs it owns the terminal, so SIGINT is left to it.

    Raises:
        BrowseToolError: the tool exited with a non-zero status
    """
    logger.debug(f"Running browsing tool: {tool}")
    main_thread = threading.current_thread() is threading.main_thread()
    previous = signal.signal(signal.SIGINT, signal.SIG_IGN) if main_thread else None
    try:
        result = subprocess.run(tool, shell=True, cwd=cwd)  # noqa: S602
    finally:
        if main_thread and previous is not None:
            signal.signal(signal.SIGINT, previous)

    if result.returncode != 0:
        raise BrowseToolError(
            f"Browsing tool exited with status {result.returncode}",
            tool=tool,
            returncode=result.returncode,
        )
    return result.returncode


def run_patch_view(
    branch: str,
    upstream: str,
    range_args: tuple[str, ...] = (),
    config: PatchViewConfig | None = None,
    cwd: Path | None = None,
) -> Result[BuildResult, TopicViewError]:
    """Build the patch view of branch against upstream and browse it.

    Args:
        branch: Topic branch (any revision name git can resolve)
        upstream: Upstream to compare against
        range_args: Extra rev-list arguments, passed through verbatim
        config: Run configuration (defaults if None)
        cwd: Directory to run in; the scratch directory is created here

    Returns:
        Ok(BuildResult) after the browsing tool exits, or Err(TopicViewError)

    KeyboardInterrupt is not converted; it propagates after cleanup.
    """
    config = config or PatchViewConfig()
    cwd = Path(cwd).resolve() if cwd is not None else Path.cwd()

    try:
        root = toplevel(cwd)
        branch_sha = resolve_commit(branch, cwd=root)
        upstream_sha = resolve_commit(upstream, cwd=root)
        logger.debug(f"Branch {branch} = {branch_sha}, upstream {upstream} = {upstream_sha}")

        with terminate_as_interrupt(), scratch_directory(cwd) as path:
            scratch = ScratchRepo.create(root, path, identity(root))
            commits = list_range(branch_sha, upstream_sha, tuple(range_args), cwd=root)
            logger.debug(f"{len(commits)} commits in range")

            builder = CheckpointBuilder(SourceRepo(root), scratch, config)
            result = builder.build(commits)
            logger.info(result.summary)

            launch_tool(config.tool, path)

        return ok(result)

    except TopicViewException as e:
        logger.debug(f"Run failed: {e}")
        return err(e.error)
