"""Configuration for topicview.

A run is driven by one immutable ``PatchViewConfig``. Defaults for the
browsing tool and normalization mode cascade:

1. Explicit CLI flags
2. ``TOPICVIEW_TOOL`` environment variable (tool only)
3. Project-level ``<repo>/.topicview.yaml``
4. User-level ``~/.topicview/config.yaml``
5. Built-in defaults

Config files are plain YAML mappings, e.g.::

    tool: tig
    accurate: false

Unknown keys are ignored.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from topicview.errors import GitCommandError
from topicview.git import toplevel
from topicview.logging import get_logger

logger = get_logger(__name__)

# Standard paths
TOPICVIEW_DIR = Path.home() / ".topicview"
CONFIG_PATH = TOPICVIEW_DIR / "config.yaml"
PROJECT_CONFIG_NAME = ".topicview.yaml"

DEFAULT_TOOL = "git log -p"
TOOL_ENV_VAR = "TOPICVIEW_TOOL"

# Scratch directories are created in the working directory with this prefix
SCRATCH_PREFIX = ".topicview-"


@dataclass(frozen=True)
class PatchViewConfig:
    """Settings for one patch-view run."""

    tool: str = DEFAULT_TOOL
    accurate: bool = False  # Skip patch normalization
    debug: bool = False

    @classmethod
    def load(
        cls,
        tool: str | None = None,
        accurate: bool | None = None,
        debug: bool = False,
        project_path: Path | None = None,
    ) -> "PatchViewConfig":
        """Build a config from files, environment and explicit overrides.

        Args:
            tool: Browsing tool from the command line, if given
            accurate: Accurate mode from the command line, if given
            debug: Verbose diagnostics
            project_path: Repository root to look for a project config in

        Returns:
            PatchViewConfig with the cascade applied
        """
        data = _load_yaml(CONFIG_PATH)
        if project_path is not None:
            data.update(_load_yaml(project_path / PROJECT_CONFIG_NAME))

        if env_tool := os.environ.get(TOOL_ENV_VAR):
            data["tool"] = env_tool

        if tool:
            data["tool"] = tool
        if accurate is not None:
            data["accurate"] = accurate

        return cls(
            tool=str(data.get("tool") or DEFAULT_TOOL),
            accurate=bool(data.get("accurate", False)),
            debug=debug,
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    """Read known keys from a YAML config file, or {} if it does not exist."""
    if not path.exists():
        return {}

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring malformed config file: {path}")
        return {}

    known = {"tool", "accurate"}
    return {k: v for k, v in data.items() if k in known}


def detect_project_root(start_path: Path | None = None) -> Path | None:
    """Find the root of the repository containing start_path.

    Args:
        start_path: Starting path for the lookup. Defaults to cwd.

    Returns:
        Repository root, or None outside a repository.
    """
    try:
        return toplevel(start_path or Path.cwd())
    except GitCommandError:
        return None
