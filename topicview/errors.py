"""Error types for topicview.

Two layers:
- ``TopicViewError`` is a plain value describing a failure (code, message,
  context). It is what the CLI shows to the user.
- ``TopicViewException`` and its subclasses carry a ``TopicViewError`` and are
  raised by internal operations, which are all fail-fast.

The session layer is the boundary between the two: it catches the exceptions
and hands back a ``Result`` (``Ok`` or ``Err``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class TopicViewError:
    """A failure that can be reported to the user."""

    code: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Result
# =============================================================================


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    @property
    def error(self) -> None:
        return None

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self):
        raise ValueError(f"Called unwrap_err on Ok: {self.value!r}")


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E

    @property
    def ok(self) -> bool:
        return False

    @property
    def value(self) -> None:
        return None

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self):
        raise ValueError(f"Called unwrap on Err: {self.error!r}")

    def unwrap_err(self) -> E:
        return self.error


Result = Union[Ok[T], Err[E]]


def ok(value: T) -> Ok[T]:
    return Ok(value)


def err(error: E) -> Err[E]:
    return Err(error)


def format_error(error: TopicViewError) -> str:
    """Render an error for the terminal.

    Context values are appended one per line, skipping empty ones.
    """
    lines = [f"Error: {error.message}"]
    for key, value in error.context.items():
        if value in (None, "", [], ()):
            continue
        if isinstance(value, (list, tuple)):
            value = " ".join(str(v) for v in value)
        lines.append(f"  {key}: {value}")
    return "\n".join(lines)


# =============================================================================
# Exceptions
# =============================================================================


class TopicViewException(Exception):
    """Base class for fail-fast errors raised inside a run."""

    code = "topicview_error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.error = TopicViewError(code=self.code, message=message, context=context)


class GitCommandError(TopicViewException):
    """A git invocation returned an unexpected status."""

    code = "git_command_failed"


class ResolutionError(TopicViewException):
    """A branch or upstream name does not name a commit."""

    code = "unresolved_revision"


class UnsupportedCommitError(TopicViewException):
    """A commit in the range has no parents or more than two."""

    code = "unsupported_commit"

    def __init__(self, commit: str, parents: int):
        super().__init__(
            f"Unsupported commit {commit} with {parents} parents",
            commit=commit,
            parents=parents,
        )
        self.commit = commit
        self.parents = parents


class BrowseToolError(TopicViewException):
    """The browsing tool exited with a non-zero status."""

    code = "browse_tool_failed"
