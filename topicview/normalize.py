"""Patch normalization.

A format-patch document carries identifiers that change whenever a commit is
rebased even if its logical change does not: the commit hash in the
``From <hash> ...`` header, blob hashes and modes on ``index`` lines, and
hunk line ranges. Zeroing them makes equivalent patches compare equal, so
that diffs between checkpoints only show real changes.

The transform is line-for-line; unrecognized lines pass through untouched.
"""

import re

HUNK_PLACEHOLDER = "000,0"

# "From 1a2b3c... Mon Sep 17 00:00:00 2001"
_FROM_RE = re.compile(r"^From ([0-9a-fA-F]+)( |$)")
# "index 1a2b3c..4d5e6f 100644" (mode is optional)
_INDEX_RE = re.compile(r"^index [0-9a-f]+\.\.[0-9a-f]+(?: [0-7]+)?$")
_HEX_RE = re.compile(r"[0-9a-f]")
# "@@ -12,7 +12,8 @@ def foo():" (counts are optional)
_HUNK_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+\d+(?:,\d+)? @@")

_SEPARATOR = "---"


def _zero(text: str) -> str:
    return "0" * len(text)


def normalize_patch(text: str, accurate: bool = False) -> str:
    """Zero out the volatile identifiers of a single-commit patch.

    Args:
        text: Patch text as produced by ``git format-patch -1 --stdout``
        accurate: Return the text unchanged

    Returns:
        Normalized patch with the same number of lines
    """
    if accurate:
        return text

    out = []
    in_body = False

    for lineno, line in enumerate(text.split("\n")):
        content = line.rstrip("\r")
        ending = line[len(content):]

        if lineno == 0:
            match = _FROM_RE.match(content)
            if match:
                sha = match.group(1)
                content = f"From {_zero(sha)}{content[5 + len(sha):]}"
                out.append(content + ending)
                continue

        if not in_body:
            in_body = content == _SEPARATOR
            out.append(line)
            continue

        match = _INDEX_RE.match(content)
        if match:
            content = "index " + _HEX_RE.sub("0", content[len("index "):])
        else:
            match = _HUNK_RE.match(content)
            if match:
                rest = content[match.end():]
                content = f"@@ -{HUNK_PLACEHOLDER} +{HUNK_PLACEHOLDER} @@{rest}"

        out.append(content + ending)

    return "\n".join(out)
