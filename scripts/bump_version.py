#!/usr/bin/env python3
"""Bump the topicview version in every file that carries it.

Usage:
    python scripts/bump_version.py 1.1.0
    python scripts/bump_version.py --check  # Show current versions
"""

import re
import sys
from pathlib import Path

# Root of the repo
ROOT = Path(__file__).parent.parent

# File -> (pattern, replacement)
VERSION_FILES = {
    "pyproject.toml": (r'^version = "[^"]+"', 'version = "{version}"'),
    "topicview/__init__.py": (r'^__version__ = "[^"]+"', '__version__ = "{version}"'),
}

VERSION_RE = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+")


def get_current_versions() -> dict[str, str]:
    """Get current version from each file."""
    versions = {}
    for file, (pattern, _) in VERSION_FILES.items():
        path = ROOT / file
        if not path.exists():
            versions[file] = "NOT FOUND"
            continue

        match = re.search(pattern, path.read_text(), re.MULTILINE)
        if not match:
            versions[file] = "NOT FOUND"
            continue
        ver = VERSION_RE.search(match.group())
        versions[file] = ver.group() if ver else "PARSE ERROR"
    return versions


def bump_version(new_version: str) -> list[str]:
    """Update version in all files. Returns list of updated files."""
    updated = []
    for file, (pattern, replacement) in VERSION_FILES.items():
        path = ROOT / file
        if not path.exists():
            print(f"  SKIP {file} (not found)")
            continue

        content = path.read_text()
        new_content = re.sub(
            pattern, replacement.format(version=new_version), content, flags=re.MULTILINE
        )
        if new_content != content:
            path.write_text(new_content)
            updated.append(file)
            print(f"  OK   {file} -> {new_version}")
        else:
            print(f"  SAME {file}")
    return updated


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/bump_version.py <version>")
        print("       python scripts/bump_version.py --check")
        sys.exit(1)

    arg = sys.argv[1]

    if arg == "--check":
        versions = get_current_versions()
        for file, ver in versions.items():
            print(f"  {file}: {ver}")

        unique = set(versions.values()) - {"NOT FOUND", "PARSE ERROR"}
        if len(unique) != 1:
            print(f"\n✗ Versions out of sync: {unique}")
            sys.exit(1)
        print(f"\n✓ All versions in sync: {unique.pop()}")
        return

    if not VERSION_RE.fullmatch(arg):
        print(f"Invalid version format: {arg} (expected X.Y.Z)")
        sys.exit(1)

    updated = bump_version(arg)
    print(f"Updated {len(updated)} file(s)")
    if updated:
        print(f"  git commit -m 'chore: bump version to {arg}' {' '.join(updated)}")


if __name__ == "__main__":
    main()
