# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""
File discovery for scan targets.

Walks a root directory and returns the files that survive, in order:
  1. the default exclusion of VCS metadata (``.git/``)
  2. patterns from ``.gitignore`` and ``.openguardignore`` at the root
  3. the size ceiling
  4. symlink containment (targets must resolve inside the root)

Results are sorted by root-relative path so ordering never depends on
filesystem enumeration order.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from ..config.constants import OpenGuardConstants
from .exceptions import TargetLoadError
from .ignore import IgnoreMatcher
from .models import FileCategory, FileEntry

logger = logging.getLogger(__name__)

SHELL_EXTENSIONS = {".sh", ".bash", ".zsh", ".fish", ".ps1"}
TYPESCRIPT_EXTENSIONS = {".ts", ".cts", ".mts"}
JAVASCRIPT_EXTENSIONS = {".js", ".cjs", ".mjs"}
JSON_EXTENSIONS = {".json"}
YAML_EXTENSIONS = {".yml", ".yaml"}
MARKDOWN_EXTENSIONS = {".md", ".markdown"}

_EXTENSION_CATEGORIES = [
    (SHELL_EXTENSIONS, FileCategory.SHELL),
    (TYPESCRIPT_EXTENSIONS, FileCategory.TYPESCRIPT),
    (JAVASCRIPT_EXTENSIONS, FileCategory.JAVASCRIPT),
    (JSON_EXTENSIONS, FileCategory.JSON),
    (YAML_EXTENSIONS, FileCategory.YAML),
    (MARKDOWN_EXTENSIONS, FileCategory.MARKDOWN),
]


def classify_file(relative_path: str) -> FileCategory:
    """Assign the display category of a root-relative posix path."""
    lowered = relative_path.lower()
    suffix = Path(lowered).suffix
    if lowered.startswith(".github/workflows/") and suffix in YAML_EXTENSIONS:
        return FileCategory.GITHUB_ACTION
    for extensions, category in _EXTENSION_CATEGORIES:
        if suffix in extensions:
            return category
    return FileCategory.OTHER


def is_text_category(category: FileCategory) -> bool:
    return category != FileCategory.OTHER


def build_ignore_matcher(
    root: Path,
    ignore_file_names: Iterable[str] = OpenGuardConstants.IGNORE_FILE_NAMES,
    extra_patterns: Iterable[str] = (),
) -> IgnoreMatcher:
    """Collect default, ignore-file and caller-supplied patterns for a root."""
    matcher = IgnoreMatcher()
    matcher.add_lines(OpenGuardConstants.DEFAULT_IGNORE_PATTERNS, source="<default>")
    for name in ignore_file_names:
        matcher.add_file(root / name)
    matcher.add_lines(extra_patterns, source="<extra>")
    return matcher


class _Walker:
    """Single-use traversal state for one discovery call."""

    def __init__(self, root: Path, matcher: IgnoreMatcher, max_file_size_bytes: int):
        self.root = root
        self.matcher = matcher
        self.max_file_size_bytes = max_file_size_bytes
        self.entries: dict[str, FileEntry] = {}
        self.visited_dirs: set[Path] = set()

    def relative(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()

    def walk(self, directory: Path) -> None:
        real_dir = Path(os.path.realpath(directory))
        if real_dir in self.visited_dirs:
            return
        self.visited_dirs.add(real_dir)

        try:
            with os.scandir(directory) as it:
                children = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            raise TargetLoadError(f"Unable to read directory {directory}: {e}") from e

        for child in children:
            path = Path(child.path)
            if child.is_symlink():
                self.follow_symlink(path)
            elif child.is_dir(follow_symlinks=False):
                relative_path = self.relative(path)
                if self.matcher.is_ignored(relative_path, is_dir=True):
                    logger.debug("Ignoring directory %s", relative_path)
                    continue
                self.walk(path)
            elif child.is_file(follow_symlinks=False):
                self.add_file(path)

    def follow_symlink(self, link: Path) -> None:
        try:
            resolved = Path(os.path.realpath(link, strict=True))
        except OSError:
            logger.debug("Skipping unresolvable symlink %s", link)
            return

        if resolved != self.root and not resolved.is_relative_to(self.root):
            logger.debug("Skipping symlink %s escaping the scan root", link)
            return

        if resolved.is_dir():
            if resolved != self.root and self.matcher.is_ignored(self.relative(resolved), is_dir=True):
                return
            self.walk(resolved)
        elif resolved.is_file():
            self.add_file(resolved)

    def add_file(self, path: Path) -> None:
        relative_path = self.relative(path)
        if self.matcher.is_ignored(relative_path, is_dir=False):
            logger.debug("Ignoring file %s", relative_path)
            return
        if relative_path in self.entries:
            return

        try:
            size = path.stat().st_size
        except OSError as e:
            raise TargetLoadError(f"Unable to stat {path}: {e}") from e

        if size > self.max_file_size_bytes:
            logger.debug("Skipping %s: %d bytes exceeds limit of %d", relative_path, size, self.max_file_size_bytes)
            return

        self.entries[relative_path] = FileEntry(
            absolute_path=path,
            relative_path=relative_path,
            size_bytes=size,
            category=classify_file(relative_path),
        )


def discover_files(
    root: str | Path,
    *,
    max_file_size_bytes: int = OpenGuardConstants.DEFAULT_MAX_FILE_SIZE_BYTES,
    ignore_file_names: Iterable[str] = OpenGuardConstants.IGNORE_FILE_NAMES,
    extra_ignore_patterns: Iterable[str] = (),
) -> list[FileEntry]:
    """
    Discover scannable files beneath a root directory.

    Symlinks are followed only when their resolved target lies inside the
    root. A followed symlink contributes its target's root-relative path, so
    aliases of the same file collapse into one entry.

    Args:
        root: Directory to walk
        max_file_size_bytes: Files larger than this are skipped
        ignore_file_names: Ignore files read from the root, in order
        extra_ignore_patterns: Additional gitignore-syntax lines applied last

    Returns:
        File entries sorted by relative path

    Raises:
        TargetLoadError: If a directory cannot be read
    """
    root_path = Path(os.path.realpath(root))
    matcher = build_ignore_matcher(root_path, ignore_file_names, extra_ignore_patterns)
    walker = _Walker(root_path, matcher, max_file_size_bytes)
    walker.walk(root_path)

    files = sorted(walker.entries.values(), key=lambda entry: entry.relative_path)
    logger.debug("Discovered %d files under %s", len(files), root_path)
    return files
