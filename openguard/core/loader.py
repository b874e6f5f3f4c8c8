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
Scan target loader.

Resolves a local directory into a ``RepoContext``. Cloning remote
repositories is left to callers; the loader only accepts paths on disk.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from ..config.constants import OpenGuardConstants
from .discovery import discover_files
from .exceptions import TargetLoadError
from .models import RepoContext

logger = logging.getLogger(__name__)


class TargetLoader:
    """Loads a local directory as a scan target."""

    def __init__(
        self,
        max_file_size_bytes: int = OpenGuardConstants.DEFAULT_MAX_FILE_SIZE_BYTES,
        extra_ignore_patterns: Iterable[str] = (),
    ):
        """
        Initialize target loader.

        Args:
            max_file_size_bytes: Files larger than this are not discovered
            extra_ignore_patterns: Gitignore-syntax lines applied after the root's ignore files
        """
        self.max_file_size_bytes = max_file_size_bytes
        self.extra_ignore_patterns = list(extra_ignore_patterns)

    def load(self, target: str | Path) -> RepoContext:
        """
        Load a target directory.

        Args:
            target: Path to the directory to scan

        Returns:
            RepoContext with the resolved root and discovered files

        Raises:
            TargetLoadError: If the path is missing, not a directory, or unreadable
        """
        target = Path(target).expanduser()

        if not target.exists():
            raise TargetLoadError(f"Target path does not exist: {target}. Provide a valid directory.")

        if not target.is_dir():
            raise TargetLoadError(f"Target path must be a directory: {target}")

        root = target.resolve()
        files = discover_files(
            root,
            max_file_size_bytes=self.max_file_size_bytes,
            extra_ignore_patterns=self.extra_ignore_patterns,
        )
        logger.info("Loaded target %s with %d files", root, len(files))
        return RepoContext(root_path=root, files=files, source="local")


def load_target(
    target: str | Path,
    max_file_size_bytes: int = OpenGuardConstants.DEFAULT_MAX_FILE_SIZE_BYTES,
) -> RepoContext:
    """
    Convenience function to load a scan target.

    Args:
        target: Path to the directory to scan
        max_file_size_bytes: Files larger than this are not discovered

    Returns:
        RepoContext
    """
    return TargetLoader(max_file_size_bytes=max_file_size_bytes).load(target)
