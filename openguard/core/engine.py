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
Rule engine: applies a rule catalog to discovered files.

For every file the engine resolves a set of type labels (extension lookup
through ``RuleMeta`` plus path-shape detectors), selects the rules whose
``scope.file_types`` intersect that set, and dispatches each rule to an
evaluator. Output is de-duplicated by finding id and sorted by id, so the
result does not depend on traversal or worker scheduling order.
"""

from __future__ import annotations

import concurrent.futures
import logging
import re
from collections.abc import Callable, Iterable
from pathlib import PurePosixPath

from .evaluators import BaseEvaluator, ScannedFile, TextPatternEvaluator, WorkflowStructureEvaluator
from .exceptions import ScanError
from .findings import dedupe_and_sort
from .models import FileEntry, Finding
from .rule_registry import Rule, RuleCatalog, RuleMeta

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Path-shape type labels
# ---------------------------------------------------------------------------

_WORKFLOW_PATH = re.compile(r"^\.github/workflows/.+\.ya?ml$", re.IGNORECASE)
_DOCKERFILE_NAME = re.compile(r"^dockerfile$|\.dockerfile$", re.IGNORECASE)

MCP_MANIFEST_NAMES = frozenset(
    {
        "mcp.json",
        ".mcp.json",
        "mcp.yaml",
        "mcp.yml",
        "mcp_config.json",
        "mcp_settings.json",
        "claude_desktop_config.json",
        "opencode.json",
        "opencode.jsonc",
    }
)
_MCP_MANIFEST_SUFFIX = re.compile(r"\.mcp\.json$", re.IGNORECASE)


def _is_workflow(relative_path: str, basename: str) -> bool:
    return _WORKFLOW_PATH.match(relative_path) is not None


def _is_dockerfile(relative_path: str, basename: str) -> bool:
    return _DOCKERFILE_NAME.search(basename) is not None


def _is_mcp_manifest(relative_path: str, basename: str) -> bool:
    return basename.lower() in MCP_MANIFEST_NAMES or _MCP_MANIFEST_SUFFIX.search(basename) is not None


PATH_LABELS: list[tuple[str, Callable[[str, str], bool]]] = [
    ("yaml-workflow", _is_workflow),
    ("dockerfile", _is_dockerfile),
    ("mcp-config", _is_mcp_manifest),
]


def resolve_file_types(relative_path: str, meta: RuleMeta) -> frozenset[str]:
    """All type labels carried by a root-relative posix path."""
    path = PurePosixPath(relative_path)
    labels = meta.labels_for_extension(path.suffix) if path.suffix else set()
    for label, matcher in PATH_LABELS:
        if matcher(relative_path, path.name):
            labels.add(label)
    return frozenset(labels)


def read_text(entry: FileEntry) -> str:
    """Read a discovered file as UTF-8, preserving line endings."""
    try:
        with open(entry.absolute_path, encoding="utf-8", newline="") as fh:
            return fh.read()
    except UnicodeDecodeError as e:
        raise ScanError(f"Unable to decode {entry.relative_path} as UTF-8 text: {e}") from e
    except OSError as e:
        raise ScanError(f"Unable to read {entry.relative_path}: {e}") from e


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class RuleEngine:
    """Evaluates a read-only rule catalog against files."""

    def __init__(self, catalog: RuleCatalog, max_workers: int = 1):
        """
        Initialize the engine.

        Args:
            catalog: Loaded rule catalog; never mutated by the engine
            max_workers: Files evaluated concurrently (1 = serial)
        """
        self.catalog = catalog
        self.max_workers = max(1, max_workers)
        self.text_evaluator = TextPatternEvaluator()
        # Checked in order; the text evaluator accepts everything
        self.evaluators: list[BaseEvaluator] = [
            WorkflowStructureEvaluator(fallback=self.text_evaluator),
            self.text_evaluator,
        ]

    def applicable_rules(self, labels: frozenset[str]) -> list[Rule]:
        return [rule for rule in self.catalog if rule.applies_to(labels)]

    def _evaluator_for(self, rule: Rule, scanned: ScannedFile) -> BaseEvaluator:
        for evaluator in self.evaluators:
            if evaluator.handles(rule, scanned):
                return evaluator
        return self.text_evaluator

    def scan_file(self, entry: FileEntry) -> list[Finding]:
        """
        Evaluate every applicable rule against one file.

        Files with no applicable rule are never read.

        Raises:
            ScanError: If an in-scope file cannot be read or decoded
        """
        labels = resolve_file_types(entry.relative_path, self.catalog.meta)
        rules = self.applicable_rules(labels)
        if not rules:
            return []

        scanned = ScannedFile(entry.relative_path, read_text(entry), labels)
        findings: list[Finding] = []
        for rule in rules:
            findings.extend(self._evaluator_for(rule, scanned).evaluate(rule, scanned))
        return findings

    def scan(self, files: Iterable[FileEntry]) -> list[Finding]:
        """
        Scan files and return findings de-duplicated and sorted by id.

        Raises:
            ScanError: On the first file that fails; pending file tasks are cancelled
        """
        files = list(files)
        if self.max_workers == 1 or len(files) < 2:
            per_file = [self.scan_file(entry) for entry in files]
        else:
            per_file = self._scan_parallel(files)

        findings = dedupe_and_sort(finding for batch in per_file for finding in batch)
        logger.info("Scanned %d files, %d findings", len(files), len(findings))
        return findings

    def _scan_parallel(self, files: list[FileEntry]) -> list[list[Finding]]:
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self.scan_file, entry) for entry in files]
            try:
                return [future.result() for future in futures]
            except BaseException:
                for future in futures:
                    future.cancel()
                raise


def scan_target(files: Iterable[FileEntry], catalog: RuleCatalog, max_workers: int = 1) -> list[Finding]:
    """
    Convenience function to scan discovered files with a catalog.

    Args:
        files: Discovered file entries
        catalog: Loaded rule catalog
        max_workers: Files evaluated concurrently

    Returns:
        Findings sorted by id
    """
    return RuleEngine(catalog, max_workers=max_workers).scan(files)
