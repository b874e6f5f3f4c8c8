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
Main scanner orchestrator.

Runs discovery, the rule engine, scoring and policy inference for one
target directory.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from ..config.config import Config
from .engine import RuleEngine
from .loader import TargetLoader
from .models import ScanResult
from .policy import infer_policy
from .rule_registry import RuleCatalog, load_rules_with_overrides
from .scoring import calculate_score

logger = logging.getLogger(__name__)


class OpenGuardScanner:
    """Scans local directories with a rule catalog loaded once at construction."""

    def __init__(self, config: Config | None = None, catalog: RuleCatalog | None = None):
        """
        Initialize scanner.

        Args:
            config: Scanner configuration (default: from environment)
            catalog: Pre-loaded rule catalog. If None, loads ``config.rules_dir``
                plus ``config.override_rules_dir``.

        Raises:
            RuleLoadError: If the catalog is malformed
        """
        self.config = config or Config()
        self.catalog = catalog or load_rules_with_overrides(self.config.rules_dir, self.config.override_rules_dir)
        self.loader = TargetLoader(max_file_size_bytes=self.config.max_file_size_bytes)
        self.engine = RuleEngine(self.catalog, max_workers=self.config.max_workers)

    def scan(self, target: str | Path) -> ScanResult:
        """
        Scan a target directory.

        Args:
            target: Path to the directory

        Returns:
            ScanResult with findings, score and inferred policy

        Raises:
            TargetLoadError: If the target is missing or unreadable
            ScanError: If an in-scope file cannot be read
        """
        start_time = time.time()
        context = self.loader.load(target)
        findings = self.engine.scan(context.files)
        score = calculate_score(findings)
        policy = infer_policy(findings, context, severity_threshold=self.config.severity_threshold)
        duration = time.time() - start_time

        logger.info(
            "Scan of %s complete: %d files, %d findings, score %d",
            context.root_path,
            len(context.files),
            len(findings),
            score.total,
        )
        return ScanResult(
            target=str(context.root_path),
            files_scanned=len(context.files),
            findings=findings,
            score=score,
            policy=policy,
            rules_loaded=len(self.catalog),
            rule_format_version=self.catalog.meta.rule_format_version,
            scan_duration_seconds=duration,
        )


def scan_directory(target: str | Path, config: Config | None = None) -> ScanResult:
    """
    Convenience function to scan a single directory.

    Args:
        target: Path to the directory
        config: Optional scanner configuration

    Returns:
        ScanResult
    """
    return OpenGuardScanner(config=config).scan(target)
