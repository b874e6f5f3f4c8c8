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
Data models for discovered files, security findings and risk scores.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .policy.models import Policy


class Severity(str, Enum):
    """Severity levels for security findings."""

    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Position in the info < low < medium < high < critical order."""
        return _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER = [Severity.INFO, Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]


class Confidence(str, Enum):
    """How likely a rule match is a true positive."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FileCategory(str, Enum):
    """Display classification of a discovered file."""

    SHELL = "shell"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    JSON = "json"
    YAML = "yaml"
    MARKDOWN = "markdown"
    GITHUB_ACTION = "github-action"
    OTHER = "other"


class ScoreAxis(str, Enum):
    """The four risk dimensions findings are scored on."""

    SHELL = "shell"
    NETWORK = "network"
    FILESYSTEM = "filesystem"
    CREDENTIALS = "credentials"


@dataclass(frozen=True)
class FileEntry:
    """A file that passed every discovery filter."""

    absolute_path: Path
    relative_path: str  # posix separators, root-relative
    size_bytes: int
    category: FileCategory

    def to_dict(self) -> dict[str, Any]:
        return {
            "absolute_path": str(self.absolute_path),
            "relative_path": self.relative_path,
            "size_bytes": self.size_bytes,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class RepoContext:
    """A scan target: its resolved root and the files discovered beneath it."""

    root_path: Path
    files: list[FileEntry] = field(default_factory=list)
    source: str = "local"

    @property
    def name(self) -> str:
        return self.root_path.name


@dataclass(frozen=True)
class Evidence:
    """Location, context window and literal matched text backing a finding."""

    path: str
    start_line: int
    end_line: int
    snippet: str
    match: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "snippet": self.snippet,
            "match": self.match,
        }


@dataclass(frozen=True)
class Finding:
    """A single evidence-backed rule match."""

    id: str  # Content-derived digest, see findings.create_finding_id
    rule_id: str
    severity: Severity
    confidence: Confidence
    category: str  # Rule category; scored through scoring.CATEGORY_AXIS
    title: str
    description: str
    evidence: Evidence
    remediation: str = ""
    tags: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert finding to dictionary."""
        result = {
            "id": self.id,
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "confidence": self.confidence.value,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "evidence": self.evidence.to_dict(),
            "remediation": self.remediation,
        }
        if self.tags:
            result["tags"] = list(self.tags)
        return result


@dataclass(frozen=True)
class Subscores:
    """Per-axis risk subscores, each in [0, 100]."""

    shell: float = 0.0
    network: float = 0.0
    filesystem: float = 0.0
    credentials: float = 0.0

    def get(self, axis: ScoreAxis) -> float:
        return getattr(self, axis.value)

    def to_dict(self) -> dict[str, float]:
        return {axis.value: self.get(axis) for axis in ScoreAxis}


@dataclass(frozen=True)
class ScoreResult:
    """Aggregate risk score derived from a findings list."""

    total: int
    subscores: Subscores
    has_critical: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "subscores": self.subscores.to_dict(),
            "has_critical": self.has_critical,
        }


@dataclass
class ScanResult:
    """Results from scanning a single target directory."""

    target: str
    files_scanned: int
    findings: list[Finding]
    score: ScoreResult
    policy: Policy
    rules_loaded: int = 0
    rule_format_version: str = ""
    scan_duration_seconds: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def max_severity(self) -> Severity | None:
        """Get the highest severity level found."""
        if not self.findings:
            return None
        return max((f.severity for f in self.findings), key=lambda s: s.rank)

    def get_findings_by_severity(self, severity: Severity) -> list[Finding]:
        """Get all findings of a specific severity."""
        return [f for f in self.findings if f.severity == severity]

    def to_dict(self) -> dict[str, Any]:
        """Convert scan result to dictionary."""
        from .policy.serializer import policy_to_dict

        max_severity = self.max_severity
        return {
            "target": self.target,
            "files_scanned": self.files_scanned,
            "findings_count": len(self.findings),
            "max_severity": max_severity.value if max_severity else None,
            "score": self.score.to_dict(),
            "findings": [f.to_dict() for f in self.findings],
            "policy": policy_to_dict(self.policy),
            "rules_loaded": self.rules_loaded,
            "rule_format_version": self.rule_format_version,
            "scan_duration_seconds": self.scan_duration_seconds,
            "timestamp": self.timestamp.isoformat(),
        }
