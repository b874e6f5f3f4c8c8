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
Finding construction and content-derived identity.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from ..config.constants import OpenGuardConstants
from .models import Evidence, Finding
from .rule_registry import Rule


def create_finding_id(rule_id: str, path: str, start_line: int, match: str) -> str:
    """
    Derive a stable finding id from rule, location and matched text.

    Identical arguments always give the same id, so re-scanning unchanged
    input yields the same id set.
    """
    digest = hashlib.sha256(f"{rule_id}:{path}:{start_line}:{match}".encode()).hexdigest()
    return digest[: OpenGuardConstants.FINDING_ID_LENGTH]


def create_finding(rule: Rule, evidence: Evidence) -> Finding:
    return Finding(
        id=create_finding_id(rule.id, evidence.path, evidence.start_line, evidence.match),
        rule_id=rule.id,
        severity=rule.severity,
        confidence=rule.confidence,
        category=rule.category,
        title=rule.title,
        description=rule.description,
        evidence=evidence,
        remediation=rule.remediation,
        tags=rule.tags,
    )


def dedupe_and_sort(findings: Iterable[Finding]) -> list[Finding]:
    """Drop repeated ids (first occurrence wins) and sort by id."""
    seen: dict[str, Finding] = {}
    for finding in findings:
        seen.setdefault(finding.id, finding)
    return sorted(seen.values(), key=lambda f: f.id)
