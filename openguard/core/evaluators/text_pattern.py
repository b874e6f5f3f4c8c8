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
Regex evaluation of rule patterns against raw file content.
"""

from __future__ import annotations

from ..evidence import build_evidence
from ..findings import create_finding
from ..models import Finding
from ..rule_registry import Rule
from .base import BaseEvaluator, ScannedFile


class TextPatternEvaluator(BaseEvaluator):
    """Runs every pattern of a rule over the whole file.

    Patterns are compiled case-insensitive and multi-line; each
    non-overlapping match yields one finding.
    """

    def __init__(self):
        super().__init__("text_pattern")

    def evaluate(self, rule: Rule, scanned: ScannedFile) -> list[Finding]:
        findings = []
        for pattern in rule.patterns:
            for match in pattern.compiled.finditer(scanned.content):
                text = match.group(0)
                if not text:
                    # Zero-width matches carry no evidence
                    continue
                evidence = build_evidence(
                    scanned.content,
                    scanned.relative_path,
                    match.start(),
                    text,
                    lines=scanned.lines,
                )
                findings.append(create_finding(rule, evidence))
        return findings
