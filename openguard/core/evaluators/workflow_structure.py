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
Structural evaluation of CI workflow rules.

Workflow rules are bound to a structural check by rule id. When the
workflow file parses to a mapping the check runs against the document tree;
otherwise the rule's own text patterns are evaluated instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..evidence import build_evidence, locate_literal
from ..findings import create_finding
from ..models import Finding
from ..rule_registry import Rule
from ..workflow import (
    check_broad_permissions,
    check_dangerous_triggers,
    check_expression_injection,
    check_self_hosted_runners,
    check_unpinned_references,
)
from .base import BaseEvaluator, ScannedFile
from .text_pattern import TextPatternEvaluator

logger = logging.getLogger(__name__)

WORKFLOW_LABEL = "yaml-workflow"

WORKFLOW_CHECKS: dict[str, Callable[[dict], list[str]]] = {
    "OG-GHA-001": check_broad_permissions,
    "OG-GHA-002": check_unpinned_references,
    "OG-GHA-003": check_dangerous_triggers,
    "OG-GHA-004": check_expression_injection,
    "OG-GHA-005": check_self_hosted_runners,
}


def is_structural_rule(rule: Rule) -> bool:
    return rule.id in WORKFLOW_CHECKS


class WorkflowStructureEvaluator(BaseEvaluator):
    """Runs the structural check bound to a workflow rule, falling back to text patterns."""

    def __init__(self, fallback: TextPatternEvaluator | None = None):
        super().__init__("workflow_structure")
        self.fallback = fallback or TextPatternEvaluator()

    def handles(self, rule: Rule, scanned: ScannedFile) -> bool:
        return is_structural_rule(rule) and WORKFLOW_LABEL in scanned.labels

    def evaluate(self, rule: Rule, scanned: ScannedFile) -> list[Finding]:
        document = scanned.workflow_document
        if document is None:
            logger.debug("%s: not a workflow mapping, using text patterns for %s", scanned.relative_path, rule.id)
            return self.fallback.evaluate(rule, scanned)

        findings = []
        for text in WORKFLOW_CHECKS[rule.id](document):
            evidence = build_evidence(
                scanned.content,
                scanned.relative_path,
                locate_literal(scanned.content, text),
                text,
                lines=scanned.lines,
            )
            findings.append(create_finding(rule, evidence))
        return findings
