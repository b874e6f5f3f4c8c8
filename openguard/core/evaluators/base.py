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
Base rule evaluator interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from ..evidence import split_lines
from ..models import Finding
from ..rule_registry import Rule
from ..workflow import parse_workflow


@dataclass
class ScannedFile:
    """Decoded content of one file plus the type labels resolved for it."""

    relative_path: str
    content: str
    labels: frozenset[str] = field(default_factory=frozenset)

    @cached_property
    def lines(self) -> list[str]:
        return split_lines(self.content)

    @cached_property
    def workflow_document(self) -> dict[Any, Any] | None:
        """Parsed workflow mapping, or None when the content does not parse to one."""
        return parse_workflow(self.content)


class BaseEvaluator(ABC):
    """Abstract base class for rule evaluators."""

    def __init__(self, name: str):
        """
        Initialize evaluator.

        Args:
            name: Name of the evaluator
        """
        self.name = name

    def handles(self, rule: Rule, scanned: ScannedFile) -> bool:
        """Whether this evaluator should run *rule* against *scanned*."""
        return True

    @abstractmethod
    def evaluate(self, rule: Rule, scanned: ScannedFile) -> list[Finding]:
        """
        Evaluate a rule against one file.

        Args:
            rule: The rule to evaluate
            scanned: The decoded file

        Returns:
            List of findings
        """
        pass
