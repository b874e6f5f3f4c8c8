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
Risk scoring.

Each finding contributes ``severity points x confidence weight`` to exactly
one of four axes. Axis subscores cap at 100; the total is a weighted sum of
the subscores, capped at 100 and raised to at least 60 when any finding is
critical.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from .models import Confidence, Finding, ScoreAxis, ScoreResult, Severity, Subscores

SEVERITY_POINTS: dict[Severity, int] = {
    Severity.CRITICAL: 30,
    Severity.HIGH: 15,
    Severity.MEDIUM: 8,
    Severity.LOW: 3,
    Severity.INFO: 1,
}

CONFIDENCE_WEIGHTS: dict[Confidence, float] = {
    Confidence.HIGH: 1.0,
    Confidence.MEDIUM: 0.7,
    Confidence.LOW: 0.4,
}

AXIS_WEIGHTS: dict[ScoreAxis, float] = {
    ScoreAxis.SHELL: 0.30,
    ScoreAxis.NETWORK: 0.25,
    ScoreAxis.FILESYSTEM: 0.20,
    ScoreAxis.CREDENTIALS: 0.25,
}

CATEGORY_AXIS: dict[str, ScoreAxis] = {
    "shell": ScoreAxis.SHELL,
    "obfuscation": ScoreAxis.SHELL,
    "gha": ScoreAxis.SHELL,
    "network": ScoreAxis.NETWORK,
    "supply-chain": ScoreAxis.NETWORK,
    "filesystem": ScoreAxis.FILESYSTEM,
    "macos": ScoreAxis.FILESYSTEM,
    "windows": ScoreAxis.FILESYSTEM,
    "credentials": ScoreAxis.CREDENTIALS,
}

# (category, rule id) pairs scored on a different axis than their category
AXIS_OVERRIDES: dict[tuple[str, str], ScoreAxis] = {
    ("gha", "OG-GHA-001"): ScoreAxis.CREDENTIALS,
}

DEFAULT_AXIS = ScoreAxis.SHELL
MAX_SCORE = 100
CRITICAL_FLOOR = 60


def axis_for(finding: Finding) -> ScoreAxis:
    override = AXIS_OVERRIDES.get((finding.category, finding.rule_id))
    if override is not None:
        return override
    return CATEGORY_AXIS.get(finding.category, DEFAULT_AXIS)


def contribution(finding: Finding) -> float:
    return SEVERITY_POINTS[finding.severity] * CONFIDENCE_WEIGHTS[finding.confidence]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_score(findings: Iterable[Finding]) -> ScoreResult:
    """Aggregate findings into a ``ScoreResult``. Pure; no I/O."""
    sums = {axis: 0.0 for axis in ScoreAxis}
    has_critical = False
    for finding in findings:
        axis = axis_for(finding)
        sums[axis] = min(sums[axis] + contribution(finding), MAX_SCORE)
        has_critical = has_critical or finding.severity == Severity.CRITICAL

    subscores = Subscores(**{axis.value: round(value, 2) for axis, value in sums.items()})
    weighted = sum(AXIS_WEIGHTS[axis] * subscores.get(axis) for axis in ScoreAxis)
    total = min(_round_half_up(weighted), MAX_SCORE)
    if has_critical:
        total = max(total, CRITICAL_FLOOR)

    return ScoreResult(total=total, subscores=subscores, has_critical=has_critical)
