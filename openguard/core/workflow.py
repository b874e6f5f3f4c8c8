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
Structural checks for GitHub Actions workflow documents.

Each check takes a parsed workflow mapping and returns the literal texts
that triggered it. Callers turn those texts into evidence by locating them
in the raw file content.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import yaml

logger = logging.getLogger(__name__)

MOVING_REFS = frozenset({"main", "master", "develop", "latest"})
DANGEROUS_TRIGGERS = frozenset({"pull_request_target", "issue_comment"})

_FULL_SHA = re.compile(r"^[0-9a-f]{40}$", re.IGNORECASE)
_FLOATING_MAJOR_TAG = re.compile(r"^v?\d+$", re.IGNORECASE)

# Attacker-controllable contexts: issue/PR title and body, comment body, head ref
INJECTION_EXPRESSION = re.compile(
    r"\$\{\{\s*(?:"
    r"github\.event\.issue\.(?:title|body)"
    r"|github\.event\.pull_request\.(?:title|body|head\.ref)"
    r"|github\.event\.comment\.body"
    r"|github\.head_ref"
    r")\s*\}\}",
    re.IGNORECASE,
)


def parse_workflow(content: str) -> dict[Any, Any] | None:
    """Parse a workflow document; None when it is not valid YAML or not a mapping."""
    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as e:
        logger.debug("Workflow document failed to parse: %s", e)
        return None
    if not isinstance(document, dict):
        return None
    return document


def _jobs(document: dict) -> list[dict]:
    jobs = document.get("jobs")
    if not isinstance(jobs, dict):
        return []
    return [job for job in jobs.values() if isinstance(job, dict)]


def _steps(job: dict) -> list[dict]:
    steps = job.get("steps")
    if not isinstance(steps, list):
        return []
    return [step for step in steps if isinstance(step, dict)]


def _is_write_all(permissions: Any) -> bool:
    return isinstance(permissions, str) and permissions.strip().lower() == "write-all"


def _grants_write(permissions: dict, scope: str) -> bool:
    value = permissions.get(scope)
    return isinstance(value, str) and value.strip().lower() == "write"


def check_broad_permissions(document: dict) -> list[str]:
    """``write-all`` at workflow or job level, or a job granting contents and pull-requests write."""
    hits = []
    if _is_write_all(document.get("permissions")):
        hits.append("write-all")
    for job in _jobs(document):
        permissions = job.get("permissions")
        if _is_write_all(permissions):
            hits.append("write-all")
        elif (
            isinstance(permissions, dict)
            and _grants_write(permissions, "contents")
            and _grants_write(permissions, "pull-requests")
        ):
            hits.append("pull-requests")
    return hits


def is_unpinned_reference(reference: str) -> bool:
    """True for action or reusable-workflow references that can move under you."""
    reference = reference.strip()
    if reference.startswith("./") or reference.startswith("docker://"):
        return False
    if "@" not in reference:
        return True
    version = reference.rsplit("@", 1)[1]
    if _FULL_SHA.match(version):
        return False
    return version.lower() in MOVING_REFS or _FLOATING_MAJOR_TAG.match(version) is not None


def check_unpinned_references(document: dict) -> list[str]:
    hits = []
    for job in _jobs(document):
        uses = job.get("uses")
        if isinstance(uses, str) and is_unpinned_reference(uses):
            hits.append(uses.strip())
        for step in _steps(job):
            uses = step.get("uses")
            if isinstance(uses, str) and is_unpinned_reference(uses):
                hits.append(uses.strip())
    return hits


def _triggers(document: dict) -> list[str]:
    # YAML 1.1 reads a bare ``on`` key as boolean True
    triggers = document["on"] if "on" in document else document.get(True)
    if isinstance(triggers, str):
        return [triggers]
    if isinstance(triggers, list):
        return [t for t in triggers if isinstance(t, str)]
    if isinstance(triggers, dict):
        return [str(t) for t in triggers]
    return []


def check_dangerous_triggers(document: dict) -> list[str]:
    return [trigger for trigger in _triggers(document) if trigger in DANGEROUS_TRIGGERS]


def check_expression_injection(document: dict) -> list[str]:
    """Attacker-controllable expressions inside ``run`` bodies or reusable-workflow ``with`` inputs."""
    hits = []
    for job in _jobs(document):
        inputs = job.get("with")
        if isinstance(job.get("uses"), str) and isinstance(inputs, dict):
            for value in inputs.values():
                if isinstance(value, str):
                    hits.extend(m.group(0) for m in INJECTION_EXPRESSION.finditer(value))
        for step in _steps(job):
            run = step.get("run")
            if isinstance(run, str):
                hits.extend(m.group(0) for m in INJECTION_EXPRESSION.finditer(run))
    return hits


def _runner_labels(runs_on: Any) -> list[str]:
    if isinstance(runs_on, str):
        return [runs_on]
    if isinstance(runs_on, list):
        return [label for label in runs_on if isinstance(label, str)]
    if isinstance(runs_on, dict):
        return _runner_labels(runs_on.get("labels"))
    return []


def check_self_hosted_runners(document: dict) -> list[str]:
    hits = []
    for job in _jobs(document):
        for label in _runner_labels(job.get("runs-on")):
            if "self-hosted" in label.lower():
                hits.append(label)
    return hits
