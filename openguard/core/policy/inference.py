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
Least-privilege policy inference from scan findings.

The inferred policy denies by default, allows a fixed set of read-only
commands and well-known package/code hosting domains, and denies the
commands and hosts that high-severity findings point at.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import urlsplit

from ..models import Finding, RepoContext, ScoreAxis, Severity
from ..scoring import axis_for
from .commands import is_deniable, named_command
from .models import (
    AllowNetworkRules,
    AllowRules,
    ApprovalCategory,
    ApprovalMode,
    ApprovalRule,
    Approvals,
    CommandRule,
    DenyNetworkRules,
    DenyRules,
    PathRules,
    Policy,
    PolicyAction,
    PolicyDefaults,
    PolicyMetadata,
)

logger = logging.getLogger(__name__)

SAFE_COMMANDS: tuple[CommandRule, ...] = (
    CommandRule("cat", description="Read files"),
    CommandRule("echo", description="Print text"),
    CommandRule("git", ("diff",), description="Show working tree changes"),
    CommandRule("git", ("log",), description="Show history"),
    CommandRule("git", ("status",), description="Show working tree status"),
    CommandRule("grep", description="Search file contents"),
    CommandRule("head", description="Read the start of files"),
    CommandRule("ls", description="List directories"),
    CommandRule("pwd", description="Print working directory"),
    CommandRule("tail", description="Read the end of files"),
    CommandRule("wc", description="Count lines and words"),
)

SAFE_DOMAINS: tuple[str, ...] = (
    "api.github.com",
    "files.pythonhosted.org",
    "github.com",
    "pypi.org",
    "registry.npmjs.org",
)

SAFE_PORTS: tuple[int, ...] = (443,)

CREDENTIAL_PATHS: tuple[str, ...] = (
    "**/.env",
    "~/.aws",
    "~/.config/gh",
    "~/.docker/config.json",
    "~/.git-credentials",
    "~/.gnupg",
    "~/.kube/config",
    "~/.netrc",
    "~/.npmrc",
    "~/.ssh",
)

DEFAULT_APPROVALS = {
    ApprovalCategory.SHELL_EXEC: ApprovalRule(ApprovalMode.TWO_STEP, True),
    ApprovalCategory.NEW_DOMAIN: ApprovalRule(ApprovalMode.PROMPT, True),
    ApprovalCategory.CREDENTIAL_PATHS: ApprovalRule(ApprovalMode.DENY, False),
    ApprovalCategory.FILE_WRITE: ApprovalRule(ApprovalMode.PROMPT, True),
    ApprovalCategory.ELEVATED_PRIVILEGE: ApprovalRule(ApprovalMode.DENY, False),
}

_URL = re.compile(r"https?://[^\s'\"<>|)`]+", re.IGNORECASE)


def extract_hosts(text: str) -> list[str]:
    """Hostnames of the http(s) URLs in *text*."""
    hosts = []
    for url in _URL.findall(text):
        try:
            host = urlsplit(url).hostname
        except ValueError:
            continue
        if host:
            hosts.append(host)
    return hosts


def _root_of(target: RepoContext | str | Path) -> Path:
    if isinstance(target, RepoContext):
        return target.root_path
    return Path(target)


def infer_policy(
    findings: Iterable[Finding],
    target: RepoContext | str | Path,
    severity_threshold: Severity = Severity.HIGH,
) -> Policy:
    """
    Infer a default-deny policy for a scanned target.

    Never fails: an empty findings list yields the seeded baseline.

    Args:
        findings: Findings from a scan of *target*
        target: Scan target (its root name labels the policy)
        severity_threshold: Findings below this severity do not add deny rules

    Returns:
        Canonical Policy
    """
    findings = list(findings)
    denied_commands: list[CommandRule] = []
    denied_domains: list[str] = []

    for finding in findings:
        if finding.severity.rank < severity_threshold.rank:
            continue
        command = named_command(finding.evidence.match)
        if command and is_deniable(command):
            denied_commands.append(CommandRule(command))
        if axis_for(finding) == ScoreAxis.NETWORK:
            denied_domains.extend(extract_hosts(finding.evidence.match))

    root = _root_of(target)
    policy = Policy(
        metadata=PolicyMetadata(
            name=f"{root.name or 'target'}-policy",
            description=f"Least-privilege policy inferred by OpenGuard from {len(findings)} findings",
            author="openguard",
        ),
        defaults=PolicyDefaults(
            action=PolicyAction.DENY,
            require_approval_for=list(ApprovalCategory),
        ),
        allow=AllowRules(
            commands=list(SAFE_COMMANDS),
            paths=PathRules(read=["."], write=[]),
            network=AllowNetworkRules(domains=list(SAFE_DOMAINS), ports=list(SAFE_PORTS)),
        ),
        deny=DenyRules(
            commands=denied_commands,
            paths=list(CREDENTIAL_PATHS),
            network=DenyNetworkRules(domains=denied_domains),
        ),
        approvals=Approvals(
            **{c.value: ApprovalRule(r.mode, r.except_allowlisted) for c, r in DEFAULT_APPROVALS.items()}
        ),
    )
    canonical = policy.canonical()
    logger.debug(
        "Inferred policy for %s: %d denied commands, %d denied domains",
        root,
        len(canonical.deny.commands),
        len(canonical.deny.network.domains),
    )
    return canonical
