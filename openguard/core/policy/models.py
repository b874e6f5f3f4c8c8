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
Agent permission policy – allow/deny lists and approval requirements.

A policy is produced by inference, normalized by validation and combined
by merge. Every list held by a canonical policy is de-duplicated and
sorted, and no allow entry is also denied, so serializing the same policy
twice always gives byte-identical output.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum

from ...config.constants import OpenGuardConstants

POLICY_VERSION = OpenGuardConstants.POLICY_VERSION


class PolicyAction(str, Enum):
    """Default action for anything not explicitly allowed."""

    ALLOW = "allow"
    DENY = "deny"


class ApprovalMode(str, Enum):
    """Approval modes, least to most restrictive."""

    AUTO = "auto"
    PROMPT = "prompt"
    TWO_STEP = "2-step"
    DENY = "deny"

    @property
    def strictness(self) -> int:
        return _APPROVAL_ORDER.index(self)


_APPROVAL_ORDER = [ApprovalMode.AUTO, ApprovalMode.PROMPT, ApprovalMode.TWO_STEP, ApprovalMode.DENY]


class ApprovalCategory(str, Enum):
    """Kinds of agent action that can require approval."""

    SHELL_EXEC = "shell_exec"
    NEW_DOMAIN = "new_domain"
    CREDENTIAL_PATHS = "credential_paths"
    FILE_WRITE = "file_write"
    ELEVATED_PRIVILEGE = "elevated_privilege"


# ---------------------------------------------------------------------------
# Policy sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommandRule:
    """A command, optionally narrowed to an exact argument list."""

    cmd: str
    args: tuple[str, ...] | None = None
    description: str | None = None

    @property
    def key(self) -> str:
        return self.cmd + "\0" + "\0".join(self.args or ())

    def covers(self, other: CommandRule) -> bool:
        """A rule without args covers every invocation of the same command."""
        if self.cmd != other.cmd:
            return False
        return not self.args or self.key == other.key


@dataclass
class PolicyMetadata:
    name: str | None = None
    description: str | None = None
    created: str | None = None
    author: str | None = None


@dataclass
class PolicyDefaults:
    action: PolicyAction = PolicyAction.DENY
    require_approval_for: list[ApprovalCategory] = field(default_factory=list)


@dataclass
class PathRules:
    read: list[str] = field(default_factory=list)
    write: list[str] = field(default_factory=list)


@dataclass
class AllowNetworkRules:
    domains: list[str] = field(default_factory=list)
    ports: list[int] = field(default_factory=list)


@dataclass
class AllowRules:
    commands: list[CommandRule] = field(default_factory=list)
    paths: PathRules = field(default_factory=PathRules)
    network: AllowNetworkRules = field(default_factory=AllowNetworkRules)


@dataclass
class DenyNetworkRules:
    domains: list[str] = field(default_factory=list)


@dataclass
class DenyRules:
    commands: list[CommandRule] = field(default_factory=list)
    paths: list[str] = field(default_factory=list)
    network: DenyNetworkRules = field(default_factory=DenyNetworkRules)


@dataclass
class ApprovalRule:
    mode: ApprovalMode = ApprovalMode.PROMPT
    except_allowlisted: bool = True


@dataclass
class Approvals:
    shell_exec: ApprovalRule = field(default_factory=ApprovalRule)
    new_domain: ApprovalRule = field(default_factory=ApprovalRule)
    credential_paths: ApprovalRule = field(default_factory=ApprovalRule)
    file_write: ApprovalRule = field(default_factory=ApprovalRule)
    elevated_privilege: ApprovalRule = field(default_factory=ApprovalRule)

    def get(self, category: ApprovalCategory) -> ApprovalRule:
        return getattr(self, category.value)


@dataclass
class Policy:
    """A complete v1 policy document."""

    version: str = POLICY_VERSION
    metadata: PolicyMetadata | None = None
    defaults: PolicyDefaults = field(default_factory=PolicyDefaults)
    allow: AllowRules = field(default_factory=AllowRules)
    deny: DenyRules = field(default_factory=DenyRules)
    approvals: Approvals = field(default_factory=Approvals)

    def canonical(self) -> Policy:
        """Return a copy with sorted, de-duplicated lists and denied allow entries removed."""
        deny = DenyRules(
            commands=canonical_commands(self.deny.commands),
            paths=canonical_strings(self.deny.paths),
            network=DenyNetworkRules(domains=canonical_strings(self.deny.network.domains)),
        )
        allow = AllowRules(
            commands=canonical_commands(self.allow.commands),
            paths=PathRules(
                read=canonical_strings(self.allow.paths.read),
                write=canonical_strings(self.allow.paths.write),
            ),
            network=AllowNetworkRules(
                domains=canonical_strings(self.allow.network.domains),
                ports=canonical_ports(self.allow.network.ports),
            ),
        )
        return Policy(
            version=self.version,
            metadata=replace(self.metadata) if self.metadata is not None else None,
            defaults=PolicyDefaults(
                action=self.defaults.action,
                require_approval_for=canonical_categories(self.defaults.require_approval_for),
            ),
            allow=remove_denied(allow, deny),
            deny=deny,
            approvals=Approvals(
                **{c.value: replace(self.approvals.get(c)) for c in ApprovalCategory},
            ),
        )


# ---------------------------------------------------------------------------
# Canonical ordering
# ---------------------------------------------------------------------------


def canonical_strings(values: Iterable[str]) -> list[str]:
    return sorted(set(values))


def canonical_ports(values: Iterable[int]) -> list[int]:
    return sorted(set(values))


def canonical_categories(values: Iterable[ApprovalCategory]) -> list[ApprovalCategory]:
    return sorted(set(values), key=lambda c: c.value)


def canonical_commands(rules: Iterable[CommandRule]) -> list[CommandRule]:
    """De-duplicate by cmd+args (first occurrence wins) and sort by cmd, then args."""
    unique: dict[str, CommandRule] = {}
    for rule in rules:
        unique.setdefault(rule.key, rule)
    return sorted(unique.values(), key=lambda r: (r.cmd, r.args or ()))


def remove_denied(allow: AllowRules, deny: DenyRules) -> AllowRules:
    """Drop allow entries that a deny entry also names."""
    denied_paths = set(deny.paths)
    denied_domains = set(deny.network.domains)
    return AllowRules(
        commands=[c for c in allow.commands if not any(d.covers(c) for d in deny.commands)],
        paths=PathRules(
            read=[p for p in allow.paths.read if p not in denied_paths],
            write=[p for p in allow.paths.write if p not in denied_paths],
        ),
        network=AllowNetworkRules(
            domains=[d for d in allow.network.domains if d not in denied_domains],
            ports=list(allow.network.ports),
        ),
    )
