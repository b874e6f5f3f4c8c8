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
Deny-first policy merge.

``merge_policies(base, candidate)``:
  1. unions allow and deny lists independently
  2. drops allow entries that the merged deny lists name
  3. unions ``defaults.require_approval_for``
  4. keeps ``deny`` as the default action if either side has it
  5. takes the stricter approval mode per category and ANDs ``except_allowlisted``

Inputs must already be validated; the result is canonical, so
``merge_policies(p, p) == p`` for any validated ``p``.
"""

from __future__ import annotations

from dataclasses import replace

from .models import (
    AllowNetworkRules,
    AllowRules,
    ApprovalCategory,
    ApprovalRule,
    Approvals,
    DenyNetworkRules,
    DenyRules,
    PathRules,
    Policy,
    PolicyAction,
    PolicyDefaults,
)


def stricter_approval(a: ApprovalRule, b: ApprovalRule) -> ApprovalRule:
    mode = a.mode if a.mode.strictness >= b.mode.strictness else b.mode
    return ApprovalRule(mode=mode, except_allowlisted=a.except_allowlisted and b.except_allowlisted)


def merge_policies(base: Policy, candidate: Policy) -> Policy:
    """
    Merge a candidate policy into a base policy.

    Base metadata is kept when present.

    Args:
        base: Validated base policy (e.g. user-supplied)
        candidate: Validated candidate policy (e.g. inferred)

    Returns:
        Canonical merged Policy
    """
    metadata = base.metadata if base.metadata is not None else candidate.metadata

    if PolicyAction.DENY in (base.defaults.action, candidate.defaults.action):
        action = PolicyAction.DENY
    else:
        action = PolicyAction.ALLOW

    merged = Policy(
        version=base.version,
        metadata=replace(metadata) if metadata is not None else None,
        defaults=PolicyDefaults(
            action=action,
            require_approval_for=base.defaults.require_approval_for + candidate.defaults.require_approval_for,
        ),
        allow=AllowRules(
            commands=base.allow.commands + candidate.allow.commands,
            paths=PathRules(
                read=base.allow.paths.read + candidate.allow.paths.read,
                write=base.allow.paths.write + candidate.allow.paths.write,
            ),
            network=AllowNetworkRules(
                domains=base.allow.network.domains + candidate.allow.network.domains,
                ports=base.allow.network.ports + candidate.allow.network.ports,
            ),
        ),
        deny=DenyRules(
            commands=base.deny.commands + candidate.deny.commands,
            paths=base.deny.paths + candidate.deny.paths,
            network=DenyNetworkRules(domains=base.deny.network.domains + candidate.deny.network.domains),
        ),
        approvals=Approvals(
            **{c.value: stricter_approval(base.approvals.get(c), candidate.approvals.get(c)) for c in ApprovalCategory}
        ),
    )
    # canonical() de-duplicates, sorts and applies deny dominance
    return merged.canonical()
