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
YAML serialization of policies.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..exceptions import PolicyValidationError
from .models import ApprovalCategory, CommandRule, Policy
from .validator import validate_policy


def _command_to_dict(rule: CommandRule) -> dict[str, Any]:
    entry: dict[str, Any] = {"cmd": rule.cmd}
    if rule.args is not None:
        entry["args"] = list(rule.args)
    if rule.description is not None:
        entry["description"] = rule.description
    return entry


def policy_to_dict(policy: Policy) -> dict[str, Any]:
    """Convert a policy to a plain document with canonical list order."""
    policy = policy.canonical()
    data: dict[str, Any] = {"version": policy.version}
    if policy.metadata is not None:
        metadata = {
            key: getattr(policy.metadata, key)
            for key in ("name", "description", "created", "author")
            if getattr(policy.metadata, key) is not None
        }
        if metadata:
            data["metadata"] = metadata
    data["defaults"] = {
        "action": policy.defaults.action.value,
        "require_approval_for": [c.value for c in policy.defaults.require_approval_for],
    }
    data["allow"] = {
        "commands": [_command_to_dict(c) for c in policy.allow.commands],
        "paths": {
            "read": list(policy.allow.paths.read),
            "write": list(policy.allow.paths.write),
        },
        "network": {
            "domains": list(policy.allow.network.domains),
            "ports": list(policy.allow.network.ports),
        },
    }
    data["deny"] = {
        "commands": [{k: v for k, v in _command_to_dict(c).items() if k != "description"} for c in policy.deny.commands],
        "paths": list(policy.deny.paths),
        "network": {"domains": list(policy.deny.network.domains)},
    }
    data["approvals"] = {
        c.value: {
            "mode": policy.approvals.get(c).mode.value,
            "except_allowlisted": policy.approvals.get(c).except_allowlisted,
        }
        for c in ApprovalCategory
    }
    return data


def policy_to_yaml(policy: Policy) -> str:
    """Serialize a policy; identical policies always serialize to identical text."""
    return yaml.safe_dump(policy_to_dict(policy), default_flow_style=False, sort_keys=False, width=120)


def write_policy(policy: Policy, path: str | Path) -> None:
    """Dump a policy to a YAML file."""
    with open(path, "w", encoding="utf-8") as fh:
        fh.write("# OpenGuard agent policy\n")
        fh.write(policy_to_yaml(policy))


def policy_from_yaml(text: str) -> Policy:
    """
    Parse and validate a YAML policy document.

    Raises:
        PolicyValidationError: If the text is not YAML or fails validation
    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PolicyValidationError([f"policy document is not valid YAML: {e}"]) from e
    return validate_policy(document)


def load_policy(path: str | Path) -> Policy:
    """Load and validate a policy file."""
    with open(path, encoding="utf-8") as fh:
        return policy_from_yaml(fh.read())
