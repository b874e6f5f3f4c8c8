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
Strict schema validation for policy documents.

Every level of the document has a closed set of permitted keys. All
violations found in one pass are collected and raised together as a
:class:`PolicyValidationError`, each naming the offending field path.
"""

from __future__ import annotations

import datetime
from typing import Any

from ..exceptions import PolicyValidationError
from .models import (
    POLICY_VERSION,
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

TOP_LEVEL_KEYS = ("version", "metadata", "defaults", "allow", "deny", "approvals")
REQUIRED_SECTIONS = ("defaults", "allow", "deny", "approvals")
METADATA_KEYS = ("name", "description", "created", "author")
DEFAULTS_KEYS = ("action", "require_approval_for")
ALLOW_KEYS = ("commands", "paths", "network")
ALLOW_PATH_KEYS = ("read", "write")
ALLOW_NETWORK_KEYS = ("domains", "ports")
DENY_KEYS = ("commands", "paths", "network")
DENY_NETWORK_KEYS = ("domains",)
APPROVAL_KEYS = ("mode", "except_allowlisted")
ALLOW_COMMAND_KEYS = ("cmd", "args", "description")
DENY_COMMAND_KEYS = ("cmd", "args")

MIN_PORT = 1
MAX_PORT = 65535


class _PolicyValidator:
    def __init__(self) -> None:
        self.errors: list[str] = []

    # -- helpers -----------------------------------------------------------

    def mapping(self, value: Any, path: str, allowed: tuple[str, ...]) -> dict | None:
        if not isinstance(value, dict):
            self.errors.append(f"{path} must be an object")
            return None
        for key in value:
            if key not in allowed:
                self.errors.append(f"{path} contains unsupported field '{key}'")
        return value

    def sequence(self, value: Any, path: str) -> list:
        if not isinstance(value, list):
            self.errors.append(f"{path} must be an array")
            return []
        return value

    def strings(self, value: Any, path: str) -> list[str]:
        result = []
        for index, item in enumerate(self.sequence(value, path)):
            if isinstance(item, str) and item.strip():
                result.append(item)
            else:
                self.errors.append(f"{path}[{index}] must be a non-empty string")
        return result

    def ports(self, value: Any, path: str) -> list[int]:
        result = []
        for index, item in enumerate(self.sequence(value, path)):
            if isinstance(item, bool) or not isinstance(item, int):
                self.errors.append(f"{path}[{index}] must be an integer")
            elif not MIN_PORT <= item <= MAX_PORT:
                self.errors.append(f"{path}[{index}] must be between {MIN_PORT} and {MAX_PORT}")
            else:
                result.append(item)
        return result

    def commands(self, value: Any, path: str, allowed: tuple[str, ...]) -> list[CommandRule]:
        result = []
        for index, item in enumerate(self.sequence(value, path)):
            entry_path = f"{path}[{index}]"
            entry = self.mapping(item, entry_path, allowed)
            if entry is None:
                continue
            cmd = entry.get("cmd")
            if not isinstance(cmd, str) or not cmd.strip():
                self.errors.append(f"{entry_path}.cmd must be a non-empty string")
                continue
            args = entry.get("args")
            if args is not None and (not isinstance(args, list) or not all(isinstance(a, str) for a in args)):
                self.errors.append(f"{entry_path}.args must be an array of strings")
                continue
            description = entry.get("description")
            if description is not None and not isinstance(description, str):
                self.errors.append(f"{entry_path}.description must be a string")
                continue
            result.append(
                CommandRule(cmd=cmd, args=tuple(args) if args is not None else None, description=description)
            )
        return result

    # -- sections ----------------------------------------------------------

    def metadata(self, value: Any) -> PolicyMetadata | None:
        if value is None:
            return None
        section = self.mapping(value, "metadata", METADATA_KEYS)
        if section is None:
            return None
        fields = {}
        for key in METADATA_KEYS:
            item = section.get(key)
            if isinstance(item, (datetime.date, datetime.datetime)):
                item = item.isoformat()
            if item is not None and not isinstance(item, str):
                self.errors.append(f"metadata.{key} must be a string")
                item = None
            fields[key] = item
        return PolicyMetadata(**fields)

    def defaults(self, value: Any) -> PolicyDefaults:
        section = self.mapping(value, "defaults", DEFAULTS_KEYS)
        if section is None:
            return PolicyDefaults()
        action = section.get("action")
        if not isinstance(action, str) or action not in ("deny", "allow"):
            self.errors.append("defaults.action must be 'deny' or 'allow'")
            action = PolicyAction.DENY.value

        categories = []
        valid = tuple(c.value for c in ApprovalCategory)
        for item in self.sequence(section.get("require_approval_for"), "defaults.require_approval_for"):
            if isinstance(item, str) and item in valid:
                categories.append(ApprovalCategory(item))
            else:
                self.errors.append(f"defaults.require_approval_for includes invalid category '{item}'")
        return PolicyDefaults(action=PolicyAction(action), require_approval_for=categories)

    def allow(self, value: Any) -> AllowRules:
        section = self.mapping(value, "allow", ALLOW_KEYS)
        if section is None:
            return AllowRules()
        rules = AllowRules(commands=self.commands(section.get("commands"), "allow.commands", ALLOW_COMMAND_KEYS))
        paths = self.mapping(section.get("paths"), "allow.paths", ALLOW_PATH_KEYS)
        if paths is not None:
            rules.paths = PathRules(
                read=self.strings(paths.get("read"), "allow.paths.read"),
                write=self.strings(paths.get("write"), "allow.paths.write"),
            )
        network = self.mapping(section.get("network"), "allow.network", ALLOW_NETWORK_KEYS)
        if network is not None:
            rules.network = AllowNetworkRules(
                domains=self.strings(network.get("domains"), "allow.network.domains"),
                ports=self.ports(network.get("ports"), "allow.network.ports"),
            )
        return rules

    def deny(self, value: Any) -> DenyRules:
        section = self.mapping(value, "deny", DENY_KEYS)
        if section is None:
            return DenyRules()
        rules = DenyRules(
            commands=self.commands(section.get("commands"), "deny.commands", DENY_COMMAND_KEYS),
            paths=self.strings(section.get("paths"), "deny.paths"),
        )
        network = self.mapping(section.get("network"), "deny.network", DENY_NETWORK_KEYS)
        if network is not None:
            rules.network = DenyNetworkRules(domains=self.strings(network.get("domains"), "deny.network.domains"))
        return rules

    def approvals(self, value: Any) -> Approvals:
        section = self.mapping(value, "approvals", tuple(c.value for c in ApprovalCategory)) or {}
        rules = {}
        for category in ApprovalCategory:
            path = f"approvals.{category.value}"
            if category.value not in section:
                self.errors.append(f"{path} is required")
                rules[category.value] = ApprovalRule()
                continue
            rules[category.value] = self.approval(section[category.value], path)
        return Approvals(**rules)

    def approval(self, value: Any, path: str) -> ApprovalRule:
        entry = self.mapping(value, path, APPROVAL_KEYS)
        if entry is None:
            return ApprovalRule()
        mode = entry.get("mode")
        if not isinstance(mode, str) or mode not in tuple(m.value for m in ApprovalMode):
            self.errors.append(f"{path}.mode must be a valid approval mode")
            mode = ApprovalMode.DENY.value
        except_allowlisted = entry.get("except_allowlisted", True)
        if not isinstance(except_allowlisted, bool):
            self.errors.append(f"{path}.except_allowlisted must be a boolean")
            except_allowlisted = False
        return ApprovalRule(mode=ApprovalMode(mode), except_allowlisted=except_allowlisted)

    def policy(self, document: Any) -> Policy:
        root = self.mapping(document, "policy", TOP_LEVEL_KEYS)
        if root is None:
            return Policy()
        if root.get("version") != POLICY_VERSION:
            self.errors.append(f"policy.version must be '{POLICY_VERSION}'")
        missing = [section for section in REQUIRED_SECTIONS if section not in root]
        for section in missing:
            self.errors.append(f"policy.{section} is required")

        # A missing section is reported once, not once per field inside it
        return Policy(
            version=POLICY_VERSION,
            metadata=self.metadata(root.get("metadata")),
            defaults=PolicyDefaults() if "defaults" in missing else self.defaults(root["defaults"]),
            allow=AllowRules() if "allow" in missing else self.allow(root["allow"]),
            deny=DenyRules() if "deny" in missing else self.deny(root["deny"]),
            approvals=Approvals() if "approvals" in missing else self.approvals(root["approvals"]),
        )


def collect_policy_errors(document: Any) -> list[str]:
    """Return every schema violation in *document* (empty when valid)."""
    validator = _PolicyValidator()
    validator.policy(document)
    return validator.errors


def validate_policy(document: Any) -> Policy:
    """
    Validate a policy document and return its canonical ``Policy``.

    Args:
        document: Parsed policy document (e.g. from ``yaml.safe_load``)

    Raises:
        PolicyValidationError: Listing every violated field path
    """
    validator = _PolicyValidator()
    policy = validator.policy(document)
    if validator.errors:
        raise PolicyValidationError(validator.errors)
    return policy.canonical()
