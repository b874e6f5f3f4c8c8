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
Rule catalog – externally authored detection rules and their metadata.

Layout
~~~~~~

A rule catalog is a directory of YAML documents:

.. code-block:: text

    rules/
        _meta.yaml          # rule_format_version + file_type_extensions
        shell.yaml          # {rules: [...]}
        network.yaml
        ...

Every ``*.yaml`` file other than ``_meta.yaml`` holds a ``rules`` list.
Files are loaded in sorted filename order and the resulting catalog is
sorted by rule id. An override catalog laid out the same way replaces
base rules by id; its ``_meta.yaml`` is optional.

Loading validates every rule before anything is returned. All violations
are collected into a single :class:`RuleLoadError`.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..config.constants import OpenGuardConstants
from .exceptions import RuleLoadError
from .models import Confidence, Severity

logger = logging.getLogger(__name__)

REGEX_FLAGS = re.IGNORECASE | re.MULTILINE

# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RulePattern:
    """One regular expression of a rule, compiled at load time."""

    regex: str
    description: str
    compiled: re.Pattern[str] = field(compare=False, repr=False, default=None)  # type: ignore[assignment]

    def __post_init__(self):
        if self.compiled is None:
            object.__setattr__(self, "compiled", re.compile(self.regex, REGEX_FLAGS))


@dataclass(frozen=True)
class Rule:
    """A single detection rule.

    Rules are immutable once loaded; ``id`` is the identity used for
    override resolution and finding ids.
    """

    id: str
    title: str
    description: str
    severity: Severity
    confidence: Confidence
    category: str
    file_types: frozenset[str]
    """Type labels this rule applies to (see ``RuleMeta``)."""

    patterns: tuple[RulePattern, ...]
    remediation: str = ""
    tags: tuple[str, ...] = ()

    def applies_to(self, labels: frozenset[str] | set[str]) -> bool:
        return not self.file_types.isdisjoint(labels)


@dataclass(frozen=True)
class RuleMeta:
    """Catalog-wide metadata.

    ``file_type_extensions`` maps a type label (``shell``, ``json``...) to the
    lower-case file extensions carrying it.
    """

    rule_format_version: str
    file_type_extensions: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def labels_for_extension(self, extension: str) -> set[str]:
        extension = extension.lower()
        return {label for label, exts in self.file_type_extensions.items() if extension in exts}


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class RuleCatalog:
    """Read-only collection of rules plus their metadata."""

    def __init__(self, rules: list[Rule], meta: RuleMeta):
        self._rules: tuple[Rule, ...] = tuple(sorted(rules, key=lambda r: r.id))
        self._by_id: dict[str, Rule] = {rule.id: rule for rule in self._rules}
        self.meta = meta

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def get(self, rule_id: str) -> Rule | None:
        """Look up a rule by ID."""
        return self._by_id.get(rule_id)

    def rule_ids(self) -> list[str]:
        return [rule.id for rule in self._rules]

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._by_id


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class RuleCatalogLoader:
    """Parses and validates rule catalog directories."""

    def __init__(self) -> None:
        self.errors: list[str] = []

    def load(self, rules_dir: Path, *, require_meta: bool = True) -> tuple[list[Rule], RuleMeta | None]:
        """Load rules and metadata from *rules_dir* without raising.

        Violations accumulate in ``self.errors``.
        """
        rules_dir = Path(rules_dir)
        if not rules_dir.is_dir():
            self.errors.append(f"Rules directory not found: {rules_dir}")
            return [], None

        meta = self._load_meta(rules_dir / OpenGuardConstants.RULES_META_FILE, required=require_meta)

        rules: list[Rule] = []
        seen: dict[str, str] = {}
        for rule_file in sorted(rules_dir.glob("*.yaml")):
            if rule_file.name == OpenGuardConstants.RULES_META_FILE:
                continue
            for rule in self._load_rule_file(rule_file):
                if rule.id in seen:
                    self.errors.append(f"{rule_file.name}: duplicate rule id '{rule.id}' (also in {seen[rule.id]})")
                    continue
                seen[rule.id] = rule_file.name
                rules.append(rule)
        return rules, meta

    def _read_yaml(self, path: Path) -> Any:
        try:
            with open(path, encoding="utf-8") as fh:
                return yaml.safe_load(fh)
        except (OSError, UnicodeDecodeError) as e:
            self.errors.append(f"{path.name}: unable to read file: {e}")
        except yaml.YAMLError as e:
            self.errors.append(f"{path.name}: invalid YAML: {e}")
        return None

    def _load_meta(self, meta_path: Path, required: bool) -> RuleMeta | None:
        if not meta_path.exists():
            if required:
                self.errors.append(f"{meta_path.name}: metadata file not found in {meta_path.parent}")
            return None

        errors_before = len(self.errors)
        raw = self._read_yaml(meta_path)
        if len(self.errors) > errors_before:
            return None
        if not isinstance(raw, dict):
            self.errors.append(f"{meta_path.name}: must be a mapping")
            return None

        version = raw.get("rule_format_version")
        if version is None or isinstance(version, bool) or not isinstance(version, (str, int, float)):
            self.errors.append(f"{meta_path.name}: rule_format_version is required")

        extensions = raw.get("file_type_extensions")
        file_type_extensions: dict[str, tuple[str, ...]] = {}
        if not isinstance(extensions, dict):
            self.errors.append(f"{meta_path.name}: file_type_extensions must be a mapping")
        else:
            for label, exts in extensions.items():
                if not isinstance(exts, list) or not all(isinstance(e, str) for e in exts):
                    self.errors.append(f"{meta_path.name}: file_type_extensions.{label} must be a list of strings")
                    continue
                file_type_extensions[str(label)] = tuple(e.lower() for e in exts)

        if len(self.errors) > errors_before:
            return None
        return RuleMeta(rule_format_version=str(version), file_type_extensions=file_type_extensions)

    def _load_rule_file(self, rule_file: Path) -> list[Rule]:
        errors_before = len(self.errors)
        raw = self._read_yaml(rule_file)
        if len(self.errors) > errors_before:
            return []
        if not isinstance(raw, dict) or not isinstance(raw.get("rules"), list):
            self.errors.append(f"{rule_file.name}: must be a mapping with a 'rules' list")
            return []

        rules = []
        for index, entry in enumerate(raw["rules"]):
            rule = self._parse_rule(entry, f"{rule_file.name}: rules[{index}]")
            if rule is not None:
                rules.append(rule)
        logger.debug("Loaded %d rules from %s", len(rules), rule_file.name)
        return rules

    def _parse_rule(self, entry: Any, where: str) -> Rule | None:
        if not isinstance(entry, dict):
            self.errors.append(f"{where} must be a mapping")
            return None

        errors_before = len(self.errors)
        rule_id = entry.get("id")
        if isinstance(rule_id, str) and rule_id:
            where = f"{where} ({rule_id})"

        for key in ("id", "title", "description", "category"):
            value = entry.get(key)
            if not isinstance(value, str) or not value.strip():
                self.errors.append(f"{where}.{key} must be a non-empty string")

        severity = _parse_enum(Severity, entry.get("severity"))
        if severity is None:
            self.errors.append(f"{where}.severity must be one of {', '.join(s.value for s in Severity)}")
        confidence = _parse_enum(Confidence, entry.get("confidence"))
        if confidence is None:
            self.errors.append(f"{where}.confidence must be one of {', '.join(c.value for c in Confidence)}")

        scope = entry.get("scope")
        file_types = scope.get("file_types") if isinstance(scope, dict) else None
        if not isinstance(file_types, list) or not all(isinstance(t, str) for t in file_types):
            self.errors.append(f"{where}.scope.file_types must be a list of strings")
            file_types = []

        patterns: list[RulePattern] = []
        raw_patterns = entry.get("patterns")
        if not isinstance(raw_patterns, list) or not raw_patterns:
            self.errors.append(f"{where}.patterns must be a non-empty list")
        else:
            for p_index, raw_pattern in enumerate(raw_patterns):
                pattern = self._parse_pattern(raw_pattern, f"{where}.patterns[{p_index}]")
                if pattern is not None:
                    patterns.append(pattern)

        tags = entry.get("tags") or []
        if not isinstance(tags, list):
            self.errors.append(f"{where}.tags must be a list")
            tags = []

        remediation = entry.get("remediation") or ""
        if not isinstance(remediation, str):
            self.errors.append(f"{where}.remediation must be a string")

        if len(self.errors) > errors_before:
            return None

        return Rule(
            id=rule_id,
            title=entry["title"],
            description=entry["description"].strip(),
            severity=severity,
            confidence=confidence,
            category=entry["category"],
            file_types=frozenset(file_types),
            patterns=tuple(patterns),
            remediation=remediation.strip(),
            tags=tuple(str(t) for t in tags),
        )

    def _parse_pattern(self, raw: Any, where: str) -> RulePattern | None:
        if not isinstance(raw, dict):
            self.errors.append(f"{where} must be a mapping")
            return None
        regex = raw.get("regex")
        description = raw.get("description")
        if not isinstance(regex, str) or not regex:
            self.errors.append(f"{where}.regex must be a non-empty string")
            return None
        if not isinstance(description, str) or not description:
            self.errors.append(f"{where}.description must be a non-empty string")
            return None
        try:
            compiled = re.compile(regex, REGEX_FLAGS)
        except re.error as e:
            self.errors.append(f"{where}.regex does not compile: {e}")
            return None
        return RulePattern(regex=regex, description=description, compiled=compiled)


def _parse_enum(enum_cls, value):
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value.lower())
    except ValueError:
        return None


def merge_meta(base: RuleMeta, override: RuleMeta | None) -> RuleMeta:
    """Merge override metadata into base; extension lists merge per label."""
    if override is None:
        return base
    extensions = dict(base.file_type_extensions)
    extensions.update(override.file_type_extensions)
    return RuleMeta(
        rule_format_version=override.rule_format_version,
        file_type_extensions=extensions,
    )


def merge_rules(base: list[Rule], override: list[Rule]) -> list[Rule]:
    """Union two rule lists; override rules win on id collision."""
    merged = {rule.id: rule for rule in base}
    for rule in override:
        if rule.id in merged:
            logger.debug("Override replaces rule %s", rule.id)
        merged[rule.id] = rule
    return sorted(merged.values(), key=lambda r: r.id)


def load_rules(rules_dir: str | Path | None = None) -> RuleCatalog:
    """Load and validate a rule catalog directory.

    Args:
        rules_dir: Catalog directory (default: the packaged catalog)

    Raises:
        RuleLoadError: With every violation found in the catalog
    """
    loader = RuleCatalogLoader()
    rules, meta = loader.load(Path(rules_dir or OpenGuardConstants.RULES_DIR))
    if loader.errors or meta is None:
        raise RuleLoadError(loader.errors or ["rule metadata missing"])
    catalog = RuleCatalog(rules, meta)
    logger.info("Loaded %d rules (format %s)", len(catalog), meta.rule_format_version)
    return catalog


def load_rules_with_overrides(
    rules_dir: str | Path | None = None,
    override_dir: str | Path | None = None,
) -> RuleCatalog:
    """Load a base catalog and apply an optional override catalog on top."""
    if override_dir is None:
        return load_rules(rules_dir)

    loader = RuleCatalogLoader()
    base_rules, base_meta = loader.load(Path(rules_dir or OpenGuardConstants.RULES_DIR))
    override_rules, override_meta = loader.load(Path(override_dir), require_meta=False)
    if loader.errors or base_meta is None:
        raise RuleLoadError(loader.errors or ["rule metadata missing"])

    catalog = RuleCatalog(merge_rules(base_rules, override_rules), merge_meta(base_meta, override_meta))
    logger.info(
        "Loaded %d rules (%d from overrides, format %s)",
        len(catalog),
        len(override_rules),
        catalog.meta.rule_format_version,
    )
    return catalog
