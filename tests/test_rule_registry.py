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
Rule catalog loading and validation tests.
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
import yaml

from openguard.config.constants import OpenGuardConstants
from openguard.core.exceptions import RuleLoadError
from openguard.core.models import Confidence, Severity
from openguard.core.rule_registry import (
    REGEX_FLAGS,
    RuleCatalog,
    RuleCatalogLoader,
    load_rules,
    load_rules_with_overrides,
)

META = textwrap.dedent(
    """\
    rule_format_version: "1"
    file_type_extensions:
      shell: [".sh"]
      markdown: [".md"]
    """
)

RULE = textwrap.dedent(
    """\
    rules:
      - id: T-001
        title: Test rule
        description: Finds the word danger.
        severity: high
        confidence: medium
        category: shell
        scope:
          file_types: [shell]
        patterns:
          - regex: '\\bdanger\\b'
            description: danger
        remediation: Remove it.
        tags: [test]
    """
)


def _catalog_dir(root: Path, files: dict[str, str]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        (root / name).write_text(content, encoding="utf-8")
    return root


class TestPackagedCatalog:
    def test_loads(self, catalog):
        assert len(catalog) == 40
        assert catalog.meta.rule_format_version == "1"

    def test_rule_id_families(self, catalog):
        families = {}
        for rule_id in catalog.rule_ids():
            family = rule_id.rsplit("-", 1)[0]
            families[family] = families.get(family, 0) + 1
        assert families == {
            "OG-SHELL": 10,
            "OG-NET": 5,
            "OG-CRED": 4,
            "OG-SC": 3,
            "OG-GHA": 5,
            "OG-MAC": 4,
            "OG-PS": 4,
            "OG-MD": 2,
            "OG-MCP": 3,
        }

    def test_every_rule_scoped_to_known_labels(self, catalog):
        known = set(catalog.meta.file_type_extensions) | {"yaml-workflow", "dockerfile", "mcp-config"}
        for rule in catalog:
            assert rule.file_types, rule.id
            assert rule.file_types <= known, rule.id

    def test_patterns_compiled_case_insensitive_multiline(self, catalog):
        rule = catalog.get("OG-SHELL-001")
        assert rule.patterns[0].compiled.flags & REGEX_FLAGS == REGEX_FLAGS

    def test_catalog_sorted_by_id(self, catalog):
        assert catalog.rule_ids() == sorted(catalog.rule_ids())

    def test_lookup(self, catalog):
        assert "OG-NET-004" in catalog
        assert catalog.get("OG-NOPE-001") is None

    @pytest.mark.parametrize(
        "rule_file",
        sorted(OpenGuardConstants.RULES_DIR.glob("*.yaml")),
        ids=lambda p: p.name,
    )
    def test_every_packaged_file_is_valid_yaml(self, rule_file):
        document = yaml.safe_load(rule_file.read_text(encoding="utf-8"))
        assert isinstance(document, dict)

    def test_packaged_catalog_loads_without_errors(self):
        loader = RuleCatalogLoader()
        rules, meta = loader.load(OpenGuardConstants.RULES_DIR)
        assert loader.errors == []
        assert meta is not None
        assert len(rules) == 40

    def test_remediation_with_colon_kept_verbatim(self, catalog):
        assert catalog.get("OG-GHA-001").remediation == (
            'Declare only the scopes each job needs, for example "contents: read".'
        )


class TestLoader:
    def test_minimal_catalog(self, tmp_path):
        root = _catalog_dir(tmp_path / "rules", {"_meta.yaml": META, "test.yaml": RULE})
        catalog = load_rules(root)
        rule = catalog.get("T-001")
        assert rule.severity == Severity.HIGH
        assert rule.confidence == Confidence.MEDIUM
        assert rule.file_types == frozenset({"shell"})
        assert rule.tags == ("test",)
        assert rule.patterns[0].compiled.search("DANGER ahead")
        assert catalog.meta.labels_for_extension(".SH") == {"shell"}

    def test_missing_directory(self, tmp_path):
        with pytest.raises(RuleLoadError, match="Rules directory not found"):
            load_rules(tmp_path / "absent")

    def test_missing_meta(self, tmp_path):
        root = _catalog_dir(tmp_path / "rules", {"test.yaml": RULE})
        with pytest.raises(RuleLoadError, match="metadata file not found"):
            load_rules(root)

    def test_invalid_yaml(self, tmp_path):
        root = _catalog_dir(tmp_path / "rules", {"_meta.yaml": META, "bad.yaml": "rules: [unclosed\n"})
        with pytest.raises(RuleLoadError, match="bad.yaml: invalid YAML"):
            load_rules(root)

    def test_file_without_rules_list(self, tmp_path):
        root = _catalog_dir(tmp_path / "rules", {"_meta.yaml": META, "x.yaml": "something: else\n"})
        with pytest.raises(RuleLoadError, match="must be a mapping with a 'rules' list"):
            load_rules(root)

    def test_all_violations_collected(self, tmp_path):
        bad = textwrap.dedent(
            """\
            rules:
              - id: T-002
                title: ""
                description: d
                severity: extreme
                confidence: sure
                category: shell
                scope:
                  file_types: shell
                patterns:
                  - regex: '([unclosed'
                    description: broken
            """
        )
        root = _catalog_dir(tmp_path / "rules", {"_meta.yaml": META, "bad.yaml": bad})
        with pytest.raises(RuleLoadError) as exc_info:
            load_rules(root)
        errors = exc_info.value.errors
        assert len(errors) == 5
        assert any(".title must be a non-empty string" in e for e in errors)
        assert any(".severity must be one of" in e for e in errors)
        assert any(".confidence must be one of" in e for e in errors)
        assert any(".scope.file_types must be a list of strings" in e for e in errors)
        assert any("regex does not compile" in e for e in errors)
        assert all(e.startswith("bad.yaml: rules[0] (T-002)") for e in errors)

    def test_empty_patterns_rejected(self, tmp_path):
        rule = RULE.replace(
            "    patterns:\n      - regex: '\\bdanger\\b'\n        description: danger\n", "    patterns: []\n"
        )
        root = _catalog_dir(tmp_path / "rules", {"_meta.yaml": META, "t.yaml": rule})
        with pytest.raises(RuleLoadError, match="patterns must be a non-empty list"):
            load_rules(root)

    def test_duplicate_ids_rejected(self, tmp_path):
        root = _catalog_dir(tmp_path / "rules", {"_meta.yaml": META, "a.yaml": RULE, "b.yaml": RULE})
        with pytest.raises(RuleLoadError, match="duplicate rule id 'T-001'"):
            load_rules(root)

    def test_invalid_meta(self, tmp_path):
        meta = "file_type_extensions:\n  shell: .sh\n"
        root = _catalog_dir(tmp_path / "rules", {"_meta.yaml": meta, "t.yaml": RULE})
        with pytest.raises(RuleLoadError) as exc_info:
            load_rules(root)
        assert "_meta.yaml: rule_format_version is required" in exc_info.value.errors
        assert "_meta.yaml: file_type_extensions.shell must be a list of strings" in exc_info.value.errors

    def test_loader_does_not_raise(self, tmp_path):
        loader = RuleCatalogLoader()
        rules, meta = loader.load(tmp_path / "absent")
        assert rules == []
        assert meta is None
        assert loader.errors


class TestOverrides:
    def test_override_replaces_by_id_and_merges_meta(self, tmp_path):
        base = _catalog_dir(tmp_path / "base", {"_meta.yaml": META, "t.yaml": RULE})
        override_rule = RULE.replace("severity: high", "severity: low")
        extra_rule = RULE.replace("T-001", "T-009")
        override = _catalog_dir(
            tmp_path / "override",
            {
                "_meta.yaml": 'rule_format_version: "2"\nfile_type_extensions:\n  shell: [".sh", ".command"]\n',
                "a.yaml": override_rule,
                "b.yaml": extra_rule,
            },
        )
        catalog = load_rules_with_overrides(base, override)
        assert catalog.rule_ids() == ["T-001", "T-009"]
        assert catalog.get("T-001").severity == Severity.LOW
        assert catalog.meta.rule_format_version == "2"
        assert catalog.meta.file_type_extensions["shell"] == (".sh", ".command")
        assert catalog.meta.file_type_extensions["markdown"] == (".md",)

    def test_override_meta_optional(self, tmp_path):
        base = _catalog_dir(tmp_path / "base", {"_meta.yaml": META, "t.yaml": RULE})
        override = _catalog_dir(tmp_path / "override", {"t.yaml": RULE.replace("title: Test rule", "title: Custom")})
        catalog = load_rules_with_overrides(base, override)
        assert catalog.get("T-001").title == "Custom"
        assert catalog.meta.rule_format_version == "1"

    def test_invalid_override_fails_whole_load(self, tmp_path):
        base = _catalog_dir(tmp_path / "base", {"_meta.yaml": META, "t.yaml": RULE})
        override = _catalog_dir(tmp_path / "override", {"t.yaml": RULE.replace("severity: high", "severity: huge")})
        with pytest.raises(RuleLoadError, match="severity must be one of"):
            load_rules_with_overrides(base, override)

    def test_no_override_dir(self):
        assert len(load_rules_with_overrides(None, None)) == 40

    def test_override_against_packaged_catalog(self, tmp_path):
        override = RULE.replace("T-001", "OG-SHELL-006").replace("severity: high", "severity: info")
        override_dir = _catalog_dir(tmp_path / "override", {"shell.yaml": override})
        catalog = load_rules_with_overrides(None, override_dir)
        assert len(catalog) == 40
        assert catalog.get("OG-SHELL-006").severity == Severity.INFO


class TestCatalogModel:
    def test_sorted_regardless_of_input_order(self, tmp_path):
        root = _catalog_dir(
            tmp_path / "rules",
            {"_meta.yaml": META, "z.yaml": RULE.replace("T-001", "A-001"), "a.yaml": RULE.replace("T-001", "Z-001")},
        )
        catalog = load_rules(root)
        assert catalog.rule_ids() == ["A-001", "Z-001"]
        assert [r.id for r in catalog] == ["A-001", "Z-001"]

    def test_empty_catalog(self, catalog):
        empty = RuleCatalog([], catalog.meta)
        assert len(empty) == 0
