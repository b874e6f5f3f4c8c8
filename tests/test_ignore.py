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
Tests for the gitignore-compatible matcher.
"""

from __future__ import annotations

import pytest

from openguard.core.ignore import IgnoreMatcher, glob_to_regex, parse_ignore_line


def _matcher(*lines: str) -> IgnoreMatcher:
    matcher = IgnoreMatcher()
    matcher.add_lines(lines)
    return matcher


class TestParseIgnoreLine:
    """Line-level parsing."""

    @pytest.mark.parametrize("line", ["", "   ", "# comment", "#"])
    def test_blank_and_comment_lines_yield_nothing(self, line):
        assert parse_ignore_line(line) is None

    def test_flags(self):
        rule = parse_ignore_line("!/build/")
        assert rule.negated
        assert rule.anchored
        assert rule.directory_only
        assert rule.pattern == "build"
        assert not rule.has_path_separator

    def test_path_separator_detected(self):
        rule = parse_ignore_line("docs/*.md")
        assert rule.has_path_separator
        assert not rule.anchored

    def test_escaped_hash_is_a_pattern(self):
        rule = parse_ignore_line("\\#notes")
        assert rule is not None
        assert rule.matches("#notes", is_dir=False)

    def test_escaped_bang_is_not_negation(self):
        rule = parse_ignore_line("\\!important")
        assert not rule.negated
        assert rule.matches("!important", is_dir=False)


class TestGlobTranslation:
    def test_single_star_does_not_cross_separator(self):
        assert glob_to_regex("*.ts") == "[^/]*\\.ts"

    def test_double_star_slash_is_optional_directories(self):
        assert glob_to_regex("**/x") == "(?:.*/)?x"

    def test_unterminated_class_is_literal(self):
        rule = parse_ignore_line("a[b")
        assert rule.matches("a[b", is_dir=False)


class TestIgnoreMatcher:
    """Path-level decisions."""

    def test_directory_pattern_excludes_nested_file(self):
        matcher = _matcher("secret/")
        assert matcher.is_ignored("secret", is_dir=True)
        assert matcher.is_ignored("secret/hidden.ts")

    def test_directory_only_pattern_skips_files_of_same_name(self):
        matcher = _matcher("build/")
        assert not matcher.is_ignored("build")

    def test_root_file_pattern(self):
        matcher = _matcher("ignored.txt")
        assert matcher.is_ignored("ignored.txt")
        assert matcher.is_ignored("nested/ignored.txt")
        assert not matcher.is_ignored("kept.txt")

    def test_anchored_pattern_matches_only_at_root(self):
        matcher = _matcher("/ignored.txt")
        assert matcher.is_ignored("ignored.txt")
        assert not matcher.is_ignored("nested/ignored.txt")

    def test_pattern_with_separator_is_root_relative(self):
        matcher = _matcher("docs/*.md")
        assert matcher.is_ignored("docs/a.md")
        assert not matcher.is_ignored("other/docs/a.md")
        assert not matcher.is_ignored("docs/deep/a.md")

    def test_star_does_not_cross_separator(self):
        matcher = _matcher("src/*")
        assert matcher.is_ignored("src/a.ts")
        # src/lib is ignored as a directory, so the file beneath it is too
        assert matcher.is_ignored("src/lib/b.ts")
        assert not _matcher("src/*.ts").is_ignored("src/lib/b.ts")

    def test_double_star_crosses_separators(self):
        matcher = _matcher("**/fixtures/*.json")
        assert matcher.is_ignored("fixtures/a.json")
        assert matcher.is_ignored("a/b/fixtures/a.json")

    def test_question_mark(self):
        matcher = _matcher("file?.txt")
        assert matcher.is_ignored("file1.txt")
        assert not matcher.is_ignored("file10.txt")
        assert not _matcher("a?b").is_ignored("a/b")

    def test_character_class(self):
        matcher = _matcher("log[0-9].txt", "tmp[!a].txt")
        assert matcher.is_ignored("log5.txt")
        assert not matcher.is_ignored("logx.txt")
        assert matcher.is_ignored("tmpb.txt")
        assert not matcher.is_ignored("tmpa.txt")

    def test_last_matching_rule_wins(self):
        matcher = _matcher("*.log", "!keep.log")
        assert matcher.is_ignored("debug.log")
        assert not matcher.is_ignored("keep.log")

        matcher = _matcher("!keep.log", "*.log")
        assert matcher.is_ignored("keep.log")

    def test_negation_cannot_reinclude_file_under_ignored_directory(self):
        matcher = _matcher("vendor/", "!vendor/keep.sh")
        assert matcher.is_ignored("vendor/keep.sh")

    def test_unmatched_path_is_kept(self):
        assert not _matcher().is_ignored("anything/at/all.sh")


class TestIgnoreFiles:
    def test_add_file_reads_patterns(self, tmp_path):
        ignore = tmp_path / ".gitignore"
        ignore.write_text("# comment\n\n*.tmp\n", encoding="utf-8")
        matcher = IgnoreMatcher()
        matcher.add_file(ignore)
        assert matcher.is_ignored("a.tmp")
        assert matcher.rules[0].source == ".gitignore"

    def test_missing_file_adds_nothing(self, tmp_path):
        matcher = IgnoreMatcher()
        matcher.add_file(tmp_path / "absent")
        assert matcher.rules == []

    def test_undecodable_file_adds_nothing(self, tmp_path):
        ignore = tmp_path / ".gitignore"
        ignore.write_bytes(b"\xff\xfe\x00bad")
        matcher = IgnoreMatcher()
        matcher.add_file(ignore)
        assert matcher.rules == []
