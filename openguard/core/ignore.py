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
Gitignore-compatible path exclusion.

Each non-empty, non-comment line of an ignore file becomes an ``IgnoreRule``.
Rules are evaluated in order and the last matching rule decides: a plain
rule excludes the path, a ``!`` rule re-includes it.

Supported syntax:
  - ``!pattern``   negation
  - ``/pattern``   anchored to the scan root
  - ``pattern/``   matches directories only
  - ``*`` ``?``    wildcards that never cross ``/``
  - ``**``         wildcard that crosses ``/`` (``**/`` matches zero or more directories)
  - ``[abc]``      character classes, ``[!abc]`` negated
  - ``\\#`` ``\\!``  escaped literal leading characters

Separator-free patterns that are not anchored match the basename at any
depth. Every other pattern matches the full root-relative posix path.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


def glob_to_regex(glob: str) -> str:
    """Translate a gitignore glob into an unanchored regex body."""
    out: list[str] = []
    i = 0
    n = len(glob)
    while i < n:
        c = glob[i]
        if c == "*":
            if glob.startswith("**/", i):
                out.append("(?:.*/)?")
                i += 3
                continue
            if glob.startswith("**", i):
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            end = _class_end(glob, i)
            if end < 0:
                out.append(re.escape(c))
            else:
                body = glob[i + 1 : end]
                negate = body[:1] in ("!", "^")
                if negate:
                    body = body[1:]
                body = body.replace("\\", "\\\\")
                out.append(f"[^/{body}]" if negate else f"[{body}]")
                i = end + 1
                continue
        elif c == "\\" and i + 1 < n:
            out.append(re.escape(glob[i + 1]))
            i += 2
            continue
        else:
            out.append(re.escape(c))
        i += 1
    return "".join(out)


def _class_end(glob: str, start: int) -> int:
    j = start + 1
    if j < len(glob) and glob[j] in ("!", "^"):
        j += 1
    if j < len(glob) and glob[j] == "]":
        j += 1
    while j < len(glob) and glob[j] != "]":
        j += 1
    return j if j < len(glob) else -1


@dataclass(frozen=True)
class IgnoreRule:
    """A single parsed ignore pattern."""

    pattern: str
    negated: bool
    anchored: bool
    directory_only: bool
    has_path_separator: bool
    regex: re.Pattern[str]
    source: str = ""

    @property
    def matches_basename(self) -> bool:
        return not self.anchored and not self.has_path_separator

    def matches(self, relative_path: str, is_dir: bool) -> bool:
        """Check whether this rule matches a root-relative posix path."""
        if self.directory_only and not is_dir:
            return False
        if self.matches_basename:
            return self.regex.match(relative_path.rsplit("/", 1)[-1]) is not None
        return self.regex.match(relative_path) is not None


def parse_ignore_line(line: str, source: str = "") -> IgnoreRule | None:
    """Parse one ignore-file line; returns None for blanks and comments."""
    text = line.strip()
    if not text or text.startswith("#"):
        return None

    negated = text.startswith("!")
    if negated:
        text = text[1:]

    anchored = text.startswith("/")
    if anchored:
        text = text.lstrip("/")

    directory_only = text.endswith("/")
    if directory_only:
        text = text.rstrip("/")

    if not text:
        return None

    return IgnoreRule(
        pattern=text,
        negated=negated,
        anchored=anchored,
        directory_only=directory_only,
        has_path_separator="/" in text,
        regex=re.compile(f"^{glob_to_regex(text)}$"),
        source=source,
    )


class IgnoreMatcher:
    """Ordered collection of ignore rules from one or more sources."""

    def __init__(self, rules: Iterable[IgnoreRule] = ()):
        self.rules: list[IgnoreRule] = list(rules)

    def add_lines(self, lines: Iterable[str], source: str = "") -> None:
        for line in lines:
            rule = parse_ignore_line(line, source)
            if rule is not None:
                self.rules.append(rule)

    def add_file(self, path: Path) -> None:
        """Append the rules of an ignore file. Unreadable files add nothing."""
        if not path.is_file():
            return
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read ignore file %s: %s", path, e)
            return
        self.add_lines(content.splitlines(), source=path.name)

    def _last_match_ignores(self, relative_path: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self.rules:
            if rule.matches(relative_path, is_dir):
                ignored = not rule.negated
        return ignored

    def is_ignored(self, relative_path: str, is_dir: bool = False) -> bool:
        """
        Decide whether a root-relative posix path is excluded.

        A path beneath an excluded directory stays excluded; a negation cannot
        re-include a file whose parent directory is ignored.
        """
        parts = relative_path.split("/")
        for depth in range(1, len(parts)):
            if self._last_match_ignores("/".join(parts[:depth]), True):
                return True
        return self._last_match_ignores(relative_path, is_dir)
