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
Evidence extraction: line numbers and context windows around matches.
"""

from __future__ import annotations

import re

from ..config.constants import OpenGuardConstants
from .models import Evidence

_LINE_SPLIT = re.compile(r"\r?\n")


def split_lines(content: str) -> list[str]:
    return _LINE_SPLIT.split(content)


def line_number_at(content: str, index: int) -> int:
    """1-based line number of a character offset."""
    if index <= 0:
        return 1
    return content.count("\n", 0, index) + 1


def build_evidence(
    content: str,
    path: str,
    index: int,
    match: str,
    context_lines: int = OpenGuardConstants.CONTEXT_LINES,
    lines: list[str] | None = None,
) -> Evidence:
    """
    Build evidence for a match at *index* in *content*.

    The window spans ``context_lines`` lines either side of the matched line,
    clamped to the file.

    Args:
        content: Full file content
        path: Root-relative path of the file
        index: Character offset of the match
        match: Literal matched text
        context_lines: Lines of context on each side
        lines: Pre-split content, to avoid re-splitting per match
    """
    if lines is None:
        lines = split_lines(content)
    line = line_number_at(content, index)
    start_line = max(1, line - context_lines)
    end_line = max(start_line, min(len(lines), line + context_lines))
    snippet = "\n".join(lines[start_line - 1 : end_line])
    return Evidence(path=path, start_line=start_line, end_line=end_line, snippet=snippet, match=match)


def locate_literal(content: str, text: str) -> int:
    """Offset of the first literal occurrence of *text*, or 0 when absent."""
    index = content.find(text) if text else -1
    return index if index >= 0 else 0
