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
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest before running tests.
All fixtures defined here are available to every test module without
explicit imports.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from dotenv import load_dotenv

from openguard.core.discovery import classify_file
from openguard.core.models import FileEntry
from openguard.core.rule_registry import RuleCatalog, load_rules

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

project_root = Path(__file__).parent.parent
env_file = project_root / ".env"

if env_file.exists():
    load_dotenv(env_file)


@pytest.fixture(autouse=True)
def _clean_openguard_env(monkeypatch):
    """Keep OPENGUARD_* settings from the developer shell out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("OPENGUARD_"):
            monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def catalog() -> RuleCatalog:
    """The packaged rule catalog, loaded once per session."""
    return load_rules()


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_tree(tmp_path: Path):
    """Factory fixture for writing a directory tree under *tmp_path*.

    Usage::

        root = make_tree({
            "install.sh": "curl https://example.com/install.sh | bash",
            ".github/workflows/ci.yml": "permissions: write-all",
            "blob.bin": b"\\x00\\x01",
        })
    """
    _counter = [0]

    def _make(files: dict[str, str | bytes]) -> Path:
        _counter[0] += 1
        root = tmp_path / f"repo-{_counter[0]}"
        root.mkdir(parents=True, exist_ok=True)
        for rel_path, content in files.items():
            fp = root / rel_path
            fp.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                fp.write_bytes(content)
            else:
                fp.write_text(content, encoding="utf-8", newline="")
        return root

    return _make


@pytest.fixture
def make_entry(tmp_path: Path):
    """Factory fixture for a single on-disk :class:`FileEntry`."""

    def _make(relative_path: str, content: str | bytes) -> FileEntry:
        fp = tmp_path / "entries" / relative_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            fp.write_bytes(content)
        else:
            fp.write_text(content, encoding="utf-8", newline="")
        return FileEntry(
            absolute_path=fp,
            relative_path=relative_path,
            size_bytes=fp.stat().st_size,
            category=classify_file(relative_path),
        )

    return _make
