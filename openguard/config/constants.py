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
Constants for OpenGuard.
"""

from pathlib import Path

from .. import data
from .._version import __version__ as PACKAGE_VERSION


class OpenGuardConstants:
    """Constants used throughout the scanner."""

    VERSION = PACKAGE_VERSION

    # Resource paths
    DATA_DIR = data.DATA_DIR
    RULES_DIR = data.RULES_DIR
    RULES_META_FILE = "_meta.yaml"

    # Discovery
    DEFAULT_MAX_FILE_SIZE_BYTES = 1_000_000
    DEFAULT_IGNORE_PATTERNS = (".git/",)
    IGNORE_FILE_NAMES = (".gitignore", ".openguardignore")

    # Evidence and identity
    CONTEXT_LINES = 3
    FINDING_ID_LENGTH = 12

    # Policy
    POLICY_VERSION = "v1"
    DEFAULT_POLICY_SEVERITY_THRESHOLD = "high"

    @classmethod
    def get_rules_path(cls) -> Path:
        """Get path to the packaged rule catalog."""
        return cls.RULES_DIR
