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

"""OpenGuard exceptions.

This module defines custom exceptions for OpenGuard operations.
All exceptions inherit from OpenGuardError for easy catching.

Example:
    >>> from openguard.core.scanner import OpenGuardScanner
    >>> from openguard.core.exceptions import TargetLoadError, ScanError
    >>>
    >>> scanner = OpenGuardScanner()
    >>>
    >>> try:
    ...     result = scanner.scan("path/to/repo")
    ... except TargetLoadError as e:
    ...     print(f"Failed to load target: {e}")
    ... except ScanError as e:
    ...     print(f"Scan failed: {e}")
"""

from __future__ import annotations


class OpenGuardError(Exception):
    """Base exception for all OpenGuard errors."""

    pass


class ConfigurationError(OpenGuardError):
    """Raised when a configuration value is invalid.

    This can indicate:
    - A non-integer size limit or worker count
    - An unknown severity threshold
    - A rules directory that does not exist
    """

    pass


class TargetLoadError(OpenGuardError):
    """Raised when the scan target cannot be loaded.

    This can indicate:
    - Missing target path
    - Target path that is not a directory
    - An unreadable directory encountered during discovery
    """

    pass


class RuleLoadError(OpenGuardError):
    """Raised when a rule catalog is malformed.

    Every violation found while loading is collected in ``errors`` so the
    catalog can be fixed in one pass. A catalog that fails to load is never
    partially applied.
    """

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("Invalid rule catalog: " + "; ".join(self.errors))


class PolicyValidationError(OpenGuardError):
    """Raised when a policy document fails schema validation.

    ``errors`` lists every violated field path with the expected constraint.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Invalid policy: " + "; ".join(self.errors))


class ScanError(OpenGuardError):
    """Raised when an in-scope file cannot be read or decoded during a scan.

    Per-file failures are fatal for the whole scan.
    """

    pass
