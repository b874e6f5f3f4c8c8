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
OpenGuard - Static security scanner and policy generator for agent-facing repositories.
"""

from ._version import __version__

__author__ = "Cisco Systems, Inc."


def __getattr__(name: str):
    """Lazy-load public API symbols on first access.

    Keeps ``python -m openguard.cli.cli`` from importing the whole engine
    before argument parsing.
    """
    _lazy_map = {
        "Config": (".config.config", "Config"),
        "OpenGuardConstants": (".config.constants", "OpenGuardConstants"),
        "TargetLoader": (".core.loader", "TargetLoader"),
        "load_target": (".core.loader", "load_target"),
        "discover_files": (".core.discovery", "discover_files"),
        "load_rules": (".core.rule_registry", "load_rules"),
        "RuleCatalog": (".core.rule_registry", "RuleCatalog"),
        "RuleEngine": (".core.engine", "RuleEngine"),
        "scan_target": (".core.engine", "scan_target"),
        "calculate_score": (".core.scoring", "calculate_score"),
        "Finding": (".core.models", "Finding"),
        "ScanResult": (".core.models", "ScanResult"),
        "Severity": (".core.models", "Severity"),
        "Policy": (".core.policy", "Policy"),
        "infer_policy": (".core.policy", "infer_policy"),
        "merge_policies": (".core.policy", "merge_policies"),
        "validate_policy": (".core.policy", "validate_policy"),
        "OpenGuardScanner": (".core.scanner", "OpenGuardScanner"),
        "scan_directory": (".core.scanner", "scan_directory"),
    }
    if name in _lazy_map:
        module_path, attr = _lazy_map[name]
        import importlib

        mod = importlib.import_module(module_path, __package__)
        val = getattr(mod, attr)
        globals()[name] = val
        return val
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "OpenGuardScanner",
    "scan_directory",
    "scan_target",
    "RuleEngine",
    "RuleCatalog",
    "load_rules",
    "discover_files",
    "TargetLoader",
    "load_target",
    "calculate_score",
    "Finding",
    "ScanResult",
    "Severity",
    "Policy",
    "infer_policy",
    "merge_policies",
    "validate_policy",
    "Config",
    "OpenGuardConstants",
]
