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
Policy engine: inference, validation, merge and serialization.
"""

from .inference import SAFE_COMMANDS, SAFE_DOMAINS, infer_policy
from .merge import merge_policies
from .models import (
    ApprovalCategory,
    ApprovalMode,
    ApprovalRule,
    CommandRule,
    Policy,
    PolicyAction,
)
from .serializer import load_policy, policy_from_yaml, policy_to_dict, policy_to_yaml, write_policy
from .validator import collect_policy_errors, validate_policy

__all__ = [
    "ApprovalCategory",
    "ApprovalMode",
    "ApprovalRule",
    "CommandRule",
    "Policy",
    "PolicyAction",
    "SAFE_COMMANDS",
    "SAFE_DOMAINS",
    "collect_policy_errors",
    "infer_policy",
    "load_policy",
    "merge_policies",
    "policy_from_yaml",
    "policy_to_dict",
    "policy_to_yaml",
    "validate_policy",
    "write_policy",
]
