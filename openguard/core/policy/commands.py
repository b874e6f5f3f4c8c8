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
Shell command vocabulary used when turning findings into deny rules.

Commands are grouped into risk tiers:
  - SAFE       read-only, informational
  - CAUTION    modify files or install packages
  - RISKY      system administration, remote access
  - DANGEROUS  remote code execution, privilege escalation, obfuscation

Only commands named by evidence are considered, so the tiers decide
whether a named command is worth denying.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class CommandRisk(Enum):
    """Risk classification for commands."""

    SAFE = "safe"
    CAUTION = "caution"
    RISKY = "risky"
    DANGEROUS = "dangerous"


# --------------------------------------------------------------------------- #
# Command classification tables
# --------------------------------------------------------------------------- #

_SAFE_COMMANDS = frozenset(
    {
        # Inspection
        "cat",
        "head",
        "tail",
        "less",
        "wc",
        "file",
        "stat",
        "ls",
        "tree",
        # Search
        "grep",
        "rg",
        "find",
        "which",
        # Text processing
        "sort",
        "uniq",
        "cut",
        "tr",
        "diff",
        # Info
        "echo",
        "printf",
        "true",
        "false",
        "date",
        "pwd",
        "uname",
        "whoami",
        "basename",
        "dirname",
        "realpath",
        # Checksums
        "sha256sum",
        "shasum",
        "md5sum",
    }
)

_CAUTION_COMMANDS = frozenset(
    {
        "cp",
        "mv",
        "ln",
        "mkdir",
        "touch",
        "chmod",
        "chown",
        "chgrp",
        "sed",
        "awk",
        "tar",
        "unzip",
        "make",
        "git",
        "npm",
        "npx",
        "yarn",
        "pnpm",
        "pip",
        "pip3",
        "apt",
        "apt-get",
        "brew",
        "yum",
        "dnf",
        "nohup",
        "node",
        "python",
        "python3",
        "perl",
        "ruby",
    }
)

_RISKY_COMMANDS = frozenset(
    {
        "rm",
        "dd",
        "mkfs",
        "mount",
        "systemctl",
        "launchctl",
        "crontab",
        "ssh",
        "scp",
        "rsync",
        "docker",
        "kubectl",
        "dig",
        "nslookup",
        "printenv",
        "env",
        "security",
        "tccutil",
        "defaults",
    }
)

_DANGEROUS_COMMANDS = frozenset(
    {
        "curl",
        "wget",
        "eval",
        "exec",
        "source",
        "bash",
        "sh",
        "zsh",
        "dash",
        "fish",
        "ksh",
        "sudo",
        "su",
        "doas",
        "base64",
        "nc",
        "ncat",
        "netcat",
        "socat",
        "telnet",
        "osascript",
        "pbpaste",
        "powershell",
        "pwsh",
        "iex",
        "invoke-expression",
        "iwr",
        "invoke-webrequest",
    }
)

_TIERS = [
    (_DANGEROUS_COMMANDS, CommandRisk.DANGEROUS),
    (_RISKY_COMMANDS, CommandRisk.RISKY),
    (_CAUTION_COMMANDS, CommandRisk.CAUTION),
    (_SAFE_COMMANDS, CommandRisk.SAFE),
]

_ENV_ASSIGNMENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=")
_CHAIN_SPLIT = re.compile(r"\s*(?:&&|\|\||;)\s*")
_PIPE = re.compile(r"(?<!\|)\|(?!\|)")


@dataclass
class CommandContext:
    """Parsed command context."""

    raw_command: str
    base_command: str
    arguments: list[str] = field(default_factory=list)
    has_pipeline: bool = False
    chained_commands: list[str] = field(default_factory=list)


def _command_name(token: str) -> str:
    return token.strip("\"'`()$").split("/")[-1].lower()


def parse_command(raw: str) -> CommandContext:
    """Parse a command string into structured context.

    The base command is the first token of the first chained segment that is
    not an environment assignment, with any directory prefix stripped.
    """
    raw = raw.strip()
    ctx = CommandContext(raw_command=raw, base_command="")
    if not raw:
        return ctx

    ctx.has_pipeline = _PIPE.search(raw) is not None
    ctx.chained_commands = [part.strip() for part in _CHAIN_SPLIT.split(raw) if part.strip()]

    first = ctx.chained_commands[0] if ctx.chained_commands else raw
    if ctx.has_pipeline:
        first = _PIPE.split(first)[0].strip()

    tokens = first.split()
    for index, token in enumerate(tokens):
        if _ENV_ASSIGNMENT.match(token):
            continue
        ctx.base_command = _command_name(token)
        ctx.arguments = tokens[index + 1 :]
        break
    return ctx


def classify_command(name: str) -> CommandRisk | None:
    """Risk tier of a bare command name; None when it is not a known command."""
    name = name.lower()
    for commands, risk in _TIERS:
        if name in commands:
            return risk
    return None


def named_command(text: str) -> str | None:
    """The known command an evidence string starts with, if any."""
    ctx = parse_command(text)
    if ctx.base_command and classify_command(ctx.base_command) is not None:
        return ctx.base_command
    return None


def is_deniable(name: str) -> bool:
    """Commands outside the safe tier are worth denying when evidence names them."""
    risk = classify_command(name)
    return risk is not None and risk != CommandRisk.SAFE
