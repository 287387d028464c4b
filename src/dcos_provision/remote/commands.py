# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dcos_provision/remote/commands.py
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from dcos_provision.errors import RemoteCommandError

if TYPE_CHECKING:
    from dcos_provision.cluster.models import Machine

log = logging.getLogger("dcos_provision")

PREFIX = "      "
HEREDOC_MARKER = "DCOS_PROVISION_EOF"


def _indent(text: str) -> str:
    return PREFIX + text.rstrip("\n").replace("\n", "\n" + PREFIX)


def remote_sudo(machine: "Machine", command: str, *, check: bool = True) -> Tuple[int, str, str]:
    """
    Run a command as root on a machine.

    The command and its output are logged with the machine name, output
    indented. With check=True a non-zero exit raises RemoteCommandError.
    Returns (rc, stdout, stderr).
    """
    log.info("[%s] sudo: %s", machine.name, command.rstrip("\n").replace("\n", "\n" + PREFIX))

    out: List[str] = []
    err: List[str] = []

    def on_output(stream: str, chunk: str) -> None:
        if stream == "stderr":
            err.append(chunk)
            log.error("[%s]\n%s", machine.name, _indent(chunk))
        else:
            out.append(chunk)
            log.info("[%s]\n%s", machine.name, _indent(chunk))

    rc = machine.channel.sudo(command, on_output=on_output)
    if check and rc != 0:
        raise RemoteCommandError(machine.name, command, rc)
    return rc, "".join(out), "".join(err)


def write_remote_file(
    machine: "Machine",
    remote_path: str,
    content: str,
    *,
    mode: Optional[str] = None,
) -> None:
    """
    Write content to remote_path through a quoted heredoc, so nothing in the
    content is expanded by the remote shell.
    """
    if HEREDOC_MARKER in content:
        raise ValueError(f"content for {remote_path} contains the heredoc marker")

    body = content if content.endswith("\n") else content + "\n"
    command = f"cat << '{HEREDOC_MARKER}' > {remote_path}\n{body}{HEREDOC_MARKER}"
    remote_sudo(machine, command)
    if mode:
        remote_sudo(machine, f"chmod {mode} {remote_path}")
