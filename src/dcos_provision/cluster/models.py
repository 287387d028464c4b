# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dcos_provision/cluster/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence, Tuple

from dcos_provision.remote.channel import RemoteChannel

MachineRole = Literal["boot", "master", "agent-private", "agent-public"]
InstallMethod = Literal["ssh_push", "ssh_pull", "web"]

ROLES: Tuple[str, ...] = ("boot", "master", "agent-private", "agent-public")
INSTALL_METHODS: Tuple[str, ...] = ("ssh_push", "ssh_pull", "web")

PRIVATE_NETWORK = "private_network"


@dataclass(frozen=True)
class Network:
    kind: str                     # e.g. "private_network"
    ip: Optional[str] = None


@dataclass(frozen=True, eq=False)
class Machine:
    """
    A provisioned machine as the orchestrator sees it.
    """
    name: str
    role: MachineRole
    channel: RemoteChannel
    hostname: Optional[str] = None         # e.g. 'm1.dcos'
    public_address: Optional[str] = None   # provider-reported, may be loopback
    networks: Sequence[Network] = field(default_factory=tuple)

    def __str__(self) -> str:
        return self.name
