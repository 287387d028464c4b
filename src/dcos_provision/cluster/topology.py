# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dcos_provision/cluster/topology.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping

from dcos_provision.cluster.models import PRIVATE_NETWORK, Machine, Network
from dcos_provision.config.models import MachineSpec
from dcos_provision.errors import TopologyValidationError
from dcos_provision.remote.channel import RemoteChannel

log = logging.getLogger("dcos_provision")

AGENT_ROLES = ("agent-private", "agent-public")

# (name, spec) -> channel used to reach that machine
ChannelFactory = Callable[[str, MachineSpec], RemoteChannel]


def missing_categories(roles: Iterable[str]) -> List[str]:
    present = set(roles)
    missing: List[str] = []
    if "boot" not in present:
        missing.append("boot")
    if "master" not in present:
        missing.append("master")
    if not present.intersection(AGENT_ROLES):
        missing.append("agent-private or agent-public")
    return missing


def validate_machine_types(machine_types: Mapping[str, MachineSpec]) -> None:
    """
    Raise TopologyValidationError listing every missing machine category.
    """
    missing = missing_categories(spec.type for spec in machine_types.values())
    if missing:
        raise TopologyValidationError(missing)


@dataclass(frozen=True)
class Topology:
    machines: Dict[str, Machine]   # insertion order == topology order

    def __post_init__(self):
        missing = missing_categories(m.role for m in self.machines.values())
        if missing:
            raise TopologyValidationError(missing)

    def by_role(self, role: str) -> List[Machine]:
        return [m for m in self.machines.values() if m.role == role]

    @property
    def boot(self) -> Machine:
        return self.by_role("boot")[0]

    @property
    def masters(self) -> List[Machine]:
        return self.by_role("master")

    @property
    def agents(self) -> List[Machine]:
        """Private agents first, then public agents."""
        return self.by_role("agent-private") + self.by_role("agent-public")


def build_topology(
    machine_types: Mapping[str, MachineSpec],
    channel_factory: ChannelFactory,
    *,
    domain: str = "dcos",
) -> Topology:
    validate_machine_types(machine_types)

    machines: Dict[str, Machine] = {}
    for name, spec in machine_types.items():
        machines[name] = Machine(
            name=name,
            role=spec.type,
            channel=channel_factory(name, spec),
            hostname=f"{name}.{domain}" if domain else name,
            networks=(Network(kind=PRIVATE_NETWORK, ip=spec.ip),),
        )
    log.debug("topology: %s", {n: m.role for n, m in machines.items()})
    return Topology(machines=machines)
