# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dcos_provision/cluster/config_builder.py
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from dcos_provision.cluster.addresses import AddressResolver
from dcos_provision.cluster.models import Machine
from dcos_provision.cluster.topology import Topology
from dcos_provision.config.models import ClusterConfig

log = logging.getLogger("dcos_provision")

ZK_PORT = 2181
LOCAL_BOOTSTRAP_URL = "file:///opt/dcos_install_tmp"

AWS_RESOLVERS = ["169.254.169.253"]
DEFAULT_RESOLVERS = ["8.8.8.8"]


def default_resolvers(provider: str) -> List[str]:
    if provider == "aws":
        return list(AWS_RESOLVERS)
    return list(DEFAULT_RESOLVERS)


class ClusterConfigBuilder:
    def __init__(self, resolver: Optional[AddressResolver] = None):
        self.resolver = resolver or AddressResolver()

    def _addresses(self, machines: Sequence[Machine]) -> List[str]:
        return [self.resolver.resolve(m) for m in machines]

    def build(
        self,
        topology: Topology,
        install_method: str,
        provider: str,
        template: Optional[ClusterConfig] = None,
    ) -> ClusterConfig:
        """
        Fill in the topology-derived keys of the genconf config.

        Raises AddressResolutionError if any machine has no usable address.
        """
        template = template or ClusterConfig()

        # how the boot machine reaches the nodes
        master_list = self._addresses(topology.masters)
        agent_list = self._addresses(topology.agents)

        # how the nodes reach the boot machine
        boot_address = self.resolver.resolve(topology.boot)

        if install_method == "ssh_pull":
            # nginx on the boot machine serves the genconf output
            bootstrap_url = f"http://{boot_address}"
        else:
            bootstrap_url = LOCAL_BOOTSTRAP_URL

        resolvers = template.resolvers or default_resolvers(provider)

        config = template.model_copy(
            update={
                "master_list": master_list,
                "agent_list": agent_list,
                "exhibitor_zk_hosts": f"{boot_address}:{ZK_PORT}",
                "bootstrap_url": bootstrap_url,
                "resolvers": resolvers,
            }
        )
        log.debug("generated cluster config: %s", config.to_dict())
        return config
