# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dcos_provision/cluster/addresses.py
from __future__ import annotations

import logging

from dcos_provision.cluster.models import PRIVATE_NETWORK, Machine
from dcos_provision.errors import NoAddressFound

log = logging.getLogger("dcos_provision")

LOOPBACK = "127.0.0.1"


class AddressResolver:
    """
    Finds the address other nodes should use to reach a machine.

    Order:
      1. provider-reported public address, unless it is loopback
      2. first private network entry with an ip
    """

    def resolve(self, machine: Machine) -> str:
        address = machine.public_address
        if address and address != LOOPBACK:
            log.debug("[%s] using public address %s", machine.name, address)
            return address

        for network in machine.networks:
            if network.kind == PRIVATE_NETWORK and network.ip:
                log.debug("[%s] using private network address %s", machine.name, network.ip)
                return network.ip

        raise NoAddressFound(machine.name)
