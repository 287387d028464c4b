import threading
from typing import List, Optional, Sequence, Tuple

import pytest

from dcos_provision.cluster.models import PRIVATE_NETWORK, Machine, Network
from dcos_provision.cluster.topology import Topology


class FakeChannel:
    """
    Records every command. `failures` maps a substring to the exit code
    returned for commands containing it; `exact` matches whole commands.
    """

    def __init__(self, failures=None, output: str = ""):
        self.commands: List[str] = []
        self.failures = failures or {}
        self.exact = {}
        self.output = output
        self._lock = threading.Lock()

    def sudo(self, command, on_output=None):
        with self._lock:
            self.commands.append(command)
        if self.output and on_output:
            on_output("stdout", self.output)
        if command in self.exact:
            return self.exact[command]
        for needle, rc in self.failures.items():
            if needle in command:
                if on_output:
                    on_output("stderr", f"boom: {needle}\n")
                return rc
        return 0

    def ran(self, needle: str) -> bool:
        return any(needle in c for c in self.commands)


def make_machine(name, role, ip=None, *, public_address=None, channel=None) -> Machine:
    networks: Tuple[Network, ...] = ()
    if ip:
        networks = (Network(kind=PRIVATE_NETWORK, ip=ip),)
    return Machine(
        name=name,
        role=role,
        channel=channel or FakeChannel(),
        hostname=f"{name}.dcos",
        public_address=public_address,
        networks=networks,
    )


def make_topology(layout: Sequence[Tuple[str, str, Optional[str]]]) -> Topology:
    return Topology(machines={name: make_machine(name, role, ip) for name, role, ip in layout})


STANDARD_LAYOUT = [
    ("boot", "boot", "192.168.65.50"),
    ("m1", "master", "192.168.65.90"),
    ("m2", "master", "192.168.65.95"),
    ("m3", "master", "192.168.65.101"),
    ("p1", "agent-public", "192.168.65.60"),
    ("a1", "agent-private", "192.168.65.111"),
    ("a2", "agent-private", "192.168.65.121"),
]


@pytest.fixture
def topology() -> Topology:
    return make_topology(STANDARD_LAYOUT)


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)

    def kinds(self):
        return [e.__class__.__name__ for e in self.events]


@pytest.fixture
def capture() -> Capture:
    return Capture()
