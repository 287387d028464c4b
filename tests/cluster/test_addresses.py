import pytest

from dcos_provision.cluster.addresses import AddressResolver
from dcos_provision.cluster.models import Network
from dcos_provision.errors import AddressResolutionError, NoAddressFound

from conftest import FakeChannel
from dcos_provision.cluster.models import Machine


def _machine(public_address=None, networks=()):
    return Machine(name="m1", role="master", channel=FakeChannel(),
                   public_address=public_address, networks=networks)


def test_loopback_public_address_falls_back_to_private_network():
    m = _machine("127.0.0.1", (Network("private_network", "10.0.0.5"),))
    assert AddressResolver().resolve(m) == "10.0.0.5"


def test_public_address_preferred():
    m = _machine("54.1.2.3", (Network("private_network", "10.0.0.5"),))
    assert AddressResolver().resolve(m) == "54.1.2.3"


def test_skips_other_networks_and_entries_without_ip():
    m = _machine(None, (
        Network("forwarded_port"),
        Network("public_network", "172.16.0.9"),
        Network("private_network", None),
        Network("private_network", "10.0.0.7"),
    ))
    assert AddressResolver().resolve(m) == "10.0.0.7"


def test_no_address_names_the_machine():
    m = _machine("127.0.0.1", (Network("public_network", "172.16.0.9"),))
    with pytest.raises(NoAddressFound) as exc:
        AddressResolver().resolve(m)
    assert exc.value.machine == "m1"
    assert "m1" in str(exc.value)
    assert isinstance(exc.value, AddressResolutionError)
