from pathlib import Path
import textwrap

import pytest

from dcos_provision.config.loader import ConfigLoadError, load_config_template, load_machine_types


def test_load_machine_types_keeps_file_order(tmp_path: Path):
    f = tmp_path / "VagrantConfig.yaml"
    f.write_text(textwrap.dedent("""
        m1:
          ip: 192.168.65.90
          cpus: 2
          memory: 3072
          type: master
        a1:
          ip: 192.168.65.111
          type: agent-private
        boot:
          ip: 192.168.65.50
          type: boot
          aliases: [boot.dcos]
    """))
    types = load_machine_types(f)

    assert list(types) == ["m1", "a1", "boot"]
    assert types["m1"].memory == 3072
    assert types["boot"].aliases == ["boot.dcos"]
    assert types["a1"].cpus is None


def test_unknown_machine_type_is_rejected(tmp_path: Path):
    f = tmp_path / "VagrantConfig.yaml"
    f.write_text("x1:\n  ip: 10.0.0.1\n  type: worker\n")
    with pytest.raises(ConfigLoadError, match="x1"):
        load_machine_types(f)


def test_template_expands_env_and_keeps_extra_keys(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("DCOS_CLUSTER_NAME", "vagrant-cluster")
    f = tmp_path / "config.yaml"
    f.write_text(textwrap.dedent("""
        cluster_name: ${DCOS_CLUSTER_NAME}
        master_discovery: static
        ssh_port: 22
        ssh_user: vagrant
        resolvers:
          - 10.0.2.3
    """))
    template = load_config_template(f)

    dumped = template.to_dict()
    assert dumped["cluster_name"] == "vagrant-cluster"
    assert dumped["ssh_port"] == 22
    assert template.resolvers == ["10.0.2.3"]
    assert template.master_list == []


def test_non_mapping_file_is_rejected(tmp_path: Path):
    f = tmp_path / "config.yaml"
    f.write_text("- just\n- a list\n")
    with pytest.raises(ConfigLoadError):
        load_config_template(f)
