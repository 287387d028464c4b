# src/dcos_provision/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import paramiko
import typer

from dcos_provision.cluster.config_builder import ClusterConfigBuilder
from dcos_provision.cluster.models import INSTALL_METHODS
from dcos_provision.cluster.topology import Topology, build_topology, validate_machine_types
from dcos_provision.config.loader import ConfigLoadError, load_config_template, load_machine_types
from dcos_provision.config.models import ClusterConfig, MachineSpec
from dcos_provision.errors import InstallError, RequiredCapabilityMissing, TopologyValidationError
from dcos_provision.logging.log import init_logging
from dcos_provision.observers.dispatcher import EventBus
from dcos_provision.observers.jsonfile import JsonFileObserver
from dcos_provision.observers.logger import LoggerObserver
from dcos_provision.orchestrator.installer import InstallOptions, InstallOrchestrator
from dcos_provision.remote.channel import SshChannel


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="DC/OS installer for pre-provisioned machines")

EXIT_INSTALL_FAILED = 1
EXIT_INVALID_TOPOLOGY = 2

MachinesOption = typer.Option(
    Path("VagrantConfig.yaml"), "--machines", envvar="DCOS_MACHINE_CONFIG_PATH",
    help="Machine topology YAML",
)
TemplateOption = typer.Option(
    None, "--config-template", envvar="DCOS_CONFIG_PATH",
    help="genconf config.yaml template",
)
MethodOption = typer.Option("ssh_pull", "--install-method", envvar="DCOS_INSTALL_METHOD")
ProviderOption = typer.Option("virtualbox", "--provider", envvar="DCOS_PROVIDER")


def resolve_install_method(method: str) -> str:
    method = method.strip().lower()
    if method not in INSTALL_METHODS:
        raise typer.BadParameter(
            f"Unknown install method: {method}\n"
            f"Valid methods: {', '.join(INSTALL_METHODS)}"
        )
    return method


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def load_validated_machine_types(machines: Path) -> Dict[str, MachineSpec]:
    """
    Load the topology file; exit 2 with one stderr line per missing category.
    """
    try:
        machine_types = load_machine_types(machines)
    except (OSError, ConfigLoadError) as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(EXIT_INSTALL_FAILED)

    try:
        validate_machine_types(machine_types)
    except TopologyValidationError as e:
        for line in e.messages():
            typer.echo(line, err=True)
        raise typer.Exit(EXIT_INVALID_TOPOLOGY)
    return machine_types


def load_template(path: Optional[Path]) -> Optional[ClusterConfig]:
    if path is None:
        return None
    try:
        return load_config_template(path)
    except (OSError, ConfigLoadError) as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(EXIT_INSTALL_FAILED)


def require_ssh_key(ssh_key: Optional[Path]) -> str:
    """
    The shared SSH key is copied to the boot machine for genconf to use.
    """
    if ssh_key is None:
        raise RequiredCapabilityMissing("ssh-key", "pass --ssh-key or set DCOS_SSH_KEY")
    if not ssh_key.is_file():
        raise RequiredCapabilityMissing("ssh-key", f"{ssh_key} does not exist")
    return ssh_key.read_text()


def ssh_topology(
    machine_types: Dict[str, MachineSpec],
    *,
    ssh_user: str,
    ssh_port: int,
    ssh_key: Optional[Path],
    domain: str,
) -> Topology:
    return build_topology(
        machine_types,
        lambda name, spec: SshChannel(spec.ip, username=ssh_user, port=ssh_port, pkey_path=ssh_key),
        domain=domain,
    )


def close_channels(topology: Topology) -> None:
    for machine in topology.machines.values():
        close = getattr(machine.channel, "close", None)
        if close:
            close()


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def validate(machines: Path = MachinesOption):
    """
    Check that the topology has a boot, a master and at least one agent.
    """
    machine_types = load_validated_machine_types(machines)
    typer.echo(f"Topology OK ({len(machine_types)} machines)")


@app.command("render-config")
def render_config(
    machines: Path = MachinesOption,
    config_template: Optional[Path] = TemplateOption,
    install_method: str = MethodOption,
    provider: str = ProviderOption,
    domain: str = typer.Option("dcos", "--domain"),
):
    """
    Print the genconf config.yaml that an install would upload.
    """
    method = resolve_install_method(install_method)
    machine_types = load_validated_machine_types(machines)
    template = load_template(config_template)

    topology = ssh_topology(machine_types, ssh_user="", ssh_port=22, ssh_key=None, domain=domain)
    try:
        config = ClusterConfigBuilder().build(topology, method, provider, template=template)
    except InstallError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(EXIT_INSTALL_FAILED)
    typer.echo(config.to_yaml(), nl=False)


@app.command()
def install(
    machines: Path = MachinesOption,
    config_template: Optional[Path] = TemplateOption,
    install_method: str = MethodOption,
    provider: str = ProviderOption,
    max_install_threads: int = typer.Option(4, "--max-install-threads", envvar="DCOS_MAX_INSTALL_THREADS"),
    postflight_timeout: int = typer.Option(900, "--postflight-timeout", min=1, envvar="DCOS_POSTFLIGHT_TIMEOUT_SECONDS"),
    ssh_user: str = typer.Option("vagrant", "--ssh-user", envvar="DCOS_SSH_USER"),
    ssh_port: int = typer.Option(22, "--ssh-port"),
    ssh_key: Optional[Path] = typer.Option(None, "--ssh-key", envvar="DCOS_SSH_KEY"),
    shared_mount: str = typer.Option("/vagrant", "--shared-mount"),
    domain: str = typer.Option("dcos", "--domain"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir"),
    debug: bool = typer.Option(False, "--debug"),
):
    """
    Generate the cluster config, push it to the boot machine and install DC/OS.
    """
    method = resolve_install_method(install_method)
    machine_types = load_validated_machine_types(machines)
    template = load_template(config_template)

    try:
        key_content = require_ssh_key(ssh_key)
    except RequiredCapabilityMissing as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(EXIT_INSTALL_FAILED)

    logger, run_id, log_path = init_logging(base_dir=log_dir, verbose=debug)
    bus = EventBus(
        observers=[
            LoggerObserver(logger),
            JsonFileObserver(log_path.parent / f"{run_id}.jsonl"),
        ]
    )

    topology = ssh_topology(
        machine_types, ssh_user=ssh_user, ssh_port=ssh_port, ssh_key=ssh_key, domain=domain
    )
    options = InstallOptions(
        install_method=method,
        provider=provider,
        max_install_threads=max_install_threads,
        postflight_timeout_seconds=postflight_timeout,
        shared_mount=shared_mount,
        ssh_key=key_content,
    )

    try:
        outcome = InstallOrchestrator(
            topology, options, template=template, bus=bus, run_id=run_id
        ).run()
    except (InstallError, paramiko.SSHException, OSError) as e:
        logger.error("Installation failed: %s", e)
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(EXIT_INSTALL_FAILED)
    finally:
        close_channels(topology)

    typer.echo(outcome.address)


if __name__ == "__main__":
    app()
