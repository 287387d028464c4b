# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dcos_provision/orchestrator/installer.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from dcos_provision.cluster.addresses import AddressResolver
from dcos_provision.cluster.config_builder import ClusterConfigBuilder
from dcos_provision.cluster.models import Machine
from dcos_provision.cluster.topology import Topology
from dcos_provision.config.models import ClusterConfig
from dcos_provision.deploy.executor import InstallTask, RunResult, TaskExecutor
from dcos_provision.errors import (
    ConfigDistributionError,
    InstallError,
    PhaseExecutionError,
    ReadinessTimeoutError,
)
from dcos_provision.observers.dispatcher import EventBus
from dcos_provision.observers.events import (
    ConfigDistributed,
    ConfigGenerated,
    InstallerReady,
    InstallerTimedOut,
    InstallSummary,
    ProbeAttempt,
    StateChanged,
    new_ctx,
)
from dcos_provision.orchestrator import scripts
from dcos_provision.remote.commands import remote_sudo, write_remote_file
from dcos_provision.utils.poller import PROBE_ERRORS, probe_address, wait_until_ready

log = logging.getLogger("dcos_provision")

# Paths on the boot machine. Commands run through `sudo -H`, so ~ is root's home.
DCOS_DIR = "~/dcos"
SERVICE_DCOS_DIR = "/root/dcos"
GENCONF_DIR = f"{DCOS_DIR}/genconf"
CONFIG_PATH = f"{GENCONF_DIR}/config.yaml"
IP_DETECT_PATH = f"{GENCONF_DIR}/ip-detect"
SSH_KEY_PATH = f"{GENCONF_DIR}/ssh_key"
GENERATE_CMD = f"cd {DCOS_DIR} && bash {DCOS_DIR}/dcos_generate_config.sh"
SERVE_DIR = "/var/tmp/dcos"

INSTALLER_START_PATH = "/usr/local/bin/dcos-installer"
INSTALLER_SERVICE_PATH = "/etc/systemd/system/dcos-installer.service"
INSTALLER_PORT = 9000

POSTFLIGHT_PATH = "/opt/mesosphere/bin/postflight.sh"

ROLE_LABELS = {
    "master": "master",
    "slave": "agent",
    "slave_public": "agent-public",
}


class InstallState(str, Enum):
    PENDING = "pending"
    CONFIG_GENERATED = "config_generated"
    DISTRIBUTED = "distributed"
    DEPLOYED = "deployed"
    POSTFLIGHT_VERIFIED = "postflight_verified"
    COMPLETE = "complete"
    FAILED = "failed"


_STATE_ORDER = [
    InstallState.PENDING,
    InstallState.CONFIG_GENERATED,
    InstallState.DISTRIBUTED,
    InstallState.DEPLOYED,
    InstallState.POSTFLIGHT_VERIFIED,
    InstallState.COMPLETE,
]


@dataclass
class InstallOptions:
    install_method: str = "ssh_pull"
    provider: str = "virtualbox"
    max_install_threads: int = 4
    postflight_timeout_seconds: int = 900
    installer_timeout_seconds: float = 120.0
    installer_interval_seconds: float = 5.0
    shared_mount: str = "/vagrant"
    # private key contents for genconf/ssh_key; None copies it from the shared mount
    ssh_key: Optional[str] = None


@dataclass
class InstallOutcome:
    state: InstallState
    method: str
    address: Optional[str]
    results: List[RunResult] = field(default_factory=list)


class InstallOrchestrator:
    """
    Drives one install run:

      config generated -> distributed -> deployed(method) -> postflight verified -> complete

    Any failure is terminal; install steps are never retried. The only
    retries are readiness polls.
    """

    def __init__(
        self,
        topology: Topology,
        options: InstallOptions,
        *,
        template: Optional[ClusterConfig] = None,
        resolver: Optional[AddressResolver] = None,
        executor_factory: Optional[Callable[[Callable[[InstallTask], Any]], TaskExecutor]] = None,
        probe: Callable[[str], bool] = probe_address,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.topology = topology
        self.options = options
        self.template = template
        self.resolver = resolver or AddressResolver()
        self.builder = ClusterConfigBuilder(self.resolver)
        self.bus = bus or EventBus()
        self.run_ctx: Dict[str, Any] = new_ctx(options.install_method, options.provider, run_id)
        self.executor_factory = executor_factory or (
            lambda handler: TaskExecutor(handler, bus=self.bus, run_ctx=self.run_ctx)
        )
        self.probe = probe
        self.clock = clock
        self.sleep = sleep

        self.state = InstallState.PENDING
        self.config: Optional[ClusterConfig] = None
        self.results: List[RunResult] = []

    # ------------------ state ------------------

    def _advance(self, state: InstallState) -> None:
        if _STATE_ORDER.index(state) <= _STATE_ORDER.index(self.state):
            raise InstallError(f"Illegal transition {self.state.value} -> {state.value}")
        log.debug("state %s -> %s", self.state.value, state.value)
        self.bus.emit(StateChanged(previous=self.state.value, state=state.value, **self.run_ctx))
        self.state = state

    def _host(self, machine: Machine) -> str:
        return machine.hostname or self.resolver.resolve(machine)

    # ------------------ public API ------------------

    def run(self) -> InstallOutcome:
        method = self.options.install_method
        log.info("Installing DC/OS with method %s (%d machines)", method, len(self.topology.machines))
        try:
            config_yaml = self.generate_config()
            self.distribute(config_yaml)

            if method == "web":
                address = self.deploy_web()
            else:
                self.generate_installer_files()
                if method == "ssh_push":
                    self.deploy_push()
                elif method == "ssh_pull":
                    self.deploy_pull()
                else:
                    raise InstallError(f"Unknown install method: {method}")
                self._advance(InstallState.COMPLETE)
                address = f"http://{self._host(self.topology.masters[0])}/"
                log.info("DC/OS Installation Complete\nWeb Interface: %s", address)
        except Exception as exc:
            previous = self.state
            self.state = InstallState.FAILED
            log.error("Install failed after state %s: %s", previous.value, exc)
            self.bus.emit(InstallSummary(state=previous.value, status="FAILED", error=str(exc), **self.run_ctx))
            raise

        self.bus.emit(InstallSummary(state=self.state.value, status="OK", address=address, **self.run_ctx))
        return InstallOutcome(state=self.state, method=method, address=address, results=list(self.results))

    # ------------------ steps ------------------

    def generate_config(self) -> str:
        log.info("Analyzing machines")
        config = self.builder.build(
            self.topology,
            self.options.install_method,
            self.options.provider,
            template=self.template,
        )
        self.config = config
        self.bus.emit(
            ConfigGenerated(
                master_list=list(config.master_list),
                agent_list=list(config.agent_list),
                bootstrap_url=config.bootstrap_url or "",
                **self.run_ctx,
            )
        )
        self._advance(InstallState.CONFIG_GENERATED)
        return config.to_yaml()

    def distribute(self, config_yaml: str) -> None:
        boot = self.topology.boot
        master_ip = self.config.master_list[0]
        try:
            remote_sudo(boot, f"mkdir -p {GENCONF_DIR}")

            log.info("[%s] Generating Configuration: %s", boot.name, CONFIG_PATH)
            write_remote_file(boot, CONFIG_PATH, config_yaml)

            log.info("[%s] Generating IP Detection Script: %s", boot.name, IP_DETECT_PATH)
            write_remote_file(boot, IP_DETECT_PATH, scripts.ip_detect_script(master_ip))

            log.info("[%s] Importing Private SSH Key: %s", boot.name, SSH_KEY_PATH)
            if self.options.ssh_key is not None:
                write_remote_file(boot, SSH_KEY_PATH, self.options.ssh_key, mode="600")
            else:
                shared_key = f"{self.options.shared_mount}/.vagrant/dcos/private_key_vagrant"
                remote_sudo(boot, f"cp {shared_key} {SSH_KEY_PATH}")
        except Exception as exc:
            raise ConfigDistributionError(f"Failed to distribute config to {boot.name}: {exc}") from exc

        self.bus.emit(
            ConfigDistributed(machine=boot.name, paths=[CONFIG_PATH, IP_DETECT_PATH, SSH_KEY_PATH], **self.run_ctx)
        )
        self._advance(InstallState.DISTRIBUTED)

    def generate_installer_files(self) -> None:
        boot = self.topology.boot
        log.info("[%s] Generating DC/OS Installer Files: %s/serve/", boot.name, GENCONF_DIR)
        remote_sudo(boot, f"{GENERATE_CMD} --genconf && cp -rpv {GENCONF_DIR}/serve/* {SERVE_DIR}/")

    # ------------------ web ------------------

    def deploy_web(self) -> str:
        boot = self.topology.boot
        mount_dir = f"{self.options.shared_mount}/dcos"

        # so the user can upload them to the web ui
        remote_sudo(boot, f"mkdir -p {mount_dir}")
        remote_sudo(boot, f"mv {CONFIG_PATH} {mount_dir}/config.yaml")
        remote_sudo(boot, f"mv {IP_DETECT_PATH} {mount_dir}/ip-detect")

        self.start_web_installer(boot)

        # polled from this workstation, where only the machine IPs resolve
        address = f"http://{self.resolver.resolve(boot)}:{INSTALLER_PORT}"
        try:
            attempts = wait_until_ready(
                lambda: self.probe(address),
                timeout=self.options.installer_timeout_seconds,
                interval=self.options.installer_interval_seconds,
                transient=PROBE_ERRORS,
                on_attempt=lambda n: self.bus.emit(ProbeAttempt(address=address, attempt=n, **self.run_ctx)),
                description=address,
                clock=self.clock,
                sleep=self.sleep,
            )
        except ReadinessTimeoutError as exc:
            log.error("Timed out waiting for the Web Installer to start")
            remote_sudo(boot, "systemctl status dcos-installer", check=False)
            self.bus.emit(InstallerTimedOut(address=address, timeout_s=exc.timeout, **self.run_ctx))
            raise ReadinessTimeoutError(
                "Timed out waiting for the Web Installer to start",
                timeout=exc.timeout,
                attempts=exc.attempts,
            ) from exc

        self.bus.emit(InstallerReady(address=address, attempts=attempts, **self.run_ctx))
        self._advance(InstallState.DEPLOYED)
        log.info("DC/OS Web Installer Available: %s", address)
        log.info("Example config: dcos/config.yaml")
        log.info("Example ip-detect: dcos/ip-detect")
        return address

    def start_web_installer(self, boot: Machine) -> None:
        log.info("[%s] Generating Installer Script: %s", boot.name, INSTALLER_START_PATH)
        write_remote_file(
            boot, INSTALLER_START_PATH, scripts.installer_start_script(SERVICE_DCOS_DIR), mode="u+x"
        )

        log.info("[%s] Generating Installer Service: %s", boot.name, INSTALLER_SERVICE_PATH)
        write_remote_file(boot, INSTALLER_SERVICE_PATH, scripts.installer_service_unit(INSTALLER_START_PATH))
        remote_sudo(boot, "systemctl daemon-reload && systemctl enable dcos-installer")

        log.info("[%s] Starting Installer Service", boot.name)
        remote_sudo(boot, "systemctl start dcos-installer")

    # ------------------ ssh_push ------------------

    def deploy_push(self) -> None:
        boot = self.topology.boot
        for step in ("--preflight", "--deploy", "--postflight"):
            remote_sudo(boot, f"{GENERATE_CMD} {step}")
        self._advance(InstallState.DEPLOYED)

    # ------------------ ssh_pull ------------------

    def deploy_pull(self) -> None:
        topo = self.topology

        self._run_phase(
            "install-masters",
            [InstallTask(m, "install", "master") for m in topo.masters],
        )
        self._run_phase(
            "install-agents",
            [InstallTask(m, "install", "slave") for m in topo.by_role("agent-private")]
            + [InstallTask(m, "install", "slave_public") for m in topo.by_role("agent-public")],
        )
        self._advance(InstallState.DEPLOYED)

        self._run_phase(
            "postflight",
            [InstallTask(m, "postflight") for m in topo.masters + topo.agents],
        )
        self._advance(InstallState.POSTFLIGHT_VERIFIED)

    def _run_phase(self, phase: str, tasks: List[InstallTask]) -> RunResult:
        executor = self.executor_factory(self._handle)
        result = executor.run(tasks, self.options.max_install_threads, phase=phase)
        self.results.append(result)
        if not result.ok:
            raise PhaseExecutionError(phase, result.failures)
        return result

    def _handle(self, task: InstallTask) -> None:
        if task.kind == "install":
            self.install_node(task.machine, task.role_argument)
        elif task.kind == "postflight":
            self.postflight_node(task.machine)
        else:
            raise InstallError(f"Unknown task kind: {task.kind}")

    def install_node(self, machine: Machine, role_argument: str) -> None:
        log.info("[%s] Installing DC/OS (%s)", machine.name, ROLE_LABELS.get(role_argument, role_argument))
        url = f"{self.config.bootstrap_url}/dcos_install.sh"
        remote_sudo(
            machine,
            f'bash -c "curl --fail --location --silent --show-error --verbose {url} | bash -s -- {role_argument}"',
        )

    def postflight_node(self, machine: Machine) -> None:
        log.info("[%s] DC/OS Postflight", machine.name)
        log.info("[%s] Generating Postflight Script: %s", machine.name, POSTFLIGHT_PATH)
        write_remote_file(
            machine,
            POSTFLIGHT_PATH,
            scripts.postflight_script(self.options.postflight_timeout_seconds),
            mode="u+x",
        )
        remote_sudo(machine, POSTFLIGHT_PATH)
