# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dcos_provision/errors.py
from __future__ import annotations

from typing import List, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from dcos_provision.deploy.executor import TaskFailure


class InstallError(RuntimeError):
    """Base class for every failure that terminates an install run."""


class TopologyValidationError(InstallError):
    """Raised when a required machine category is missing from the topology."""

    def __init__(self, missing: Sequence[str]):
        self.missing: List[str] = list(missing)
        super().__init__("; ".join(self.messages()))

    def messages(self) -> List[str]:
        return [f"Must have at least one machine of type {category}" for category in self.missing]


class AddressResolutionError(InstallError):
    """Raised when a machine has no address usable by the rest of the cluster."""


class NoAddressFound(AddressResolutionError):
    def __init__(self, machine: str):
        self.machine = machine
        super().__init__(f"Failed to find IP address of machine: {machine}")


class ConfigDistributionError(InstallError):
    """Raised when config or bootstrap material cannot be written to the boot machine."""


class RemoteCommandError(InstallError):
    def __init__(self, machine: str, command: str, exit_status: int):
        self.machine = machine
        self.command = command
        self.exit_status = exit_status
        first_line = command.strip().splitlines()[0] if command.strip() else command
        super().__init__(
            f"Remote command failed on {machine} with exit code {exit_status}: {first_line}"
        )


class PhaseExecutionError(InstallError):
    """
    Aggregate of every task failure in one orchestration phase.
    """

    def __init__(self, phase: str, failures: Sequence["TaskFailure"]):
        self.phase = phase
        self.failures = list(failures)
        lines = [f"{len(self.failures)} task(s) failed during {phase}:"]
        for failure in self.failures:
            lines.append(f"  - {failure.machine}: {failure.error}")
        super().__init__("\n".join(lines))


class ReadinessTimeoutError(InstallError):
    def __init__(self, message: str, *, timeout: float, attempts: int):
        self.timeout = timeout
        self.attempts = attempts
        super().__init__(message)


class RequiredCapabilityMissing(InstallError):
    def __init__(self, capability: str, detail: str = ""):
        self.capability = capability
        msg = f"Required capability missing: {capability}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)
