# src/dcos_provision/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single install invocation
    method: str       # ssh_push / ssh_pull / web
    provider: str     # virtualbox / aws / ...

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(method: str, provider: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "run_id": run_id or str(uuid.uuid4()),
        "method": method,
        "provider": provider,
    }


# ---------------------------------------------------------------------
# Orchestrator state machine
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StateChanged(BaseEvent):
    previous: str
    state: str

@dataclass(frozen=True)
class ConfigGenerated(BaseEvent):
    master_list: List[str]
    agent_list: List[str]
    bootstrap_url: str

@dataclass(frozen=True)
class ConfigDistributed(BaseEvent):
    machine: str
    paths: List[str]


# ---------------------------------------------------------------------
# Executor phases
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class PhaseStarted(BaseEvent):
    phase: str
    tasks: List[str]
    workers: int

@dataclass(frozen=True)
class TaskSucceeded(BaseEvent):
    phase: str
    task: str
    machine: str
    duration_ms: int

@dataclass(frozen=True)
class TaskFailed(BaseEvent):
    phase: str
    task: str
    machine: str
    error: str

@dataclass(frozen=True)
class PhaseCompleted(BaseEvent):
    phase: str
    ok: int
    failed: int


# ---------------------------------------------------------------------
# Readiness
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ProbeAttempt(BaseEvent):
    address: str
    attempt: int

@dataclass(frozen=True)
class InstallerReady(BaseEvent):
    address: str
    attempts: int

@dataclass(frozen=True)
class InstallerTimedOut(BaseEvent):
    address: str
    timeout_s: float


# ---------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class InstallSummary(BaseEvent):
    state: str
    status: str          # "OK" | "FAILED"
    address: Optional[str] = None
    error: Optional[str] = None
