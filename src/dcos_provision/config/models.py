# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dcos_provision/config/models.py

from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field


class MachineSpec(BaseModel):
    """One entry of the machine topology file."""

    type: Literal["boot", "master", "agent-private", "agent-public"]
    ip: str
    cpus: Optional[int] = None
    memory: Optional[int] = None
    box: Optional[str] = None
    aliases: List[str] = Field(default_factory=list)


class ClusterConfig(BaseModel):
    """
    The genconf config.yaml document.

    Keys the installer does not compute (cluster_name, ssh_user,
    master_discovery, ...) come from the template and are kept as-is.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    master_list: List[str] = Field(default_factory=list)
    agent_list: List[str] = Field(default_factory=list)
    bootstrap_url: Optional[str] = None
    exhibitor_zk_hosts: Optional[str] = None
    resolvers: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    @classmethod
    def from_yaml(cls, text: str) -> "ClusterConfig":
        return cls.model_validate(yaml.safe_load(text) or {})
