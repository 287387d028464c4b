# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dcos_provision/config/loader.py

import logging
import os
from pathlib import Path
from typing import Dict

import yaml
from pydantic import ValidationError

from .models import ClusterConfig, MachineSpec

log = logging.getLogger("dcos_provision")


class ConfigLoadError(ValueError):
    pass


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    data = yaml.safe_load(expanded) or {}
    if not isinstance(data, dict):
        raise ConfigLoadError(f"{path}: expected a mapping at the top level")
    return data


def load_machine_types(path: str | Path) -> Dict[str, MachineSpec]:
    """
    Load the machine topology file: a mapping of machine name to
    ``{type, ip, cpus?, memory?, box?, aliases?}``. File order is kept.
    """
    path = Path(path)
    data = _load_yaml(path)

    machine_types: Dict[str, MachineSpec] = {}
    for name, record in data.items():
        try:
            machine_types[str(name)] = MachineSpec.model_validate(record or {})
        except ValidationError as e:
            raise ConfigLoadError(f"{path}: invalid machine '{name}': {e}") from e

    log.debug("Loaded %d machine types from %s", len(machine_types), path)
    return machine_types


def load_config_template(path: str | Path) -> ClusterConfig:
    """
    Load a genconf config template. Computed keys present in the template
    are kept only where the builder treats them as defaults (resolvers).
    """
    path = Path(path)
    data = _load_yaml(path)
    try:
        return ClusterConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigLoadError(f"{path}: invalid config template: {e}") from e
