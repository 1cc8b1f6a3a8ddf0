"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Reads a YAML engine-configuration file and turns it into a validated
``PayrollEngineConfig``.  Used by the run script and by deployments that
keep payroll policy in version-controlled YAML.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends only on
``payroll_config.schema`` and the kernel exception/logging modules; no
engine or module code imports it.

Invariants enforced
-------------------
* Every parsed configuration is a frozen ``PayrollEngineConfig``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Top-level document not a mapping  -> ``PayrollConfigError``.
* Unknown or invalid keys  -> ``PayrollConfigError`` from the schema.

Example file::

    standard_working_days: 26
    default_pf_percentage: 12
    attendance_policy: zero
    tax_brackets:
      - {upper_limit: 300000, rate: 0}
      - {upper_limit: 600000, rate: 0.05}
      - {rate: 0.10}
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import PayrollEngineConfig
from payroll_kernel.exceptions import PayrollConfigError
from payroll_kernel.logging_config import get_logger

logger = get_logger("config.loader")

# Optional wrapper key so the engine section can live inside a larger file.
ENGINE_SECTION = "payroll_engine"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_engine_config(path: Path | str) -> PayrollEngineConfig:
    """
    Load a ``PayrollEngineConfig`` from a YAML file.

    The document may either hold the engine keys at the top level or nest
    them under a ``payroll_engine`` mapping.  An empty file yields the
    defaults.
    """
    path = Path(path)
    data = load_yaml_file(path)
    if not isinstance(data, dict):
        raise PayrollConfigError(str(path), "top-level YAML document must be a mapping")

    section = data.get(ENGINE_SECTION, data)
    if not isinstance(section, dict):
        raise PayrollConfigError(ENGINE_SECTION, "must be a mapping")

    config = PayrollEngineConfig.from_dict(section)
    logger.info(
        "payroll_engine_config_loaded",
        extra={
            "path": str(path),
            "checksum": compute_checksum(section),
            "attendance_policy": config.attendance_policy.value,
        },
    )
    return config


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums regardless of
    key order.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
