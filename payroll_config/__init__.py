"""
Payroll engine configuration.

``PayrollEngineConfig`` holds every policy constant the calculator and
batch runner use.  Build it in code, from a dict, or from YAML:

    from payroll_config import PayrollEngineConfig, load_engine_config

    config = load_engine_config("config/payroll.yaml")
"""

from payroll_config.loader import compute_checksum, load_engine_config, load_yaml_file
from payroll_config.schema import (
    DEFAULT_TAX_BRACKETS,
    AttendancePolicy,
    FallbackAttendance,
    PayrollEngineConfig,
    TaxBracket,
)

__all__ = [
    "AttendancePolicy",
    "DEFAULT_TAX_BRACKETS",
    "FallbackAttendance",
    "PayrollEngineConfig",
    "TaxBracket",
    "compute_checksum",
    "load_engine_config",
    "load_yaml_file",
]
