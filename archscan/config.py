"""Optional YAML configuration for rule selection and exit thresholds."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError
from .severity import Severity
from .utils import read_yaml_file

CONFIG_ENV_VAR = "ARCHSCAN_CONFIG"
DEFAULT_CONFIG_FILENAME = ".archscan.yaml"
_KNOWN_KEYS = {"enabled_rules", "disabled_rules", "include_rules", "fail_on"}


@dataclass
class ScanConfig:
    """Settings that shape a scan run from the command line."""

    enabled_rules: Optional[Tuple[str, ...]] = None
    disabled_rules: Tuple[str, ...] = ()
    include_rules: Tuple[str, ...] = ()
    fail_on: Severity = Severity.HIGH
    source: Optional[Path] = field(default=None, compare=False)

    @classmethod
    def from_mapping(cls, data: Mapping, source: Optional[Path] = None) -> "ScanConfig":
        errors = _validate(data)
        if errors:
            joined = "\n  ".join(errors)
            raise ConfigError(f"{source or 'config'}: validation failed:\n  {joined}")
        enabled = data.get("enabled_rules")
        return cls(
            enabled_rules=None if enabled is None else tuple(enabled),
            disabled_rules=tuple(data.get("disabled_rules") or ()),
            include_rules=tuple(data.get("include_rules") or ()),
            fail_on=Severity.parse(data.get("fail_on", Severity.HIGH.value)),
            source=source,
        )


def resolve_config_path(explicit: Optional[str] = None, cwd: Optional[Path] = None) -> Optional[Path]:
    """Pick the config file: explicit flag, then environment, then working directory."""

    if explicit:
        return Path(explicit)
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)
    candidate = (cwd or Path.cwd()) / DEFAULT_CONFIG_FILENAME
    return candidate if candidate.exists() else None


def load_config(path: Optional[Path]) -> ScanConfig:
    if path is None:
        return ScanConfig()
    if not path.exists():
        raise ConfigError(f"{path}: config file not found")
    try:
        data = read_yaml_file(path)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
    if data is None:
        return ScanConfig(source=path)
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a YAML mapping at top level")
    return ScanConfig.from_mapping(data, source=path)


def _validate(data: Mapping) -> List[str]:
    errors: List[str] = []
    for key in sorted(set(data) - _KNOWN_KEYS):
        errors.append(f"unknown key '{key}'")
    for key in ("enabled_rules", "disabled_rules", "include_rules"):
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            errors.append(f"{key}: expected a list of rule ids")
    if "fail_on" in data:
        try:
            Severity.parse(data["fail_on"])
        except ValueError as exc:
            errors.append(f"fail_on: {exc}")
    return errors
