# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/config/app_config.py
"""
Service configuration.

Precedence (lowest to highest): dataclass defaults, YAML/JSON config file,
TERRASPHERE_* environment variables, explicit overrides (CLI flags).

The resulting AppConfig is built once and passed down; vSphere credentials
are never part of it.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..core.exceptions import Fatal
from ..vmware.transports.govc_common import DEFAULT_GOVC_PATH, GovcSettings

ENV_PREFIX = "TERRASPHERE_"


@dataclass
class AppConfig:
    govc_path: str = DEFAULT_GOVC_PATH
    govc_mode: str = "native"  # native | wsl
    govc_timeout: Optional[float] = None
    insecure: bool = True

    data_dir: str = "."
    terraform_dir: str = "terraform"
    runs_dir: str = "terraform_runs"
    workspaces_dir: str = "workspaces"
    settings_file: str = "global_settings.json"
    cache_file: str = "temp/vsphere_infra_cache.json"
    terraform_bin: str = "terraform"

    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    debug: bool = False

    def path(self, name: str) -> Path:
        """Resolve one of the *_dir/*_file settings against data_dir."""
        p = Path(getattr(self, name)).expanduser()
        return p if p.is_absolute() else Path(self.data_dir).expanduser() / p

    def govc_settings(self) -> GovcSettings:
        return GovcSettings(govc_path=self.govc_path, mode=self.govc_mode, timeout=self.govc_timeout)


_BOOL_TRUE = {"1", "true", "yes", "on"}
_BOOL_FALSE = {"0", "false", "no", "off", ""}


def _coerce(name: str, value: Any, default: Any) -> Any:
    if value is None:
        return None
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        s = str(value).strip().lower()
        if s in _BOOL_TRUE:
            return True
        if s in _BOOL_FALSE:
            return False
        raise Fatal(2, f"config {name}: expected boolean, got {value!r}")
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError):
            raise Fatal(2, f"config {name}: expected integer, got {value!r}")
    if isinstance(default, list):
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return list(value)
    if name == "govc_timeout":
        try:
            return float(value)
        except (TypeError, ValueError):
            raise Fatal(2, f"config {name}: expected seconds, got {value!r}")
    return str(value)


def load_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise Fatal(2, f"config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise Fatal(2, f"cannot parse config {path}: {e}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise Fatal(2, f"config {path} must be a mapping, got {type(data).__name__}")
    return data


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    environ = os.environ if environ is None else environ
    names = {f.name for f in fields(AppConfig)}
    out: Dict[str, str] = {}
    for k, v in environ.items():
        if k.startswith(ENV_PREFIX):
            key = k[len(ENV_PREFIX):].lower()
            if key in names:
                out[key] = v
    return out


def build_config(
    config_path: Optional[str] = None,
    *,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    defaults = AppConfig()
    known = {f.name: getattr(defaults, f.name) for f in fields(AppConfig)}

    merged: Dict[str, Any] = {}
    if config_path:
        file_data = load_config_file(Path(config_path).expanduser())
        unknown = sorted(set(file_data) - set(known))
        if unknown:
            raise Fatal(2, f"unknown config keys in {config_path}: {', '.join(unknown)}")
        merged.update(file_data)

    merged.update(env_overrides(environ))
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    if merged.get("govc_mode", "native") not in ("native", "wsl"):
        raise Fatal(2, f"govc_mode must be 'native' or 'wsl', got {merged['govc_mode']!r}")

    coerced = {k: _coerce(k, v, known[k]) for k, v in merged.items() if k in known}
    return replace(defaults, **coerced)
