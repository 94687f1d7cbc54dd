# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/storage/settings.py
from __future__ import annotations

import copy
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..core.utils import U

DEFAULT_SETTINGS: Dict[str, Any] = {
    "vsphere": {"user": "", "server": ""},
    "netbox": {"url": "", "token": "", "prefix_id": ""},
    "aap": {"api_url": "", "api_token": "", "default_template_id": ""},
    "satellite": {"url": "", "username": ""},
    "lastUpdated": None,
}

# passwords are entered per request and never written to disk
_NEVER_STORED = ("password", "vsphere_password")


def deep_merge(base: Dict[str, Any], extra: Mapping[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in extra.items():
        if isinstance(v, Mapping) and isinstance(out.get(k), dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


def _drop_passwords(d: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in d.items():
        if k in _NEVER_STORED:
            continue
        out[k] = _drop_passwords(v) if isinstance(v, Mapping) else v
    return out


class SettingsStore:
    """Global settings file; sections missing on disk are filled from DEFAULT_SETTINGS."""

    def __init__(self, path: Path, logger: Optional[logging.Logger] = None):
        self.path = Path(path)
        self.logger = logger or logging.getLogger("terrasphere.settings")
        self._lock = threading.Lock()

    def load(self) -> Dict[str, Any]:
        try:
            data = U.read_json(self.path, default={})
        except ValueError as e:
            self.logger.warning("settings file %s is not valid JSON, using defaults: %s", self.path, e)
            data = {}
        if not isinstance(data, dict):
            data = {}
        return deep_merge(DEFAULT_SETTINGS, data)

    def update(self, changes: Mapping[str, Any]) -> Dict[str, Any]:
        with self._lock:
            merged = deep_merge(self.load(), _drop_passwords(changes))
            merged["lastUpdated"] = U.now_iso()
            U.write_json(self.path, merged)
        self.logger.info("settings saved to %s", self.path)
        return merged
