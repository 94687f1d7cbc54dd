# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/storage/workspaces.py
from __future__ import annotations

import logging
import re
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..core.exceptions import TerraSphereError
from ..core.utils import U

_ID_RE = re.compile(r"^[A-Za-z0-9-]{1,64}$")

# never persisted, even if a client sends them
_SECRET_FIELDS = ("vsphere_password", "vspherePassword", "password")


class WorkspaceNotFound(TerraSphereError):
    pass


def _strip_secrets(config: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in config.items() if k not in _SECRET_FIELDS}


class WorkspaceStore:
    """
    One JSON file per VM workspace: ``<workspaces_dir>/<id>.json``.

    Record shape:
      {id, name, createdAt, lastModified, config{}, savedTfvars?, planData?, applyData?}
    """

    def __init__(self, root: Path, logger: Optional[logging.Logger] = None):
        self.root = Path(root)
        self.logger = logger or logging.getLogger("terrasphere.workspaces")
        self._lock = threading.Lock()

    def _path(self, workspace_id: str) -> Path:
        if not workspace_id or not _ID_RE.match(workspace_id):
            raise WorkspaceNotFound(code=4, msg=f"workspace not found: {workspace_id!r}")
        return self.root / f"{workspace_id}.json"

    def list(self) -> List[Dict[str, Any]]:
        if not self.root.is_dir():
            return []
        out = []
        for p in sorted(self.root.glob("*.json")):
            try:
                ws = U.read_json(p)
            except ValueError as e:
                self.logger.warning("skipping unreadable workspace %s: %s", p.name, e)
                continue
            if isinstance(ws, dict):
                out.append(ws)
        out.sort(key=lambda w: str(w.get("lastModified") or ""), reverse=True)
        return out

    def get(self, workspace_id: str) -> Dict[str, Any]:
        ws = U.read_json(self._path(workspace_id))
        if not isinstance(ws, dict):
            raise WorkspaceNotFound(code=4, msg=f"workspace not found: {workspace_id}")
        return ws

    def create(self, name: str, config: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        name = (name or "").strip()
        if not name:
            raise TerraSphereError(code=2, msg="workspace name is required")
        now = U.now_iso()
        ws = {
            "id": str(uuid.uuid4()),
            "name": name,
            "createdAt": now,
            "lastModified": now,
            "config": _strip_secrets(config or {}),
        }
        with self._lock:
            U.write_json(self._path(ws["id"]), ws)
        self.logger.info("created workspace %s (%s)", ws["name"], ws["id"])
        return ws

    def update(self, workspace_id: str, **fields: Any) -> Dict[str, Any]:
        """Shallow update of top-level fields; id and createdAt are fixed."""
        with self._lock:
            ws = self.get(workspace_id)
            for k, v in fields.items():
                if k in ("id", "createdAt"):
                    continue
                ws[k] = _strip_secrets(v) if k == "config" and isinstance(v, Mapping) else v
            ws["lastModified"] = U.now_iso()
            U.write_json(self._path(workspace_id), ws)
        return ws

    def update_config(self, workspace_id: str, config: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Merge form values into ``config``. A ``savedTfvars`` key is lifted to
        the top-level record, where the plan step reads it.
        """
        config = dict(config)
        saved = config.pop("savedTfvars", None)
        with self._lock:
            ws = self.get(workspace_id)
            merged = dict(ws.get("config") or {})
            merged.update(_strip_secrets(config))
            ws["config"] = merged
            if saved is not None:
                ws["savedTfvars"] = saved
            ws["lastModified"] = U.now_iso()
            U.write_json(self._path(workspace_id), ws)
        return ws

    def delete(self, workspace_id: str) -> None:
        p = self._path(workspace_id)
        with self._lock:
            if not p.exists():
                raise WorkspaceNotFound(code=4, msg=f"workspace not found: {workspace_id}")
            p.unlink()
        self.logger.info("deleted workspace %s", workspace_id)
