# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/integrations/aap.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests
import urllib3

from ..core.exceptions import IntegrationError


class AapClient:
    """Ansible Automation Platform controller (api/v2), bearer token auth."""

    def __init__(
        self,
        api_url: str,
        token: str,
        *,
        verify: bool = False,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if not api_url or not token:
            raise IntegrationError("AAP API URL and token must be configured in settings", status_code=400)
        base = api_url.rstrip("/")
        # settings may hold either the controller root or the .../api/v2 base
        self.api_url = base if base.endswith("/api/v2") else f"{base}/api/v2"
        self.timeout = timeout
        self.logger = logger or logging.getLogger("terrasphere.aap")
        self.session = session or requests.Session()
        self.session.verify = verify
        self.session.headers.update({"Authorization": f"Bearer {token}", "Accept": "application/json"})
        if not verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def _request(self, method: str, path: str, **kw: Any) -> Any:
        url = f"{self.api_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kw)
        except requests.RequestException as e:
            raise IntegrationError(f"AAP request failed: {e}", cause=e) from e
        if not 200 <= r.status_code < 300:
            raise IntegrationError(
                f"AAP {method} {path} returned {r.status_code}: {r.text[:300]}",
                status_code=r.status_code,
            )
        return r.json() if r.content else {}

    def job_templates(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        path: Optional[str] = "/job_templates/?page_size=100"
        while path:
            data = self._request("GET", path)
            for t in data.get("results") or []:
                out.append({"id": t.get("id"), "name": t.get("name"), "description": t.get("description", "")})
            nxt = data.get("next")
            # "next" is a server-relative URL including the /api/v2 prefix
            path = nxt.split("/api/v2", 1)[-1] if nxt else None
        return out

    def launch(
        self,
        template_id: int,
        *,
        extra_vars: Optional[Mapping[str, Any]] = None,
        limit: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if extra_vars:
            body["extra_vars"] = dict(extra_vars)
        if limit:
            body["limit"] = limit
        self.logger.info("launching AAP job template %s (limit=%s)", template_id, limit)
        data = self._request("POST", f"/job_templates/{int(template_id)}/launch/", json=body)
        return {"id": data.get("job") or data.get("id"), "status": data.get("status", "launched"), "raw": data}

    def job(self, job_id: int) -> Dict[str, Any]:
        data = self._request("GET", f"/jobs/{int(job_id)}/")
        return {
            "id": data.get("id"),
            "status": data.get("status"),
            "failed": data.get("failed"),
            "started": data.get("started"),
            "finished": data.get("finished"),
        }
