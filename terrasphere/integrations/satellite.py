# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/integrations/satellite.py
from __future__ import annotations

import json
import logging
import math
import shlex
from typing import Any, Dict, List, Optional

import requests
import urllib3

from ..core.exceptions import IntegrationError

PER_PAGE = 100
TIMEOUT = 10.0


class SatelliteClient:
    """Red Hat Satellite (Foreman API v2) host groups and host registration."""

    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        *,
        verify: bool = False,
        timeout: float = TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if not url:
            raise IntegrationError("Satellite URL not configured", status_code=400)
        if not username or not password:
            raise IntegrationError("Satellite credentials not configured", status_code=400)
        self.url = url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self.logger = logger or logging.getLogger("terrasphere.satellite")
        self.session = session or requests.Session()
        self.session.verify = verify
        self.session.auth = (username, password)
        self.session.headers.update({"Accept": "application/json"})
        if not verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            r = self.session.get(f"{self.url}{path}", params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise IntegrationError(f"Failed to connect to Satellite: {e}", cause=e) from e
        if not 200 <= r.status_code < 300:
            raise IntegrationError(
                f"Satellite API returned status {r.status_code}: {r.text[:300]}",
                status_code=r.status_code,
            )
        try:
            return r.json()
        except ValueError as e:
            raise IntegrationError(f"Failed to parse Satellite response: {e}", cause=e) from e

    def host_groups(self) -> List[Dict[str, Any]]:
        """
        All host groups across pages. ``name`` is the full title path
        (e.g. ``App_Hosting/Development``); ``short_name`` the leaf.
        """
        raw: List[Dict[str, Any]] = []
        page, total_pages = 1, 1
        while page <= total_pages:
            data = self._get("/api/v2/hostgroups", {"per_page": PER_PAGE, "page": page})
            raw.extend(data.get("results") or [])
            per_page = data.get("per_page") or PER_PAGE
            total_pages = max(1, math.ceil((data.get("total") or 0) / per_page))
            self.logger.debug("host groups page %d/%d", page, total_pages)
            page += 1

        self.logger.info("fetched %d Satellite host groups", len(raw))
        out = []
        for hg in raw:
            full = hg.get("title") or hg.get("name")
            out.append({"id": hg.get("id"), "name": full, "description": full, "short_name": hg.get("name")})
        return out

    def registration_command(self, host_group: Any, hostname: str) -> str:
        """curl command that registers ``hostname`` into ``host_group`` (id or {id: ...})."""
        if not host_group or not hostname:
            raise IntegrationError("Host group and hostname are required", status_code=400)
        hg_id = host_group.get("id") if isinstance(host_group, dict) else host_group
        body = {
            "host": {
                "name": hostname,
                "hostgroup_id": hg_id,
                "build": False,
                "enabled": True,
                "managed": True,
                "provision_method": "build",
            }
        }
        return (
            f"curl -X POST {shlex.quote(self.url + '/api/v2/hosts')} \\\n"
            '  -H "Content-Type: application/json" \\\n'
            '  -H "Accept: application/json" \\\n'
            f"  -u {shlex.quote(self.username + ':' + self.password)} \\\n"
            "  -k \\\n"
            f"  -d {shlex.quote(json.dumps(body, indent=2))}"
        )
