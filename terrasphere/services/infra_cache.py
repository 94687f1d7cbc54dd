# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/services/infra_cache.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..core.exceptions import VMwareError
from ..core.logging_utils import log_step
from ..core.utils import U
from ..vmware.clients.rest_client import VsphereRestClient


class InfraCache:
    """
    Snapshot of the vSphere hierarchy used to fill form dropdowns.

    Shape written to disk:
      {timestamp, vsphere_server,
       datacenters: [...],
       clusters: {dc_id: [...]},
       datastoreClusters: {cluster_id: [...]},
       networks: {cluster_id: [...]}}
    """

    def __init__(self, path: Path, logger: Optional[logging.Logger] = None):
        self.path = Path(path)
        self.logger = logger or logging.getLogger("terrasphere.cache")

    def refresh(self, client: VsphereRestClient) -> Dict[str, Any]:
        """Walk datacenters -> clusters -> (datastore clusters, networks) and persist."""
        snap: Dict[str, Any] = {
            "timestamp": U.now_iso(),
            "vsphere_server": client.connection.server,
            "datacenters": [],
            "clusters": {},
            "datastoreClusters": {},
            "networks": {},
        }
        with log_step(self.logger, f"caching vSphere inventory from {client.connection.server}"):
            snap["datacenters"] = client.datacenters()
            for dc in snap["datacenters"]:
                dc_id = dc.get("datacenter")
                clusters = client.clusters(dc_id) if dc_id else []
                snap["clusters"][dc_id] = clusters
                for cl in clusters:
                    cl_id = cl.get("cluster")
                    if not cl_id:
                        continue
                    try:
                        snap["datastoreClusters"][cl_id] = client.datastore_clusters(cl_id)
                    except VMwareError as e:
                        self.logger.warning("datastore clusters for %s failed: %s", cl.get("name", cl_id), e)
                        snap["datastoreClusters"][cl_id] = []
                    try:
                        snap["networks"][cl_id] = client.networks(cl_id)
                    except VMwareError as e:
                        self.logger.warning("networks for %s failed: %s", cl.get("name", cl_id), e)
                        snap["networks"][cl_id] = []

        U.write_json(self.path, snap)
        self.logger.info("vSphere inventory cached to %s", self.path)
        return snap

    def load(self) -> Optional[Dict[str, Any]]:
        try:
            return U.read_json(self.path)
        except ValueError as e:
            self.logger.warning("ignoring corrupt cache %s: %s", self.path, e)
            return None
