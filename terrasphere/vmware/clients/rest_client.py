# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/vmware/clients/rest_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import quote

import requests
import urllib3

from ...core.exceptions import VMwareError, wrap_vmware
from ..vsphere.datastore_clusters import (
    DATASTORE_CLUSTER_TYPE,
    derive_datastore_clusters,
    group_by_parent,
)
from ..vsphere.errors import ErrorKind
from ..vsphere.formats import ConnectionDetails, has_scheme

SESSION_COOKIE = "vmware-api-session-id"
SESSION_HEADER = "vmware-api-session-id"

# vCenter releases expose storage pods under different paths (and some not at
# all); tried in order until one returns items. {cluster} is substituted.
DATASTORE_CLUSTER_ENDPOINTS: Tuple[str, ...] = (
    "/rest/vcenter/datastore-cluster?filter.clusters={cluster}",
    "/rest/vcenter/datastore-cluster",
    "/rest/vcenter/storage-pod?filter.clusters={cluster}",
    "/rest/vcenter/storage-pod",
    "/rest/vcenter/storage/pods",
    "/rest/vcenter/storage/pods?~action=list",
    "/rest/vcenter/storage-management/datastore-clusters",
    "/rest/vcenter/inventory/datastore-cluster",
    "/rest/vcenter/datacenter/{cluster}/datastore-clusters",
    "/rest/vcenter/datacenter/datastore-clusters?filter.clusters={cluster}",
    "/rest/vcenter/datastore-cluster?filter.names=*",
    "/rest/vcenter/storage-pod?filter.names=*",
    "/api/v1/vcenter/storage-pod",
    "/api/v1/vcenter/datastore-cluster",
)
PROBE_TIMEOUT = 8.0

_ID_KEYS = ("datastore_cluster", "storage_pod", "id", "identifier", "key")
_NAME_KEYS = ("name", "label", "display_name")


def extract_items(body: Any) -> List[Any]:
    """Item list from the shapes vCenter endpoints return: value / bare list / items / data."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        for k in ("value", "items", "data"):
            v = body.get(k)
            if isinstance(v, list):
                return v
    return []


def normalize_datastore_cluster(item: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(item, dict):
        return None
    cid = next((item[k] for k in _ID_KEYS if item.get(k)), None)
    name = next((item[k] for k in _NAME_KEYS if item.get(k)), None)
    if not cid or not name:
        return None
    return {"datastore_cluster": str(cid), "name": str(name), "type": DATASTORE_CLUSTER_TYPE, "original": item}


class VsphereRestClient:
    """
    vCenter REST (/rest) client with session-cookie auth.

    Listings return the raw ``value`` arrays. datastore_clusters() layers
    three fallbacks: endpoint probing, per-datastore parent lookup and the
    naming-convention heuristic.
    """

    def __init__(
        self,
        connection: ConnectionDetails,
        *,
        verify: bool = False,
        timeout: float = 30.0,
        logger: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not connection.server:
            raise ValueError("vSphere server cannot be empty")
        self.connection = connection
        self.verify = verify
        self.timeout = timeout
        self.logger = logger or logging.getLogger("terrasphere.rest")
        self.session = session or requests.Session()
        self.session.verify = verify
        self.session_id: Optional[str] = None

        if not verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @property
    def base_url(self) -> str:
        server = self.connection.server.strip().rstrip("/")
        return server if has_scheme(server) else f"https://{server}"

    def __enter__(self) -> "VsphereRestClient":
        self.login()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.logout()

    # -- session -----------------------------------------------------------

    def login(self) -> str:
        url = f"{self.base_url}/rest/com/vmware/cis/session"
        self.logger.debug("vSphere REST login: %s as %s", url, self.connection.user)
        try:
            r = self.session.post(
                url,
                auth=(self.connection.user, self.connection.password),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise wrap_vmware(
                f"vSphere login to {self.connection.server} failed: {e}", e,
                server=self.connection.server, kind=ErrorKind.NETWORK.value,
            ) from e

        if r.status_code in (401, 403):
            raise VMwareError(
                msg=f"vSphere authentication failed for {self.connection.user}",
                context={"server": self.connection.server, "status": r.status_code, "kind": ErrorKind.AUTH.value},
            )
        if r.status_code != 200:
            raise VMwareError(
                msg=f"vSphere login returned HTTP {r.status_code}",
                context={"server": self.connection.server, "status": r.status_code},
            )

        sid = r.cookies.get(SESSION_COOKIE)
        if not sid:
            try:
                sid = (r.json() or {}).get("value")
            except ValueError:
                sid = None
        if not sid:
            raise VMwareError(msg="vSphere login succeeded but returned no session id")

        self.session_id = sid
        self.session.headers[SESSION_HEADER] = sid
        self.logger.info("vSphere REST session established with %s", self.connection.server)
        return sid

    def logout(self) -> None:
        if not self.session_id:
            return
        try:
            self.session.delete(f"{self.base_url}/rest/com/vmware/cis/session", timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.debug("vSphere logout failed (ignored): %s", e)
        self.session_id = None
        self.session.headers.pop(SESSION_HEADER, None)

    # -- low level ---------------------------------------------------------

    def _get(self, path: str, *, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> Any:
        if not self.session_id:
            raise VMwareError(msg="Not logged in to vSphere. Call login() first.")
        url = f"{self.base_url}{path}"
        try:
            r = self.session.get(url, params=params, timeout=timeout or self.timeout)
        except requests.RequestException as e:
            raise wrap_vmware(f"GET {path} failed: {e}", e, kind=ErrorKind.NETWORK.value) from e
        if r.status_code != 200:
            kind = ErrorKind.AUTH if r.status_code in (401, 403) else ErrorKind.NOT_FOUND if r.status_code == 404 else ErrorKind.UNKNOWN
            raise VMwareError(
                msg=f"GET {path} returned HTTP {r.status_code}",
                context={"status": r.status_code, "kind": kind.value},
            )
        try:
            return r.json()
        except ValueError as e:
            # requests.JSONDecodeError is a ValueError
            raise VMwareError(
                msg=f"GET {path} returned non-JSON",
                context={"kind": ErrorKind.UNKNOWN.value},
                cause=e,
            ) from e

    def _value(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        body = self._get(path, params=params)
        return body.get("value", []) if isinstance(body, dict) else body

    # -- listings ----------------------------------------------------------

    def datacenters(self) -> List[Dict[str, Any]]:
        return self._value("/rest/vcenter/datacenter")

    def clusters(self, datacenter_id: str) -> List[Dict[str, Any]]:
        return self._value("/rest/vcenter/cluster", {"filter.datacenters": datacenter_id})

    def vms(self, datacenter_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"filter.datacenters": datacenter_id} if datacenter_id else None
        return self._value("/rest/vcenter/vm", params)

    def templates(self, datacenter_id: str) -> List[Dict[str, Any]]:
        vms = self._value("/rest/vcenter/vm", {"filter.datacenters": datacenter_id, "filter.power_states": "POWERED_OFF"})
        # vm_type is only reported by newer vCenters
        return [v for v in vms if v.get("power_state") == "POWERED_OFF" and v.get("vm_type", "TEMPLATE") == "TEMPLATE"]

    def vm(self, vm_id: str) -> Dict[str, Any]:
        return self._value(f"/rest/vcenter/vm/{quote(vm_id, safe='')}")

    def networks(self, cluster_id: str) -> List[Dict[str, Any]]:
        nets = self._value("/rest/vcenter/network", {"filter.clusters": cluster_id})
        return sorted(nets, key=lambda n: str(n.get("name", "")))

    def datastores(self) -> List[Dict[str, Any]]:
        return self._value("/rest/vcenter/datastore")

    def datastore(self, datastore_id: str) -> Dict[str, Any]:
        return self._value(f"/rest/vcenter/datastore/{quote(datastore_id, safe='')}")

    # -- datastore clusters ------------------------------------------------

    def probe_datastore_cluster_endpoints(
        self,
        cluster_id: str,
        endpoints: Sequence[str] = DATASTORE_CLUSTER_ENDPOINTS,
    ) -> List[Dict[str, Any]]:
        """First endpoint that yields normalizable items wins; [] when none do."""
        for tmpl in endpoints:
            path = tmpl.format(cluster=quote(cluster_id or "", safe=""))
            try:
                body = self._get(path, timeout=PROBE_TIMEOUT)
            except VMwareError as e:
                self.logger.debug("datastore-cluster endpoint %s: %s", path, e)
                continue
            items = [n for n in (normalize_datastore_cluster(i) for i in extract_items(body)) if n]
            if items:
                self.logger.info("datastore clusters from %s (%d)", path, len(items))
                return sorted(items, key=lambda x: x["name"])
        return []

    def _datastore_details(self, datastores: Iterable[Dict[str, Any]]) -> Iterable[Tuple[str, Dict[str, Any]]]:
        for ds in datastores:
            ds_id = ds.get("datastore")
            if not ds_id:
                continue
            try:
                detail = self.datastore(ds_id)
            except VMwareError as e:
                self.logger.debug("datastore %s detail lookup failed: %s", ds_id, e)
                continue
            yield ds.get("name", ds_id), detail

    def datastore_clusters(self, cluster_id: str) -> List[Dict[str, Any]]:
        """
        Datastore clusters for ``cluster_id``.

        1. REST endpoint probing
        2. storage_pod/parent references in datastore details
        3. naming-convention derivation (entries marked ``derived: True``)
        """
        found = self.probe_datastore_cluster_endpoints(cluster_id)
        if found:
            return found

        self.logger.info("no datastore-cluster endpoint answered, deriving from datastores")
        try:
            datastores = self.datastores()
        except VMwareError as e:
            self.logger.warning("cannot list datastores for derivation: %s", e)
            return []

        by_parent = group_by_parent(self._datastore_details(datastores))
        if by_parent:
            return by_parent

        derived = derive_datastore_clusters(d.get("name", "") for d in datastores)
        if derived:
            self.logger.warning(
                "using %d heuristic datastore clusters (derived from names, not reported by vCenter)",
                len(derived),
            )
        return derived
