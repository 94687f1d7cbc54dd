# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/vmware/vsphere/inventory.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ...core.exceptions import BinaryUnavailable, GovcError, VMwareError
from ..transports.govc_common import quote_arg
from .formats import ConnectionDetails, FormatCandidate, candidate_env, govc_env
from .parsing import (
    InventoryItem,
    NetworkItem,
    TemplateRecord,
    parse_datastore_cluster_info,
    parse_lines,
    parse_networks,
    parse_template_batch,
    placeholder_templates,
)
from .probe import ProbeResult, probe_connection

__all__ = [
    "GovcInventory",
    "InventoryItem",
    "NetworkItem",
    "TemplateRecord",
    "fetch_template_details",
    "parse_lines",
    "parse_template_batch",
]

TEMPLATE_BATCH_SIZE = 10


def _batches(items: Sequence[str], size: int) -> List[Sequence[str]]:
    return [items[i: i + size] for i in range(0, len(items), size)]


def fetch_template_details(
    executor: Any,
    env: Dict[str, str],
    paths: Sequence[str],
    *,
    batch_size: int = TEMPLATE_BATCH_SIZE,
    require_template: bool = False,
    logger: Optional[logging.Logger] = None,
) -> List[TemplateRecord]:
    """
    Run `vm.info -json` over ``paths`` in sequential batches.

    A batch that fails (govc error or unparsable JSON) contributes
    placeholder records for all of its paths instead of aborting the run.
    """
    log = logger or logging.getLogger("terrasphere.inventory")
    records: List[TemplateRecord] = []

    for n, batch in enumerate(_batches(list(paths), batch_size), 1):
        cmd = "vm.info -json " + " ".join(quote_arg(p) for p in batch)
        try:
            doc = executor.execute(cmd, env)
            got = parse_template_batch(doc, batch, start_index=len(records), require_template=require_template)
        except BinaryUnavailable:
            raise
        except (GovcError, ValueError) as e:
            log.warning("vm.info batch %d (%d paths) failed, using placeholders: %s", n, len(batch), e)
            if require_template:
                # powered-off VMs are only candidates; without details we cannot tell templates apart
                continue
            got = placeholder_templates(batch, start_index=len(records))
        records.extend(got)

    return records


class GovcInventory:
    """
    vSphere inventory listings over govc for one set of credentials.

    datacenters() is the only call that probes connection formats. Every
    other call uses the canonical environment, or the format the probe
    settled on if datacenters() already ran on this instance.
    """

    def __init__(
        self,
        connection: ConnectionDetails,
        executor: Any,
        *,
        insecure: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        self.connection = connection
        self.executor = executor
        self.insecure = insecure
        self.logger = logger or logging.getLogger("terrasphere.inventory")
        self._candidate: Optional[FormatCandidate] = None

    def env(self) -> Dict[str, str]:
        if self._candidate is not None:
            return candidate_env(self.connection, self._candidate, insecure=self.insecure)
        return govc_env(self.connection, insecure=self.insecure)

    def _run(self, command: str) -> str:
        return self.executor.execute(command, self.env())

    def probe(self) -> ProbeResult:
        res = probe_connection(self.connection, self.executor, insecure=self.insecure, logger=self.logger)
        self._candidate = res.candidate
        return res

    def datacenters(self) -> List[InventoryItem]:
        return self.probe().items

    def clusters(self, datacenter: str) -> List[InventoryItem]:
        if not datacenter:
            raise VMwareError(msg="Datacenter name is required to list clusters")
        out = self._run(f"find -type c -dc={quote_arg(datacenter)}")
        return parse_lines(out, "cluster")

    def networks(self, datacenter: Optional[str] = None) -> List[NetworkItem]:
        cmd = "find -type n"
        if datacenter:
            cmd += f" -dc={quote_arg(datacenter)}"
        return parse_networks(self._run(cmd))

    def datastores(self, datacenter: Optional[str] = None) -> List[InventoryItem]:
        root = quote_arg(f"/{datacenter}") if datacenter else "/"
        return parse_lines(self._run(f"find {root} -type s"), "datastore")

    def datastore_clusters(self, datacenter: str) -> List[InventoryItem]:
        if not datacenter:
            raise VMwareError(msg="Datacenter name is required to list datastore clusters")
        out = self._run(f"datastore.cluster.info -dc={quote_arg(datacenter)}")
        return parse_datastore_cluster_info(out)

    def templates(self, datacenter: Optional[str] = None) -> List[TemplateRecord]:
        """
        Templates flagged with config.template. Falls back to scanning
        powered-off VMs when the direct query finds nothing or fails.
        """
        root = quote_arg(f"/{datacenter}") if datacenter else "/"
        env = self.env()

        paths: List[str] = []
        try:
            out = self.executor.execute(f"find {root} -type m -config.template true", env)
            paths = [ln.strip() for ln in out.split("\n") if ln.strip()]
        except BinaryUnavailable:
            raise
        except GovcError as e:
            self.logger.warning("template query failed, scanning powered-off VMs: %s", e)

        if paths:
            self.logger.info("found %d templates, fetching details", len(paths))
            return fetch_template_details(self.executor, env, paths, logger=self.logger)

        try:
            out = self.executor.execute(f"find {root} -type m -runtime.powerState poweredOff", env)
        except BinaryUnavailable:
            raise
        except GovcError as e:
            self.logger.warning("powered-off VM scan failed, no templates found: %s", e)
            return []
        off = [ln.strip() for ln in out.split("\n") if ln.strip()]
        if not off:
            return []
        self.logger.info("checking %d powered-off VMs for template flag", len(off))
        return fetch_template_details(self.executor, env, off, require_template=True, logger=self.logger)

    def vm_status(self, vm_name: str) -> str:
        if not vm_name:
            raise VMwareError(msg="VM name is required")
        try:
            out = self._run(f"vm.info {quote_arg(vm_name)}")
        except BinaryUnavailable:
            raise
        except GovcError as e:
            self.logger.debug("vm.info %s failed: %s", vm_name, e)
            return "unknown"
        for state in ("poweredOn", "poweredOff", "suspended"):
            if state in out:
                return state
        return "unknown"

    def test_connection(self) -> bool:
        try:
            self._run("about")
            return True
        except GovcError as e:
            self.logger.debug("govc about failed: %s", e)
            return False
