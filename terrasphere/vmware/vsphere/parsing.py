# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/vmware/vsphere/parsing.py
"""
Parsers for govc output.

Listing commands (`ls`, `find`) print one inventory path per line; detail
commands (`vm.info -json`) print a JSON document. Nothing here runs govc.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

DEFAULT_GUEST_ID = "otherGuest"
DEFAULT_GUEST_FULL_NAME = "Unknown Guest OS"

_VLAN_RE = re.compile(r"-(\d{2,4})-")
_DS_CLUSTER_NAME_RE = re.compile(r"^\s*Name:\s*(.+?)\s*$")


@dataclass
class InventoryItem:
    id: str
    name: str
    path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"id": self.id, "name": self.name}
        if self.path is not None:
            d["path"] = self.path
        return d


@dataclass
class NetworkItem(InventoryItem):
    raw_name: str = ""
    display_name: str = ""
    vlan_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update({"rawName": self.raw_name, "displayName": self.display_name, "vlanId": self.vlan_id})
        return d


@dataclass
class TemplateRecord:
    id: str
    name: str
    path: str
    guest_id: str = DEFAULT_GUEST_ID
    guest_full_name: str = DEFAULT_GUEST_FULL_NAME
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "guestId": self.guest_id,
            "guestFullName": self.guest_full_name,
        }
        d.update(self.extra)
        return d


def last_segment(line: str) -> str:
    s = (line or "").strip()
    name = s.rsplit("/", 1)[-1]
    return name or s


def parse_lines(output: str, type_tag: str) -> List[InventoryItem]:
    """
    One item per non-blank line; name is the last path segment (or the whole
    line when that is empty), id is ``<type_tag>-<n>`` numbered contiguously.
    """
    lines = [ln.strip() for ln in (output or "").split("\n") if ln.strip()]
    return [
        InventoryItem(id=f"{type_tag}-{i}", name=last_segment(ln), path=ln)
        for i, ln in enumerate(lines, 1)
    ]


def parse_networks(output: str) -> List[NetworkItem]:
    """Like parse_lines, plus a VLAN id pulled from names such as ``pg-1234-prod``."""
    out: List[NetworkItem] = []
    for item in parse_lines(output, "network"):
        m = _VLAN_RE.search(item.name)
        vlan = m.group(1) if m else None
        out.append(
            NetworkItem(
                id=item.id,
                name=item.name,
                path=item.path,
                raw_name=item.name,
                display_name=f"{item.name} (VLAN: {vlan})" if vlan else item.name,
                vlan_id=vlan,
            )
        )
    return out


def parse_datastore_cluster_info(output: str) -> List[InventoryItem]:
    """`datastore.cluster.info` prints blocks; every ``Name:`` line starts one."""
    names = []
    for ln in (output or "").split("\n"):
        m = _DS_CLUSTER_NAME_RE.match(ln)
        if m and m.group(1):
            names.append(m.group(1))
    return [InventoryItem(id=f"datastore-cluster-{i}", name=n) for i, n in enumerate(names, 1)]


def _virtual_machines(document: Any) -> List[Any]:
    if isinstance(document, dict):
        vms = document.get("virtualMachines", document.get("VirtualMachines"))
        if vms is None:
            return [document] if document else []
        return vms if isinstance(vms, list) else [vms]
    if isinstance(document, list):
        return document
    return []


def parse_template_batch(
    document: Union[str, Dict[str, Any], List[Any]],
    paths: Sequence[str],
    *,
    start_index: int = 0,
    require_template: bool = False,
) -> List[TemplateRecord]:
    """
    Template records from one `vm.info -json` call over ``paths``.

    Entries line up with ``paths`` by position. Entries without a ``config``
    block are skipped. With require_template=True only entries whose
    ``config.template`` is true are kept (used when listing powered-off VMs).
    Invalid JSON text raises ValueError; callers decide the fallback.
    """
    if isinstance(document, str):
        document = json.loads(document) if document.strip() else {}

    out: List[TemplateRecord] = []
    for pos, vm in enumerate(_virtual_machines(document)):
        if not isinstance(vm, dict):
            continue
        config = vm.get("config") or vm.get("Config")
        if not isinstance(config, dict):
            continue
        if require_template and config.get("template") is not True:
            continue

        path = paths[pos] if pos < len(paths) else ""
        name = config.get("name") or last_segment(path)
        out.append(
            TemplateRecord(
                id=f"template-{start_index + len(out) + 1}",
                name=name,
                path=path,
                guest_id=config.get("guestId") or DEFAULT_GUEST_ID,
                guest_full_name=config.get("guestFullName") or DEFAULT_GUEST_FULL_NAME,
            )
        )
    return out


def placeholder_templates(paths: Sequence[str], *, start_index: int = 0) -> List[TemplateRecord]:
    """Name-only records for a batch whose detail lookup failed."""
    return [
        TemplateRecord(id=f"template-{start_index + i}", name=last_segment(p), path=p)
        for i, p in enumerate(paths, 1)
    ]
