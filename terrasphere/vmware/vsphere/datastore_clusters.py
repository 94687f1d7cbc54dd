# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/vmware/vsphere/datastore_clusters.py
"""
Datastore-cluster (storage pod) grouping.

Two fallbacks for when vCenter will not list storage pods directly:

  - group_by_parent(): datastores whose detail record names a storage_pod/parent
  - derive_datastore_clusters(): naming-convention heuristic over bare names

Derived groups are a guess. They carry ``derived: True`` all the way to the
HTTP response so the UI can mark them; never merge them with API-sourced
clusters as if they were equivalent.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

DATASTORE_CLUSTER_TYPE = "datastore_cluster"

# Ordered; first match wins.
NAMING_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"^(.+)[-_]datastore\d+$"),  # pod-datastore01
    re.compile(r"^([A-Za-z0-9]+)[-_][A-Za-z0-9]+\d+$"),  # prod-ds01, cl1_lun12
    re.compile(r"^(.+)[-_][A-Za-z]+\d+$"),  # my-pod-ds01
    re.compile(r"^(.+)_StoragePool\d+$"),  # gold_StoragePool3
)
FALLBACK_PATTERN: Pattern[str] = re.compile(r"^(.+?)[-_]?\d+$")  # vsan01, nfs-2


def cluster_prefix(name: str, patterns: Sequence[Pattern[str]] = NAMING_PATTERNS) -> Optional[str]:
    """Group key for ``name``, or None when no pattern recognizes it."""
    for rx in patterns:
        m = rx.match(name)
        if m:
            return m.group(1)
    m = FALLBACK_PATTERN.match(name)
    return m.group(1) if m else None


def group_by_naming_pattern(names: Iterable[str]) -> Dict[str, List[str]]:
    """prefix -> datastore names, in input order; groups of one are dropped."""
    groups: Dict[str, List[str]] = {}
    for name in names:
        if not name:
            continue
        prefix = cluster_prefix(name)
        if prefix is None:
            continue
        groups.setdefault(prefix, []).append(name)
    return {k: v for k, v in groups.items() if len(v) > 1}


def derive_datastore_clusters(datastore_names: Iterable[str]) -> List[Dict[str, Any]]:
    """
    Heuristic datastore clusters from a flat list of datastore names.

    Groups are sorted by name before ids are assigned, so identical input
    always yields identical ``derived-cluster-N`` ids. Nothing is cached.
    """
    groups = group_by_naming_pattern(datastore_names)
    out: List[Dict[str, Any]] = []
    for i, prefix in enumerate(sorted(groups), 1):
        out.append(
            {
                "datastore_cluster": f"derived-cluster-{i}",
                "name": prefix,
                "type": DATASTORE_CLUSTER_TYPE,
                "datastores": list(groups[prefix]),
                "derived": True,
            }
        )
    return out


def group_by_parent(details: Iterable[Tuple[str, Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Clusters from per-datastore detail records.

    ``details`` yields (datastore_name, detail) pairs; a detail naming a
    ``storage_pod`` (or ``parent``) puts the datastore in that pod.
    """
    pods: Dict[str, Dict[str, Any]] = {}
    for ds_name, detail in details:
        if not isinstance(detail, dict):
            continue
        pod_id = detail.get("storage_pod") or detail.get("parent")
        if not pod_id:
            continue
        pod = pods.setdefault(
            str(pod_id),
            {
                "datastore_cluster": str(pod_id),
                "name": f"Storage Pod {pod_id}",
                "type": DATASTORE_CLUSTER_TYPE,
                "datastores": [],
            },
        )
        pod["datastores"].append(ds_name)
    return sorted(pods.values(), key=lambda p: p["name"])
