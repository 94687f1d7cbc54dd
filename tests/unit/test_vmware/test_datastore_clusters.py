# SPDX-License-Identifier: LGPL-3.0-or-later
"""Datastore-cluster grouping heuristics."""
from __future__ import annotations

import pytest
from terrasphere.vmware.vsphere.datastore_clusters import (
    cluster_prefix,
    derive_datastore_clusters,
    group_by_parent,
)


@pytest.mark.unit
class TestClusterPrefix:
    @pytest.mark.parametrize(
        "name,prefix",
        [
            ("pod-datastore01", "pod"),
            ("prod-ds01", "prod"),
            ("cl1_lun12", "cl1"),
            ("my-pod-ds01", "my-pod"),
            ("gold_StoragePool3", "gold"),
            ("vsan01", "vsan"),
            ("other", None),
        ],
    )
    def test_prefixes(self, name, prefix):
        assert cluster_prefix(name) == prefix


@pytest.mark.unit
class TestDerive:
    def test_single_datastore_is_not_a_cluster(self):
        assert derive_datastore_clusters(["ds1"]) == []

    def test_pod_group(self):
        out = derive_datastore_clusters(["pod-datastore01", "pod-datastore02", "other"])
        assert out == [
            {
                "datastore_cluster": "derived-cluster-1",
                "name": "pod",
                "type": "datastore_cluster",
                "datastores": ["pod-datastore01", "pod-datastore02"],
                "derived": True,
            }
        ]

    def test_ids_are_stable_for_identical_input(self):
        names = ["zeta-ds01", "alpha-ds01", "zeta-ds02", "alpha-ds02"]
        first = derive_datastore_clusters(names)
        second = derive_datastore_clusters(list(reversed(names)))

        assert [(g["datastore_cluster"], g["name"]) for g in first] == [
            ("derived-cluster-1", "alpha"),
            ("derived-cluster-2", "zeta"),
        ]
        assert [(g["datastore_cluster"], g["name"]) for g in second] == [
            (g["datastore_cluster"], g["name"]) for g in first
        ]

    def test_empty_input(self):
        assert derive_datastore_clusters([]) == []


@pytest.mark.unit
def test_group_by_parent():
    details = [
        ("ds1", {"storage_pod": "group-p1"}),
        ("ds2", {"parent": "group-p1"}),
        ("ds3", {"name": "ds3"}),
        ("ds4", None),
    ]
    out = group_by_parent(details)
    assert out == [
        {
            "datastore_cluster": "group-p1",
            "name": "Storage Pod group-p1",
            "type": "datastore_cluster",
            "datastores": ["ds1", "ds2"],
        }
    ]
