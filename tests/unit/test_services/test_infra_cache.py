# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from terrasphere.core.exceptions import VMwareError
from terrasphere.services.infra_cache import InfraCache


@pytest.mark.unit
class TestInfraCache:
    def test_refresh_walks_hierarchy_and_persists(self, tmp_path):
        client = MagicMock()
        client.connection.server = "vc.example.com"
        client.datacenters.return_value = [{"datacenter": "datacenter-1", "name": "DC1"}]
        client.clusters.return_value = [{"cluster": "domain-c1", "name": "Prod"}, {"cluster": "domain-c2", "name": "Dev"}]
        client.datastore_clusters.side_effect = [[{"datastore_cluster": "group-p1", "name": "PodA"}], VMwareError(msg="boom")]
        client.networks.return_value = [{"network": "network-1", "name": "VM Network"}]

        cache = InfraCache(tmp_path / "temp" / "cache.json")
        snap = cache.refresh(client)

        assert snap["vsphere_server"] == "vc.example.com"
        assert snap["clusters"]["datacenter-1"][0]["name"] == "Prod"
        assert snap["datastoreClusters"]["domain-c1"][0]["name"] == "PodA"
        assert snap["datastoreClusters"]["domain-c2"] == []
        assert snap["networks"]["domain-c2"][0]["name"] == "VM Network"
        assert cache.load() == snap

    def test_load_missing_or_corrupt(self, tmp_path):
        p = tmp_path / "cache.json"
        assert InfraCache(p).load() is None
        p.write_text("{", encoding="utf-8")
        assert InfraCache(p).load() is None
