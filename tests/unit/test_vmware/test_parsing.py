# SPDX-License-Identifier: LGPL-3.0-or-later
"""Parsers for govc listing and vm.info output."""
from __future__ import annotations

import json

import pytest
from terrasphere.vmware.vsphere.parsing import (
    DEFAULT_GUEST_FULL_NAME,
    DEFAULT_GUEST_ID,
    parse_datastore_cluster_info,
    parse_lines,
    parse_networks,
    parse_template_batch,
    placeholder_templates,
)


@pytest.mark.unit
class TestParseLines:
    def test_blank_lines_skipped_and_ids_contiguous(self):
        items = parse_lines("/DC1\n\n/DC2\n", "datacenter")
        assert [i.to_dict() for i in items] == [
            {"id": "datacenter-1", "name": "DC1", "path": "/DC1"},
            {"id": "datacenter-2", "name": "DC2", "path": "/DC2"},
        ]

    def test_name_is_last_segment(self):
        items = parse_lines("/DC1/host/Cluster A\n", "cluster")
        assert items[0].name == "Cluster A"
        assert items[0].path == "/DC1/host/Cluster A"

    def test_trailing_slash_keeps_whole_line(self):
        assert parse_lines("weird/\n", "x")[0].name == "weird/"

    def test_empty_output(self):
        assert parse_lines("", "datacenter") == []
        assert parse_lines("  \n \n", "datacenter") == []


@pytest.mark.unit
class TestParseNetworks:
    def test_vlan_extracted(self):
        nets = parse_networks("/DC1/network/pg-1234-prod\n/DC1/network/VM Network\n")
        assert nets[0].vlan_id == "1234"
        assert nets[0].display_name == "pg-1234-prod (VLAN: 1234)"
        assert nets[1].vlan_id is None
        assert nets[1].to_dict()["displayName"] == "VM Network"


@pytest.mark.unit
class TestDatastoreClusterInfo:
    def test_name_lines(self):
        out = "Name:        PodA\n  Path: /DC1/datastore/PodA\nName:  PodB\n"
        items = parse_datastore_cluster_info(out)
        assert [(i.id, i.name) for i in items] == [("datastore-cluster-1", "PodA"), ("datastore-cluster-2", "PodB")]


def _vm(name, guest="rhel8_64Guest", full="Red Hat Enterprise Linux 8", template=True):
    return {"config": {"name": name, "guestId": guest, "guestFullName": full, "template": template}}


@pytest.mark.unit
class TestParseTemplateBatch:
    def test_records_from_json_text(self):
        doc = json.dumps({"virtualMachines": [_vm("rhel8"), _vm("win", guest="", full="")]})
        recs = parse_template_batch(doc, ["/DC/vm/rhel8", "/DC/vm/win"], start_index=10)

        assert [r.id for r in recs] == ["template-11", "template-12"]
        assert recs[0].to_dict()["guestId"] == "rhel8_64Guest"
        assert recs[1].guest_id == DEFAULT_GUEST_ID
        assert recs[1].guest_full_name == DEFAULT_GUEST_FULL_NAME

    def test_entries_without_config_are_skipped(self):
        doc = {"virtualMachines": [{"runtime": {}}, _vm("b")]}
        recs = parse_template_batch(doc, ["/a", "/b"])
        assert [(r.id, r.path) for r in recs] == [("template-1", "/b")]

    def test_require_template_filters(self):
        doc = {"virtualMachines": [_vm("vm1", template=False), _vm("tpl")]}
        recs = parse_template_batch(doc, ["/vm1", "/tpl"], require_template=True)
        assert [r.name for r in recs] == ["tpl"]

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            parse_template_batch("{nope", ["/a"])

    def test_placeholders(self):
        recs = placeholder_templates(["/DC/vm/a", "/DC/vm/b"], start_index=10)
        assert [(r.id, r.name, r.guest_id) for r in recs] == [
            ("template-11", "a", DEFAULT_GUEST_ID),
            ("template-12", "b", DEFAULT_GUEST_ID),
        ]
