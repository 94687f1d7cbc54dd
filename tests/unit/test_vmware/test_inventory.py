# SPDX-License-Identifier: LGPL-3.0-or-later
"""GovcInventory listings and batched template details."""
from __future__ import annotations

import json
import shlex

import pytest
from fakes.fake_govc import FakeGovc
from fakes.fake_logger import FakeLogger
from terrasphere.core.exceptions import BinaryUnavailable, GovcError, VMwareError
from terrasphere.vmware.vsphere.errors import ErrorKind
from terrasphere.vmware.vsphere.formats import ConnectionDetails
from terrasphere.vmware.vsphere.inventory import GovcInventory, fetch_template_details

CONN = ConnectionDetails(server="vc.example.com", user="admin", password="pw")


def _vm_info(paths, template=True):
    return json.dumps({
        "virtualMachines": [
            {"config": {"name": p.rsplit("/", 1)[-1], "guestId": "rhel8_64Guest", "guestFullName": "RHEL 8", "template": template}}
            for p in paths
        ]
    })


def _paths_of(cmd):
    # vm.info -json "a" "b" ...
    return shlex.split(cmd)[2:]


@pytest.mark.unit
class TestFetchTemplateDetails:
    def test_25_paths_with_failing_middle_batch(self):
        paths = [f"/DC/vm/tpl{i:02d}" for i in range(1, 26)]
        seen = []

        def handler(cmd, env):
            batch = _paths_of(cmd)
            seen.append(len(batch))
            if len(seen) == 2:
                raise GovcError("govc failed (1): boom", stderr="boom", kind=ErrorKind.UNKNOWN)
            return _vm_info(batch)

        log = FakeLogger()
        recs = fetch_template_details(FakeGovc(handler), {}, paths, logger=log)

        assert seen == [10, 10, 5]
        assert len(recs) == 25
        assert [r.id for r in recs] == [f"template-{i}" for i in range(1, 26)]
        # batch 2 became placeholders
        assert recs[10].guest_id == "otherGuest"
        assert recs[10].name == "tpl11"
        assert recs[0].guest_id == "rhel8_64Guest"
        assert recs[24].guest_id == "rhel8_64Guest"
        assert len(log.messages("warning")) == 1

    def test_failing_batch_skipped_when_template_flag_required(self):
        paths = [f"/DC/vm/off{i:02d}" for i in range(1, 13)]

        def handler(cmd, env):
            batch = _paths_of(cmd)
            if len(batch) == 10:
                raise GovcError("govc failed (1): boom", stderr="boom", kind=ErrorKind.UNKNOWN)
            return _vm_info(batch)

        recs = fetch_template_details(FakeGovc(handler), {}, paths, require_template=True)
        assert [r.name for r in recs] == ["off11", "off12"]
        assert recs[0].id == "template-1"

    def test_invalid_json_uses_placeholders(self):
        recs = fetch_template_details(FakeGovc(lambda c, e: "not json"), {}, ["/a", "/b"])
        assert [r.name for r in recs] == ["a", "b"]

    def test_binary_missing_propagates(self):
        def handler(cmd, env):
            raise BinaryUnavailable("govc binary not found at /x")

        with pytest.raises(BinaryUnavailable):
            fetch_template_details(FakeGovc(handler), {}, ["/a"])

    def test_paths_with_spaces_are_quoted(self):
        govc = FakeGovc(lambda c, e: _vm_info(_paths_of(c)))
        fetch_template_details(govc, {}, ["/DC/vm/My Template"])
        assert govc.commands == ['vm.info -json "/DC/vm/My Template"']


@pytest.mark.unit
class TestGovcInventory:
    def test_datacenters_probe_then_reuse_candidate(self):
        calls = {"n": 0}

        def handler(cmd, env):
            if cmd == "ls":
                calls["n"] += 1
                if calls["n"] < 2:
                    raise GovcError("govc failed (1): x", stderr="x", kind=ErrorKind.UNKNOWN)
                return "/DC1\n"
            return "/DC1/host/C1\n"

        govc = FakeGovc(handler)
        inv = GovcInventory(CONN, govc)
        assert [d.name for d in inv.datacenters()] == ["DC1"]

        inv.clusters("DC1")
        winning_url = govc.calls[1][1]["GOVC_URL"]
        assert govc.calls[-1][1]["GOVC_URL"] == winning_url == "vc.example.com/sdk"

    def test_clusters_uses_canonical_env_and_dc_flag(self):
        govc = FakeGovc(lambda c, e: "/DC1/host/C1\n/DC1/host/C2\n")
        items = GovcInventory(CONN, govc).clusters("DC1")

        assert [c.name for c in items] == ["C1", "C2"]
        assert [c.id for c in items] == ["cluster-1", "cluster-2"]
        cmd, env = govc.calls[0]
        assert cmd == 'find -type c -dc="DC1"'
        assert env["GOVC_URL"] == "https://vc.example.com"

    def test_clusters_requires_datacenter(self):
        with pytest.raises(VMwareError):
            GovcInventory(CONN, FakeGovc()).clusters("")

    def test_datastores_listing(self):
        govc = FakeGovc(lambda c, e: "/DC1/datastore/ds01\n/DC1/datastore/ds02\n")
        items = GovcInventory(CONN, govc).datastores("DC1")
        assert [d.name for d in items] == ["ds01", "ds02"]
        assert govc.commands == ['find "/DC1" -type s']

    def test_templates_direct_query(self):
        def handler(cmd, env):
            if "-config.template true" in cmd:
                return "/DC1/vm/tpl-a\n/DC1/vm/tpl-b\n"
            return _vm_info(_paths_of(cmd))

        recs = GovcInventory(CONN, FakeGovc(handler)).templates("DC1")
        assert [r.name for r in recs] == ["tpl-a", "tpl-b"]

    def test_templates_fall_back_to_powered_off_vms(self):
        def handler(cmd, env):
            if "-config.template true" in cmd:
                return ""
            if "poweredOff" in cmd:
                return "/DC1/vm/off-vm\n/DC1/vm/tpl\n"
            doc = json.loads(_vm_info(_paths_of(cmd)))
            doc["virtualMachines"][0]["config"]["template"] = False
            return json.dumps(doc)

        govc = FakeGovc(handler)
        recs = GovcInventory(CONN, govc).templates()
        assert [r.name for r in recs] == ["tpl"]
        assert recs[0].id == "template-1"

    def test_templates_powered_off_scan_failure_returns_empty(self):
        def handler(cmd, env):
            if "-config.template true" in cmd:
                return ""
            raise GovcError("govc failed (1): find failed", stderr="find failed", kind=ErrorKind.UNKNOWN)

        logger = FakeLogger()
        assert GovcInventory(CONN, FakeGovc(handler), logger=logger).templates("DC1") == []
        assert any("powered-off VM scan failed" in m for m in logger.messages("warning"))

    def test_vm_status(self):
        govc = FakeGovc(lambda c, e: "Name: web01\n  Power state: poweredOn\n")
        assert GovcInventory(CONN, govc).vm_status("web01") == "poweredOn"

    def test_vm_status_unknown_on_error(self):
        def handler(cmd, env):
            raise GovcError("govc failed (1): vm 'x' not found", stderr="vm 'x' not found", kind=ErrorKind.NOT_FOUND)

        assert GovcInventory(CONN, FakeGovc(handler)).vm_status("x") == "unknown"
