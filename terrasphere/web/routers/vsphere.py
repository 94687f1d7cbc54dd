# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/web/routers/vsphere.py
"""govc-backed inventory endpoints used by the provisioning form."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..context import AppContext, get_ctx, require
from ..schemas import DatacenterQuery, VmStatusQuery, VsphereCredentials

router = APIRouter(prefix="/vsphere", tags=["vSphere (govc)"])


@router.post("/datacenters")
def datacenters(body: VsphereCredentials, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    res = ctx.inventory(body.connection()).probe()
    return {
        "success": True,
        "datacenters": [i.to_dict() for i in res.items],
        "format": {
            "url": res.env["GOVC_URL"],
            "user": res.candidate.user,
            "attempt": res.attempts,
        },
    }


@router.post("/clusters")
def clusters(body: DatacenterQuery, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    dc = require(body.datacenter, "Datacenter is required")
    items = ctx.inventory(body.connection()).clusters(dc)
    return {"success": True, "datacenter": dc, "clusters": [i.to_dict() for i in items]}


@router.post("/networks")
def networks(body: DatacenterQuery, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    items = ctx.inventory(body.connection()).networks(body.datacenter)
    return {"success": True, "networks": [i.to_dict() for i in items]}


@router.post("/datastore-clusters")
def datastore_clusters(body: DatacenterQuery, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    dc = require(body.datacenter, "Datacenter is required")
    items = ctx.inventory(body.connection()).datastore_clusters(dc)
    return {"success": True, "datacenter": dc, "datastoreClusters": [i.to_dict() for i in items]}


@router.post("/templates")
def templates(body: DatacenterQuery, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    items = ctx.inventory(body.connection()).templates(body.datacenter)
    return {"success": True, "templates": [t.to_dict() for t in items]}


@router.post("/vms")
def vms(body: DatacenterQuery, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    with ctx.rest(body.connection()) as client:
        items = client.vms(body.datacenter)
    return {"success": True, "vms": items}


@router.post("/vm/status")
def vm_status(body: VmStatusQuery, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    conn = body.connection()
    name = require(body.vm_name, "Missing VM name")
    return {"success": True, "vmName": name, "status": ctx.inventory(conn).vm_status(name)}


@router.post("/test-connection")
def test_connection(body: VsphereCredentials, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    return {"success": True, "connected": ctx.inventory(body.connection()).test_connection()}
