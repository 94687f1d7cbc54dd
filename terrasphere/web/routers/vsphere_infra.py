# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/web/routers/vsphere_infra.py
"""vCenter REST-backed component lookups and the cached inventory snapshot."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...core.exceptions import TerraSphereError
from ..context import AppContext, get_ctx, require
from ..schemas import ComponentQuery, VsphereCredentials

router = APIRouter(prefix="/vsphere-infra", tags=["vSphere (REST)"])

COMPONENTS = ("datacenters", "clusters", "datastoreClusters", "networks")


@router.post("/components")
def components(body: ComponentQuery, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    conn = body.connection()
    if body.component not in COMPONENTS:
        raise TerraSphereError(code=2, msg=f"Invalid component: {body.component!r} (expected one of {', '.join(COMPONENTS)})")
    if body.component != "datacenters":
        require(body.parent, f"Parent ID is required for {body.component}")

    with ctx.rest(conn) as client:
        if body.component == "datacenters":
            data = client.datacenters()
        elif body.component == "clusters":
            data = client.clusters(body.parent)
        elif body.component == "datastoreClusters":
            data = client.datastore_clusters(body.parent)
        else:
            data = client.networks(body.parent)

    return {"success": True, "component": body.component, "parent": body.parent, "data": data}


@router.post("/cache")
def refresh_cache(body: VsphereCredentials, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    with ctx.rest(body.connection()) as client:
        snap = ctx.cache.refresh(client)
    return {"success": True, "cache": snap}


@router.get("/cache")
def load_cache(ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    snap = ctx.cache.load()
    if snap is None:
        raise TerraSphereError(code=4, msg="no cached vSphere inventory; POST /api/vsphere-infra/cache first")
    return {"success": True, "cache": snap}
