# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/web/routers/workspaces.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ...core.exceptions import TerraSphereError
from ...core.utils import U
from ..context import AppContext, get_ctx
from ..schemas import WorkspaceApplyData, WorkspaceCreate, WorkspacePlanData

router = APIRouter(prefix="/workspaces", tags=["Workspaces"])


@router.get("")
def list_workspaces(ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    return {"success": True, "workspaces": ctx.workspaces.list()}


@router.post("")
@router.post("/create")
def create_workspace(body: WorkspaceCreate, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    return {"success": True, "workspace": ctx.workspaces.create(body.name, body.config)}


@router.get("/{workspace_id}")
def get_workspace(workspace_id: str, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    return {"success": True, "workspace": ctx.workspaces.get(workspace_id)}


@router.delete("/{workspace_id}")
def delete_workspace(workspace_id: str, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    ctx.workspaces.delete(workspace_id)
    return {"success": True}


@router.put("/{workspace_id}/config")
@router.post("/{workspace_id}/config")
def save_config(
    workspace_id: str,
    payload: Dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_ctx),
) -> Dict[str, Any]:
    # the form posts either {"config": {...}} or the fields directly
    config = payload.get("config", payload)
    if not isinstance(config, dict):
        raise TerraSphereError(code=2, msg="config must be an object")
    return {"success": True, "workspace": ctx.workspaces.update_config(workspace_id, config)}


@router.post("/{workspace_id}/plan")
def save_plan(workspace_id: str, body: WorkspacePlanData, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    data = {"planPath": body.plan_path, "runDir": body.run_dir, "planOutput": body.plan_output, "time": U.now_iso()}
    return {"success": True, "workspace": ctx.workspaces.update(workspace_id, planData=data)}


@router.post("/{workspace_id}/apply")
def save_apply(workspace_id: str, body: WorkspaceApplyData, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    data = {
        "runDir": body.run_dir,
        "applyOutput": body.apply_output,
        "vmId": body.vm_id,
        "status": body.status or "completed",
        "time": U.now_iso(),
    }
    return {"success": True, "workspace": ctx.workspaces.update(workspace_id, applyData=data)}
