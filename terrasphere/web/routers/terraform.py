# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/web/routers/terraform.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..context import AppContext, get_ctx, require
from ..schemas import PlanRequest, RunRequest

router = APIRouter(prefix="/terraform", tags=["Terraform"])


@router.post("/plan")
def plan(body: PlanRequest, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    require(body.vm_vars.get("vm_name"), "vmVars.vm_name is required")
    res = ctx.terraform.plan(body.vm_vars, body.vsphere_password or None)
    return {"success": True, "message": "Plan generated successfully", **res}


@router.post("/apply")
def apply(body: RunRequest, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    run = require(body.run_dir, "runDir is required")
    res = ctx.terraform.apply(run, body.vsphere_password or None)
    return {"success": True, "message": "Terraform apply completed successfully", **res}


@router.post("/destroy")
def destroy(body: RunRequest, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    run = require(body.run_dir, "runDir is required")
    res = ctx.terraform.destroy(run, body.vsphere_password or None)
    return {"success": True, "message": "Infrastructure destroyed successfully", **res}


@router.get("/status/{run_dir}")
def status(run_dir: str, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    return {"success": True, "runDir": run_dir, "status": ctx.runs.status(run_dir)}


@router.get("/deployments")
def deployments(ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    return {"success": True, "deployments": ctx.runs.deployments()}
