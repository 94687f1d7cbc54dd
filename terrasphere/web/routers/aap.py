# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/web/routers/aap.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...core.exceptions import TerraSphereError
from ..context import AppContext, get_ctx
from ..schemas import AapLaunchRequest

router = APIRouter(prefix="/aap", tags=["Ansible Automation Platform"])


@router.get("/templates")
def job_templates(ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    return {"success": True, "templates": ctx.aap().job_templates()}


@router.post("/launch")
def launch(body: AapLaunchRequest, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    template_id = body.template_id
    if template_id is None:
        default = (ctx.settings.load().get("aap") or {}).get("default_template_id")
        if not default:
            raise TerraSphereError(code=2, msg="templateId is required (no default job template configured)")
        template_id = int(default)
    job = ctx.aap().launch(template_id, extra_vars=body.extra_vars, limit=body.target)
    return {"success": True, "job": job}


@router.get("/jobs/{job_id}")
def job(job_id: int, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    return {"success": True, "job": ctx.aap().job(job_id)}
