# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/web/routers/satellite.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..context import AppContext, get_ctx
from ..schemas import RegistrationRequest, SatelliteCredentials

router = APIRouter(prefix="/satellite", tags=["Satellite"])


@router.post("/host-groups")
def host_groups(body: SatelliteCredentials, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    client = ctx.satellite(body.url, body.username, body.password)
    return {"success": True, "hostGroups": client.host_groups()}


@router.post("/registration-command")
def registration_command(body: RegistrationRequest, ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    client = ctx.satellite(body.url, body.username, body.password)
    cmd = client.registration_command(body.host_group, body.hostname)
    return {"success": True, "command": cmd, "hostname": body.hostname, "hostGroup": body.host_group}
