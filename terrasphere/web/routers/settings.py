# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/web/routers/settings.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ...core.exceptions import TerraSphereError
from ..context import AppContext, get_ctx

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("")
def get_settings(ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    return {"success": True, "settings": ctx.settings.load()}


@router.post("")
def save_settings(payload: Dict[str, Any] = Body(...), ctx: AppContext = Depends(get_ctx)) -> Dict[str, Any]:
    # accepts {"settings": {...}} or the sections directly
    changes = payload.get("settings", payload)
    if not isinstance(changes, dict):
        raise TerraSphereError(code=2, msg="settings must be an object")
    return {"success": True, "settings": ctx.settings.update(changes)}
