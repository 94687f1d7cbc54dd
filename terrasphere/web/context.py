# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/web/context.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from fastapi import Request

from ..config.app_config import AppConfig
from ..core.exceptions import TerraSphereError
from ..core.logger import Log
from ..integrations.aap import AapClient
from ..integrations.satellite import SatelliteClient
from ..services.infra_cache import InfraCache
from ..storage.settings import SettingsStore
from ..storage.workspaces import WorkspaceStore
from ..terraform.runner import RunStore, TerraformRunner
from ..vmware.clients.rest_client import VsphereRestClient
from ..vmware.transports.govc_common import GovcExecutor
from ..vmware.vsphere.formats import ConnectionDetails
from ..vmware.vsphere.inventory import GovcInventory


@dataclass
class AppContext:
    """
    Everything a request handler needs, built once per app.

    The factories exist so tests can swap the external collaborators
    (govc, vCenter REST, Satellite, AAP) without patching modules.
    """
    config: AppConfig
    executor: Any
    settings: SettingsStore
    workspaces: WorkspaceStore
    runs: RunStore
    terraform: TerraformRunner
    cache: InfraCache
    logger: logging.Logger
    rest_factory: Callable[..., VsphereRestClient] = VsphereRestClient
    satellite_factory: Callable[..., SatelliteClient] = SatelliteClient
    aap_factory: Callable[..., AapClient] = AapClient
    extra: dict = field(default_factory=dict)

    @classmethod
    def build(cls, config: AppConfig, *, executor: Any = None, logger: Optional[logging.Logger] = None, **factories: Any) -> "AppContext":
        log = logger or logging.getLogger("terrasphere.web")
        runs = RunStore(config.path("runs_dir"), logger=log)
        return cls(
            config=config,
            executor=executor or GovcExecutor(config.govc_settings(), logger=logging.getLogger("terrasphere.govc")),
            settings=SettingsStore(config.path("settings_file"), logger=log),
            workspaces=WorkspaceStore(config.path("workspaces_dir"), logger=log),
            runs=runs,
            terraform=TerraformRunner(config.path("terraform_dir"), runs, terraform_bin=config.terraform_bin, logger=log),
            cache=InfraCache(config.path("cache_file"), logger=log),
            logger=log,
            **factories,
        )

    def inventory(self, conn: ConnectionDetails) -> GovcInventory:
        log = Log.bind(self.logger, server=conn.server)
        return GovcInventory(conn, self.executor, insecure=self.config.insecure, logger=log)

    def rest(self, conn: ConnectionDetails) -> VsphereRestClient:
        return self.rest_factory(conn, verify=not self.config.insecure, logger=self.logger)

    def aap(self) -> AapClient:
        aap = self.settings.load().get("aap") or {}
        return self.aap_factory(aap.get("api_url", ""), aap.get("api_token", ""), verify=not self.config.insecure, logger=self.logger)

    def satellite(self, url: Optional[str], username: Optional[str], password: Optional[str]) -> SatelliteClient:
        sat = self.settings.load().get("satellite") or {}
        return self.satellite_factory(
            url or sat.get("url", ""),
            username or sat.get("username", ""),
            password or "",
            verify=not self.config.insecure,
            logger=self.logger,
        )


def get_ctx(request: Request) -> AppContext:
    return request.app.state.ctx


def require(value: Any, message: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise TerraSphereError(code=2, msg=message)
    return value
