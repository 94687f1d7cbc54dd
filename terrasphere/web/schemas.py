# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/web/schemas.py
"""
Request bodies. Field aliases keep the camelCase names the browser form
posts (vsphereServer, vmVars, runDir, ...); snake_case is accepted too.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import TerraSphereError
from ..vmware.vsphere.formats import ConnectionDetails


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class VsphereCredentials(_Body):
    vsphere_server: str = Field("", alias="vsphereServer")
    vsphere_user: str = Field("", alias="vsphereUser")
    vsphere_password: str = Field("", alias="vspherePassword")

    def connection(self) -> ConnectionDetails:
        if not (self.vsphere_server and self.vsphere_user and self.vsphere_password):
            raise TerraSphereError(code=2, msg="Missing vSphere connection details")
        return ConnectionDetails(server=self.vsphere_server, user=self.vsphere_user, password=self.vsphere_password)


class DatacenterQuery(VsphereCredentials):
    datacenter: Optional[str] = None


class VmStatusQuery(VsphereCredentials):
    vm_name: str = Field("", alias="vmName")


class ComponentQuery(VsphereCredentials):
    component: str = ""
    parent: Optional[str] = None


class PlanRequest(_Body):
    vm_vars: Dict[str, Any] = Field(default_factory=dict, alias="vmVars")
    vsphere_password: str = Field("", alias="vspherePassword")


class RunRequest(_Body):
    run_dir: str = Field("", alias="runDir")
    vsphere_password: str = Field("", alias="vspherePassword")
    plan_path: Optional[str] = Field(None, alias="planPath")


class WorkspaceCreate(_Body):
    name: str = ""
    config: Dict[str, Any] = Field(default_factory=dict)


class WorkspacePlanData(_Body):
    plan_path: Optional[str] = Field(None, alias="planPath")
    run_dir: Optional[str] = Field(None, alias="runDir")
    plan_output: Optional[str] = Field(None, alias="planOutput")


class WorkspaceApplyData(_Body):
    run_dir: Optional[str] = Field(None, alias="runDir")
    apply_output: Optional[str] = Field(None, alias="applyOutput")
    vm_id: Optional[str] = Field(None, alias="vmId")
    status: Optional[str] = None


class SatelliteCredentials(_Body):
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class RegistrationRequest(SatelliteCredentials):
    host_group: Union[int, str, Dict[str, Any], None] = Field(None, alias="hostGroup")
    hostname: str = ""


class AapLaunchRequest(_Body):
    template_id: Optional[int] = Field(None, alias="templateId")
    target: Optional[str] = None
    extra_vars: Dict[str, Any] = Field(default_factory=dict, alias="extraVars")
