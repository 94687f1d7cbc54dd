# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/terraform/tfvars.py
from __future__ import annotations

import datetime as _dt
import json
from typing import Any, Mapping, Optional

PASSWORD_VAR = "vsphere_password"
PASSWORD_ENV = "TF_VAR_vsphere_password"


def hcl_value(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float)):
        return repr(v)
    if v is None:
        return "null"
    if isinstance(v, (list, tuple, dict)):
        # JSON arrays/objects are valid HCL literals
        return json.dumps(v)
    return json.dumps(str(v))


def render_tfvars(variables: Mapping[str, Any], *, now: Optional[_dt.datetime] = None) -> str:
    """
    terraform.tfvars text for ``variables``.

    The vSphere password is never written; terraform reads it from
    TF_VAR_vsphere_password instead.
    """
    ts = (now or _dt.datetime.now(tz=_dt.timezone.utc)).isoformat()
    lines = [
        "# Generated Terraform variables file",
        f"# Generated on: {ts}",
        "",
    ]
    for key, value in variables.items():
        if key == PASSWORD_VAR:
            continue
        lines.append(f"{key} = {hcl_value(value)}")
    lines.extend(
        [
            "",
            f"# Note: {PASSWORD_VAR} is supplied via the {PASSWORD_ENV} environment variable",
            "",
        ]
    )
    return "\n".join(lines)
