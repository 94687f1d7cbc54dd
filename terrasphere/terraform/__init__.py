# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from .runner import RunStore, TerraformRunner, extract_vm_id
from .tfvars import render_tfvars

__all__ = ["RunStore", "TerraformRunner", "extract_vm_id", "render_tfvars"]
