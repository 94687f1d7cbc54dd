# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/__init__.py
"""
terrasphere - vSphere VM provisioning service

Collects VM parameters, renders Terraform variable files and drives
`terraform`, `govc` and the vSphere REST API to build virtual machines.

Usage as a library:

    from terrasphere import ConnectionDetails, GovcExecutor, GovcInventory

    conn = ConnectionDetails(server="vcenter.example.com", user="admin@vsphere.local", password="...")
    inv = GovcInventory(conn, GovcExecutor())
    for dc in inv.datacenters():
        print(dc.name)
"""

__version__ = "0.1.0"

from .vmware.vsphere.formats import ConnectionDetails, FormatCandidate, build_candidates
from .vmware.transports.govc_common import GovcExecutor
from .vmware.vsphere.inventory import GovcInventory, parse_lines, parse_template_batch
from .vmware.vsphere.datastore_clusters import derive_datastore_clusters

__all__ = [
    "__version__",
    "ConnectionDetails",
    "FormatCandidate",
    "build_candidates",
    "GovcExecutor",
    "GovcInventory",
    "parse_lines",
    "parse_template_batch",
    "derive_datastore_clusters",
]
