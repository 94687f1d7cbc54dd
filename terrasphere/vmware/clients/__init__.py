# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from .rest_client import VsphereRestClient

__all__ = ["VsphereRestClient"]
