# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from .aap import AapClient
from .satellite import SatelliteClient

__all__ = ["AapClient", "SatelliteClient"]
