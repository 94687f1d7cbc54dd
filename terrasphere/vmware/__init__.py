# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""vSphere access: govc transport, inventory probing and the REST client."""
