# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""
govc-backed discovery: connection format probing, inventory parsing and the
datastore-cluster heuristics.
"""
