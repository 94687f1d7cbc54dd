# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from .infra_cache import InfraCache

__all__ = ["InfraCache"]
