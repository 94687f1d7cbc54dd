# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from .govc_common import DEFAULT_GOVC_PATH, GovcExecutor, GovcSettings

__all__ = ["DEFAULT_GOVC_PATH", "GovcExecutor", "GovcSettings"]
