# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from .app_config import AppConfig, build_config

__all__ = ["AppConfig", "build_config"]
