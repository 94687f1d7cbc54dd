# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""Core helpers: errors, logging and small utilities."""
from .exceptions import (
    BinaryUnavailable,
    Fatal,
    GovcError,
    IntegrationError,
    TerraformError,
    TerraSphereError,
    VMwareError,
)
from .logger import Log

__all__ = [
    "BinaryUnavailable",
    "Fatal",
    "GovcError",
    "IntegrationError",
    "TerraformError",
    "TerraSphereError",
    "VMwareError",
    "Log",
]
