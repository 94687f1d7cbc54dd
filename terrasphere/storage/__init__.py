# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from .settings import SettingsStore
from .workspaces import WorkspaceNotFound, WorkspaceStore

__all__ = ["SettingsStore", "WorkspaceNotFound", "WorkspaceStore"]
