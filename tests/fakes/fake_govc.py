# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple


class FakeGovc:
    """
    Stand-in for GovcExecutor.

    ``handler(command, env)`` returns stdout or raises; every call is
    recorded in ``calls`` as (command, env).
    """

    def __init__(self, handler: Optional[Callable[[str, Dict[str, str]], Any]] = None, *, available: bool = True):
        self.handler = handler or (lambda cmd, env: "")
        self._available = available
        self.calls: List[Tuple[str, Dict[str, str]]] = []

    def available(self) -> bool:
        return self._available

    def execute(self, command: str, env: Optional[Dict[str, str]] = None) -> str:
        env = dict(env or {})
        self.calls.append((command, env))
        return self.handler(command, env)

    @property
    def commands(self) -> List[str]:
        return [c for c, _ in self.calls]
