# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/vmware/transports/govc_common.py
from __future__ import annotations

"""
govc process executor.

  - Runs one govc subcommand with a GOVC_* environment and returns trimmed stdout
  - Missing binary fails before spawning (BinaryUnavailable)
  - Non-zero exit raises GovcError carrying stderr verbatim plus an ErrorKind
  - stderr on a successful run is logged as a warning; govc prints diagnostics there
  - Optional "wsl" mode wraps the call in `wsl bash -c` for Windows hosts
"""

import json
import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from ...core.exceptions import BinaryUnavailable, GovcError
from ...core.logging_utils import mask_env
from ..vsphere.errors import ErrorKind, classify_text

DEFAULT_GOVC_PATH = "/usr/local/bin/govc"

GOVC_ENV_KEYS = ("GOVC_URL", "GOVC_USERNAME", "GOVC_PASSWORD", "GOVC_INSECURE", "GOVC_DATACENTER")


@dataclass(frozen=True)
class GovcSettings:
    govc_path: str = DEFAULT_GOVC_PATH
    mode: str = "native"  # "native" | "wsl"
    timeout: Optional[float] = None
    wsl_bin: str = "wsl"


def _summarize(text: str, limit: int = 240) -> str:
    t = " ".join((text or "").split())
    return t if len(t) <= limit else t[: limit - 3] + "..."


class GovcExecutor:
    """
    execute(command, env) -> stdout

    ``command`` is the govc subcommand with its arguments as one string, the
    way it would be typed after `govc` in a shell (quoted arguments allowed).
    """

    def __init__(
        self,
        settings: Optional[GovcSettings] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.settings = settings or GovcSettings()
        self.logger = logger or logging.getLogger("terrasphere.govc")

    def available(self) -> bool:
        if self.settings.mode == "wsl":
            return True
        return os.path.exists(self.settings.govc_path)

    def _argv(self, command: str, env: Mapping[str, str]) -> List[str]:
        if self.settings.mode == "wsl":
            assigns = " ".join(
                f"{k}={shlex.quote(str(env[k]))}" for k in GOVC_ENV_KEYS if env.get(k) is not None
            )
            # re-quote for bash: double quotes would still expand $ and backticks
            args = " ".join(shlex.quote(a) for a in shlex.split(command))
            inner = f"{assigns} {shlex.quote(self.settings.govc_path)} {args}".strip()
            return [self.settings.wsl_bin, "bash", "-c", inner]
        return [self.settings.govc_path] + shlex.split(command)

    def execute(self, command: str, env: Optional[Mapping[str, str]] = None) -> str:
        env = dict(env or {})
        path = self.settings.govc_path

        if not self.available():
            raise BinaryUnavailable(
                f"govc binary not found at {path}",
                kind=ErrorKind.BINARY_UNAVAILABLE,
                context={"govc_path": path},
            )

        argv = self._argv(command, env)
        full_env = dict(os.environ)
        full_env.update(env)

        self.logger.debug("govc %s (env=%s)", command, mask_env(env))
        try:
            cp = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                env=full_env,
                timeout=self.settings.timeout,
            )
        except FileNotFoundError as e:
            # wsl itself missing, or the binary vanished between check and spawn
            raise BinaryUnavailable(
                f"govc binary not found at {path}",
                kind=ErrorKind.BINARY_UNAVAILABLE,
                cause=e,
                context={"govc_path": path},
            ) from e
        except subprocess.TimeoutExpired as e:
            raise GovcError(
                f"govc timed out after {self.settings.timeout}s: {command}",
                stderr=str(e),
                kind=ErrorKind.NETWORK,
                context={"command": command, "url": env.get("GOVC_URL")},
            ) from e

        stdout = (cp.stdout or "").strip()
        stderr = (cp.stderr or "").strip()

        if cp.returncode != 0:
            detail = stderr or stdout or "no output"
            self.logger.debug("govc failed rc=%s: %s", cp.returncode, _summarize(detail))
            raise GovcError(
                f"govc failed ({cp.returncode}): {_summarize(detail)}",
                stderr=stderr or stdout,
                kind=classify_text(detail),
                returncode=cp.returncode,
                context={"command": command, "url": env.get("GOVC_URL")},
            )

        if stderr:
            self.logger.warning("govc stderr: %s", _summarize(stderr))

        self.logger.debug("govc ok: %d bytes stdout", len(stdout))
        return stdout

    def execute_json(self, command: str, env: Optional[Mapping[str, str]] = None) -> Any:
        out = self.execute(command, env)
        if not out:
            return {}
        try:
            return json.loads(out)
        except json.JSONDecodeError as e:
            raise GovcError(
                f"govc returned invalid JSON for: {command}",
                stderr=_summarize(out),
                kind=ErrorKind.UNKNOWN,
                cause=e,
                context={"command": command},
            ) from e


def quote_arg(value: str) -> str:
    """Double-quote a govc argument (inventory paths contain spaces)."""
    return '"' + str(value).replace("\\", "\\\\").replace('"', '\\"') + '"'
