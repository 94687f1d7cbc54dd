# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/core/utils.py
from __future__ import annotations

import datetime as _dt
import json
import logging
import os
import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class U:
    @staticmethod
    def ensure_dir(p: Path) -> Path:
        p.mkdir(parents=True, exist_ok=True)
        return p

    @staticmethod
    def which(prog: str) -> Optional[str]:
        from shutil import which as _which
        return _which(prog)

    @staticmethod
    def now_iso() -> str:
        return _dt.datetime.now(tz=_dt.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

    @staticmethod
    def json_dump(obj: Any) -> str:
        try:
            return json.dumps(obj, indent=2, sort_keys=True, default=str)
        except (TypeError, ValueError):
            return repr(obj)

    @staticmethod
    def read_json(path: Path, default: Any = None) -> Any:
        """Parsed JSON from ``path``; ``default`` when the file does not exist."""
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return default

    @staticmethod
    def write_json(path: Path, obj: Any) -> None:
        """Write JSON via a temp file in the same directory and rename it into place."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(obj, f, indent=2, default=str)
                f.write("\n")
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    @staticmethod
    def pretty_cmd(cmd: List[str]) -> str:
        return " ".join(shlex.quote(x) for x in cmd)

    @staticmethod
    def run_cmd(
        logger: logging.Logger,
        cmd: List[str],
        *,
        check: bool = True,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
        cwd: Optional[Union[str, Path]] = None,
    ) -> subprocess.CompletedProcess:
        """
        Run a command capturing stdout/stderr as text.

        ``env`` is merged over os.environ. With check=True a non-zero exit
        re-raises subprocess.CalledProcessError after logging the output.
        """
        pretty = U.pretty_cmd(cmd)
        logger.debug("Running: %s", pretty)

        full_env = dict(os.environ)
        if env:
            full_env.update(env)

        try:
            return subprocess.run(
                cmd,
                check=check,
                capture_output=True,
                text=True,
                env=full_env,
                timeout=timeout,
                cwd=str(cwd) if cwd is not None else None,
            )
        except subprocess.CalledProcessError as e:
            stdout = (e.stdout or "").strip()
            stderr = (e.stderr or "").strip()
            logger.error(
                "Command failed (%s): %s%s%s",
                e.returncode,
                pretty,
                f"\nstdout:\n{stdout}" if stdout else "",
                f"\nstderr:\n{stderr}" if stderr else "",
            )
            raise
        except subprocess.TimeoutExpired:
            logger.error("Command timed out: %s (timeout=%ss)", pretty, timeout)
            raise
