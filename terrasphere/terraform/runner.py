# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/terraform/runner.py
from __future__ import annotations

"""
Terraform plan/apply/destroy for one VM per run directory.

Layout under runs_dir:

    <vm_name>-<timestamp>/
        <vm_name>.tfvars
        <vm_name>.tfplan
        status.json       {status, startTime, endTime?, logs[], vmId?, error?}

terraform itself runs in terraform_dir (where the .tf modules live); the run
directory only holds inputs, the saved plan and status.
"""

import datetime as _dt
import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..core.exceptions import Fatal, TerraformError
from ..core.logging_utils import log_step
from ..core.utils import U
from .tfvars import PASSWORD_ENV, render_tfvars

STATUS_FILE = "status.json"

PLANNED = "planned"
RUNNING = "running"
COMPLETED = "completed"
FAILED = "failed"
DESTROYING = "destroying"
DESTROYED = "destroyed"
DESTROY_FAILED = "destroy_failed"

_VM_ID_RE = re.compile(r"VM ID: ([a-zA-Z0-9-]+)")
_RUN_NAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")
_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def extract_vm_id(output: str) -> Optional[str]:
    m = _VM_ID_RE.search(output or "")
    return m.group(1) if m else None


def safe_name(vm_name: str) -> str:
    return _UNSAFE_NAME_RE.sub("-", vm_name or "").strip("-") or "vm"


def run_timestamp(now: Optional[_dt.datetime] = None) -> str:
    # 2024-05-01T10-22-33 (ISO without colons or fraction)
    now = now or _dt.datetime.now(tz=_dt.timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S")


@dataclass
class StepResult:
    command: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class RunStore:
    """Run directories and their status.json files."""

    def __init__(self, runs_dir: Path, logger: Optional[logging.Logger] = None):
        self.runs_dir = Path(runs_dir).resolve()
        self.logger = logger or logging.getLogger("terrasphere.terraform")

    def resolve(self, run_name: str) -> Path:
        """Run directory for ``run_name``; rejects anything that is not a plain child name."""
        name = (run_name or "").strip()
        if not name or not _RUN_NAME_RE.match(name) or name in (".", ".."):
            raise TerraformError(code=2, msg=f"invalid run directory name: {run_name!r}")
        return self.runs_dir / name

    def create(self, vm_name: str, now: Optional[_dt.datetime] = None) -> Path:
        return U.ensure_dir(self.runs_dir / f"{safe_name(vm_name)}-{run_timestamp(now)}")

    def read_status(self, run_dir: Path) -> Optional[Dict[str, Any]]:
        return U.read_json(Path(run_dir) / STATUS_FILE)

    def write_status(self, run_dir: Path, status: str, message: Optional[str] = None, **fields: Any) -> Dict[str, Any]:
        data = self.read_status(run_dir) or {"logs": []}
        data["status"] = status
        data["timestamp"] = U.now_iso()
        data.setdefault("startTime", data["timestamp"])
        if status in (COMPLETED, FAILED, DESTROYED, DESTROY_FAILED):
            data["endTime"] = data["timestamp"]
        if message:
            data.setdefault("logs", []).append({"time": data["timestamp"], "message": message})
        data.update({k: v for k, v in fields.items() if v is not None})
        U.write_json(Path(run_dir) / STATUS_FILE, data)
        return data

    def status(self, run_name: str) -> Dict[str, Any]:
        run_dir = self.resolve(run_name)
        data = self.read_status(run_dir)
        if data is None:
            raise TerraformError(code=4, msg=f"no status for run {run_name}", context={"run": run_name})
        return data

    def deployments(self) -> List[Dict[str, Any]]:
        """All runs that have a status file, newest first."""
        if not self.runs_dir.is_dir():
            return []
        out: List[Dict[str, Any]] = []
        for d in self.runs_dir.iterdir():
            if not d.is_dir():
                continue
            st = self.read_status(d)
            if st is None:
                continue
            out.append({"runDir": d.name, **st})
        out.sort(key=lambda s: str(s.get("startTime") or s.get("timestamp") or ""), reverse=True)
        return out

    @staticmethod
    def find_file(run_dir: Path, suffix: str) -> Optional[Path]:
        for p in sorted(Path(run_dir).glob(f"*{suffix}")):
            return p
        return None


class TerraformRunner:
    def __init__(
        self,
        terraform_dir: Path,
        store: RunStore,
        *,
        terraform_bin: str = "terraform",
        timeout: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.terraform_dir = Path(terraform_dir)
        self.store = store
        self.terraform_bin = terraform_bin
        self.timeout = timeout
        self.logger = logger or logging.getLogger("terrasphere.terraform")

    def _require_binary(self) -> None:
        if os.path.sep in self.terraform_bin:
            if os.path.exists(self.terraform_bin):
                return
        elif U.which(self.terraform_bin):
            return
        raise Fatal(127, f"terraform binary not found: {self.terraform_bin}")

    def _run(self, args: List[str], password: Optional[str]) -> StepResult:
        cmd = [self.terraform_bin] + args
        env: Dict[str, str] = {"TF_IN_AUTOMATION": "1"}
        if password:
            env[PASSWORD_ENV] = password
        try:
            cp = U.run_cmd(self.logger, cmd, check=False, env=env, cwd=self.terraform_dir, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise TerraformError(code=124, msg=f"terraform {args[0]} timed out", cause=e) from e
        return StepResult(command=cmd, returncode=cp.returncode, stdout=cp.stdout or "", stderr=cp.stderr or "")

    def _step(self, args: List[str], password: Optional[str]) -> StepResult:
        res = self._run(args, password)
        if not res.ok:
            raise TerraformError(
                code=res.returncode or 1,
                msg=f"terraform {args[0]} failed: {(res.stderr or res.stdout).strip()[-2000:]}",
                context={"step": args[0]},
            )
        return res

    def plan(self, vm_vars: Mapping[str, Any], password: Optional[str]) -> Dict[str, Any]:
        """init, validate, then plan into ``<run_dir>/<vm>.tfplan``."""
        self._require_binary()
        vm_name = str(vm_vars.get("vm_name") or "vm")
        run_dir = self.store.create(vm_name)
        tfvars_path = run_dir / f"{safe_name(vm_name)}.tfvars"
        tfvars_path.write_text(render_tfvars(vm_vars), encoding="utf-8")
        plan_path = run_dir / f"{tfvars_path.stem}.tfplan"
        self.logger.info("Saved tfvars to %s", tfvars_path)

        try:
            with log_step(self.logger, f"terraform plan for {vm_name}"):
                self._step(["init", "-input=false", "-no-color"], password)
                self._step(["validate", "-no-color"], password)
                res = self._step(
                    ["plan", "-input=false", "-no-color", "-var-file", str(tfvars_path), "-out", str(plan_path)],
                    password,
                )
        except TerraformError as e:
            self.store.write_status(run_dir, FAILED, f"Plan failed: {e}", error=str(e))
            raise e.with_context(run_dir=run_dir.name)

        self.store.write_status(run_dir, PLANNED, "Plan generated", planPath=str(plan_path), vmName=vm_name)
        return {
            "runDir": run_dir.name,
            "planPath": str(plan_path),
            "tfvarsPath": str(tfvars_path),
            "planOutput": res.stdout,
        }

    def apply(self, run_name: str, password: Optional[str]) -> Dict[str, Any]:
        self._require_binary()
        run_dir = self.store.resolve(run_name)
        plan_path = self.store.find_file(run_dir, ".tfplan")
        if plan_path is None:
            raise TerraformError(code=4, msg=f"no saved plan in run {run_name}", context={"run": run_name})

        self.store.write_status(run_dir, RUNNING, "Terraform apply started", planPath=str(plan_path))
        try:
            with log_step(self.logger, f"terraform apply {run_name}"):
                res = self._step(["apply", "-input=false", "-no-color", "-auto-approve", str(plan_path)], password)
        except TerraformError as e:
            self.store.write_status(run_dir, FAILED, f"Terraform apply failed: {e}", error=str(e))
            raise e.with_context(run_dir=run_name)

        vm_id = extract_vm_id(res.stdout)
        self.store.write_status(
            run_dir, COMPLETED, "Terraform apply completed successfully", output=res.stdout, vmId=vm_id
        )
        return {"runDir": run_name, "applyOutput": res.stdout, "vmId": vm_id}

    def destroy(self, run_name: str, password: Optional[str]) -> Dict[str, Any]:
        self._require_binary()
        run_dir = self.store.resolve(run_name)
        tfvars_path = self.store.find_file(run_dir, ".tfvars")
        if tfvars_path is None:
            raise TerraformError(code=4, msg=f"no tfvars file in run {run_name}", context={"run": run_name})

        self.store.write_status(run_dir, DESTROYING, "Terraform destroy started")
        try:
            with log_step(self.logger, f"terraform destroy {run_name}"):
                res = self._step(
                    ["destroy", "-input=false", "-no-color", "-auto-approve", "-var-file", str(tfvars_path)],
                    password,
                )
        except TerraformError as e:
            self.store.write_status(run_dir, DESTROY_FAILED, f"Terraform destroy failed: {e}", error=str(e))
            raise e.with_context(run_dir=run_name)

        self.store.write_status(run_dir, DESTROYED, "Infrastructure destroyed successfully", destroyOutput=res.stdout)
        return {"runDir": run_name, "destroyOutput": res.stdout}
