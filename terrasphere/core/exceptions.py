# SPDX-License-Identifier: LGPL-3.0-or-later
# terrasphere/core/exceptions.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


def _safe_int(x: Any, default: int = 1) -> int:
    try:
        return int(x)
    except Exception:
        return default


def _clamp_exit_code(code: int) -> int:
    # Exit codes are 0..255.
    if code < 0:
        return 1
    if code > 255:
        return 255
    return code


def _one_line(s: str, limit: int = 600) -> str:
    s = (s or "").strip().replace("\r", " ").replace("\n", " ")
    s = " ".join(s.split())
    return s if len(s) <= limit else (s[: limit - 3] + "...")


REDACTED = "***REDACTED***"

_SECRET_KEY_PARTS = (
    "pass",
    "secret",
    "token",
    "apikey",
    "api_key",
    "cookie",
    "session",
    "bearer",
    "private",
)


def is_secret_key(k: str) -> bool:
    ks = (k or "").lower()
    return any(p in ks for p in _SECRET_KEY_PARTS)


def redact(ctx: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Copy of ``ctx`` with secret-looking keys replaced, recursing into dicts."""
    out: Dict[str, Any] = {}
    for k, v in (ctx or {}).items():
        if is_secret_key(str(k)):
            out[k] = REDACTED
        elif isinstance(v, dict):
            out[k] = redact(v)
        else:
            out[k] = v
    return out


def _format_context_compact(ctx: Dict[str, Any]) -> str:
    safe = redact(ctx)
    return ", ".join(f"{k}={safe[k]!r}" for k in sorted(safe.keys(), key=str))


@dataclass(eq=False)
class TerraSphereError(Exception):
    """
    Base project error with:
      - stable fields for reporting/JSON
      - readable __str__ (what users see)
      - safe code handling (never crashes on int())
    """
    code: int = 1
    msg: str = "error"
    cause: Optional[BaseException] = None
    context: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        self.code = _clamp_exit_code(_safe_int(self.code, default=1))
        self.msg = _one_line(self.msg) or self.__class__.__name__
        if self.context is None:
            self.context = {}
        super().__init__(self.msg)
        self.args = (self.msg,)

    def with_context(self, **ctx: Any) -> "TerraSphereError":
        if self.context is None:
            self.context = {}
        self.context.update(ctx)
        return self

    def user_message(self, *, include_context: bool = False, include_cause: bool = False) -> str:
        """
        Human-friendly message for CLI output/logs.
        """
        parts = [self.msg or self.__class__.__name__]

        if include_context and self.context:
            parts.append(f"[{_one_line(_format_context_compact(self.context))}]")

        if include_cause and self.cause is not None:
            parts.append(f"(cause: {type(self.cause).__name__}: {_one_line(str(self.cause))})")

        return " ".join(parts)

    def __str__(self) -> str:
        return self.user_message(include_context=False, include_cause=False)

    def to_dict(self, *, include_cause: bool = False) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "code": self.code,
            "message": self.msg,
            "context": redact(self.context),
        }
        if include_cause and self.cause is not None:
            d["cause"] = {"type": type(self.cause).__name__, "message": _one_line(str(self.cause))}
        return d


class Fatal(TerraSphereError):
    """
    User-facing fatal error (exit code should be honored by top-level main()).
    """
    pass


class VMwareError(TerraSphereError):
    """
    vSphere/vCenter operation failed (REST API or govc).
    """
    pass


class GovcError(VMwareError):
    """
    govc exited non-zero.

    ``stderr`` is the raw text the tool printed, kept verbatim so callers can
    inspect it. ``kind`` is the structured classification (an ErrorKind value
    from terrasphere.vmware.vsphere.errors) filled in by the executor.
    """

    def __init__(
        self,
        msg: str = "govc failed",
        *,
        stderr: str = "",
        kind: Any = None,
        returncode: Optional[int] = None,
        code: int = 50,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code=code, msg=msg, cause=cause, context=context)
        self.stderr = stderr or ""
        self.kind = kind
        self.returncode = returncode

    def to_dict(self, *, include_cause: bool = False) -> Dict[str, Any]:
        d = super().to_dict(include_cause=include_cause)
        d["kind"] = getattr(self.kind, "value", self.kind)
        d["stderr"] = _one_line(self.stderr)
        return d


class BinaryUnavailable(GovcError):
    """The govc binary is not installed at the configured path."""
    pass


class TerraformError(TerraSphereError):
    """A terraform step failed or a run directory is unusable."""
    pass


class IntegrationError(TerraSphereError):
    """
    Satellite / AAP / REST call failed.
    ``status_code`` is the upstream HTTP status when one was received.
    """

    def __init__(
        self,
        msg: str = "integration failed",
        *,
        status_code: Optional[int] = None,
        code: int = 60,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code=code, msg=msg, cause=cause, context=context)
        self.status_code = status_code


def wrap_fatal(msg: str, exc: Optional[BaseException] = None, code: int = 1, **context: Any) -> Fatal:
    return Fatal(code=code, msg=msg, cause=exc, context=context or None)


def wrap_vmware(msg: str, exc: Optional[BaseException] = None, code: int = 50, **context: Any) -> VMwareError:
    return VMwareError(code=code, msg=msg, cause=exc, context=context or None)


def format_exception_for_cli(e: BaseException, *, verbose: int = 0) -> str:
    """
    One-liner output for CLI.

    verbose=0: just message
    verbose=1: message + compact context (if any)
    verbose>=2: message + context + cause
    """
    if isinstance(e, TerraSphereError):
        return e.user_message(
            include_context=(verbose >= 1),
            include_cause=(verbose >= 2),
        )

    if verbose >= 2:
        return f"{type(e).__name__}: {_one_line(str(e))}"
    return _one_line(str(e)) or type(e).__name__
