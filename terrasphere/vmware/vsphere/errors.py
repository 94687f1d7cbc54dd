# SPDX-License-Identifier: LGPL-3.0-or-later
# terrasphere/vmware/vsphere/errors.py
# -*- coding: utf-8 -*-
"""Error classification and exit code handling for vSphere operations"""
from __future__ import annotations

import errno
import socket
import subprocess
from enum import Enum, IntEnum
from typing import Optional

from ...core.exceptions import BinaryUnavailable, Fatal, GovcError, VMwareError


class ErrorKind(str, Enum):
    BINARY_UNAVAILABLE = "binary_unavailable"
    AUTH = "auth"
    NETWORK = "network"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class VsphereExitCode(IntEnum):
    OK = 0
    UNKNOWN = 1
    USAGE = 2

    AUTH = 10
    NOT_FOUND = 11
    NETWORK = 12
    TOOL_MISSING = 13

    INTERRUPTED = 130


def _is_tool_missing_text(msg: str) -> bool:
    return (
        "govc binary not found" in msg
        or ("govc" in msg and "no such file" in msg)
        or "executable file not found" in msg
    )


def _is_auth_text(msg: str) -> bool:
    needles = [
        "not authenticated",
        "authentication",
        "cannot complete login",
        "incorrect user name or password",
        "unauthorized",
        "forbidden",
        "invalid login",
        "no permission",
        "access denied",
        "permission denied",
        "401",
    ]
    return any(n in msg for n in needles)


def _is_network_text(msg: str) -> bool:
    needles = [
        "timed out",
        "timeout",
        "connection refused",
        "connection reset",
        "no route to host",
        "no such host",
        "name or service not known",
        "temporary failure in name resolution",
        "tls",
        "x509",
        "handshake",
        "certificate verify failed",
    ]
    return any(n in msg for n in needles)


def _is_not_found_text(msg: str) -> bool:
    needles = [
        "not found",
        "does not exist",
        "no such file",
    ]
    return any(n in msg for n in needles)


def classify_text(text: Optional[str]) -> ErrorKind:
    """
    Map govc stderr (or any error text) to an ErrorKind.

    Order matters: a missing binary also says "not found", and an auth
    failure over a flaky link can mention both.
    """
    msg = (text or "").lower()
    if not msg.strip():
        return ErrorKind.UNKNOWN
    if _is_tool_missing_text(msg):
        return ErrorKind.BINARY_UNAVAILABLE
    if _is_auth_text(msg):
        return ErrorKind.AUTH
    if _is_network_text(msg):
        return ErrorKind.NETWORK
    if _is_not_found_text(msg):
        return ErrorKind.NOT_FOUND
    return ErrorKind.UNKNOWN


def classify_error(e: BaseException) -> ErrorKind:
    """ErrorKind for any exception; GovcError keeps the kind the executor set."""
    if isinstance(e, BinaryUnavailable):
        return ErrorKind.BINARY_UNAVAILABLE
    if isinstance(e, GovcError) and isinstance(e.kind, ErrorKind):
        return e.kind
    if isinstance(e, FileNotFoundError):
        return ErrorKind.BINARY_UNAVAILABLE
    if isinstance(e, (socket.timeout, TimeoutError, ConnectionError, subprocess.TimeoutExpired)):
        return ErrorKind.NETWORK
    if isinstance(e, OSError) and e.errno in (
        errno.ECONNREFUSED,
        errno.ETIMEDOUT,
        errno.EHOSTUNREACH,
        errno.ENETUNREACH,
        errno.ECONNRESET,
    ):
        return ErrorKind.NETWORK
    text = e.stderr if isinstance(e, GovcError) and e.stderr else str(e)
    return classify_text(text)


_KIND_EXIT = {
    ErrorKind.BINARY_UNAVAILABLE: VsphereExitCode.TOOL_MISSING,
    ErrorKind.AUTH: VsphereExitCode.AUTH,
    ErrorKind.NETWORK: VsphereExitCode.NETWORK,
    ErrorKind.NOT_FOUND: VsphereExitCode.NOT_FOUND,
    ErrorKind.UNKNOWN: VsphereExitCode.UNKNOWN,
}


def exit_code_for(e: BaseException) -> int:
    if isinstance(e, KeyboardInterrupt):
        return int(VsphereExitCode.INTERRUPTED)
    if isinstance(e, Fatal):
        return e.code
    if isinstance(e, VMwareError):
        return int(_KIND_EXIT[classify_error(e)])
    return int(VsphereExitCode.UNKNOWN)
