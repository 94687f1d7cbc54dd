# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/vmware/vsphere/probe.py
"""
First-contact probe: walk the format candidates until govc accepts one.

The first candidate that lists the root inventory wins; later candidates are
never tried. Individual failures are expected and only logged at debug. When
every candidate fails the last error is raised, with all attempts attached
to its context.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ...core.exceptions import BinaryUnavailable, GovcError
from .errors import ErrorKind, classify_error
from .formats import ConnectionDetails, FormatCandidate, build_candidates, candidate_env
from .parsing import InventoryItem, parse_lines

PROBE_COMMAND = "ls"


@dataclass(frozen=True)
class ProbeResult:
    items: List[InventoryItem]
    candidate: FormatCandidate
    env: Dict[str, str]
    attempts: int


def probe_connection(
    connection: ConnectionDetails,
    executor: Any,
    *,
    candidates: Optional[Sequence[FormatCandidate]] = None,
    insecure: bool = True,
    logger: Optional[logging.Logger] = None,
) -> ProbeResult:
    log = logger or logging.getLogger("terrasphere.probe")
    cands = tuple(candidates) if candidates is not None else build_candidates(connection)
    attempts: List[Dict[str, Any]] = []
    last: Optional[GovcError] = None

    for idx, cand in enumerate(cands, 1):
        env = candidate_env(connection, cand, insecure=insecure)
        log.debug("probe %d/%d: url=%s %s", idx, len(cands), env["GOVC_URL"], cand.describe())
        try:
            out = executor.execute(PROBE_COMMAND, env)
        except BinaryUnavailable:
            # no candidate can succeed without the binary
            raise
        except GovcError as e:
            kind = classify_error(e)
            log.debug("probe %d/%d failed (%s): %s", idx, len(cands), kind.value, e)
            attempts.append({"n": idx, "url": env["GOVC_URL"], "user": cand.user, "kind": kind.value, "error": str(e)})
            last = e
            continue

        log.info("govc connected with format %d/%d (%s)", idx, len(cands), env["GOVC_URL"])
        return ProbeResult(
            items=parse_lines(out, "datacenter"),
            candidate=cand,
            env=env,
            attempts=idx,
        )

    if last is None:
        raise GovcError(
            "no connection formats to try",
            kind=ErrorKind.UNKNOWN,
            context={"server": connection.server},
        )

    log.warning("all %d connection formats failed for %s", len(cands), connection.server)
    last.kind = classify_error(last)
    last.with_context(attempts=attempts, server=connection.server)
    raise last
