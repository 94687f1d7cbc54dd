# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/vmware/vsphere/formats.py
"""
Connection format candidates for govc.

vCenter deployments disagree on what they accept: some want the bare host,
some want an https:// URL or the /sdk endpoint, and SSO domains accept
DOMAIN\\user, the bare user or user@domain depending on the identity source.
build_candidates() returns the fixed, ordered list the probe loop walks.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

HTTPS = "https://"
SDK_SUFFIX = "/sdk"


@dataclass(frozen=True)
class ConnectionDetails:
    server: str
    user: str
    password: str

    def __repr__(self) -> str:
        return f"ConnectionDetails(server={self.server!r}, user={self.user!r}, password='***')"


@dataclass(frozen=True)
class FormatCandidate:
    protocol: str  # "" or "https://"
    url_suffix: str  # "" or "/sdk"
    user: str

    def url(self, server: str) -> str:
        return candidate_url(server, self)

    def describe(self) -> str:
        return f"protocol={self.protocol or '-'} suffix={self.url_suffix or '-'} user={self.user}"


def normalize_user(user: str) -> str:
    """Collapse an escaped DOMAIN\\\\user (as typed into JSON) to DOMAIN\\user."""
    return (user or "").replace("\\\\", "\\")


def bare_user(user: str) -> str:
    """Everything after the first backslash; the user unchanged when there is none."""
    if "\\" not in user:
        return user
    return user.split("\\", 1)[1]


def upn_user(user: str) -> str:
    """DOMAIN\\user -> user@DOMAIN, only for exactly one backslash."""
    parts = user.split("\\")
    if len(parts) != 2:
        return user
    return f"{parts[1]}@{parts[0]}"


def build_candidates(connection: ConnectionDetails) -> Tuple[FormatCandidate, ...]:
    """
    The 10 candidates, always in this order:

      1-4   as-given user  x  {"", https://} x {"", /sdk}
      5-8   bare user      x  {"", https://} x {"", /sdk}
      9-10  user@domain    x  {"", https://} (no /sdk)
    """
    user = normalize_user(connection.user)
    bare = bare_user(user)
    upn = upn_user(user)

    out = []
    for u in (user, bare):
        for proto in ("", HTTPS):
            for suffix in ("", SDK_SUFFIX):
                out.append(FormatCandidate(protocol=proto, url_suffix=suffix, user=u))
    for proto in ("", HTTPS):
        out.append(FormatCandidate(protocol=proto, url_suffix="", user=upn))
    return tuple(out)


def has_scheme(server: str) -> bool:
    s = (server or "").lower()
    return s.startswith("http://") or s.startswith("https://")


def candidate_url(server: str, candidate: FormatCandidate) -> str:
    server = (server or "").strip()
    url = server if has_scheme(server) else f"{candidate.protocol}{server}"
    return f"{url}{candidate.url_suffix}"


def candidate_env(connection: ConnectionDetails, candidate: FormatCandidate, *, insecure: bool = True) -> Dict[str, str]:
    return {
        "GOVC_URL": candidate_url(connection.server, candidate),
        "GOVC_USERNAME": candidate.user,
        "GOVC_PASSWORD": connection.password,
        "GOVC_INSECURE": "1" if insecure else "0",
    }


def govc_env(connection: ConnectionDetails, *, insecure: bool = True) -> Dict[str, str]:
    """
    Canonical environment used by everything except the first-contact probe:
    https:// added when no scheme is present, no /sdk, user as given.
    """
    server = (connection.server or "").strip()
    return {
        "GOVC_URL": server if has_scheme(server) else f"{HTTPS}{server}",
        "GOVC_USERNAME": normalize_user(connection.user),
        "GOVC_PASSWORD": connection.password,
        "GOVC_INSECURE": "1" if insecure else "0",
    }
