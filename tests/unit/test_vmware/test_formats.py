# SPDX-License-Identifier: LGPL-3.0-or-later
"""Connection format candidates."""
from __future__ import annotations

import pytest
from terrasphere.vmware.vsphere.formats import (
    ConnectionDetails,
    FormatCandidate,
    bare_user,
    build_candidates,
    candidate_env,
    candidate_url,
    govc_env,
    normalize_user,
    upn_user,
)


def _conn(user=r"CORP\alice", server="vc.example.com"):
    return ConnectionDetails(server=server, user=user, password="pw")


@pytest.mark.unit
class TestUserForms:
    def test_bare_user_strips_domain(self):
        assert bare_user(r"CORP\alice") == "alice"
        assert bare_user("alice") == "alice"

    def test_bare_user_splits_on_first_backslash(self):
        assert bare_user(r"A\B\c") == r"B\c"

    def test_upn_user(self):
        assert upn_user(r"CORP\alice") == "alice@CORP"
        assert upn_user("alice@vsphere.local") == "alice@vsphere.local"
        assert upn_user(r"A\B\c") == r"A\B\c"

    def test_normalize_escaped_backslash(self):
        assert normalize_user("CORP\\\\alice") == "CORP\\alice"


@pytest.mark.unit
class TestBuildCandidates:
    def test_ten_candidates_in_fixed_order(self):
        cands = build_candidates(_conn())
        assert len(cands) == 10
        assert [(c.protocol, c.url_suffix, c.user) for c in cands] == [
            ("", "", r"CORP\alice"),
            ("", "/sdk", r"CORP\alice"),
            ("https://", "", r"CORP\alice"),
            ("https://", "/sdk", r"CORP\alice"),
            ("", "", "alice"),
            ("", "/sdk", "alice"),
            ("https://", "", "alice"),
            ("https://", "/sdk", "alice"),
            ("", "", "alice@CORP"),
            ("https://", "", "alice@CORP"),
        ]

    def test_plain_user_still_yields_ten(self):
        cands = build_candidates(_conn(user="root"))
        assert len(cands) == 10
        assert {c.user for c in cands} == {"root"}

    def test_candidate_url_keeps_existing_scheme(self):
        cand = FormatCandidate(protocol="https://", url_suffix="/sdk", user="u")
        assert candidate_url("http://vc", cand) == "http://vc/sdk"
        assert candidate_url("vc", cand) == "https://vc/sdk"


@pytest.mark.unit
class TestEnv:
    def test_candidate_env(self):
        cand = build_candidates(_conn())[3]
        env = candidate_env(_conn(), cand)
        assert env == {
            "GOVC_URL": "https://vc.example.com/sdk",
            "GOVC_USERNAME": r"CORP\alice",
            "GOVC_PASSWORD": "pw",
            "GOVC_INSECURE": "1",
        }

    def test_canonical_env_adds_https_without_sdk(self):
        env = govc_env(_conn(), insecure=False)
        assert env["GOVC_URL"] == "https://vc.example.com"
        assert env["GOVC_INSECURE"] == "0"

    def test_repr_hides_password(self):
        assert "pw" not in repr(ConnectionDetails(server="vc", user="u", password="pw"))
