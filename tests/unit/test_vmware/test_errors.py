# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error classification for govc output."""
from __future__ import annotations

import subprocess

import pytest
from terrasphere.core.exceptions import BinaryUnavailable, Fatal, GovcError, VMwareError
from terrasphere.vmware.vsphere.errors import (
    ErrorKind,
    VsphereExitCode,
    classify_error,
    classify_text,
    exit_code_for,
)


@pytest.mark.unit
class TestClassifyText:
    @pytest.mark.parametrize(
        "text,kind",
        [
            ("govc binary not found at /usr/local/bin/govc", ErrorKind.BINARY_UNAVAILABLE),
            ("ServerFaultCode: Cannot complete login due to an incorrect user name or password.", ErrorKind.AUTH),
            ("Post https://vc/sdk: dial tcp 10.0.0.1:443: i/o timeout", ErrorKind.NETWORK),
            ("x509: certificate signed by unknown authority", ErrorKind.NETWORK),
            ("datacenter 'DC9' not found", ErrorKind.NOT_FOUND),
            ("something odd happened", ErrorKind.UNKNOWN),
            ("", ErrorKind.UNKNOWN),
        ],
    )
    def test_kinds(self, text, kind):
        assert classify_text(text) == kind


@pytest.mark.unit
class TestClassifyError:
    def test_govc_error_keeps_its_kind(self):
        assert classify_error(GovcError("x", kind=ErrorKind.AUTH)) == ErrorKind.AUTH

    def test_govc_error_without_kind_uses_stderr(self):
        assert classify_error(GovcError("x", stderr="connection refused")) == ErrorKind.NETWORK

    def test_binary_unavailable(self):
        assert classify_error(BinaryUnavailable("gone")) == ErrorKind.BINARY_UNAVAILABLE
        assert classify_error(FileNotFoundError("govc")) == ErrorKind.BINARY_UNAVAILABLE

    def test_timeouts(self):
        assert classify_error(subprocess.TimeoutExpired("govc", 3)) == ErrorKind.NETWORK
        assert classify_error(TimeoutError()) == ErrorKind.NETWORK


@pytest.mark.unit
class TestExitCodes:
    def test_mapping(self):
        assert exit_code_for(GovcError("x", kind=ErrorKind.AUTH)) == VsphereExitCode.AUTH
        assert exit_code_for(BinaryUnavailable("x")) == VsphereExitCode.TOOL_MISSING
        assert exit_code_for(VMwareError(msg="whatever")) == VsphereExitCode.UNKNOWN
        assert exit_code_for(Fatal(code=2, msg="usage")) == 2
        assert exit_code_for(KeyboardInterrupt()) == 130
