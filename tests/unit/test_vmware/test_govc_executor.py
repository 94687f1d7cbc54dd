# SPDX-License-Identifier: LGPL-3.0-or-later
"""GovcExecutor process handling (subprocess mocked)."""
from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest
from fakes.fake_logger import FakeLogger
from terrasphere.core.exceptions import BinaryUnavailable, GovcError
from terrasphere.vmware.transports.govc_common import GovcExecutor, GovcSettings, quote_arg
from terrasphere.vmware.vsphere.errors import ErrorKind

ENV = {"GOVC_URL": "https://vc", "GOVC_USERNAME": "u", "GOVC_PASSWORD": "p w", "GOVC_INSECURE": "1"}


def _cp(rc=0, out="", err=""):
    return subprocess.CompletedProcess(args=["govc"], returncode=rc, stdout=out, stderr=err)


@pytest.mark.unit
class TestGovcExecutor:
    def test_missing_binary_fails_before_spawn(self, tmp_path):
        ex = GovcExecutor(GovcSettings(govc_path=str(tmp_path / "govc")))
        with patch("terrasphere.vmware.transports.govc_common.subprocess.run") as run:
            with pytest.raises(BinaryUnavailable) as ei:
                ex.execute("ls", ENV)
        run.assert_not_called()
        assert "govc binary not found" in str(ei.value)
        assert ei.value.kind == ErrorKind.BINARY_UNAVAILABLE

    @patch("terrasphere.vmware.transports.govc_common.os.path.exists", return_value=True)
    @patch("terrasphere.vmware.transports.govc_common.subprocess.run")
    def test_success_returns_trimmed_stdout(self, run, _exists):
        run.return_value = _cp(out="  /DC1\n/DC2\n\n")
        out = GovcExecutor(GovcSettings(govc_path="/opt/govc")).execute('find -type c -dc="My DC"', ENV)

        assert out == "/DC1\n/DC2"
        argv = run.call_args.args[0]
        assert argv == ["/opt/govc", "find", "-type", "c", "-dc=My DC"]
        env = run.call_args.kwargs["env"]
        assert env["GOVC_PASSWORD"] == "p w"

    @patch("terrasphere.vmware.transports.govc_common.os.path.exists", return_value=True)
    @patch("terrasphere.vmware.transports.govc_common.subprocess.run")
    def test_nonzero_exit_raises_with_stderr(self, run, _exists):
        stderr = "ServerFaultCode: Cannot complete login due to an incorrect user name or password."
        run.return_value = _cp(rc=1, err=stderr + "\n")

        with pytest.raises(GovcError) as ei:
            GovcExecutor().execute("ls", ENV)

        err = ei.value
        assert err.stderr == stderr
        assert err.kind == ErrorKind.AUTH
        assert err.returncode == 1
        assert "Cannot complete login" in str(err)
        assert "p w" not in str(err)

    @patch("terrasphere.vmware.transports.govc_common.os.path.exists", return_value=True)
    @patch("terrasphere.vmware.transports.govc_common.subprocess.run")
    def test_stderr_on_success_is_a_warning(self, run, _exists):
        run.return_value = _cp(out="/DC1", err="deprecated flag")
        log = FakeLogger()

        assert GovcExecutor(logger=log).execute("ls", ENV) == "/DC1"
        assert any("deprecated flag" in m for m in log.messages("warning"))

    @patch("terrasphere.vmware.transports.govc_common.os.path.exists", return_value=True)
    @patch("terrasphere.vmware.transports.govc_common.subprocess.run")
    def test_timeout_is_network_error(self, run, _exists):
        run.side_effect = subprocess.TimeoutExpired(cmd="govc", timeout=5)
        with pytest.raises(GovcError) as ei:
            GovcExecutor(GovcSettings(timeout=5)).execute("ls", ENV)
        assert ei.value.kind == ErrorKind.NETWORK

    @patch("terrasphere.vmware.transports.govc_common.subprocess.run")
    def test_wsl_mode_wraps_in_bash(self, run):
        run.return_value = _cp(out="/DC1")
        ex = GovcExecutor(GovcSettings(govc_path="/usr/local/bin/govc", mode="wsl"))
        ex.execute("ls", ENV)

        argv = run.call_args.args[0]
        assert argv[:3] == ["wsl", "bash", "-c"]
        assert "GOVC_PASSWORD='p w'" in argv[3]
        assert argv[3].endswith("/usr/local/bin/govc ls")

    @patch("terrasphere.vmware.transports.govc_common.subprocess.run")
    def test_wsl_mode_keeps_dollar_literal(self, run):
        run.return_value = _cp(out="{}")
        ex = GovcExecutor(GovcSettings(govc_path="/usr/local/bin/govc", mode="wsl"))
        ex.execute("vm.info -json " + quote_arg("/DC1/vm/tpl-$HOME-`id`"), ENV)

        inner = run.call_args.args[0][3]
        assert inner.endswith("/usr/local/bin/govc vm.info -json '/DC1/vm/tpl-$HOME-`id`'")

    @patch("terrasphere.vmware.transports.govc_common.os.path.exists", return_value=True)
    @patch("terrasphere.vmware.transports.govc_common.subprocess.run")
    def test_execute_json(self, run, _exists):
        run.return_value = _cp(out='{"virtualMachines": []}')
        assert GovcExecutor().execute_json("vm.info -json x", ENV) == {"virtualMachines": []}

        run.return_value = _cp(out="nope")
        with pytest.raises(GovcError):
            GovcExecutor().execute_json("vm.info -json x", ENV)


@pytest.mark.unit
def test_quote_arg():
    assert quote_arg("My DC") == '"My DC"'
    assert quote_arg('a"b') == '"a\\"b"'
