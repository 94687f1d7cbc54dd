# SPDX-License-Identifier: LGPL-3.0-or-later
"""Satellite and AAP clients over mocked sessions."""
from __future__ import annotations

import shlex
from unittest.mock import MagicMock

import pytest
from terrasphere.core.exceptions import IntegrationError
from terrasphere.integrations.aap import AapClient
from terrasphere.integrations.satellite import SatelliteClient


def _resp(status=200, body=None, text=""):
    r = MagicMock()
    r.status_code = status
    r.json.return_value = body or {}
    r.text = text
    r.content = b"x" if body is not None else b""
    return r


@pytest.mark.unit
class TestSatellite:
    def test_requires_url_and_credentials(self):
        with pytest.raises(IntegrationError) as ei:
            SatelliteClient("", "u", "p", session=MagicMock())
        assert ei.value.status_code == 400
        with pytest.raises(IntegrationError):
            SatelliteClient("https://sat", "u", "", session=MagicMock())

    def test_host_groups_paginated(self):
        s = MagicMock()
        page1 = {"results": [{"id": i, "name": f"hg{i}", "title": f"Base/hg{i}"} for i in range(100)], "total": 150, "per_page": 100}
        page2 = {"results": [{"id": i, "name": f"hg{i}"} for i in range(100, 150)], "total": 150, "per_page": 100}
        s.get.side_effect = [_resp(body=page1), _resp(body=page2)]

        groups = SatelliteClient("https://sat/", "u", "p", session=s).host_groups()

        assert len(groups) == 150
        assert groups[0] == {"id": 0, "name": "Base/hg0", "description": "Base/hg0", "short_name": "hg0"}
        assert groups[149]["name"] == "hg149"
        assert s.get.call_args_list[1].kwargs["params"] == {"per_page": 100, "page": 2}
        assert s.get.call_args_list[0].args[0] == "https://sat/api/v2/hostgroups"

    def test_http_error_carries_status(self):
        s = MagicMock()
        s.get.return_value = _resp(401, text="Unable to authenticate user")
        with pytest.raises(IntegrationError) as ei:
            SatelliteClient("https://sat", "u", "p", session=s).host_groups()
        assert ei.value.status_code == 401

    def test_registration_command(self):
        client = SatelliteClient("https://sat", "admin", "p'w", session=MagicMock())
        cmd = client.registration_command({"id": 7, "name": "Web"}, "web01.example.com")

        tokens = shlex.split(cmd.replace("\\\n", " "))
        assert tokens[:4] == ["curl", "-X", "POST", "https://sat/api/v2/hosts"]
        assert "admin:p'w" in tokens
        assert '"hostgroup_id": 7' in tokens[-1]
        assert '"name": "web01.example.com"' in tokens[-1]

    def test_registration_requires_inputs(self):
        client = SatelliteClient("https://sat", "admin", "pw", session=MagicMock())
        with pytest.raises(IntegrationError):
            client.registration_command(None, "web01")


@pytest.mark.unit
class TestAap:
    def test_base_url_normalized(self):
        assert AapClient("https://aap/", "t", session=MagicMock()).api_url == "https://aap/api/v2"
        assert AapClient("https://aap/api/v2", "t", session=MagicMock()).api_url == "https://aap/api/v2"

    def test_requires_config(self):
        with pytest.raises(IntegrationError) as ei:
            AapClient("", "", session=MagicMock())
        assert ei.value.status_code == 400

    def test_job_templates_follow_next(self):
        s = MagicMock()
        s.request.side_effect = [
            _resp(body={"results": [{"id": 1, "name": "a"}], "next": "/api/v2/job_templates/?page=2&page_size=100"}),
            _resp(body={"results": [{"id": 2, "name": "b", "description": "B"}], "next": None}),
        ]
        out = AapClient("https://aap", "t", session=s).job_templates()

        assert out == [{"id": 1, "name": "a", "description": ""}, {"id": 2, "name": "b", "description": "B"}]
        assert s.request.call_args_list[1].args == ("GET", "https://aap/api/v2/job_templates/?page=2&page_size=100")

    def test_launch(self):
        s = MagicMock()
        s.request.return_value = _resp(body={"job": 55, "status": "pending"})
        job = AapClient("https://aap", "t", session=s).launch(9, extra_vars={"x": 1}, limit="web01")

        assert job["id"] == 55
        assert job["status"] == "pending"
        args, kwargs = s.request.call_args
        assert args == ("POST", "https://aap/api/v2/job_templates/9/launch/")
        assert kwargs["json"] == {"extra_vars": {"x": 1}, "limit": "web01"}
