import json
import os
import sys
from unittest.mock import patch

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import httpx
import pytest
from fastapi.testclient import TestClient

from beacon.config import Settings
from beacon.main import create_app

WEBHOOK_URL = "https://hooks.example/exec"


class FakeGeoServices:
    """Stands in for ipwho.is, ipapi.co and the spreadsheet webhook."""

    def __init__(self):
        self.ipwhois = {
            "success": True,
            "country": "Romania",
            "city": "Bucharest",
            "postal": "010011",
        }
        self.ipapi = {"country_name": "Germany", "city": "Berlin", "postal": "10115"}
        self.ipwhois_down = False
        self.ipapi_down = False
        self.webhook_down = False
        self.lookups: list[tuple[str, str]] = []
        self.webhook_payloads: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if host == "ipwho.is":
            self.lookups.append((host, request.url.path.strip("/")))
            if self.ipwhois_down:
                raise httpx.ConnectError("ipwho.is unreachable", request=request)
            return httpx.Response(200, json=self.ipwhois)
        if host == "ipapi.co":
            self.lookups.append((host, request.url.path.split("/")[1]))
            if self.ipapi_down:
                raise httpx.ConnectError("ipapi.co unreachable", request=request)
            return httpx.Response(200, json=self.ipapi)
        if host == "hooks.example":
            if self.webhook_down:
                return httpx.Response(500, text="boom")
            self.webhook_payloads.append(json.loads(request.content))
            return httpx.Response(200, text="ok")
        return httpx.Response(404)


def make_settings(tmp_path, env=None) -> Settings:
    with patch.dict(os.environ, env or {}, clear=True):
        settings = Settings()
    settings.visit_log.path = str(tmp_path / "visits.log")
    settings.geoip.db_path = str(tmp_path / "missing.mmdb")
    return settings


@pytest.fixture
def geo_services():
    return FakeGeoServices()


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def app(settings, geo_services):
    return create_app(settings, transport=httpx.MockTransport(geo_services.handler))


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
