import json
from urllib.parse import urlsplit

import pytest
import requests
from requests.adapters import BaseAdapter


class VaultStub(BaseAdapter):
    """Answers hvac's requests from a ``(method, path) -> (status, body)`` table."""

    def __init__(self, routes=None):
        super().__init__()
        self.routes = dict(routes or {})
        self.calls: list[requests.PreparedRequest] = []
        self.refuse = False

    def send(self, request, **kwargs):
        self.calls.append(request)
        if self.refuse:
            raise requests.exceptions.ConnectionError("Connection refused")
        status, body = self.routes.get((request.method, urlsplit(request.url).path), (404, {"errors": []}))
        resp = requests.Response()
        resp.status_code = status
        resp._content = json.dumps(body).encode()
        resp.headers["Content-Type"] = "application/json"
        resp.encoding = "utf-8"
        resp.url = request.url
        resp.request = request
        return resp

    def close(self):
        pass


@pytest.fixture()
def vault_stub():
    return VaultStub()


@pytest.fixture()
def vault_session(vault_stub):
    session = requests.Session()
    session.mount("http://", vault_stub)
    session.mount("https://", vault_stub)
    return session


@pytest.fixture(autouse=True)
def no_ambient_token(monkeypatch, tmp_path):
    monkeypatch.delenv("VAULT_TOKEN", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
