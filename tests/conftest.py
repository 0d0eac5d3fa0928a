import json

import httpx
import pytest
from fastapi.testclient import TestClient

import nim_proxy
from nimproxy.config import Config


class FakeUpstream:
    """Records NIM calls and answers them from a handler"""

    def __init__(self):
        self.requests = []
        self.handler = lambda request: httpx.Response(200, json={"choices": []})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def bodies(self):
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(Config, "NIM_API_KEY", "nvapi-test")
    return "nvapi-test"


@pytest.fixture
def client(upstream, monkeypatch):
    monkeypatch.setattr(
        nim_proxy.api_handler.response_processor, "transport", httpx.MockTransport(upstream)
    )
    with TestClient(nim_proxy.app) as test_client:
        yield test_client
