"""Shared fixtures: isolated configuration and a fake API transport."""
import pytest

from peloton.common.config import Config

PELOTON_ENV_VARS = (
    "PELOTON_BEARER_TOKEN",
    "PELOTON_USERID",
    "PELOTON_BASE_URL",
    "PELOTON_TIMEZONE",
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Every test starts from defaults: no token, no user id, no config.yaml."""
    for var in PELOTON_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PELOTON_CONFIG", str(tmp_path / "config.yaml"))
    Config.reload()
    yield
    Config._instance = None


class FakeClient:
    """Stands in for PelotonClient; answers fetch() from a {path: response} table.

    A response may be a callable taking the query dict, or an exception
    instance to raise.
    """

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def fetch(self, path, query=None):
        query = dict(query or {})
        self.calls.append((path, query))
        resp = self.responses[path]
        if isinstance(resp, Exception):
            raise resp
        if callable(resp):
            return resp(query)
        return resp


@pytest.fixture
def fake_client():
    def make(responses):
        return FakeClient(responses)
    return make
