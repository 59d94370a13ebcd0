import pytest
import requests

import core.debug


_INVALID = object()


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        if self._payload is _INVALID:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response


@pytest.fixture(autouse=True)
def _isolated_log(monkeypatch, tmp_path):
    monkeypatch.setattr(core.debug, "LOG_PATH", tmp_path / "msp_debug.log")
    for key in ("MSP_CONFIG", "MSP_SERVER_TYPE", "MSP_SERVER_URL", "MSP_API_KEY",
                "MSP_SERVER_NAME", "MSP_UPDATE_INTERVAL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def invalid_json():
    return _INVALID


@pytest.fixture
def make_session():
    def _make(payload=None, status_code=200, exc=None):
        return FakeSession(FakeResponse(payload, status_code), exc=exc)
    return _make
