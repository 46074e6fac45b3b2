import json

import pytest
import requests
import responses
from requests import Session

from crm_connector import request_helpers
from crm_connector.errors import RemoteError, RemoteNotFound


class CaptureLog:
    def __init__(self):
        self.infos = []
        self.errors = []

    def info(self, msg):
        self.infos.append(msg)

    def error(self, msg):
        self.errors.append(msg)


def test_build_url_various_slashes():
    # base with trailing, path with leading
    assert request_helpers.build_url("https://api/", "/v1") == "https://api/v1"
    # base without trailing, path no leading
    assert request_helpers.build_url("https://api", "v1") == "https://api/v1"
    assert (
        request_helpers.build_url("https://api/", "v1/items")
        == "https://api/v1/items"
    )
    assert (
        request_helpers.build_url("https://api", "/v1/items")
        == "https://api/v1/items"
    )


def test_build_session_applies_defaults():
    s = request_helpers.build_session(
        {
            "headers": {"X-Client": "crm-connector"},
            "proxies": {"https": "http://proxy"},
            "verify": False,
        }
    )
    assert isinstance(s, Session)
    assert s.headers["X-Client"] == "crm-connector"
    assert s.proxies.get("https") == "http://proxy"
    assert s.verify is False


def test_log_request_redacts_authorization():
    log = CaptureLog()
    request_helpers.log_request(
        log,
        "GET",
        "https://api/x",
        {"Authorization": "Bearer abc", "X-Ok": "1"},
        prefix="[p] ",
    )
    line = log.infos[-1]
    assert line.startswith("[p] GET https://api/x")
    assert "***REDACTED***" in line and "abc" not in line
    assert "X-Ok" in line


def test_log_exception_includes_url_and_stacktrace():
    log = CaptureLog()
    try:
        raise RuntimeError("boom")
    except Exception as e:
        request_helpers.log_exception(log, "https://api/x", e, prefix="[E] ")
    err = log.errors[-1]
    assert err.startswith("[E] ")
    assert "https://api/x" in err
    assert "Stack Trace:" in err


# ---------------- HttpTransport ----------------


@responses.activate
def test_transport_get_returns_json_and_sends_headers():
    responses.add(
        responses.GET, "https://api/x", json={"value": [1]}, status=200
    )
    t = request_helpers.HttpTransport()
    assert t.get("https://api/x", {"Authorization": "Bearer t"}) == {"value": [1]}
    assert responses.calls[0].request.headers["Authorization"] == "Bearer t"


@responses.activate
def test_transport_post_and_patch_send_json_body():
    responses.add(responses.POST, "https://crm/objects/companies", json={"id": "1"}, status=201)
    responses.add(responses.PATCH, "https://crm/objects/companies/1", body="", status=204)
    t = request_helpers.HttpTransport()
    body = {"properties": {"name": "Acme"}}

    assert t.post("https://crm/objects/companies", body, {}) == {"id": "1"}
    assert t.patch("https://crm/objects/companies/1", body, {}) is None
    assert json.loads(responses.calls[0].request.body) == body
    assert json.loads(responses.calls[1].request.body) == body


@responses.activate
def test_transport_404_is_not_found():
    responses.add(responses.GET, "https://crm/objects/companies/9", body="missing", status=404)
    with pytest.raises(RemoteNotFound) as ei:
        request_helpers.HttpTransport().get("https://crm/objects/companies/9", {})
    assert ei.value.is_not_found
    assert ei.value.url == "https://crm/objects/companies/9"


@responses.activate
def test_transport_http_error_has_status_and_message():
    responses.add(responses.POST, "https://crm/x", body='{"message":"bad"}', status=400)
    with pytest.raises(RemoteError) as ei:
        request_helpers.HttpTransport().post("https://crm/x", {}, {})
    assert ei.value.status == 400
    assert "bad" in ei.value.message
    assert not ei.value.is_not_found


@responses.activate
def test_transport_connection_error_becomes_remote_error():
    responses.add(
        responses.GET,
        "https://api/down",
        body=requests.ConnectionError("refused"),
    )
    with pytest.raises(RemoteError) as ei:
        request_helpers.HttpTransport().get("https://api/down", {})
    assert ei.value.status is None


@responses.activate
def test_transport_invalid_json():
    responses.add(responses.GET, "https://api/html", body="<html>", status=200)
    with pytest.raises(RemoteError):
        request_helpers.HttpTransport().get("https://api/html", {})
