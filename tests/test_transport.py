import base64
import json
from http.client import IncompleteRead
from urllib.error import URLError

import pytest

from bamboohr_cli.auth_inputs import ClientConfig, CredentialMode
from bamboohr_cli.cli_shared import ApiError, NetworkError
from bamboohr_cli.transport import (
    DirectTransport,
    RequestBuilder,
    ResponseEnvelope,
    SandboxedTransport,
    _http_request,
    decode_body,
    encode_query,
    make_transport,
)


def _config(mode: CredentialMode = CredentialMode.DIRECT) -> ClientConfig:
    return ClientConfig(
        company_domain="acme",
        credential_mode=mode,
        api_key="k" if mode is CredentialMode.DIRECT else None,
    )


class _RecordingTransport:
    mode = CredentialMode.DIRECT

    def __init__(self, *responses: ResponseEnvelope):
        self.responses = list(responses)
        self.calls = []

    def send(self, req):
        self.calls.append(req)
        return self.responses.pop(0)


def _json_response(obj, *, status: int = 200, reason: str = "OK") -> ResponseEnvelope:
    return ResponseEnvelope(
        status_code=status,
        reason=reason,
        headers={"content-type": "application/json"},
        body=json.dumps(obj).encode("utf-8"),
    )


def test_encode_query_drops_none_values():
    assert encode_query({"start": "2026-01-01", "end": None}) == "?start=2026-01-01"


def test_encode_query_all_none_is_empty():
    assert encode_query({"start": None, "end": None}) == ""
    assert encode_query({}) == ""
    assert encode_query(None) == ""


def test_encode_query_percent_encodes_keys_and_values():
    assert encode_query({"q": "a b&c", "fields": "x,y"}) == "?q=a%20b%26c&fields=x%2Cy"
    assert encode_query({"flag": True, "page": 2}) == "?flag=true&page=2"


def test_decode_body_falls_back_to_text():
    assert decode_body(b'{"a": 1}') == {"a": 1}
    assert decode_body(b"plain text") == "plain text"
    assert decode_body(b"") == ""


def test_build_get_descriptor_has_accept_header_and_default_timeout():
    builder = RequestBuilder(_config(), _RecordingTransport())
    req = builder.build("/time_off/whos_out/", {"start": "2026-01-01", "end": None})
    assert req.method == "GET"
    assert req.headers == {"Accept": "application/json"}
    assert req.body is None
    assert req.timeout_ms == 30000
    assert req.url == (
        "https://api.bamboohr.com/api/gateway.php/acme/v1/time_off/whos_out/?start=2026-01-01"
    )


def test_build_with_body_serializes_json_and_sets_content_type():
    builder = RequestBuilder(_config(), _RecordingTransport(), timeout_ms=5000)
    req = builder.build("applicant_tracking/applications/1/status", method="post", body={"status": 12})
    assert req.method == "POST"
    assert req.path == "/applicant_tracking/applications/1/status"
    assert req.headers["Content-Type"] == "application/json"
    assert req.body == b'{"status":12}'
    assert req.timeout_ms == 5000
    assert builder.build("/x", timeout_ms=1000).timeout_ms == 1000


def test_request_returns_decoded_json():
    transport = _RecordingTransport(_json_response({"employees": []}))
    builder = RequestBuilder(_config(), transport)
    assert builder.request("/employees/directory") == {"employees": []}
    assert len(transport.calls) == 1


def test_request_raises_api_error_with_status_and_data():
    transport = _RecordingTransport(_json_response({"message": "nope"}, status=403, reason="Forbidden"))
    builder = RequestBuilder(_config(), transport)
    with pytest.raises(ApiError, match="Forbidden") as excinfo:
        builder.request("/employees/directory")
    assert excinfo.value.status == 403
    assert excinfo.value.data == {"message": "nope"}


def test_request_error_without_reason_uses_http_status():
    transport = _RecordingTransport(
        ResponseEnvelope(status_code=500, reason="", headers={}, body=b"boom")
    )
    with pytest.raises(ApiError, match="HTTP 500") as excinfo:
        RequestBuilder(_config(), transport).request("/meta/time_off/types")
    assert excinfo.value.data == "boom"


def test_direct_transport_adds_basic_auth_header(monkeypatch):
    captured: dict = {}

    def fake_http_request(**kwargs):
        captured.update(kwargs)
        return 200, "OK", {"content-type": "application/json"}, b"[]"

    monkeypatch.setattr("bamboohr_cli.transport._http_request", fake_http_request)
    builder = RequestBuilder(_config(), DirectTransport("secret"))
    assert builder.request("/meta/time_off/types") == []

    auth = captured["headers"]["Authorization"]
    assert base64.b64decode(auth.split(" ", 1)[1]) == b"secret:x"
    assert captured["headers"]["Accept"] == "application/json"
    assert captured["method"] == "GET"
    assert captured["timeout_seconds"] == 30


def test_sandboxed_transport_delegates_without_authorization_header():
    calls = []

    class Sandbox:
        def has_token(self, service):
            return True

        def authenticated_fetch(self, service, url, **kwargs):
            calls.append((service, url, kwargs))
            return 200, "OK", {"Content-Type": "application/json"}, b'{"ok": true}'

    builder = RequestBuilder(_config(CredentialMode.SANDBOXED), SandboxedTransport(Sandbox()))
    assert builder.request("/applicant_tracking/statuses") == {"ok": True}

    service, url, kwargs = calls[0]
    assert service == "bamboohr"
    assert url.endswith("/applicant_tracking/statuses")
    assert "Authorization" not in kwargs["headers"]
    assert kwargs["timeout_seconds"] == 30


def test_sandboxed_transport_wraps_os_errors():
    class Sandbox:
        def has_token(self, service):
            return True

        def authenticated_fetch(self, service, url, **kwargs):
            raise TimeoutError("timed out")

    builder = RequestBuilder(_config(CredentialMode.SANDBOXED), SandboxedTransport(Sandbox()))
    with pytest.raises(NetworkError, match="timed out"):
        builder.request("/employees/directory")


def test_http_request_wraps_url_errors(monkeypatch):
    def fake_urlopen(req, timeout):
        raise URLError("connection refused")

    monkeypatch.setattr("bamboohr_cli.transport.urlopen", fake_urlopen)
    with pytest.raises(NetworkError, match="connection refused"):
        _http_request(method="GET", url="https://example.invalid/", headers={})


def test_make_transport_picks_implementation_from_mode():
    assert isinstance(make_transport(_config()), DirectTransport)

    class Sandbox:
        def has_token(self, service):
            return True

        def authenticated_fetch(self, service, url, **kwargs):
            raise AssertionError("not expected")

    transport = make_transport(_config(CredentialMode.SANDBOXED), sandbox=Sandbox())
    assert isinstance(transport, SandboxedTransport)


class _FailingReadResponse:
    status = 200
    reason = "OK"
    headers: dict = {}

    def __init__(self, exc: BaseException):
        self._exc = exc

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def read(self):
        raise self._exc


@pytest.mark.parametrize(
    "exc",
    [ConnectionResetError("peer reset"), IncompleteRead(b"partial", 10)],
)
def test_http_request_wraps_failures_while_reading_body(monkeypatch, exc):
    monkeypatch.setattr("bamboohr_cli.transport.urlopen", lambda req, timeout: _FailingReadResponse(exc))
    with pytest.raises(NetworkError, match="http request failed") as excinfo:
        _http_request(method="GET", url="https://example.invalid/", headers={})
    assert excinfo.value.__cause__ is exc


def test_sandboxed_transport_wraps_arbitrary_host_errors():
    class Sandbox:
        def has_token(self, service):
            return True

        def authenticated_fetch(self, service, url, **kwargs):
            raise RuntimeError("sandbox crashed")

    builder = RequestBuilder(_config(CredentialMode.SANDBOXED), SandboxedTransport(Sandbox()))
    with pytest.raises(NetworkError, match="sandbox crashed"):
        builder.request("/employees/directory")
