from __future__ import annotations

import json
from dataclasses import dataclass, field
from http.client import HTTPException
from typing import Any, Mapping, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from .auth_inputs import ClientConfig, CredentialMode, SecretSandbox, basic_auth_header
from .cli_shared import (
    BAMBOOHR_SERVICE_NAME,
    DEFAULT_TIMEOUT_MS,
    ApiError,
    BambooCliError,
    NetworkError,
)


def _encode_component(value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe="!'()*")


def encode_query(params: Mapping[str, Any] | None) -> str:
    parts = [
        f"{_encode_component(k)}={_encode_component(v)}"
        for k, v in (params or {}).items()
        if v is not None
    ]
    return f"?{'&'.join(parts)}" if parts else ""


def decode_body(data: bytes) -> Any:
    text = data.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


@dataclass(frozen=True)
class RequestDescriptor:
    method: str
    base_url: str
    path: str
    query: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.path}{encode_query(self.query)}"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


@dataclass(frozen=True)
class ResponseEnvelope:
    status_code: int
    reason: str
    headers: dict[str, str]
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def decoded(self) -> Any:
        return decode_body(self.body)


class Transport(Protocol):
    mode: CredentialMode

    def send(self, req: RequestDescriptor) -> ResponseEnvelope: ...


def _http_request(
    *,
    method: str,
    url: str,
    headers: dict[str, str],
    body: bytes | None = None,
    timeout_seconds: float = 30,
) -> tuple[int, str, dict[str, str], bytes]:
    req = Request(url, data=body, method=str(method).upper())
    for k, v in headers.items():
        req.add_header(k, v)
    try:
        with urlopen(req, timeout=timeout_seconds) as resp:
            status = getattr(resp, "status", 200)
            reason = str(getattr(resp, "reason", "") or "")
            hdrs = {k.lower(): v for k, v in dict(resp.headers).items()}
            data = resp.read()
            return int(status), reason, hdrs, data
    except HTTPError as e:
        hdrs = {k.lower(): v for k, v in dict(e.headers or {}).items()}
        data = e.read() if hasattr(e, "read") else b""
        return int(getattr(e, "code", 0) or 0), str(e.reason or ""), hdrs, data
    except URLError as e:
        raise NetworkError(f"http request failed: {e.reason}") from e
    except TimeoutError as e:
        raise NetworkError(f"http request timed out after {timeout_seconds:g}s") from e
    except (OSError, HTTPException) as e:
        raise NetworkError(f"http request failed: {e}") from e


class DirectTransport:
    mode = CredentialMode.DIRECT

    def __init__(self, api_key: str) -> None:
        self._authorization = basic_auth_header(api_key)

    def send(self, req: RequestDescriptor) -> ResponseEnvelope:
        headers = {"Authorization": self._authorization, **req.headers}
        status, reason, hdrs, data = _http_request(
            method=req.method,
            url=req.url,
            headers=headers,
            body=req.body,
            timeout_seconds=req.timeout_seconds,
        )
        return ResponseEnvelope(status_code=status, reason=reason, headers=hdrs, body=data)


class SandboxedTransport:
    mode = CredentialMode.SANDBOXED

    def __init__(self, sandbox: SecretSandbox, *, service: str = BAMBOOHR_SERVICE_NAME) -> None:
        self._sandbox = sandbox
        self._service = service

    def send(self, req: RequestDescriptor) -> ResponseEnvelope:
        try:
            status, reason, hdrs, data = self._sandbox.authenticated_fetch(
                self._service,
                req.url,
                method=req.method,
                headers=dict(req.headers),
                body=req.body,
                timeout_seconds=req.timeout_seconds,
            )
        except BambooCliError:
            raise
        except Exception as e:
            # Host boundary: whatever the sandbox raises is a failed request.
            raise NetworkError(f"sandboxed request failed: {e}") from e
        return ResponseEnvelope(
            status_code=int(status),
            reason=str(reason or ""),
            headers={str(k).lower(): str(v) for k, v in dict(hdrs).items()},
            body=data if isinstance(data, bytes) else str(data).encode("utf-8"),
        )


def make_transport(config: ClientConfig, *, sandbox: SecretSandbox | None = None) -> Transport:
    if config.credential_mode is CredentialMode.SANDBOXED:
        if sandbox is None:
            raise ValueError("sandboxed credential mode requires a sandbox")
        return SandboxedTransport(sandbox)
    if not config.api_key:
        raise ValueError("direct credential mode requires an api key")
    return DirectTransport(config.api_key)


class RequestBuilder:
    def __init__(self, config: ClientConfig, transport: Transport, *, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        self.config = config
        self.transport = transport
        self.timeout_ms = timeout_ms

    def build(
        self,
        path: str,
        query: Mapping[str, Any] | None = None,
        method: str = "GET",
        body: Any = None,
        *,
        timeout_ms: int | None = None,
        accept_json: bool = True,
    ) -> RequestDescriptor:
        headers: dict[str, str] = {}
        if accept_json:
            headers["Accept"] = "application/json"
        body_bytes = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            body_bytes = json.dumps(body, separators=(",", ":")).encode("utf-8")
        return RequestDescriptor(
            method=method.upper(),
            base_url=self.config.base_url,
            path=path if path.startswith("/") else f"/{path}",
            query={k: v for k, v in (query or {}).items() if v is not None},
            headers=headers,
            body=body_bytes,
            timeout_ms=timeout_ms or self.timeout_ms,
        )

    def send(self, req: RequestDescriptor) -> ResponseEnvelope:
        return self.transport.send(req)

    def request(
        self,
        path: str,
        query: Mapping[str, Any] | None = None,
        method: str = "GET",
        body: Any = None,
        *,
        timeout_ms: int | None = None,
    ) -> Any:
        resp = self.send(self.build(path, query, method, body, timeout_ms=timeout_ms))
        if not resp.ok:
            raise ApiError(
                resp.reason or f"HTTP {resp.status_code}",
                status=resp.status_code,
                data=resp.decoded(),
            )
        return resp.decoded()
