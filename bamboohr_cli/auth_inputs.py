from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Protocol, Sequence

from .cli_shared import (
    BAMBOOHR_API_KEY,
    BAMBOOHR_SERVICE_NAME,
    AuthConfigurationError,
)


class CredentialMode(str, Enum):
    SANDBOXED = "sandboxed"
    DIRECT = "direct"


class SecretSandbox(Protocol):
    """Host-provided secret store that signs outbound requests itself."""

    def has_token(self, service: str) -> bool: ...

    def authenticated_fetch(
        self,
        service: str,
        url: str,
        *,
        method: str,
        headers: Mapping[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> tuple[int, str, Mapping[str, str], bytes]: ...


@dataclass(frozen=True)
class ClientConfig:
    company_domain: str
    credential_mode: CredentialMode
    api_key: str | None = None

    @property
    def base_url(self) -> str:
        return f"https://api.bamboohr.com/api/gateway.php/{self.company_domain}/v1"


SETUP_INSTRUCTIONS = "\n".join(
    [
        "Add to ~/.pave/permissions.yaml:",
        "",
        "tokens:",
        f"  {BAMBOOHR_SERVICE_NAME}:",
        f"    env: {BAMBOOHR_API_KEY}",
        "    type: api_key",
        "    domains:",
        "      - api.bamboohr.com",
        "    placement:",
        "      type: header",
        "      name: Authorization",
        '      format: "Basic {token}"',
        "    encoding: basic_with_x",
        "",
        "Then add to ~/.pave/tokens.yaml:",
        "",
        f"{BAMBOOHR_API_KEY}: your-api-key-here",
        "",
        f"Outside the sandbox, pass --api-key or set {BAMBOOHR_API_KEY} (a .env file works too).",
        "Get your API key from: BambooHR > Settings > API Keys",
    ]
)


def basic_auth_header(api_key: str) -> str:
    # BambooHR takes the key as the username with an arbitrary password "x".
    token = base64.b64encode(f"{api_key}:x".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def resolve_client_config(
    *,
    company: str,
    api_key: str | None,
    sandbox: SecretSandbox | None,
    env_or_none: Callable[..., str | None],
    api_key_env_names: Sequence[str] = (BAMBOOHR_API_KEY,),
) -> ClientConfig:
    """Pick the credential mode once, before any request is built.

    A sandbox holding the ``bamboohr`` token always wins; the key then never
    reaches this process. Otherwise a key from the flag or environment is
    required.
    """

    domain = (company or "").strip()
    if not domain:
        raise AuthConfigurationError("missing company domain (pass --company)")

    if sandbox is not None and sandbox.has_token(BAMBOOHR_SERVICE_NAME):
        return ClientConfig(company_domain=domain, credential_mode=CredentialMode.SANDBOXED)

    resolved_key = (api_key or env_or_none(*api_key_env_names) or "").strip()
    if not resolved_key:
        raise AuthConfigurationError(
            "BambooHR token not configured",
            instructions=SETUP_INSTRUCTIONS,
        )
    return ClientConfig(
        company_domain=domain,
        credential_mode=CredentialMode.DIRECT,
        api_key=resolved_key,
    )
