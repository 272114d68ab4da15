from __future__ import annotations

import json
import math
import os
import sys
from dataclasses import dataclass
from typing import Any


class BambooCliError(Exception):
    """Base for every error the CLI reports and exits non-zero on."""

    def __init__(self, message: str, *, status: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.data = data


class ValidationError(BambooCliError):
    """Raised when a command is missing required arguments."""

    def __init__(self, message: str, *, usage: str = "") -> None:
        super().__init__(message)
        self.usage = usage


class AuthConfigurationError(BambooCliError):
    """Raised when no usable BambooHR credential is available."""

    def __init__(self, message: str, *, instructions: str = "") -> None:
        super().__init__(message)
        self.instructions = instructions


class ApiError(BambooCliError):
    """Raised for non-2xx responses from the BambooHR API."""


class ResumeNotFoundError(BambooCliError):
    """Raised when an application has no resume on file."""


class NetworkError(BambooCliError):
    """Raised when the request never produced an HTTP response."""


BAMBOOHR_API_KEY = "BAMBOOHR_API_KEY"
BAMBOOHR_COMPANY = "BAMBOOHR_COMPANY"
BAMBOOHR_TIMEOUT_SECONDS = "BAMBOOHR_TIMEOUT_SECONDS"
BAMBOOHR_SERVICE_NAME = "bamboohr"
DEFAULT_COMPANY_DOMAIN = "crholdingslimited"
DEFAULT_TIMEOUT_MS = 30000


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


@dataclass(frozen=True)
class GlobalOpts:
    company: str
    json_output: bool = False
    summary: bool = False
    pretty: bool = True
    quiet: bool = False
    api_key: str | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def warn(self, msg: str) -> None:
        if not self.quiet:
            _eprint(f"warning: {msg}")


def _env_or_none(*names: str) -> str | None:
    for n in names:
        v = (os.environ.get(n) or "").strip()
        if v:
            return v
    return None


def _print_json(obj: Any, *, pretty: bool) -> None:
    if pretty:
        sys.stdout.write(json.dumps(obj, indent=2, ensure_ascii=False) + "\n")
    else:
        sys.stdout.write(json.dumps(obj, separators=(",", ":"), ensure_ascii=False) + "\n")


def _timeout_ms_from(raw: str | None) -> int:
    if raw is None or not str(raw).strip():
        return DEFAULT_TIMEOUT_MS
    try:
        seconds = float(str(raw).strip())
    except ValueError as e:
        raise ValidationError(f"invalid timeout {raw!r}: expected seconds") from e
    if not math.isfinite(seconds):
        raise ValidationError(f"invalid timeout {raw!r}: must be finite")
    if seconds <= 0:
        raise ValidationError(f"invalid timeout {raw!r}: must be positive")
    return int(seconds * 1000)
