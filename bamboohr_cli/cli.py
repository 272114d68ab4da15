from __future__ import annotations

import json
import sys

import click
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from . import __version__
from .arg_tokens import ParsedCommand, option_flag, option_str, parse_args
from .auth_inputs import SecretSandbox, resolve_client_config
from .cli_shared import (
    BAMBOOHR_API_KEY,
    BAMBOOHR_COMPANY,
    BAMBOOHR_TIMEOUT_SECONDS,
    DEFAULT_COMPANY_DOMAIN,
    AuthConfigurationError,
    BambooCliError,
    GlobalOpts,
    ValidationError,
    _env_or_none,
    _eprint,
    _timeout_ms_from,
)
from .client import BambooClient
from .commands import HELP_TEXT, PROG_NAME, lookup
from .transport import RequestBuilder, make_transport

_ERROR_CONSOLE = Console(stderr=True)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]BambooHR error:[/bold red] {escape(msg)}")


def _apply_global_env(p: ParsedCommand) -> GlobalOpts:
    o = p.options
    company = option_str(o, "company") or _env_or_none(BAMBOOHR_COMPANY) or DEFAULT_COMPANY_DOMAIN
    return GlobalOpts(
        company=company.strip(),
        json_output=option_flag(o, "json"),
        summary=option_flag(o, "summary"),
        pretty=not option_flag(o, "plain-json"),
        quiet=option_flag(o, "quiet"),
        api_key=option_str(o, "api-key"),
        timeout_ms=_timeout_ms_from(option_str(o, "timeout") or _env_or_none(BAMBOOHR_TIMEOUT_SECONDS)),
    )


def build_client(g: GlobalOpts, *, sandbox: SecretSandbox | None = None) -> BambooClient:
    config = resolve_client_config(
        company=g.company,
        api_key=g.api_key,
        sandbox=sandbox,
        env_or_none=_env_or_none,
        api_key_env_names=(BAMBOOHR_API_KEY,),
    )
    builder = RequestBuilder(config, make_transport(config, sandbox=sandbox), timeout_ms=g.timeout_ms)
    return BambooClient(builder, warn=g.warn)


def _render_error(e: BambooCliError, *, json_output: bool) -> None:
    if isinstance(e, AuthConfigurationError) and e.instructions:
        _eprint(f"❌ {e}.")
        _eprint("")
        _eprint(e.instructions)
        _eprint("")
    if json_output:
        _eprint(json.dumps({"error": str(e), "status": e.status, "data": e.data}, indent=2, ensure_ascii=False))
        return
    _rich_error(str(e))
    if e.status is not None:
        _eprint(f"Status: {e.status}")
    if isinstance(e, ValidationError) and e.usage:
        _eprint(e.usage)


def run_parsed(parsed: ParsedCommand, *, sandbox: SecretSandbox | None = None) -> int:
    """Validate, resolve credentials, then execute; the first error ends the run."""

    if option_flag(parsed.options, "version") and parsed.command is None:
        sys.stdout.write(f"{PROG_NAME} {__version__}\n")
        return 0
    if not parsed.command or parsed.command == "help" or option_flag(parsed.options, "help"):
        sys.stdout.write(HELP_TEXT)
        return 0

    json_output = option_flag(parsed.options, "json")
    try:
        g = _apply_global_env(parsed)
        command = lookup(parsed.command)
        args = command.bind(parsed)
        client = build_client(g, sandbox=sandbox)
        return int(command.run(args, g, client))
    except BambooCliError as e:
        _render_error(e, json_output=json_output)
        return 1


app = typer.Typer(
    name=PROG_NAME,
    help="Query BambooHR time off, employees and applicant tracking.",
    add_completion=False,
)


@app.command(
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "help_option_names": [],
    },
)
def bamboohr(ctx: typer.Context) -> None:
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    code = run_parsed(parse_args(list(ctx.args)), sandbox=obj.get("sandbox"))
    if code:
        raise typer.Exit(code=code)


def main(argv: list[str] | None = None, *, sandbox: SecretSandbox | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    # Package defaults: discover .env without overriding exported values.
    load_dotenv()
    try:
        result = app(args=argv, prog_name=PROG_NAME, standalone_mode=False, obj={"sandbox": sandbox})
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.ClickException as e:
        _rich_error(e.format_message())
        return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
