from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Union

OptionValue = Union[str, bool]


@dataclass
class ParsedCommand:
    command: str | None = None
    positional: list[str] = field(default_factory=list)
    options: dict[str, OptionValue] = field(default_factory=dict)


def _takes_value(tokens: Sequence[str], i: int) -> bool:
    return i + 1 < len(tokens) and not tokens[i + 1].startswith("-")


def parse_args(tokens: Sequence[str]) -> ParsedCommand:
    """Split raw CLI tokens into a command, positionals and an option map.

    Long options accept ``--key=value`` or ``--key value``; short flags accept
    ``-k value``. A flag whose next token is missing or flag-like is ``True``.
    Nothing is validated here.
    """

    parsed = ParsedCommand()
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.startswith("--"):
            key, sep, value = tok[2:].partition("=")
            if sep:
                parsed.options[key] = value
            elif _takes_value(tokens, i):
                parsed.options[key] = tokens[i + 1]
                i += 1
            else:
                parsed.options[key] = True
        elif tok.startswith("-"):
            flag = tok[1:]
            if _takes_value(tokens, i):
                parsed.options[flag] = tokens[i + 1]
                i += 1
            else:
                parsed.options[flag] = True
        elif parsed.command is None:
            parsed.command = tok
        else:
            parsed.positional.append(tok)
        i += 1
    return parsed


def option_str(options: dict[str, OptionValue], *names: str) -> str | None:
    """First string value among the given option aliases; bare flags don't count."""

    for n in names:
        v = options.get(n)
        if isinstance(v, str) and v != "":
            return v
    return None


def option_flag(options: dict[str, OptionValue], *names: str) -> bool:
    return any(bool(options.get(n)) for n in names)
