"""
Tokenizer and argument parser for console input lines.

`parse_input` is the entry point used by the dispatcher. It never raises:
malformed input (unbalanced quotes, empty option names) degrades to a naive
whitespace split.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Union

from dev_console.console.errors import ParseError

OptionValue = Union[bool, int, float, str, List[str]]

_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_SHORT_FLAGS_RE = re.compile(r"-[A-Za-z]+")
_QUOTE_CHARS = "\"'"


@dataclass
class ParsedInput:
    """Positional arguments and named options of one input line."""

    positionals: List[str] = field(default_factory=list)
    options: Dict[str, OptionValue] = field(default_factory=dict)
    tokens: List[str] = field(default_factory=list)

    @property
    def command(self) -> str:
        """The command name: first positional, else the first raw token."""
        if self.positionals:
            return self.positionals[0]
        return self.tokens[0] if self.tokens else ""

    @property
    def args(self) -> List[str]:
        """Arguments after the command name, options reconstituted as flags."""
        rest = self.positionals[1:] if self.positionals else []
        return rest + _options_to_argv(self.options)


def tokenize(line: str) -> List[str]:
    """Split on whitespace, keeping double-quoted substrings in one token.

    Raises:
        ParseError: if a double quote is left open.
    """
    tokens: List[str] = []
    current: List[str] = []
    in_token = False
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
            in_token = True
        elif char.isspace() and not in_quotes:
            if in_token:
                tokens.append("".join(current))
                current = []
                in_token = False
        else:
            current.append(char)
            in_token = True

    if in_quotes:
        raise ParseError(f"Unbalanced quotes in: {line!r}")
    if in_token:
        tokens.append("".join(current))
    return tokens


def coerce_value(value: str) -> Union[int, float, str]:
    """Coerce a string that fully parses as a decimal number."""
    if not _NUMBER_RE.fullmatch(value):
        return value
    if any(c in value for c in ".eE"):
        return float(value)
    return int(value)


def _add_option(options: Dict[str, OptionValue], key: str, value: OptionValue) -> None:
    existing = options.get(key)
    if isinstance(existing, str) and isinstance(value, str):
        options[key] = [existing, value]
    elif isinstance(existing, list) and isinstance(value, str):
        existing.append(value)
    else:
        options[key] = value


def parse_tokens(tokens: Sequence[str]) -> ParsedInput:
    """Classify tokens into positionals, long options and short flags.

    Raises:
        ParseError: on an option with an empty name (``--`` or ``--=x``).
    """
    parsed = ParsedInput(tokens=list(tokens))
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.startswith("--"):
            body = token[2:]
            if "=" in body:
                key, raw = body.split("=", 1)
                value: OptionValue = coerce_value(raw)
            else:
                key = body
                following = tokens[i + 1] if i + 1 < len(tokens) else None
                if following is not None and not following.startswith("-"):
                    value = coerce_value(following)
                    i += 1
                else:
                    value = True
            if not key:
                raise ParseError(f"Malformed option: {token!r}")
            _add_option(parsed.options, key, value)
        elif _SHORT_FLAGS_RE.fullmatch(token):
            for flag in token[1:]:
                parsed.options[flag] = True
        else:
            parsed.positionals.append(token)
        i += 1
    return parsed


def naive_split(line: str) -> List[str]:
    """Whitespace split with surrounding quote characters stripped."""
    tokens = [token.strip(_QUOTE_CHARS) for token in line.split()]
    return [token for token in tokens if token]


def parse_input(line: str) -> ParsedInput:
    """Parse a raw console line. Never raises."""
    try:
        return parse_tokens(tokenize(line))
    except ParseError:
        tokens = naive_split(line)
        return ParsedInput(positionals=tokens, tokens=tokens)


def parse_argv(args: Sequence[str]) -> ParsedInput:
    """Re-parse an already tokenized argument list (as handed to handlers)."""
    try:
        return parse_tokens(args)
    except ParseError:
        return ParsedInput(positionals=list(args), tokens=list(args))


def _option_pair(key: str, text: str) -> List[str]:
    # values that look like flags must stay attached to their key
    if text.startswith("-"):
        return [f"--{key}={text}"]
    return [f"--{key}", text]


def _options_to_argv(options: Dict[str, OptionValue]) -> List[str]:
    argv: List[str] = []
    for key, value in options.items():
        if value is True:
            argv.append(f"--{key}")
        elif value is False:
            continue
        elif isinstance(value, list):
            for item in value:
                argv.extend(_option_pair(key, item))
        else:
            argv.extend(_option_pair(key, str(value)))
    return argv


def to_argv(parsed: ParsedInput) -> List[str]:
    """Flatten a parsed line back into positionals followed by ``--key value`` pairs."""
    return list(parsed.positionals) + _options_to_argv(parsed.options)
