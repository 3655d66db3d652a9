"""
Command-line tokenizer — split free text into argv tokens.

Supports whitespace splitting, single and double quotes, and backslash
escaping. There is no variable expansion, globbing or operator handling:
the result is handed straight to the executor as an argument vector.
"""

from __future__ import annotations

_QUOTES = ("'", '"')

# Leading words a user may type out of habit; the backend is invoked
# directly so they are stripped.
_PROGRAM_PREFIXES = ("docker", "container")


class CommandLineError(ValueError):
    """Raised when a typed command line cannot be turned into arguments."""


class UnterminatedQuote(CommandLineError):
    """A quote was opened and never closed."""

    def __init__(self, quote: str):
        self.quote = quote
        super().__init__(f"Unterminated quoted string ({quote}).")


class EmptyCommand(CommandLineError):
    """The command line contained no arguments."""

    def __init__(self) -> None:
        super().__init__("Enter a Docker command.")


def tokenize(text: str) -> list[str]:
    """Tokenize a shell-like command line into argv tokens.

    Raises:
        UnterminatedQuote: If a ``'`` or ``"`` is never closed.

    Whitespace-only input yields an empty list.
    """
    tokens: list[str] = []
    current: list[str] = []
    active_quote: str | None = None
    escaping = False

    for ch in text:
        if escaping:
            current.append(ch)
            escaping = False
            continue

        if ch == "\\":
            escaping = True
            continue

        if active_quote is not None:
            if ch == active_quote:
                active_quote = None
            else:
                current.append(ch)
            continue

        if ch in _QUOTES:
            active_quote = ch
            continue

        if ch.isspace():
            if current:
                tokens.append("".join(current))
                current.clear()
            continue

        current.append(ch)

    if escaping:
        current.append("\\")

    if active_quote is not None:
        raise UnterminatedQuote(active_quote)

    if current:
        tokens.append("".join(current))

    return tokens


def strip_program_prefix(tokens: list[str], prefixes: tuple[str, ...] = _PROGRAM_PREFIXES) -> list[str]:
    """Drop a leading program word (``docker``/``container`` by default).

    Raises:
        EmptyCommand: If nothing is left to run.
    """
    if tokens and tokens[0].lower() in prefixes:
        tokens = tokens[1:]
    if not tokens:
        raise EmptyCommand()
    return list(tokens)


def normalized_arguments(text: str) -> list[str]:
    """Tokenize *text* and drop a leading ``docker``/``container`` word.

    Raises:
        UnterminatedQuote: On malformed quoting.
        EmptyCommand: If nothing is left to run.
    """
    return strip_program_prefix(tokenize(text))
