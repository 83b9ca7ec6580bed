"""Syntax checks run on a command line before it is tokenized."""

from __future__ import annotations

REDIRECTION_OPERATORS = frozenset({"<", ">", ">>", "<<"})

_BLANK_CHARS = frozenset("\t\n\b\v\f\r ")


class ShellSyntaxError(ValueError):
    """Raised when a command line is malformed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def check_quotes(line: str) -> None:
    """Raise ShellSyntaxError if a single or double quote is left open.

    Quotes of one kind inside a pair of the other kind are ignored.
    """
    position = 0
    length = len(line)
    while position < length:
        char = line[position]
        if char in ("'", '"'):
            closing = line.find(char, position + 1)
            if closing < 0:
                kind = "quote" if char == "'" else "dquote"
                raise ShellSyntaxError(f"synthax error: {kind}")
            position = closing + 1
        else:
            position += 1


def check_double_pipe(line: str) -> None:
    """Raise ShellSyntaxError on two pipes separated only by blanks.

    Lines that start with a quote are not checked.
    """
    if line[:1] in ("'", '"'):
        return
    pipe_count = 0
    for char in line:
        if char == "|":
            pipe_count += 1
            if pipe_count == 2:
                raise ShellSyntaxError("error: two consecutive pipes")
        elif char > " ":
            pipe_count = 0


def check_trailing_pipe(line: str) -> None:
    """Raise ShellSyntaxError if the line ends with a pipe."""
    if line.rstrip(" ").endswith("|"):
        raise ShellSyntaxError("error: expected expression after pipe")


def is_redirection(token: str) -> bool:
    """Return True if *token* is one of ``<``, ``>``, ``<<``, ``>>``."""
    return token in REDIRECTION_OPERATORS


def is_blank(line: str) -> bool:
    """Return True if *line* holds nothing but whitespace."""
    return all(char in _BLANK_CHARS for char in line)


def validate(line: str) -> str:
    """Check quotes and consecutive pipes; return *line* when it is valid."""
    check_quotes(line)
    check_double_pipe(line)
    return line