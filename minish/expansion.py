"""Expansion of ``$`` variables and ``*`` wildcards in words."""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field

from minish.environment import Environment, ShellState

_QUOTED_REDIRECTION_MARK = "\x01"


@dataclass
class ExpansionContext:
    """What expansion needs to know: the variables and the last status."""

    env: Environment = field(default_factory=Environment)
    exit_status: int = 0

    @classmethod
    def from_state(cls, state: ShellState) -> ExpansionContext:
        return cls(env=state.env, exit_status=state.exit_status)


def _is_name_char(char: str) -> bool:
    return "a" < char < "z" or "A" < char < "Z" or "0" < char < "9"


def find_name_end(text: str) -> int:
    """Return the length of the variable name at the start of *text*.

    The letters a, z, A, Z and the digits 0 and 9 end a name.
    """
    for position, char in enumerate(text):
        if not _is_name_char(char):
            return position
    return len(text)


def strip_single_quotes(text: str) -> str:
    """Return *text* with every single quote removed."""
    return text.replace("'", "")


def _unquote(word: str) -> str:
    quote = word[0]
    rest = word[1:]
    if quote == "'" and rest[:1] in (">", "<"):
        return _QUOTED_REDIRECTION_MARK + word[1:-1]
    closing = rest.find(quote)
    if closing < 0:
        return rest
    return rest[:closing] + rest[closing + 1 :]


def _expand_dollar(word: str, dollar: int, context: ExpansionContext) -> str:
    prefix = word[:dollar]
    after = word[dollar + 1 :]
    end = find_name_end(after)
    rest = after[end:]
    if after[:1].isascii() and after[:1].isalnum():
        value = context.env.get(after[:end])
    else:
        value = "$"
    if value is None:
        return prefix + rest
    return prefix + value + rest


def expand_word(word: str, context: ExpansionContext) -> str:
    """Expand one word.

    A word starting with a quote loses that quote and its first closing
    match. A word holding a single quote loses all single quotes. Words
    with ``*`` are left as they are. Otherwise the first ``$`` is
    expanded; ``$?`` replaces the whole word with the last exit status.
    """
    if not word:
        return word
    if word[0] in ("'", '"'):
        return _unquote(word)
    if "'" in word:
        return strip_single_quotes(word)
    if "*" in word:
        return word
    dollar = word.find("$")
    if dollar < 0:
        return word
    if word[dollar + 1 : dollar + 2] == "?":
        return str(context.exit_status)
    return _expand_dollar(word, dollar, context)


def match_pattern(pattern: str, word: str) -> bool:
    """Return True if *word* matches *pattern*, where ``*`` matches text.

    A trailing ``*`` needs at least one character to match.
    """
    p = 0
    w = 0
    while p < len(pattern) and w < len(word):
        if pattern[p] == "*":
            while p < len(pattern) and pattern[p] == "*":
                p += 1
            rest = pattern[p:]
            if any(match_pattern(rest, word[start:]) for start in range(w, len(word))):
                return True
            return rest == ""
        if pattern[p] != word[w]:
            return False
        p += 1
        w += 1
    return p == len(pattern) and w == len(word)


def expand_wildcard(
    pattern: str, directory: str | os.PathLike[str] | None = None
) -> list[str]:
    """Return the sorted visible entries of *directory* matching *pattern*."""
    names = sorted(
        name for name in os.listdir(directory or ".") if not name.startswith(".")
    )
    return [name for name in names if match_pattern(pattern, name)]


def _is_wildcard(word: str) -> bool:
    return (
        "*" in word
        and not word.startswith(("'", '"'))
        and "'" not in word
    )


def expand_tokens(
    tokens: Iterable[str],
    context: ExpansionContext,
    directory: str | os.PathLike[str] | None = None,
) -> list[str]:
    """Expand every token; wildcards that match are replaced by the matches."""
    result: list[str] = []
    for token in tokens:
        if _is_wildcard(token):
            matches = expand_wildcard(token, directory)
            result.extend(matches if matches else [token])
        else:
            result.append(expand_word(token, context))
    return result