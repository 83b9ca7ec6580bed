"""Splitting a command line into words, quotes and operators."""

from __future__ import annotations

from dataclasses import dataclass, field

from minish.expansion import ExpansionContext, expand_word

_SPACES = frozenset(" \t\n")
_WORD_STOP = frozenset(" \t\n'\"<>|")
_OPERATOR_CHARS = frozenset("<>|")
_QUOTES = frozenset("'\"")


def strip_enclosing(text: str, quote: str) -> str:
    """Remove *quote* from both ends of *text* when it encloses it.

    Text of one character or less becomes empty; text not enclosed by
    *quote* is returned unchanged.
    """
    if len(text) <= 1:
        return ""
    if quote and text[0] == quote and text[-1] == quote:
        return text[1:-1]
    return text


@dataclass
class _Lexer:
    line: str
    context: ExpansionContext
    pos: int = 0
    tokens: list[str] = field(default_factory=list)
    next_is_quote: bool = False
    next_is_dquote: bool = False
    prev_is_dquote: bool = False

    def run(self) -> list[str]:
        length = len(self.line)
        while self.pos < length:
            while self.pos < length and self.line[self.pos] in _SPACES:
                self.pos += 1
            if self.pos >= length:
                break
            char = self.line[self.pos]
            if char == '"':
                self._double_quoted()
            elif char == "'":
                self._single_quoted()
            elif char in "<>":
                self._redirection()
            elif char == "|":
                self.tokens.append("|")
                self.pos += 1
            else:
                self._word()
        return self.tokens

    def _quoted_span(self, quote: str) -> str:
        closing = self.line.find(quote, self.pos + 1)
        end = len(self.line) if closing < 0 else closing + 1
        span = self.line[self.pos : end]
        self.pos = end
        return span

    def _double_quoted(self) -> None:
        span = self._quoted_span('"')
        content = span[:-1][1:]
        self.tokens.append(expand_word(content, self.context))
        self._join_quoted('"')
        self._after_quoted()

    def _single_quoted(self) -> None:
        # Single-quoted text keeps its quotes; they go at expansion time.
        self.tokens.append(self._quoted_span("'"))
        self._join_quoted("")
        self._after_quoted()

    def _join_quoted(self, quote: str) -> None:
        self.tokens[-1] = strip_enclosing(self.tokens[-1], quote)
        if (self.next_is_quote or self.next_is_dquote) and len(self.tokens) >= 2:
            last = self.tokens.pop()
            self.tokens[-1] += last
            self.next_is_quote = False
            self.next_is_dquote = False

    def _after_quoted(self) -> None:
        if self.pos >= len(self.line):
            return
        char = self.line[self.pos]
        if char in _QUOTES:
            self.next_is_quote = True
        if char not in _SPACES and char not in _OPERATOR_CHARS:
            self.prev_is_dquote = True

    def _word(self) -> None:
        length = len(self.line)
        end = self.pos
        while end < length and self.line[end] not in _WORD_STOP:
            end += 1
        if end < length:
            if self.line[end] == '"':
                self.next_is_dquote = True
            elif self.line[end] == "'":
                self.next_is_quote = True
        self.tokens.append(self.line[self.pos : end])
        self.pos = end
        if self.prev_is_dquote and len(self.tokens) >= 2:
            word = self.tokens.pop()
            self.tokens[-1] = strip_enclosing(self.tokens[-1], '"') + word
            self.prev_is_dquote = False

    def _redirection(self) -> None:
        pair = self.line[self.pos : self.pos + 2]
        if pair in (">>", "<<"):
            self.tokens.append(pair)
            self.pos += 2
        else:
            self.tokens.append(self.line[self.pos])
            self.pos += 1


def tokenize(line: str, context: ExpansionContext | None = None) -> list[str]:
    """Split *line* into tokens.

    Double-quoted text is expanded at once and loses its quotes;
    single-quoted text keeps its quotes. Quoted parts glued to
    neighbouring words are joined with them.
    """
    return _Lexer(line, context or ExpansionContext()).run()