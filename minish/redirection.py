"""Input and output redirections, here-documents and line reading."""

from __future__ import annotations

import contextlib
import os
import tempfile
from collections.abc import Callable, Iterator
from typing import IO, AnyStr, BinaryIO

BUFFER_SIZE = 42

ReadLine = Callable[[str], "str | None"]
Expand = Callable[[str], str]


class RedirectionError(Exception):
    """Raised when a redirection target cannot be opened or created."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def read_lines(stream: IO[AnyStr]) -> Iterator[AnyStr]:
    """Yield the lines of *stream*, each with its newline when it has one."""
    pending = None
    while True:
        chunk = stream.read(BUFFER_SIZE)
        if not chunk:
            break
        pending = chunk if pending is None else pending + chunk
        newline = "\n" if isinstance(pending, str) else b"\n"
        while True:
            index = pending.find(newline)
            if index < 0:
                break
            yield pending[: index + 1]
            pending = pending[index + 1 :]
    if pending:
        yield pending


def _prompt_input(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


class Redirections:
    """The files standing in for standard input and output of a command."""

    def __init__(self, directory: str | os.PathLike[str] | None = None) -> None:
        self.directory = directory
        self.stdin: BinaryIO | None = None
        self.stdout: BinaryIO | None = None
        self.heredoc_path: str | None = None

    def __enter__(self) -> Redirections:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _path(self, filename: str) -> str:
        return os.path.join(os.fspath(self.directory or os.getcwd()), filename)

    def apply(
        self,
        operator: str,
        target: str | None,
        read_line: ReadLine | None = None,
        expand: Expand | None = None,
    ) -> BinaryIO:
        """Perform the redirection named by *operator* onto *target*."""
        handlers = {
            "<": self.input_file,
            ">": self.output_trunc,
            ">>": self.output_append,
        }
        if operator not in handlers and operator != "<<":
            raise ValueError(f"not a redirection operator: {operator!r}")
        if target is None:
            raise RedirectionError(f"missing file name after '{operator}'")
        if operator == "<<":
            return self.heredoc(target, read_line, expand)
        return handlers[operator](target)

    def input_file(self, filename: str) -> BinaryIO:
        """Read standard input from *filename*."""
        try:
            handle = open(self._path(filename), "rb")
        except OSError as exc:
            raise RedirectionError(f"no such file or directory: {filename}") from exc
        if self.stdin is not None:
            self.stdin.close()
        self.stdin = handle
        return handle

    def _open_output(self, filename: str, flag: int, mode: str) -> BinaryIO:
        try:
            fd = os.open(self._path(filename), os.O_WRONLY | os.O_CREAT | flag, 0o644)
        except OSError as exc:
            raise RedirectionError(f"cannot create file: {filename}") from exc
        handle = os.fdopen(fd, mode)
        if self.stdout is not None:
            self.stdout.close()
        self.stdout = handle
        return handle

    def output_trunc(self, filename: str) -> BinaryIO:
        """Write standard output to *filename*, emptying it first."""
        return self._open_output(filename, os.O_TRUNC, "wb")

    def output_append(self, filename: str) -> BinaryIO:
        """Append standard output to *filename*."""
        return self._open_output(filename, os.O_APPEND, "ab")

    def heredoc(
        self,
        delimiter: str,
        read_line: ReadLine | None = None,
        expand: Expand | None = None,
    ) -> BinaryIO:
        """Read lines until *delimiter* or end of input and feed them as input.

        Each line is passed through *expand* when given.
        """
        reader = read_line or _prompt_input
        parts: list[str] = []
        while True:
            line = reader("> ")
            if line is None or line == delimiter:
                break
            parts.append((expand(line) if expand else line) + "\n")
        self._discard_heredoc()
        try:
            fd, path = tempfile.mkstemp(
                prefix=".heredoc_", dir=os.fspath(self.directory or os.getcwd())
            )
        except OSError as exc:
            raise RedirectionError("error creating temp heredoc") from exc
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write("".join(parts))
        self.heredoc_path = path
        return self.input_file(path)

    def _discard_heredoc(self) -> None:
        if self.heredoc_path is not None:
            with contextlib.suppress(OSError):
                os.unlink(self.heredoc_path)
            self.heredoc_path = None

    def reset_output(self) -> None:
        """Restore standard output and remove any here-document file."""
        if self.stdout is not None:
            self.stdout.close()
            self.stdout = None
        self._discard_heredoc()

    def reset(self) -> None:
        """Restore standard input and output and remove any here-document."""
        if self.stdin is not None:
            self.stdin.close()
            self.stdin = None
        self.reset_output()

    def close(self) -> None:
        """Release every open redirection."""
        self.reset()