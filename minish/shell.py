"""The interactive read-evaluate loop and the prompt."""

from __future__ import annotations

import contextlib
import os
import signal
import sys
from collections.abc import Mapping, Sequence
from typing import IO

from minish.environment import Environment, ShellState
from minish.executor import Executor
from minish.expansion import ExpansionContext, expand_tokens
from minish.lexer import tokenize
from minish.redirection import ReadLine
from minish.syntax import ShellSyntaxError, is_blank, validate

NC = "\x1b[0m"
YELLOW = "\x1b[33m"
BLUE = "\x1b[34m"
RED = "\x1b[91m"


def _prompt_input(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def _folder_of(path: str) -> str:
    slash = path.rfind("/")
    return path[slash:] if slash >= 0 else path


class Shell:
    """A shell session: its state, its output and where it reads lines from."""

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        stdout: IO[str] | None = None,
        read_line: ReadLine | None = None,
    ) -> None:
        self.stdout = stdout if stdout is not None else sys.stdout
        self.read_line = read_line or _prompt_input
        env = Environment(dict(environ) if environ is not None else {})
        self.state = ShellState(env=env)
        self.state.env.increment_shell_level()
        self.state.current_folder = _folder_of(
            self.state.env.get("PWD") or os.getcwd()
        )
        self.state.initialized = True
        self.executor = Executor(self.state, self.stdout, self.read_line)

    def _write(self, text: str) -> None:
        self.stdout.write(text)
        self.stdout.flush()

    def prompt(self) -> str:
        """Return the prompt, showing the last status when it was an error."""
        user = self.state.user
        status = self.state.exit_status
        if status:
            head = f"{RED}X {status} {user}@minishell:{YELLOW}"
        else:
            head = f"{user}@minishell:{YELLOW}"
        home = self.state.home
        try:
            cwd = os.getcwd()
        except OSError:
            cwd = ""
        place = "~" if home and home == cwd else self.state.current_folder
        return f"{head}{place}{NC}$ "

    def run_line(self, line: str) -> int:
        """Check, expand and run one command line; return the exit status."""
        if is_blank(line):
            return self.state.exit_status
        try:
            validate(line)
        except ShellSyntaxError as exc:
            self._write(f"msh: {exc.message}\n")
            return self.state.exit_status
        tokens = tokenize(line, ExpansionContext.from_state(self.state))
        if not tokens:
            return self.state.exit_status
        if tokens[-1].startswith("|"):
            self._write("msh: synthax error: pipe at end of line\n")
            self.state.exit_status = 1
            return self.state.exit_status
        expanded = expand_tokens(tokens, ExpansionContext.from_state(self.state))
        return self.executor.run_tokens(expanded)

    def loop(self) -> None:
        """Read and run lines until ``exit`` or the end of input."""
        while not self.state.exit_requested:
            try:
                line = self.read_line(self.prompt())
            except KeyboardInterrupt:
                self._write("\n")
                continue
            if line is None:
                break
            self.run_line(line)
        self._write("exit\n")


def main(argv: Sequence[str] | None = None) -> int:
    """Start an interactive shell on the process environment."""
    with contextlib.suppress(ImportError):
        import readline  # noqa: F401  (line editing and history for input())
    sigquit = getattr(signal, "SIGQUIT", None)
    previous = None
    if sigquit is not None:
        with contextlib.suppress(ValueError):
            previous = signal.signal(sigquit, signal.SIG_IGN)
    try:
        Shell(os.environ, sys.stdout).loop()
    finally:
        if sigquit is not None and previous is not None:
            with contextlib.suppress(ValueError):
                signal.signal(sigquit, previous)
    return 0