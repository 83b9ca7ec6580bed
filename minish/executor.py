"""Running a tokenized command line: builtins, programs, pipes and redirections."""

from __future__ import annotations

import contextlib
import io
import os
import signal
import subprocess
import sys
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import IO

from minish.environment import InvalidIdentifierError, ShellState
from minish.expansion import ExpansionContext, expand_word
from minish.redirection import ReadLine, RedirectionError, Redirections
from minish.syntax import is_redirection

_UNCHANGED = object()


class CommandNotFoundError(LookupError):
    """Raised when a command is neither a program nor a builtin."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"command not found: {name}")


def echo(args: Sequence[str]) -> str:
    """Return what ``echo`` prints for *args*.

    Only the first argument may be an option: a dash followed by any
    number of ``n`` suppresses the trailing newline.
    """
    newline = True
    words = list(args)
    if words and words[0].startswith("-") and set(words[0][1:]) <= {"n"}:
        newline = False
        words = words[1:]
    return " ".join(words) + ("\n" if newline else "")


def find_command(
    name: str, path_dirs: Iterable[str], cwd: str
) -> str | None:
    """Return the path of the program *name*, or None when it does not exist.

    Names starting with ``.`` are taken relative to *cwd*, names starting
    with ``/`` as they are; other names are looked up in *path_dirs*.
    """
    if name.startswith("."):
        candidate = cwd + name[1:]
        return candidate if os.path.exists(candidate) else None
    if name.startswith("/"):
        return name if os.path.exists(name) else None
    for directory in path_dirs:
        candidate = f"{directory}/{name}"
        if os.path.exists(candidate):
            return candidate
    return None


def exit_status_from_returncode(returncode: int) -> int:
    """Turn a process return code into a shell exit status.

    A process killed by a signal yields the signal number.
    """
    return -returncode if returncode < 0 else returncode


class _InterruptRecorder:
    """Signal handler that counts interrupts instead of raising."""

    def __init__(self) -> None:
        self.count = 0

    def __call__(self, signum: int, frame: object) -> None:
        self.count += 1


@contextlib.contextmanager
def _sigint_deferred() -> Iterator[_InterruptRecorder]:
    recorder = _InterruptRecorder()
    try:
        previous = signal.signal(signal.SIGINT, recorder)
    except ValueError:
        previous = _UNCHANGED
    try:
        yield recorder
    finally:
        if previous is not _UNCHANGED:
            signal.signal(
                signal.SIGINT, previous if previous is not None else signal.SIG_DFL
            )


class Executor:
    """Runs commands against a shared shell state."""

    def __init__(
        self,
        state: ShellState,
        stdout: IO[str] | None = None,
        read_line: ReadLine | None = None,
    ) -> None:
        self.state = state
        self.stdout = stdout if stdout is not None else sys.stdout
        self.read_line = read_line
        self._builtins: dict[str, Callable[[list[str], Redirections], None]] = {
            "echo": self._builtin_echo,
            "env": self._builtin_env,
            "export": self._builtin_export,
            "unset": self._builtin_unset,
            "exit": self._builtin_exit,
        }

    def _write(self, text: str) -> None:
        self.stdout.write(text)
        self.stdout.flush()

    def _report(self, message: str) -> None:
        self._write(f"msh: {message}\n")

    def _emit(self, text: str, redirections: Redirections) -> None:
        if redirections.stdout is not None:
            redirections.stdout.write(text.encode("utf-8"))
            redirections.stdout.flush()
        else:
            self._write(text)

    def _expand(self, line: str) -> str:
        return expand_word(line, ExpansionContext.from_state(self.state))

    def run_tokens(self, tokens: Iterable[str]) -> int:
        """Run a tokenized command line and return its exit status."""
        self.state.exit_status = 0
        args: list[str] = []
        piped: bytes | None = None
        with Redirections() as redirections:
            stream = iter(tokens)
            for token in stream:
                if self.state.exit_status:
                    break
                if is_redirection(token):
                    target = next(stream, None)
                    try:
                        redirections.apply(token, target, self.read_line, self._expand)
                    except RedirectionError as exc:
                        self._report(exc.message)
                        self.state.exit_status = 1
                        return self.state.exit_status
                elif token == "|":
                    try:
                        piped = self.launch(args, redirections, piped, True)
                    except CommandNotFoundError as exc:
                        self._report(str(exc))
                        return self.state.exit_status
                    redirections.reset()
                    args = []
                else:
                    args.append(token)
            if self.state.exit_status:
                return self.state.exit_status
            try:
                self.launch(args, redirections, piped, False)
            except CommandNotFoundError as exc:
                self._report(str(exc))
                self.state.exit_status = 127
        return self.state.exit_status

    def launch(
        self,
        args: Sequence[str],
        redirections: Redirections,
        piped_input: bytes | None = None,
        has_pipe: bool = False,
    ) -> bytes | None:
        """Run one simple command.

        Returns the bytes a program wrote for the next command of a
        pipeline, or None when nothing is passed on.
        """
        if not args:
            return None
        args = list(args)
        name = args[0]
        if name in ("cd", "chdir"):
            self.change_directory(args[1] if len(args) > 1 else None)
            return None
        if name == "pwd":
            self._emit(self.pwd() + "\n", redirections)
            return None
        path = find_command(name, self.state.env.path_dirs(), os.getcwd())
        if path is not None:
            return self._run_program(path, args, redirections, piped_input, has_pipe)
        builtin = self._builtins.get(name)
        if builtin is None:
            raise CommandNotFoundError(name)
        builtin(args, redirections)
        return None

    def _stdout_fd(self) -> int | None:
        try:
            return self.stdout.fileno()
        except (OSError, ValueError, AttributeError, io.UnsupportedOperation):
            return None

    def _run_program(
        self,
        path: str,
        args: list[str],
        redirections: Redirections,
        piped_input: bytes | None,
        has_pipe: bool,
    ) -> bytes | None:
        input_data = piped_input if redirections.stdin is None else None
        capture = False
        if redirections.stdout is not None:
            redirections.stdout.flush()
            stdout: object = redirections.stdout
        elif has_pipe:
            stdout = subprocess.PIPE
        else:
            fd = self._stdout_fd()
            if fd is None:
                stdout = subprocess.PIPE
                capture = True
            else:
                self.stdout.flush()
                stdout = fd
        try:
            with _sigint_deferred():
                completed = subprocess.run(
                    args,
                    executable=path,
                    stdin=redirections.stdin if input_data is None else None,
                    input=input_data,
                    stdout=stdout,
                    env=self.state.env.as_dict(),
                    check=False,
                )
        except OSError:
            self._report("error execve")
            self.state.exit_status = 0
            return b"" if has_pipe else None
        self.state.exit_status = exit_status_from_returncode(completed.returncode)
        if capture:
            self._write((completed.stdout or b"").decode("utf-8", errors="replace"))
            return None
        if has_pipe:
            return completed.stdout or b""
        return None

    def _builtin_echo(self, args: list[str], redirections: Redirections) -> None:
        self._emit(echo(args[1:]), redirections)

    def _builtin_env(self, args: list[str], redirections: Redirections) -> None:
        self._emit("".join(f"{line}\n" for line in self.state.env.lines()), redirections)

    def _builtin_export(self, args: list[str], redirections: Redirections) -> None:
        if len(args) == 1:
            self._emit(
                "".join(f"{line}\n" for line in self.state.env.declarations()),
                redirections,
            )
            return
        try:
            self.state.env.export(args[1:])
        except InvalidIdentifierError as exc:
            self._report(str(exc))
            self.state.exit_status = 1

    def _builtin_unset(self, args: list[str], redirections: Redirections) -> None:
        try:
            self.state.env.unset(args[1:])
        except InvalidIdentifierError as exc:
            self._report(str(exc))
            self.state.exit_status = 1

    def _builtin_exit(self, args: list[str], redirections: Redirections) -> None:
        self.state.exit_requested = True

    def change_directory(self, target: str | None = None) -> bool:
        """Change the working directory and update PWD and OLDPWD.

        With no target or ``~`` the directory is HOME. Returns whether the
        change happened; failures are reported and set the exit status.
        """
        if target is None or target == "~":
            home = self.state.home
            if not home:
                self._report("cd: HOME not set")
                self.state.exit_status = 1
                return False
            destination = home
        else:
            destination = target
        try:
            os.chdir(destination)
        except OSError:
            self._write(f"cd: no such file or directory: {destination}\n")
            self.state.exit_status = 1
            return False
        old = self.state.env.get("PWD")
        new = os.getcwd()
        updates = [f"PWD={new}"]
        if old is not None:
            updates.append(f"OLDPWD={old}")
        self.state.env.export(updates)
        slash = new.rfind("/")
        self.state.current_folder = new[slash:] if slash >= 0 else new
        return True

    def pwd(self) -> str:
        """Return PWD, or the real working directory when PWD is unset."""
        value = self.state.env.get("PWD")
        return value if value is not None else os.getcwd()