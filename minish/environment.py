"""Environment variables and the mutable state shared by the shell."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

_WHITESPACE = " \t\n\v\f\r"


class InvalidIdentifierError(ValueError):
    """Raised when ``export`` or ``unset`` is given a bad variable name."""

    def __init__(self, command: str, name: str | None) -> None:
        self.command = command
        self.name = name or ""
        super().__init__(f"{command}: '{self.name}': not a valid identifier")


def _is_ascii_alpha(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z")


def _is_ascii_alnum(char: str) -> bool:
    return _is_ascii_alpha(char) or ("0" <= char <= "9")


def check_var_name(name: str | None) -> bool:
    """Return True if *name* is a valid shell variable identifier."""
    if not name:
        return False
    if not (_is_ascii_alpha(name[0]) or name[0] == "_"):
        return False
    return all(_is_ascii_alnum(char) or char == "_" for char in name)


def parse_int(text: str) -> int:
    """Parse a leading decimal integer, ignoring leading whitespace.

    Anything after the digits is ignored; text without digits yields 0.
    """
    stripped = text.lstrip(_WHITESPACE)
    sign = 1
    if stripped[:1] in ("+", "-"):
        if stripped[0] == "-":
            sign = -1
        stripped = stripped[1:]
    digits = []
    for char in stripped:
        if not "0" <= char <= "9":
            break
        digits.append(char)
    return sign * int("".join(digits)) if digits else 0


def _entry_name(entry: str) -> str | None:
    """Return the first non-empty '='-separated piece of *entry*."""
    return next((piece for piece in entry.split("=") if piece), None)


class Environment:
    """An ordered list of ``NAME=value`` entries."""

    def __init__(self, entries: Iterable[str] | Mapping[str, str] = ()) -> None:
        if isinstance(entries, Mapping):
            self._entries = [f"{key}={value}" for key, value in entries.items()]
        else:
            self._entries = list(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __repr__(self) -> str:
        return f"Environment({self._entries!r})"

    def get(self, name: str) -> str | None:
        """Return the value of *name*, or None when it is not set."""
        for entry in self._entries:
            if _entry_name(entry) == name:
                return entry.partition("=")[2]
        return None

    def export(self, args: Iterable[str]) -> None:
        """Set variables from ``NAME=value`` arguments.

        Arguments without ``=`` or starting with ``=`` are checked but not
        stored. Processing stops at the first invalid name, which raises
        InvalidIdentifierError; earlier arguments stay applied.
        """
        for arg in args:
            name = _entry_name(arg)
            if not check_var_name(name):
                raise InvalidIdentifierError("export", name)
            if "=" in arg and len(arg) > 1 and not arg.startswith("="):
                self._set_entry(name, arg)

    def _set_entry(self, name: str, line: str) -> None:
        for position, entry in enumerate(self._entries):
            if _entry_name(entry) == name:
                self._entries[position] = line
                return
        self._entries.append(line)

    def unset(self, names: Iterable[str]) -> None:
        """Remove every entry of each valid name.

        All names are processed; if any was invalid, InvalidIdentifierError
        is raised afterwards for the first invalid one.
        """
        invalid: list[str] = []
        for name in names:
            if check_var_name(name):
                self._entries = [
                    entry for entry in self._entries if _entry_name(entry) != name
                ]
            else:
                invalid.append(name)
        if invalid:
            raise InvalidIdentifierError("unset", invalid[0])

    def lines(self) -> list[str]:
        """Return the entries as printed by ``env``."""
        return list(self._entries)

    def declarations(self) -> list[str]:
        """Return the entries as printed by ``export`` with no arguments."""
        return [f"declare -x {entry}" for entry in self._entries]

    def increment_shell_level(self) -> None:
        """Raise SHLVL by one, starting at 1 when it is unset."""
        current = self.get("SHLVL")
        level = parse_int(current) + 1 if current is not None else 1
        self.export([f"SHLVL={level}"])

    def as_dict(self) -> dict[str, str]:
        """Return a mapping suitable for a child process environment."""
        result: dict[str, str] = {}
        for entry in self._entries:
            name = _entry_name(entry)
            if name is not None and name not in result:
                result[name] = entry.partition("=")[2]
        return result

    def path_dirs(self) -> list[str]:
        """Return the non-empty directories listed in PATH."""
        path = self.get("PATH")
        if path is None:
            return []
        return [directory for directory in path.split(":") if directory]


@dataclass
class ShellState:
    """State shared between the parts of a running shell."""

    env: Environment = field(default_factory=Environment)
    exit_status: int = 0
    exit_requested: bool = False
    current_folder: str = ""
    initialized: bool = False

    @property
    def user(self) -> str:
        return self.env.get("USER") or ""

    @property
    def home(self) -> str | None:
        return self.env.get("HOME")