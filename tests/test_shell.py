import io
import os
from unittest import mock

import pytest

from minish.shell import NC, RED, YELLOW, Shell, main


def make_shell(environ=None, lines=()):
    out = io.StringIO()
    feed = iter(lines)

    def read_line(prompt):
        return next(feed, None)

    env = {"USER": "alice"} if environ is None else environ
    return Shell(env, out, read_line), out


def test_shell_level_incremented():
    shell, _ = make_shell({"USER": "alice", "SHLVL": "2"})
    assert shell.state.env.get("SHLVL") == "3"


def test_shell_level_starts_at_one():
    shell, _ = make_shell()
    assert shell.state.env.get("SHLVL") == "1"


def test_prompt_shows_folder(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    shell, _ = make_shell({"USER": "alice", "PWD": os.getcwd()})
    folder = "/" + os.path.basename(os.getcwd())
    assert shell.prompt() == f"alice@minishell:{YELLOW}{folder}{NC}$ "


def test_prompt_shows_tilde_at_home(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cwd = os.getcwd()
    shell, _ = make_shell({"USER": "alice", "HOME": cwd, "PWD": cwd})
    assert shell.prompt().endswith(f"~{NC}$ ")


def test_prompt_shows_error_status():
    shell, out = make_shell()
    status = shell.run_line("nosuchcommand")
    assert status == 127
    assert "command not found: nosuchcommand" in out.getvalue()
    assert shell.prompt().startswith(f"{RED}X 127 alice@minishell:{YELLOW}")


def test_echo_builtin():
    shell, out = make_shell()
    assert shell.run_line("echo hello world") == 0
    assert out.getvalue() == "hello world\n"


def test_export_then_expand():
    shell, out = make_shell()
    shell.run_line("export FOO=bar")
    shell.run_line("echo $FOO")
    assert out.getvalue() == "bar\n"


def test_blank_line_does_nothing():
    shell, out = make_shell()
    assert shell.run_line("   \t ") == 0
    assert out.getvalue() == ""


def test_unclosed_quote_reported():
    shell, out = make_shell()
    shell.run_line("echo 'abc")
    assert out.getvalue() == "msh: synthax error: quote\n"


def test_double_pipe_reported():
    shell, out = make_shell()
    shell.run_line("echo a | | b")
    assert out.getvalue() == "msh: error: two consecutive pipes\n"


def test_pipe_at_end_reported():
    shell, out = make_shell()
    assert shell.run_line("echo a |") == 1
    assert out.getvalue() == "msh: synthax error: pipe at end of line\n"


def test_output_redirection(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    shell, out = make_shell()
    shell.run_line("echo hi > out.txt")
    assert (tmp_path / "out.txt").read_text() == "hi\n"
    assert out.getvalue() == ""


def test_loop_runs_until_exit():
    shell, out = make_shell(lines=["echo hi", "exit", "echo never"])
    shell.loop()
    assert out.getvalue() == "hi\nexit\n"
    assert shell.state.exit_requested is True


def test_loop_stops_at_end_of_input():
    shell, out = make_shell(lines=[])
    shell.loop()
    assert out.getvalue() == "exit\n"


def test_loop_survives_interrupt():
    out = io.StringIO()
    events = iter([KeyboardInterrupt(), "echo ok", None])

    def read_line(prompt):
        event = next(events)
        if isinstance(event, BaseException):
            raise event
        return event

    shell = Shell({"USER": "alice"}, out, read_line)
    shell.loop()
    assert out.getvalue() == "\nok\nexit\n"


@pytest.mark.parametrize("line", ["unset 1A", "export 9X=1"])
def test_invalid_identifier_sets_status(line):
    shell, out = make_shell()
    assert shell.run_line(line) == 1
    assert "not a valid identifier" in out.getvalue()


def test_main_exits_on_eof(capsys):
    with mock.patch("builtins.input", side_effect=EOFError):
        assert main([]) == 0
    assert capsys.readouterr().out == "exit\n"