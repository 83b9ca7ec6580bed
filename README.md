# minish

A small interactive command shell. It reads command lines, splits them into
words, expands variables and wildcards, and runs built-in commands or programs
found on `PATH`.

## Installing

```
pip install .
```

## Running

```
minish
```

The prompt shows the user name (`USER`) and the current folder, or `~` when
the working directory is `HOME`. After a failed command it is prefixed with
`X <status>`. End the session with `exit` or end-of-file (Ctrl-D). Ctrl-C at
the prompt starts a fresh line; Ctrl-\ is ignored. When Python's `readline`
module is available, it provides line editing and history.

At start-up `SHLVL` is raised by one (set to `1` when it is unset).

## What it understands

- Words separated by spaces, tabs and newlines; `'single'` and `"double"`
  quotes. Quoted parts glued to a word are joined with it.
- `$NAME` expands to an environment variable; an unset variable expands to
  nothing. Only the first `$` in a word is expanded. A word containing `$?` is
  replaced by the last exit status. Nothing is expanded inside single quotes.
- A word with `*` is matched against the visible (non-dot) names in the
  current directory, in sorted order. A word that matches nothing is kept as
  it is.
- Pipes: `ls | wc -l`. Each command of a pipeline runs to completion and its
  output is handed to the next one.
- Redirections: `< file`, `> file`, `>> file`, and heredocs with `<< END`.
  Heredoc lines are read with a `> ` prompt, expanded like words, and stored
  in a temporary `.heredoc_*` file that is removed afterwards.
- Built-in commands: `cd` / `chdir` (no argument or `~` means `HOME`; updates
  `PWD` and `OLDPWD`), `pwd` (prints `PWD`, or the real working directory when
  it is unset), and `echo` (with `-n`, `-nn`, ...), `env`, `export`, `unset`
  and `exit`. `cd`, `chdir` and `pwd` are always built in; the other built-ins
  are used only when no program of that name is found on `PATH`.
- `export` with no arguments lists variables as `declare -x NAME=value`.
  Invalid names are reported as `not a valid identifier` and set the status
  to 1.

Syntax errors — an unclosed quote, two pipes with only blanks between them,
or a pipe at the end of the line — are reported before anything runs. An
unknown command is reported as `command not found` with status 127.

## What it does not do

There are no `;`, `&&`, `||`, subshells, background jobs or job control, no
assignment without `export`, and no scripts: the shell only reads lines
interactively. `exit` ignores any argument, and the `minish` command always
exits with status 0.

## Using it from Python

```python
import io
from minish.shell import Shell

out = io.StringIO()
shell = Shell({"HOME": "/tmp", "USER": "demo"}, stdout=out)
shell.run_line("export GREETING=hello")
shell.run_line('echo "$GREETING" world')
print(out.getvalue())  # hello world
```

`Shell.run_line()` runs one line and returns its exit status, `Shell.prompt()`
returns the prompt text, and `Shell.loop()` runs the read loop, reading lines
through the `read_line` callable given to `Shell` (by default `input()`).
`minish.shell.main()` is what the `minish` command starts.

The parts can also be used on their own:

- `minish.syntax.validate()` checks quotes and pipes, raising
  `ShellSyntaxError`.
- `minish.lexer.tokenize()` splits a line into tokens.
- `minish.expansion.expand_word()`, `expand_tokens()`, `match_pattern()` and
  `expand_wildcard()` perform expansion.
- `minish.environment.Environment` holds the variables, with `get()`,
  `export()`, `unset()`, `lines()` and `declarations()`.
- `minish.redirection.Redirections` opens redirection targets and heredocs,
  and `read_lines()` yields the lines of a stream.
- `minish.executor.Executor` runs a token list with `run_tokens()`.

## Running the tests

```
pip install .[test]
pytest
```