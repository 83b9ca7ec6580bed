import io
import os

import pytest

from minish.redirection import RedirectionError, Redirections, read_lines


def _reader(lines, prompts=None):
    iterator = iter(lines)

    def read_line(prompt):
        if prompts is not None:
            prompts.append(prompt)
        return next(iterator, None)

    return read_line


def test_output_trunc_writes_and_truncates(tmp_path):
    target = tmp_path / "out.txt"
    target.write_bytes(b"old content that is long")
    redirs = Redirections(tmp_path)
    redirs.output_trunc("out.txt").write(b"new")
    redirs.reset()
    assert target.read_bytes() == b"new"
    assert redirs.stdout is None


def test_output_append_keeps_existing(tmp_path):
    target = tmp_path / "log.txt"
    target.write_bytes(b"first\n")
    with Redirections(tmp_path) as redirs:
        redirs.output_append("log.txt").write(b"second\n")
    assert target.read_bytes() == b"first\nsecond\n"


def test_output_creates_missing_file(tmp_path):
    with Redirections(tmp_path) as redirs:
        redirs.apply(">", "made.txt")
    assert (tmp_path / "made.txt").read_bytes() == b""


def test_later_output_replaces_earlier(tmp_path):
    redirs = Redirections(tmp_path)
    redirs.output_trunc("a.txt")
    second = redirs.output_trunc("b.txt")
    second.write(b"data")
    redirs.close()
    assert (tmp_path / "a.txt").read_bytes() == b""
    assert (tmp_path / "b.txt").read_bytes() == b"data"


def test_input_file_reads_content(tmp_path):
    (tmp_path / "in.txt").write_bytes(b"payload")
    with Redirections(tmp_path) as redirs:
        handle = redirs.apply("<", "in.txt")
        assert handle.read() == b"payload"
        assert redirs.stdin is handle


def test_missing_input_raises(tmp_path):
    redirs = Redirections(tmp_path)
    with pytest.raises(RedirectionError) as info:
        redirs.input_file("absent.txt")
    assert info.value.message == "no such file or directory: absent.txt"


def test_output_in_missing_directory_raises(tmp_path):
    redirs = Redirections(tmp_path)
    with pytest.raises(RedirectionError) as info:
        redirs.output_trunc("nowhere/out.txt")
    assert info.value.message == "cannot create file: nowhere/out.txt"


def test_unknown_operator_raises(tmp_path):
    with pytest.raises(ValueError):
        Redirections(tmp_path).apply("|", "x")


def test_missing_target_raises(tmp_path):
    with pytest.raises(RedirectionError):
        Redirections(tmp_path).apply(">", None)


def test_heredoc_collects_until_delimiter(tmp_path):
    prompts = []
    redirs = Redirections(tmp_path)
    handle = redirs.apply("<<", "EOF", _reader(["one", "two", "EOF", "three"], prompts))
    assert handle.read() == b"one\ntwo\n"
    assert prompts == ["> ", "> ", "> "]
    redirs.close()


def test_heredoc_stops_at_end_of_input(tmp_path):
    with Redirections(tmp_path) as redirs:
        handle = redirs.heredoc("END", _reader(["only"]))
        assert handle.read() == b"only\n"


def test_heredoc_expands_lines(tmp_path):
    with Redirections(tmp_path) as redirs:
        handle = redirs.heredoc("END", _reader(["abc", "END"]), str.upper)
        assert handle.read() == b"ABC\n"


def test_heredoc_file_removed_on_reset(tmp_path):
    redirs = Redirections(tmp_path)
    redirs.heredoc("END", _reader(["x", "END"]))
    path = redirs.heredoc_path
    assert os.path.exists(path)
    redirs.reset()
    assert not os.path.exists(path)
    assert redirs.heredoc_path is None
    assert redirs.stdin is None


def test_reset_output_keeps_input(tmp_path):
    (tmp_path / "in.txt").write_bytes(b"keep")
    redirs = Redirections(tmp_path)
    redirs.input_file("in.txt")
    redirs.output_trunc("out.txt")
    redirs.reset_output()
    assert redirs.stdout is None
    assert redirs.stdin.read() == b"keep"
    redirs.close()


def test_read_lines_text():
    assert list(read_lines(io.StringIO("a\nb\nc"))) == ["a\n", "b\n", "c"]


def test_read_lines_bytes_with_trailing_newline():
    assert list(read_lines(io.BytesIO(b"x\ny\n"))) == [b"x\n", b"y\n"]


def test_read_lines_empty_stream():
    assert list(read_lines(io.StringIO(""))) == []


def test_read_lines_long_lines_round_trip():
    data = "q" * 100 + "\n" + "r" * 90 + "\n" + "tail"
    lines = list(read_lines(io.StringIO(data)))
    assert "".join(lines) == data
    assert len(lines) == 3
    assert all(line.endswith("\n") for line in lines[:-1])