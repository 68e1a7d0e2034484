import errno
import io
import logging

import pytest

from termline import cli
from termline.errors import ExitStatus


def render_file(tmp_path, data, *extra):
    src = tmp_path / "input.log"
    src.write_bytes(data)
    out = tmp_path / "output.html"
    status = cli.main([str(src), "-o", str(out), *extra])
    return status, out


def test_renders_file(tmp_path):
    status, out = render_file(tmp_path, b"\x1b[1mBold\x1b[0m Normal")
    assert status == ExitStatus.ok
    assert out.read_text(encoding="utf-8") == '<span class="sgr-bold">Bold</span> Normal'


def test_writes_utf8(tmp_path):
    status, out = render_file(tmp_path, "✓ done\n".encode())
    assert status == 0
    assert out.read_bytes() == "✓ done\n".encode()


def test_standalone(tmp_path):
    status, out = render_file(tmp_path, b"x", "--standalone")
    assert status == 0
    html = out.read_text(encoding="utf-8")
    assert "<pre>x</pre>" in html
    assert "<style>" in html


def test_writes_to_stdout(tmp_path, capsys):
    src = tmp_path / "input.log"
    src.write_bytes(b"abc\rX\x1b[K")
    assert cli.main([str(src)]) == 0
    assert capsys.readouterr().out == "X"


@pytest.mark.parametrize(
    "data, status",
    [
        (b"ab\x1b[5C", ExitStatus.cursor_out_of_range),
        (b"ab\x1b[1K", ExitStatus.unsupported_erase_mode),
        (b"ab\x1b[1;2C", ExitStatus.unexpected_parameter_count),
    ],
)
def test_render_errors_map_to_exit_status(tmp_path, caplog, data, status):
    with caplog.at_level(logging.ERROR, logger="termline"):
        code, out = render_file(tmp_path, data)
    assert code == status
    assert not out.exists()
    assert any(r.levelno == logging.ERROR for r in caplog.records)


def test_exit_statuses_are_distinct():
    values = [s.value for s in ExitStatus]
    assert len(values) == len(set(values))
    assert ExitStatus.ok == 0
    assert all(v != 0 for v in values[1:])


class BrokenStdin(io.RawIOBase):
    def __init__(self):
        super().__init__()
        self._sent = False

    def readable(self):
        return True

    def read(self, size=-1):
        if not self._sent:
            self._sent = True
            return b"partial"
        raise OSError(errno.EBADF, "Bad file descriptor")


class FakeStdin:
    def __init__(self, raw):
        self.buffer = raw


def test_read_failure_keeps_partial_output(tmp_path, monkeypatch, caplog):
    monkeypatch.setattr(cli.sys, "stdin", FakeStdin(BrokenStdin()))
    out = tmp_path / "output.html"
    with caplog.at_level(logging.ERROR, logger="termline"):
        status = cli.main(["-o", str(out)])
    assert status == ExitStatus.read_error
    assert out.read_text(encoding="utf-8") == "partial"
    assert "failed to read input" in caplog.text
