from __future__ import annotations

from pathlib import Path

import pytest

from tubely import cli
from tubely.core.process import ProcessResult


class _ProbeOnlyRunner:
    def __init__(self, stdout: str):
        self.stdout = stdout

    def run(self, command, args, input_path):
        return ProcessResult(exit_code=0, stdout=self.stdout, stderr="")


def test_missing_file_exits_with_code_two(tmp_path: Path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["classify", "--file", str(tmp_path / "absent.mp4")])
    assert excinfo.value.code == 2


def test_no_command_prints_help():
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 1


def test_classify_prints_category(monkeypatch, tmp_path: Path, capsys):
    media = tmp_path / "clip.mp4"
    media.write_bytes(b"mp4")
    monkeypatch.setattr(cli, "_runner", lambda: _ProbeOnlyRunner('{"streams": [{"width": 720, "height": 1280}]}'))

    cli.main(["classify", "--file", str(media)])

    assert "portrait" in capsys.readouterr().out


def test_classify_reports_malformed_probe(monkeypatch, tmp_path: Path):
    media = tmp_path / "clip.mp4"
    media.write_bytes(b"mp4")
    monkeypatch.setattr(cli, "_runner", lambda: _ProbeOnlyRunner("{}"))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["classify", "--file", str(media)])
    assert excinfo.value.code == 3
