from __future__ import annotations

from pathlib import Path

import pytest

from tubely.ingest.errors import ExternalToolFailure, IngestStage, RemuxFailure
from tubely.ingest.faststart import FastStartRewriter, output_path_for


def test_output_is_sibling_of_input(tmp_path: Path):
    source = tmp_path / "tubely-abc.mp4"
    assert output_path_for(source) == tmp_path / "tubely-abc.mp4.processed.mp4"


def test_rewrite_requests_stream_copy_with_index_first(make_runner, tmp_path: Path):
    source = tmp_path / "upload.mp4"
    source.write_bytes(b"original-bytes")
    runner = make_runner()
    rewriter = FastStartRewriter(runner)

    output = rewriter.rewrite(source)

    command, args, input_path = runner.calls[0]
    assert command == "ffmpeg"
    assert input_path == source
    assert args[args.index("-i") + 1] == str(source)
    assert args[args.index("-movflags") + 1] == "faststart"
    assert args[args.index("-map_metadata") + 1] == "0"
    assert args[args.index("-codec") + 1] == "copy"
    assert args[args.index("-f") + 1] == "mp4"
    assert args[-1] == str(output)
    assert output == rewriter.output_path_for(source)
    assert source.read_bytes() == b"original-bytes"


def test_rewrite_failure_is_remux_failure(make_runner, tmp_path: Path):
    source = tmp_path / "upload.mp4"
    source.write_bytes(b"not really an mp4")
    rewriter = FastStartRewriter(make_runner(remux_exit=1, remux_stderr="moov atom not found"))

    with pytest.raises(RemuxFailure) as excinfo:
        rewriter.rewrite(source)

    error = excinfo.value
    assert isinstance(error, ExternalToolFailure)
    assert error.stage is IngestStage.rewrite
    assert error.exit_code == 1
    assert error.stderr == "moov atom not found"
    assert error.kind == "remux_failure"
