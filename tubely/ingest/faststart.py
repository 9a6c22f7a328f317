from __future__ import annotations

from pathlib import Path

from tubely.core.logging import get_logger
from tubely.core.process import ProcessRunner
from tubely.ingest.errors import ExternalToolFailure, RemuxFailure

PROCESSED_SUFFIX = ".processed.mp4"


def output_path_for(input_path: Path) -> Path:
    return input_path.with_name(input_path.name + PROCESSED_SUFFIX)


def remux_arguments(input_path: Path, output_path: Path) -> list[str]:
    # Stream copy only: moov atom to the front, global metadata kept.
    return [
        "-nostdin",
        "-v",
        "error",
        "-y",
        "-i",
        str(input_path),
        "-movflags",
        "faststart",
        "-map_metadata",
        "0",
        "-codec",
        "copy",
        "-f",
        "mp4",
        str(output_path),
    ]


class FastStartRewriter:
    """Relocate the container index to the head of the file for progressive playback."""

    def __init__(self, runner: ProcessRunner, *, ffmpeg_binary: str = "ffmpeg"):
        self.runner = runner
        self.ffmpeg_binary = ffmpeg_binary
        self.logger = get_logger(component="faststart_rewriter")

    def output_path_for(self, input_path: Path) -> Path:
        return output_path_for(input_path)

    def rewrite(self, input_path: Path) -> Path:
        output_path = output_path_for(input_path)
        try:
            self.runner.run(self.ffmpeg_binary, remux_arguments(input_path, output_path), input_path)
        except ExternalToolFailure as exc:
            raise RemuxFailure(exc.tool, exc.exit_code, exc.stderr) from exc
        self.logger.info("faststart_rewritten", input_path=str(input_path), output_path=str(output_path))
        return output_path


__all__ = ["FastStartRewriter", "PROCESSED_SUFFIX", "output_path_for", "remux_arguments"]
