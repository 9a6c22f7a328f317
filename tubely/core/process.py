from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Sequence

from tubely.core.logging import get_logger
from tubely.ingest.errors import ExternalToolFailure


@dataclass(slots=True, frozen=True)
class ProcessResult:
    exit_code: int
    stdout: str
    stderr: str


class ProcessRunner(Protocol):
    def run(self, command: str, args: Sequence[str], input_path: Path) -> ProcessResult: ...


class SubprocessRunner:
    """Run external media tools as child processes.

    Both output streams are captured and read to completion before the exit
    code is inspected, so a chatty tool cannot block on a full pipe.
    """

    def __init__(self, timeout_s: Optional[float] = None):
        self.timeout_s = timeout_s
        self.logger = get_logger(component="process_runner")

    def run(self, command: str, args: Sequence[str], input_path: Path) -> ProcessResult:
        argv = [command, *args]
        logger = self.logger.bind(tool=command, input_path=str(input_path))
        logger.debug("external_tool_started", argv=argv)
        try:
            proc = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                timeout=self.timeout_s,
                check=False,
            )
        except FileNotFoundError as exc:
            logger.error("external_tool_missing")
            raise ExternalToolFailure(command, None, f"executable not found: {command}") from exc
        except OSError as exc:
            logger.error("external_tool_launch_failed", error=str(exc))
            raise ExternalToolFailure(command, None, str(exc)) from exc
        except subprocess.TimeoutExpired as exc:
            logger.error("external_tool_timed_out", timeout_s=self.timeout_s)
            raise ExternalToolFailure(command, None, f"timed out after {self.timeout_s}s on {input_path}") from exc

        result = ProcessResult(exit_code=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
        if result.exit_code != 0:
            logger.warning("external_tool_failed", exit_code=result.exit_code, stderr=result.stderr[-2000:])
            raise ExternalToolFailure(command, result.exit_code, result.stderr)
        logger.debug("external_tool_finished")
        return result


__all__ = ["ProcessResult", "ProcessRunner", "SubprocessRunner"]
