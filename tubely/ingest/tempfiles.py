from __future__ import annotations

import tempfile
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from tubely.core.logging import get_logger
from tubely.ingest.errors import IngestStage, PayloadTooLarge, StagingFailure

CHUNK_SIZE = 1024 * 1024

logger = get_logger(component="tempfiles")


def remove_quietly(path: Path) -> bool:
    """Delete ``path`` if present. Returns whether a file was removed.

    Errors are logged, never raised, so callers can run this on any exit path.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as cleanup_error:
        logger.warning("temp_file_cleanup_failed", path=str(path), error=str(cleanup_error))
        return False
    logger.debug("temp_file_removed", path=str(path))
    return True


@contextmanager
def scoped_temp_file(path: Path) -> Iterator[Path]:
    try:
        yield path
    finally:
        remove_quietly(path)


def stage_upload(
    stream: BinaryIO,
    stack: ExitStack,
    *,
    directory: Optional[Path] = None,
    suffix: str = ".mp4",
    max_bytes: Optional[int] = None,
) -> Path:
    """Copy ``stream`` into a randomly named file owned by ``stack``.

    The path is registered for removal before the first byte is written, so a
    failed copy never leaves a partial file behind once the stack unwinds.
    """
    try:
        if directory is not None:
            directory.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="wb",
            prefix="tubely-",
            suffix=suffix,
            dir=directory,
            delete=False,
        ) as handle:
            path = stack.enter_context(scoped_temp_file(Path(handle.name)))
            written = 0
            while chunk := stream.read(CHUNK_SIZE):
                written += len(chunk)
                if max_bytes is not None and written > max_bytes:
                    raise PayloadTooLarge(None, max_bytes, stage=IngestStage.stage)
                handle.write(chunk)
    except OSError as exc:
        logger.warning("upload_staging_failed", directory=str(directory), error=str(exc))
        raise StagingFailure(str(exc)) from exc
    logger.debug("upload_staged", path=str(path), size_bytes=written)
    return path


__all__ = ["CHUNK_SIZE", "remove_quietly", "scoped_temp_file", "stage_upload"]
