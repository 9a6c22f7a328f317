"""Failure taxonomy for the video ingest pipeline.

Every error is terminal for the ingest that raised it. The orchestrator tags
the error with the stage it failed in before re-raising, so callers receive a
single exception carrying both the stable ``kind`` and the failing ``stage``.
"""

from __future__ import annotations

import enum
from typing import Optional


class IngestStage(str, enum.Enum):
    validate = "validate"
    stage = "stage"
    classify = "classify"
    rewrite = "rewrite"
    upload = "upload"
    record = "record"


class IngestError(Exception):
    kind: str = "ingest_error"

    def __init__(self, message: str, *, stage: Optional[IngestStage] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def as_detail(self) -> dict[str, Optional[str]]:
        return {
            "error": self.kind,
            "stage": self.stage.value if self.stage else None,
            "message": self.message,
        }


class UnsupportedMediaType(IngestError):
    kind = "unsupported_media_type"

    def __init__(self, media_type: str, supported: str):
        super().__init__(
            f"Invalid file type {media_type!r}. Only {supported} uploads are supported",
            stage=IngestStage.validate,
        )
        self.media_type = media_type


class PayloadTooLarge(IngestError):
    kind = "payload_too_large"

    def __init__(
        self,
        size_bytes: Optional[int],
        limit_bytes: int,
        *,
        stage: IngestStage = IngestStage.validate,
    ):
        # size_bytes is None when the body was cut off at the limit and the full size is unknown.
        subject = "Upload" if size_bytes is None else f"Upload of {size_bytes} bytes"
        super().__init__(
            f"{subject} exceeds the maximum allowed size of {limit_bytes} bytes",
            stage=stage,
        )
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class ExternalToolFailure(IngestError):
    kind = "external_tool_failure"

    def __init__(self, tool: str, exit_code: Optional[int], stderr: str, *, stage: Optional[IngestStage] = None):
        detail = stderr.strip() or "no diagnostic output"
        status = f"exit code {exit_code}" if exit_code is not None else "no exit code"
        super().__init__(f"{tool} failed ({status}): {detail}", stage=stage)
        self.tool = tool
        self.exit_code = exit_code
        self.stderr = stderr


class RemuxFailure(ExternalToolFailure):
    kind = "remux_failure"

    def __init__(self, tool: str, exit_code: Optional[int], stderr: str):
        super().__init__(tool, exit_code, stderr, stage=IngestStage.rewrite)


class MalformedProbeOutput(IngestError):
    kind = "malformed_probe_output"

    def __init__(self, reason: str):
        super().__init__(f"Could not read video geometry: {reason}", stage=IngestStage.classify)
        self.reason = reason


class UploadFailure(IngestError):
    kind = "upload_failure"

    def __init__(self, storage_key: str, reason: str):
        super().__init__(f"Upload of {storage_key} failed: {reason}", stage=IngestStage.upload)
        self.storage_key = storage_key


class StagingFailure(IngestError):
    kind = "staging_failure"

    def __init__(self, reason: str):
        super().__init__(f"Could not stage upload: {reason}", stage=IngestStage.stage)
        self.reason = reason


class RecordWriteFailure(IngestError):
    kind = "record_write_failure"

    def __init__(self, record_id: str, reason: str):
        super().__init__(f"Could not record video {record_id}: {reason}", stage=IngestStage.record)
        self.record_id = record_id
        self.reason = reason


class RecordNotFound(IngestError):
    kind = "record_not_found"

    def __init__(self, record_id: str):
        super().__init__("Couldn't find video", stage=IngestStage.validate)
        self.record_id = record_id


class OwnershipMismatch(IngestError):
    kind = "ownership_mismatch"

    def __init__(self, record_id: str):
        super().__init__("Not authorized to update this video", stage=IngestStage.validate)
        self.record_id = record_id


__all__ = [
    "IngestStage",
    "IngestError",
    "UnsupportedMediaType",
    "PayloadTooLarge",
    "ExternalToolFailure",
    "RemuxFailure",
    "MalformedProbeOutput",
    "UploadFailure",
    "StagingFailure",
    "RecordWriteFailure",
    "RecordNotFound",
    "OwnershipMismatch",
]
