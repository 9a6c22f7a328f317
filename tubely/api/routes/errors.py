from __future__ import annotations

from fastapi import HTTPException, status

from tubely.ingest.errors import (
    ExternalToolFailure,
    IngestError,
    MalformedProbeOutput,
    OwnershipMismatch,
    PayloadTooLarge,
    RecordNotFound,
    RecordWriteFailure,
    StagingFailure,
    UnsupportedMediaType,
    UploadFailure,
)

_STATUS_BY_ERROR: tuple[tuple[type[IngestError], int], ...] = (
    (RecordNotFound, status.HTTP_404_NOT_FOUND),
    (OwnershipMismatch, status.HTTP_403_FORBIDDEN),
    (PayloadTooLarge, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
    (UnsupportedMediaType, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
    (ExternalToolFailure, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (MalformedProbeOutput, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (UploadFailure, status.HTTP_502_BAD_GATEWAY),
    (StagingFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (RecordWriteFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: IngestError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(exc: IngestError) -> HTTPException:
    return HTTPException(status_code=status_for(exc), detail=exc.as_detail())


__all__ = ["status_for", "to_http_exception"]
