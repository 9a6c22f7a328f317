from __future__ import annotations

from fastapi import APIRouter, File, HTTPException, Response, UploadFile, status

from tubely.api import deps
from tubely.ingest.errors import IngestError
from tubely.services.ingest_service import UploadRequest

from . import schemas
from .errors import to_http_exception


router = APIRouter(tags=["uploads"])

_ERROR_RESPONSES = {
    status.HTTP_403_FORBIDDEN: {"model": schemas.ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": schemas.ErrorResponse},
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": schemas.ErrorResponse},
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: {"model": schemas.ErrorResponse},
}


@router.post(
    "/video_upload/{video_id}",
    response_model=schemas.VideoResponse,
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": schemas.ErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": schemas.ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": schemas.ErrorResponse},
    },
)
async def upload_video(
    video_id: str,
    service: deps.IngestDependency,
    context: deps.AuthDependency,
    video: UploadFile = File(...),
) -> schemas.VideoResponse:
    request = UploadRequest(
        record_id=video_id,
        owner_id=context.user_id,
        declared_media_type=video.content_type or "",
        size_bytes=video.size or 0,
        content=video.file,
    )
    try:
        record = await service.ingest(request)
    except IngestError as exc:
        raise to_http_exception(exc) from exc
    finally:
        await video.close()
    return schemas.VideoResponse.model_validate(record)


@router.post("/thumbnail_upload/{video_id}", response_model=schemas.VideoResponse, responses=_ERROR_RESPONSES)
async def upload_thumbnail(
    video_id: str,
    service: deps.ThumbnailDependency,
    context: deps.AuthDependency,
    thumbnail: UploadFile = File(...),
) -> schemas.VideoResponse:
    try:
        data = await thumbnail.read(service.settings.max_thumbnail_size_bytes + 1)
        record = await service.upload(
            video_id=video_id,
            user_id=context.user_id,
            media_type=thumbnail.content_type or "",
            data=data,
        )
    except IngestError as exc:
        raise to_http_exception(exc) from exc
    finally:
        await thumbnail.close()
    return schemas.VideoResponse.model_validate(record)


@router.get("/thumbnails/{video_id}", response_class=Response)
async def get_thumbnail(
    video_id: str,
    service: deps.ThumbnailDependency,
    repository: deps.RepositoryDependency,
) -> Response:
    if await repository.get_video(video_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="video_not_found")
    thumbnail = await service.fetch(video_id)
    if thumbnail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="thumbnail_not_found")
    return Response(
        content=thumbnail.data,
        media_type=thumbnail.media_type,
        headers={"Cache-Control": "no-store"},
    )


__all__ = ["router"]
