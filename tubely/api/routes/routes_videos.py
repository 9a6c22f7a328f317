from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status

from tubely.api import deps

from . import schemas


router = APIRouter(prefix="/videos", tags=["videos"])


@router.post("", response_model=schemas.VideoResponse, status_code=status.HTTP_201_CREATED)
async def create_video(
    payload: schemas.VideoCreateRequest,
    repository: deps.RepositoryDependency,
    context: deps.AuthDependency,
) -> schemas.VideoResponse:
    video = await repository.create_video(
        user_id=context.user_id,
        title=payload.title,
        description=payload.description,
    )
    return schemas.VideoResponse.model_validate(video)


@router.get("", response_model=list[schemas.VideoResponse])
async def list_videos(
    repository: deps.RepositoryDependency,
    context: deps.AuthDependency,
) -> list[schemas.VideoResponse]:
    videos = await repository.list_videos(context.user_id)
    return [schemas.VideoResponse.model_validate(video) for video in videos]


@router.get("/{video_id}", response_model=schemas.VideoResponse)
async def get_video(video_id: str, repository: deps.RepositoryDependency) -> schemas.VideoResponse:
    video = await repository.get_video(video_id)
    if video is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="video_not_found")
    return schemas.VideoResponse.model_validate(video)


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_video(
    video_id: str,
    repository: deps.RepositoryDependency,
    context: deps.AuthDependency,
) -> Response:
    video = await repository.get_video(video_id)
    if video is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="video_not_found")
    if video.user_id != context.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="not_video_owner")
    await repository.delete_video(video)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
