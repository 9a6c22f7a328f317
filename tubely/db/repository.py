from __future__ import annotations

from uuid import uuid4

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tubely.db.models import Thumbnail, Video


class VideoRepository:
    """Record store for videos and their thumbnails."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_video(self, *, user_id: str, title: str, description: str) -> Video:
        video = Video(id=str(uuid4()), user_id=user_id, title=title, description=description)
        self.session.add(video)
        await self.session.commit()
        await self.session.refresh(video)
        return video

    async def get_video(self, video_id: str) -> Video | None:
        return await self.session.get(Video, video_id)

    async def list_videos(self, user_id: str) -> list[Video]:
        stmt = select(Video).where(Video.user_id == user_id).order_by(Video.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_video(self, video: Video) -> Video:
        self.session.add(video)
        await self.session.commit()
        await self.session.refresh(video)
        return video

    async def delete_video(self, video: Video) -> None:
        await self.session.execute(delete(Thumbnail).where(Thumbnail.video_id == video.id))
        await self.session.delete(video)
        await self.session.commit()

    async def get_thumbnail(self, video_id: str) -> Thumbnail | None:
        return await self.session.get(Thumbnail, video_id)

    async def put_thumbnail(self, *, video_id: str, media_type: str, data: bytes) -> Thumbnail:
        thumbnail = await self.session.get(Thumbnail, video_id)
        if thumbnail is None:
            thumbnail = Thumbnail(video_id=video_id, media_type=media_type, data=data)
            self.session.add(thumbnail)
        else:
            thumbnail.media_type = media_type
            thumbnail.data = data
        await self.session.flush()
        return thumbnail


__all__ = ["VideoRepository"]
