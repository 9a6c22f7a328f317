from __future__ import annotations

from tubely.core.config import Settings
from tubely.core.logging import get_logger
from tubely.db.models import Thumbnail, Video
from tubely.db.repository import VideoRepository
from tubely.ingest.errors import OwnershipMismatch, PayloadTooLarge, RecordNotFound, UnsupportedMediaType

THUMBNAIL_MEDIA_TYPES = frozenset({"image/jpeg", "image/png"})


class ThumbnailService:
    def __init__(self, settings: Settings, repository: VideoRepository):
        self.settings = settings
        self.repository = repository
        self.logger = get_logger(component="thumbnail_service")

    def thumbnail_url(self, video_id: str) -> str:
        return f"{self.settings.public_base_url.rstrip('/')}/api/thumbnails/{video_id}"

    async def upload(self, *, video_id: str, user_id: str, media_type: str, data: bytes) -> Video:
        limit = self.settings.max_thumbnail_size_bytes
        if len(data) > limit:
            raise PayloadTooLarge(None, limit)
        if media_type not in THUMBNAIL_MEDIA_TYPES:
            raise UnsupportedMediaType(media_type, " or ".join(sorted(THUMBNAIL_MEDIA_TYPES)))

        video = await self.repository.get_video(video_id)
        if video is None:
            raise RecordNotFound(video_id)
        if video.user_id != user_id:
            raise OwnershipMismatch(video_id)

        await self.repository.put_thumbnail(video_id=video_id, media_type=media_type, data=data)
        video.thumbnail_url = self.thumbnail_url(video_id)
        video = await self.repository.update_video(video)
        self.logger.info("thumbnail_stored", video_id=video_id, user_id=user_id, size_bytes=len(data))
        return video

    async def fetch(self, video_id: str) -> Thumbnail | None:
        return await self.repository.get_thumbnail(video_id)


__all__ = ["ThumbnailService", "THUMBNAIL_MEDIA_TYPES"]
