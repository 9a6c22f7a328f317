from __future__ import annotations

import asyncio
import enum
from contextlib import ExitStack
from dataclasses import dataclass
from typing import BinaryIO, Optional

from sqlalchemy.exc import SQLAlchemyError

from tubely.core.config import Settings
from tubely.core.logging import get_logger
from tubely.core.process import SubprocessRunner
from tubely.core.storage import ObjectStore
from tubely.db.models import Video
from tubely.db.repository import VideoRepository
from tubely.domain import (
    FastStartRewriter,
    GeometryClassifier,
    compose_storage_key,
    scoped_temp_file,
    stage_upload,
)
from tubely.ingest.errors import (
    IngestError,
    IngestStage,
    OwnershipMismatch,
    PayloadTooLarge,
    RecordNotFound,
    RecordWriteFailure,
    UnsupportedMediaType,
)


class IngestState(str, enum.Enum):
    received = "received"
    staged = "staged"
    classified = "classified"
    rewritten = "rewritten"
    uploaded = "uploaded"
    recorded = "recorded"
    failed = "failed"


@dataclass(slots=True)
class UploadRequest:
    record_id: str
    owner_id: str
    declared_media_type: str
    size_bytes: int
    content: BinaryIO


class IngestService:
    """Stage, classify, rewrite, upload and record a single video upload.

    Each call owns its scratch files exclusively and removes all of them
    before returning, whichever stage fails.
    """

    def __init__(
        self,
        settings: Settings,
        storage: ObjectStore,
        repository: VideoRepository,
        *,
        classifier: Optional[GeometryClassifier] = None,
        rewriter: Optional[FastStartRewriter] = None,
    ):
        self.settings = settings
        self.storage = storage
        self.repository = repository
        if classifier is None or rewriter is None:
            runner = SubprocessRunner(timeout_s=settings.tool_timeout_s)
            classifier = classifier or GeometryClassifier(runner, ffprobe_binary=settings.ffprobe_binary)
            rewriter = rewriter or FastStartRewriter(runner, ffmpeg_binary=settings.ffmpeg_binary)
        self.classifier = classifier
        self.rewriter = rewriter
        self.logger = get_logger(component="ingest_service")

    async def ingest(self, request: UploadRequest) -> Video:
        logger = self.logger.bind(video_id=request.record_id, user_id=request.owner_id)
        logger.info("ingest_received", media_type=request.declared_media_type, size_bytes=request.size_bytes)

        video = await self._load_owned_record(request)
        self.validate(request)

        address = await asyncio.to_thread(self.process_upload, request)

        video.video_url = address
        try:
            video = await self.repository.update_video(video)
        except SQLAlchemyError as exc:
            error = RecordWriteFailure(request.record_id, str(exc))
            logger.warning(
                "ingest_state_changed",
                state=IngestState.failed.value,
                stage=IngestStage.record.value,
                error=error.kind,
                message=error.message,
                video_url=address,
            )
            raise error from exc
        logger.info("ingest_state_changed", state=IngestState.recorded.value, video_url=address)
        return video

    async def _load_owned_record(self, request: UploadRequest) -> Video:
        video = await self.repository.get_video(request.record_id)
        if video is None:
            raise RecordNotFound(request.record_id)
        if video.user_id != request.owner_id:
            raise OwnershipMismatch(request.record_id)
        return video

    def validate(self, request: UploadRequest) -> None:
        limit = self.settings.max_upload_size_bytes
        if request.size_bytes > limit:
            raise PayloadTooLarge(request.size_bytes, limit)
        if request.declared_media_type != self.settings.supported_media_type:
            raise UnsupportedMediaType(request.declared_media_type, self.settings.supported_media_type)

    def process_upload(self, request: UploadRequest) -> str:
        """Run the file-bound stages and return the stored object's address.

        Runs in a worker thread. Scratch files are registered on the exit stack
        before the step that produces them, so they are removed on every path.
        """
        logger = self.logger.bind(video_id=request.record_id)
        stage = IngestStage.stage
        try:
            with ExitStack() as stack:
                staged = stage_upload(
                    request.content,
                    stack,
                    directory=self.settings.temp_dir,
                    max_bytes=self.settings.max_upload_size_bytes,
                )
                logger.info("ingest_state_changed", state=IngestState.staged.value, path=str(staged))

                stage = IngestStage.classify
                category = self.classifier.classify(staged)
                logger.info("ingest_state_changed", state=IngestState.classified.value, category=category.value)

                stage = IngestStage.rewrite
                stack.enter_context(scoped_temp_file(self.rewriter.output_path_for(staged)))
                processed = self.rewriter.rewrite(staged)
                logger.info("ingest_state_changed", state=IngestState.rewritten.value, path=str(processed))

                stage = IngestStage.upload
                storage_key = compose_storage_key(category, request.declared_media_type)
                address = self.storage.upload(processed, storage_key, content_type=request.declared_media_type)
                logger.info("ingest_state_changed", state=IngestState.uploaded.value, storage_key=storage_key)
                return address
        except IngestError as exc:
            exc.stage = stage
            logger.warning(
                "ingest_state_changed",
                state=IngestState.failed.value,
                stage=stage.value,
                error=exc.kind,
                message=exc.message,
            )
            raise


__all__ = ["IngestService", "IngestState", "UploadRequest"]
