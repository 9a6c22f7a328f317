from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tubely.core.auth import AuthContext, get_auth_context
from tubely.core.config import Settings, get_settings
from tubely.core.storage import ObjectStore
from tubely.db.repository import VideoRepository
from tubely.services.ingest_service import IngestService
from tubely.services.thumbnail_service import ThumbnailService


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_factory = request.app.state.session_factory
    if not isinstance(session_factory, async_sessionmaker):
        raise RuntimeError("session_factory_not_configured")
    async with session_factory() as session:
        yield session


def get_storage(request: Request) -> ObjectStore:
    storage: ObjectStore = request.app.state.storage
    return storage


def get_app_settings() -> Settings:
    return get_settings()


def get_repository(session: AsyncSession = Depends(get_session)) -> VideoRepository:
    return VideoRepository(session)


def get_ingest_service(
    request: Request,
    repository: VideoRepository = Depends(get_repository),
    storage: ObjectStore = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
) -> IngestService:
    return IngestService(
        settings,
        storage,
        repository,
        classifier=getattr(request.app.state, "classifier", None),
        rewriter=getattr(request.app.state, "rewriter", None),
    )


def get_thumbnail_service(
    repository: VideoRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> ThumbnailService:
    return ThumbnailService(settings, repository)


RepositoryDependency = Annotated[VideoRepository, Depends(get_repository)]
IngestDependency = Annotated[IngestService, Depends(get_ingest_service)]
ThumbnailDependency = Annotated[ThumbnailService, Depends(get_thumbnail_service)]
AuthDependency = Annotated[AuthContext, Depends(get_auth_context)]


__all__ = [
    "get_session",
    "get_storage",
    "get_app_settings",
    "get_repository",
    "get_ingest_service",
    "get_thumbnail_service",
    "RepositoryDependency",
    "IngestDependency",
    "ThumbnailDependency",
    "AuthDependency",
]
