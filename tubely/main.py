from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from tubely.api.routes import get_api_router
from tubely.core.config import get_settings
from tubely.core.db import create_engine, create_schema, create_session_factory
from tubely.core.logging import configure_logging, get_logger, level_from_name
from tubely.core.process import SubprocessRunner
from tubely.core.storage import get_storage
from tubely.domain import FastStartRewriter, GeometryClassifier


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(level=level_from_name(settings.log_level))
    logger = get_logger(component="app")
    storage = get_storage(settings)
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)
    runner = SubprocessRunner(timeout_s=settings.tool_timeout_s)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.storage = storage
        app.state.engine = engine
        app.state.session_factory = session_factory
        app.state.classifier = GeometryClassifier(runner, ffprobe_binary=settings.ffprobe_binary)
        app.state.rewriter = FastStartRewriter(runner, ffmpeg_binary=settings.ffmpeg_binary)
        if settings.environment_lower in {"development", "dev", "test"}:
            await create_schema(engine)
        logger.info("app_started", environment=settings.environment, storage_backend=settings.storage_backend)
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan,
        openapi_url="/openapi.json",
        docs_url="/docs",
    )

    app.include_router(get_api_router())
    return app


__all__ = ["create_app"]
