import asyncio
import json
from pathlib import Path
from typing import Sequence

import jwt
import pytest
from fastapi.testclient import TestClient

from tubely.core.config import get_settings
from tubely.core.db import Base, create_engine
from tubely.core.process import ProcessResult
from tubely.ingest.errors import ExternalToolFailure
import tubely.db.models  # noqa: F401 - register tables on the metadata

TEST_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def configure_environment(monkeypatch, tmp_path):
    db_path = tmp_path / "tubely_test.db"
    scratch = tmp_path / "scratch"
    scratch.mkdir()

    monkeypatch.setenv("TUBELY_ENV", "test")
    monkeypatch.setenv("TUBELY_LOG_LEVEL", "debug")
    monkeypatch.setenv("TUBELY_DB_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("TUBELY_STORAGE_BACKEND", "local")
    monkeypatch.setenv("TUBELY_LOCAL_STORAGE_BASE_PATH", str(tmp_path / "assets"))
    monkeypatch.setenv("TUBELY_TEMP_DIR", str(scratch))
    monkeypatch.setenv("TUBELY_PUBLIC_BASE_URL", "http://localhost:8091")
    monkeypatch.setenv("TUBELY_JWT_SECRET", TEST_SECRET)

    get_settings.cache_clear()
    settings = get_settings()
    engine = create_engine(settings)

    async def _setup() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_setup())

    yield settings

    async def _teardown() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()

    asyncio.run(_teardown())
    get_settings.cache_clear()


@pytest.fixture()
def scratch_dir(configure_environment) -> Path:
    return configure_environment.temp_dir


class FakeRunner:
    """Stands in for ffprobe/ffmpeg; records calls and replays canned results."""

    def __init__(self, *, probe: dict | str | None = None, remux_exit: int = 0, remux_stderr: str = ""):
        self.probe = probe if probe is not None else {"streams": [{"width": 1920, "height": 1080}]}
        self.remux_exit = remux_exit
        self.remux_stderr = remux_stderr
        self.calls: list[tuple[str, list[str], Path]] = []

    def run(self, command: str, args: Sequence[str], input_path: Path) -> ProcessResult:
        self.calls.append((command, list(args), input_path))
        if command == "ffprobe":
            stdout = self.probe if isinstance(self.probe, str) else json.dumps(self.probe)
            return ProcessResult(exit_code=0, stdout=stdout, stderr="")
        output_path = Path(args[-1])
        # ffmpeg creates its output before it can fail part-way through.
        output_path.write_bytes(Path(input_path).read_bytes())
        if self.remux_exit != 0:
            raise ExternalToolFailure(command, self.remux_exit, self.remux_stderr)
        return ProcessResult(exit_code=0, stdout="", stderr="")


@pytest.fixture()
def make_runner():
    return FakeRunner


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def client(configure_environment):
    from tubely.main import create_app

    app = create_app()
    with TestClient(app) as client:
        yield client


def build_token(user_id: str) -> str:
    return jwt.encode({"sub": user_id}, TEST_SECRET, algorithm="HS256")


@pytest.fixture()
def user_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {build_token('user-1')}"}


@pytest.fixture()
def other_user_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {build_token('user-2')}"}
