"""Shared fixtures for unit tests.

Builds pipelines on top of the fake identification and subtitle clients so
no unit test touches the network, FFmpeg or a speech model.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from marquee.api.auth import get_settings
from marquee.config import Settings
from marquee.main import app
from marquee.services.pipeline import IngestionPipeline

AUTH_CODE = "letmein"


@pytest.fixture
async def pipeline(library_dirs, fake_identification, fake_subtitle_source):
    """A pipeline wired to fakes, with its worker running."""
    library, subs = library_dirs
    pipe = IngestionPipeline(
        identification=fake_identification,
        subtitle_source=fake_subtitle_source,
        library_root=library,
        subtitles_root=subs,
        app_url="http://test",
    )
    pipe.start()
    yield pipe
    await pipe.stop()


@pytest.fixture
def auth_params():
    return {"code": AUTH_CODE}


@pytest.fixture
def test_settings(library_dirs):
    library, subs = library_dirs
    return Settings(
        env="dev",
        auth_code=AUTH_CODE,
        library_path=library,
        subtitles_path=subs,
        log_dir=library.parent,
    )


@pytest.fixture
async def client(pipeline, test_settings):
    """Provide an async HTTP client bound to the test pipeline."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.state.pipeline = pipeline
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    app.state.pipeline = None
