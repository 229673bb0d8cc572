"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from upload_service.core.rate_limit import limiter
from upload_service.core.settings import FileUploadConfig
from upload_service.schemas.upload_schema import UploadDescriptor, UploadErrorCode

DescriptorFactory = Callable[..., UploadDescriptor]


# --- Filesystem ---


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    """Empty destination directory."""
    path = tmp_path / "uploaded"
    path.mkdir()
    return path


@pytest.fixture
def spool_dir(tmp_path: Path) -> Path:
    """Directory standing in for the transport layer's temp storage."""
    path = tmp_path / "spool"
    path.mkdir()
    return path


@pytest.fixture
def make_descriptor(spool_dir: Path) -> DescriptorFactory:
    """Build descriptors backed by real temporary files."""
    counter = iter(range(1_000_000))

    def _make(
        name: str,
        size: int = 100,
        mime: str = "image/png",
        error: UploadErrorCode = UploadErrorCode.OK,
        content: bytes | None = None,
    ) -> UploadDescriptor:
        data = content if content is not None else b"x" * size
        temp_path = spool_dir / f"tmp-{next(counter)}"
        temp_path.write_bytes(data)
        return UploadDescriptor(
            original_name=name,
            declared_mime_type=mime,
            temp_path=temp_path,
            transport_error=error,
            size_bytes=size,
        )

    return _make


# --- Config ---


def make_upload_config(upload_dir: Path, /, **overrides: Any) -> FileUploadConfig:
    """FileUploadConfig with MIME checking on."""
    values: dict[str, Any] = {
        "upload_dir": upload_dir,
        "max_file_size": 100 * 1024,
        "upload_max_filesize": "2M",
        "allowed_mime_types": "image/png,image/jpeg",
        "allow_all_types": False,
        "suspicious_suffix": None,
        "rename_duplicates": True,
    }
    values.update(overrides)
    return FileUploadConfig(**values)


@pytest.fixture
def upload_config(upload_dir: Path) -> FileUploadConfig:
    return make_upload_config(upload_dir)


@pytest.fixture
def config_factory(upload_dir: Path) -> Callable[..., FileUploadConfig]:
    """Build FileUploadConfig variants for the test upload folder."""

    def _make(**overrides: Any) -> FileUploadConfig:
        return make_upload_config(upload_dir, **overrides)

    return _make


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> Iterator[None]:
    """Start every test with empty rate limit counters."""
    limiter.reset()
    yield
    limiter.reset()


# --- App override & client fixtures ---


def _get_app(config: FileUploadConfig):  # type: ignore[no-untyped-def]
    """Import app lazily and point it at the test upload config."""
    from upload_service.dependencies import get_file_upload_config
    from upload_service.main import app

    app.dependency_overrides[get_file_upload_config] = lambda: config
    return app


@pytest.fixture
async def async_client(
    upload_config: FileUploadConfig,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for async tests."""
    application = _get_app(upload_config)
    transport = ASGITransport(app=application)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    application.dependency_overrides.clear()


@pytest.fixture
def client_for() -> Iterator[Callable[[FileUploadConfig], AsyncClient]]:
    """Create clients bound to a custom upload config."""
    from upload_service.main import app

    def _client(config: FileUploadConfig) -> AsyncClient:
        transport = ASGITransport(app=_get_app(config))
        return AsyncClient(transport=transport, base_url="http://test")

    yield _client
    app.dependency_overrides.clear()
