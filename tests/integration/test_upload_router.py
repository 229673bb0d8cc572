"""Integration tests for POST /api/v1/uploads."""

import os
from collections.abc import Callable
from pathlib import Path

from httpx import AsyncClient

from upload_service.core.settings import FileUploadConfig

ClientFactory = Callable[[FileUploadConfig], AsyncClient]
ConfigFactory = Callable[..., FileUploadConfig]


class TestUploadBatch:
    """Mixed batches through the JSON endpoint."""

    async def test_accepts_permitted_and_rejects_others(
        self, async_client: AsyncClient, upload_dir: Path
    ) -> None:
        resp = await async_client.post(
            "/api/v1/uploads",
            files=[
                ("filename", ("a.png", b"x" * 100, "image/png")),
                ("filename", ("b.exe", b"y" * 50, "application/octet-stream")),
            ],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "1 of 2 file(s) uploaded"
        assert body["data"]["messages"] == [
            "a.png was uploaded successfully.",
            "b.exe is not permitted type of file.",
        ]
        states = [f["state"] for f in body["data"]["files"]]
        assert states == ["placed", "rejected"]
        assert os.listdir(upload_dir) == ["a.png"]
        assert (upload_dir / "a.png").read_bytes() == b"x" * 100

    async def test_duplicate_is_renamed(
        self, async_client: AsyncClient, upload_dir: Path
    ) -> None:
        (upload_dir / "a.png").write_bytes(b"old")
        resp = await async_client.post(
            "/api/v1/uploads",
            files=[("filename", ("a.png", b"new", "image/png"))],
        )
        outcome = resp.json()["data"]["files"][0]
        assert outcome["effective_name"] == "a_1.png"
        assert outcome["renamed"] is True
        assert (upload_dir / "a.png").read_bytes() == b"old"

    async def test_overwrite_when_renaming_disabled(
        self, async_client: AsyncClient, upload_dir: Path
    ) -> None:
        (upload_dir / "a.png").write_bytes(b"old")
        resp = await async_client.post(
            "/api/v1/uploads?rename_duplicates=false",
            files=[("filename", ("a.png", b"new", "image/png"))],
        )
        assert resp.json()["data"]["messages"] == ["a.png was uploaded successfully."]
        assert (upload_dir / "a.png").read_bytes() == b"new"

    async def test_empty_file(
        self, async_client: AsyncClient, upload_dir: Path
    ) -> None:
        resp = await async_client.post(
            "/api/v1/uploads",
            files=[("filename", ("void.png", b"", "image/png"))],
        )
        assert resp.json()["data"]["messages"] == ["void.png is empty."]
        assert os.listdir(upload_dir) == []

    async def test_size_hint_exceeded(self, async_client: AsyncClient) -> None:
        resp = await async_client.post(
            "/api/v1/uploads",
            data={"MAX_FILE_SIZE": "10"},
            files=[("filename", ("a.png", b"x" * 100, "image/png"))],
        )
        assert resp.json()["data"]["messages"] == [
            "a.png is too big: ( max: 100.0 KB )"
        ]

    async def test_nothing_submitted(self, async_client: AsyncClient) -> None:
        resp = await async_client.post("/api/v1/uploads", data={"other": "x"})
        assert resp.status_code == 200
        assert resp.json()["data"]["messages"] == ["No file submitted"]

    async def test_empty_file_input(
        self, async_client: AsyncClient, upload_dir: Path
    ) -> None:
        resp = await async_client.post(
            "/api/v1/uploads",
            files=[("filename", ("", b"", "application/octet-stream"))],
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["messages"] == ["No file submitted"]
        assert resp.json()["data"]["files"][0]["state"] == "rejected"
        assert os.listdir(upload_dir) == []

    async def test_rejected_type_is_not_placed(
        self, async_client: AsyncClient, upload_dir: Path
    ) -> None:
        resp = await async_client.post(
            "/api/v1/uploads",
            files=[("filename", ("doc.pdf", b"%PDF", "application/pdf"))],
        )
        assert resp.json()["data"]["files"][0]["state"] == "rejected"
        assert os.listdir(upload_dir) == []


class TestAllowAllTypes:
    """Suffixing when MIME checking is off."""

    async def test_untrusted_file_is_suffixed(
        self,
        client_for: ClientFactory,
        config_factory: ConfigFactory,
        upload_dir: Path,
    ) -> None:
        config = config_factory(allow_all_types=True)
        async with client_for(config) as client:
            resp = await client.post(
                "/api/v1/uploads",
                files=[("filename", ("payload.exe", b"MZ", "application/x-msdownload"))],
            )
        assert resp.json()["data"]["messages"] == [
            "payload.exe was uploaded successfully, and was renamed payload.exe.upload."
        ]
        assert os.listdir(upload_dir) == ["payload.exe.upload"]

    async def test_custom_suffix(
        self,
        client_for: ClientFactory,
        config_factory: ConfigFactory,
        upload_dir: Path,
    ) -> None:
        config = config_factory(allow_all_types=True, suspicious_suffix="quarantine")
        async with client_for(config) as client:
            await client.post(
                "/api/v1/uploads",
                files=[("filename", ("run me", b"#!", "text/plain"))],
            )
        assert os.listdir(upload_dir) == ["run_me.quarantine"]


class TestConfigurationErrors:
    """Misconfiguration fails the whole request."""

    async def test_missing_upload_dir(
        self,
        client_for: ClientFactory,
        config_factory: ConfigFactory,
        tmp_path: Path,
    ) -> None:
        config = config_factory(upload_dir=tmp_path / "missing")
        async with client_for(config) as client:
            resp = await client.post(
                "/api/v1/uploads",
                files=[("filename", ("a.png", b"x", "image/png"))],
            )
        assert resp.status_code == 500
        body = resp.json()
        assert body["code"] == "CONFIGURATION_ERROR"
        assert "must be a valid, writable folder" in body["message"]

    async def test_limit_above_host_ceiling(
        self,
        client_for: ClientFactory,
        config_factory: ConfigFactory,
        upload_dir: Path,
    ) -> None:
        config = config_factory(max_file_size=4 * 1024 * 1024)
        async with client_for(config) as client:
            resp = await client.post(
                "/api/v1/uploads",
                files=[("filename", ("a.png", b"x", "image/png"))],
            )
        assert resp.status_code == 500
        assert "cannot exceed server limit" in resp.json()["message"]
        assert os.listdir(upload_dir) == []


class TestRateLimit:
    """Upload endpoints are rate limited per client."""

    async def test_eventually_returns_429(self, async_client: AsyncClient) -> None:
        statuses = []
        for _ in range(40):
            resp = await async_client.post("/api/v1/uploads", data={"other": "x"})
            statuses.append(resp.status_code)
            if resp.status_code == 429:
                assert resp.json()["code"] == "RATE_LIMIT_EXCEEDED"
                break
        assert statuses[0] == 200
        assert statuses[-1] == 429


class TestHealth:
    """Health endpoint."""

    async def test_health_check(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"status": "healthy"}
