"""Tests for upload-then-reference file fields."""
import asyncio

import httpx
import pytest

from conftest import failure, ok
from soundcave_admin.core.errors import UploadError
from soundcave_admin.core.upload import UploadField, UploadSpec
from soundcave_admin.models.asset import LocalFile

COVER_SPEC = UploadSpec(endpoint="/api/images/upload", folder="albums", media="image")


def _png(name: str = "cover.png", size: int = 16) -> LocalFile:
    return LocalFile(filename=name, content=b"\x89PNG" + b"\0" * (size - 4), content_type="image/png")


class TestSelectFile:
    """Test picking a file and the background upload."""

    async def test_preview_then_remote_url(self, client, backend, notifier) -> None:
        field = UploadField(client, COVER_SPEC, notifier, name="cover_image")
        asset = field.select_file(_png())

        assert asset.preview_data_url.startswith("data:image/png;base64,")
        assert field.uploading
        assert field.value is None

        await field.settle()

        assert not field.uploading
        assert field.value == "https://cdn.test/images/1"
        assert asset.remote_url == "https://cdn.test/images/1"
        assert backend.paths() == ["/api/images/upload"]
        assert b"albums" in backend.sent()[0].content
        assert [n.title for n in notifier.drain()] == ["Image Uploaded"]

    async def test_failure_reverts_to_committed_url(self, make_client, notifier) -> None:
        client = make_client(lambda request: failure(500, "Storage full"))
        field = UploadField(client, COVER_SPEC, notifier, committed_url="https://cdn.test/old.png")

        field.select_file(_png())
        await field.settle()

        assert field.asset is None
        assert field.remote_url is None
        assert field.value == "https://cdn.test/old.png"
        assert field.last_error.message == "Storage full"
        notice = notifier.drain()[0]
        assert (notice.level, notice.title, notice.message) == ("error", "Failed to Upload File", "Storage full")

    async def test_missing_file_url_is_a_failure(self, make_client, notifier) -> None:
        client = make_client(lambda request: ok({}, message="Nothing stored"))
        field = UploadField(client, COVER_SPEC, notifier)

        field.select_file(_png())
        await field.settle()

        assert field.value is None
        assert field.last_error.message == "Nothing stored"

    async def test_oversized_file_never_uploads(self, client, backend, notifier) -> None:
        field = UploadField(client, COVER_SPEC, notifier, committed_url="https://cdn.test/old.png")
        too_big = _png(size=6 * 1024 * 1024)

        assert field.select_file(too_big) is None

        assert not field.uploading
        assert backend.sent() == []
        assert field.value == "https://cdn.test/old.png"
        notice = notifier.drain()[0]
        assert notice.level == "error"
        assert "5MB" in notice.message

    async def test_wrong_media_rejected(self, client, backend, notifier) -> None:
        field = UploadField(client, COVER_SPEC, notifier)
        song = LocalFile(filename="song.mp3", content=b"ID3", content_type="audio/mpeg")

        with pytest.raises(UploadError, match="not a valid image file"):
            field.check(song)
        assert field.select_file(song) is None
        assert backend.sent() == []

    async def test_later_pick_wins(self, make_client, notifier) -> None:
        release_first = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            if b'filename="first.png"' in request.content:
                await release_first.wait()
                return ok({"file_url": "https://cdn.test/first.png"})
            return ok({"file_url": "https://cdn.test/second.png"})

        field = UploadField(make_client(handler), COVER_SPEC, notifier)
        field.select_file(_png("first.png"))
        first_upload = field._task
        field.select_file(_png("second.png"))
        await field.settle()
        release_first.set()
        await first_upload

        assert field.value == "https://cdn.test/second.png"
        assert field.asset.local_file.filename == "second.png"
        assert [n.message for n in notifier.drain()] == ["second.png uploaded successfully"]

    async def test_discard_ignores_late_result(self, client, notifier) -> None:
        field = UploadField(client, COVER_SPEC, notifier)
        field.select_file(_png())
        task = field._task
        field.discard()
        await asyncio.gather(task)

        assert field.value is None
        assert field.asset is None


class TestUploadSpec:
    """Test size limits per media type."""

    def test_default_limits(self) -> None:
        assert UploadSpec(endpoint="/x", media="image").limit == 5 * 1024 * 1024
        assert UploadSpec(endpoint="/x", media="audio").limit == 50 * 1024 * 1024
        assert UploadSpec(endpoint="/x", media="video").limit == 200 * 1024 * 1024

    def test_explicit_limit(self) -> None:
        assert UploadSpec(endpoint="/x", max_bytes=10).limit == 10
