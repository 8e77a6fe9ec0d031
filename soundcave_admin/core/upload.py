"""Upload-then-reference: upload a picked file right away, keep its URL for the form payload."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from soundcave_admin.config import AUDIO_MAX_BYTES, IMAGE_MAX_BYTES, VIDEO_MAX_BYTES
from soundcave_admin.core.api_client import SoundCaveClient
from soundcave_admin.core.errors import ApiError, UploadError
from soundcave_admin.core.notifications import Notifier
from soundcave_admin.models.asset import LocalFile, UploadedAsset

logger = logging.getLogger(__name__)

_DEFAULT_MAX_BYTES = {
    "image": IMAGE_MAX_BYTES,
    "audio": AUDIO_MAX_BYTES,
    "video": VIDEO_MAX_BYTES,
}


@dataclass
class UploadSpec:
    """Where and how one form field uploads its file."""
    endpoint: str  # e.g. /api/images/upload
    folder: Optional[str] = None
    media: str = "image"  # "image" | "audio" | "video"
    max_bytes: Optional[int] = None
    required: bool = False

    @property
    def limit(self) -> int:
        if self.max_bytes is not None:
            return self.max_bytes
        return _DEFAULT_MAX_BYTES.get(self.media, IMAGE_MAX_BYTES)


def _format_size(n: int) -> str:
    return f"{n / (1024 * 1024):.0f}MB" if n >= 1024 * 1024 else f"{n / 1024:.0f}KB"


class UploadField:
    """State of one file input: local preview, upload in flight, remote URL.

    select_file() shows the preview at once and starts the upload without
    waiting for form submit. While the upload runs, `uploading` is True and
    the form must not be submitted. On failure the picked file is dropped and
    the field falls back to committed_url (the asset already saved on the
    record, or None on create).
    """

    def __init__(
        self,
        client: SoundCaveClient,
        spec: UploadSpec,
        notifier: Notifier,
        *,
        name: str = "file",
        committed_url: Optional[str] = None,
    ) -> None:
        self._client = client
        self.spec = spec
        self.name = name
        self._notifier = notifier
        self.committed_url = committed_url
        self.asset: Optional[UploadedAsset] = None
        self.remote_url: Optional[str] = None
        self.last_error: Optional[UploadError] = None
        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def uploading(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def value(self) -> Optional[str]:
        """URL to embed in the payload: latest upload, else what the record already had."""
        return self.remote_url or self.committed_url

    def check(self, local_file: LocalFile) -> None:
        if local_file.media != self.spec.media:
            raise UploadError(f"{local_file.filename} is not a valid {self.spec.media} file.")
        if local_file.size > self.spec.limit:
            raise UploadError(
                f"{local_file.filename} is {_format_size(local_file.size)}; "
                f"the limit is {_format_size(self.spec.limit)}.",
            )

    def select_file(self, local_file: LocalFile) -> Optional[UploadedAsset]:
        """Pick a file: preview now, upload in the background. Returns None if rejected."""
        self._generation += 1
        try:
            self.check(local_file)
        except UploadError as e:
            self._fail(e)
            return None
        asset = UploadedAsset(local_file=local_file, preview_data_url=local_file.to_data_url())
        self.asset = asset
        self.last_error = None
        self._task = asyncio.get_running_loop().create_task(
            self._run_upload(self._generation, asset)
        )
        return asset

    async def upload(self, local_file: LocalFile) -> str:
        """POST the file to the upload endpoint; returns the durable file_url."""
        try:
            envelope = await self._client.upload(
                self.spec.endpoint,
                local_file.filename,
                local_file.content,
                local_file.content_type,
                folder=self.spec.folder,
                default_error=f"Failed to upload {self.spec.media}. Please try again.",
            )
        except ApiError as e:
            raise UploadError(e.message) from e
        data = envelope.data if isinstance(envelope.data, dict) else {}
        file_url = data.get("file_url")
        if not file_url:
            raise UploadError(envelope.message or f"Failed to upload {self.spec.media}.")
        return file_url

    async def _run_upload(self, generation: int, asset: UploadedAsset) -> None:
        try:
            url = await self.upload(asset.local_file)
        except UploadError as e:
            if generation == self._generation:
                self._fail(e)
            return
        if generation != self._generation:
            logger.info("Upload of %s finished after being replaced; ignored", asset.local_file.filename)
            return
        asset.remote_url = url
        self.remote_url = url
        self._notifier.success(
            f"{self.spec.media.title()} Uploaded",
            f"{asset.local_file.filename} uploaded successfully",
        )

    def _fail(self, error: UploadError) -> None:
        self.last_error = error
        self.asset = None
        self.remote_url = None
        self._notifier.error_from(error)

    async def settle(self) -> None:
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    def discard(self) -> None:
        """Form closed or cancelled: forget the picked file; a late upload result is ignored."""
        self._generation += 1
        self.asset = None
        self.remote_url = None
        self._task = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "media": self.spec.media,
            "required": self.spec.required,
            "uploading": self.uploading,
            "value": self.value,
            "committed_url": self.committed_url,
            "filename": self.asset.local_file.filename if self.asset else None,
            "preview": self.asset.preview_data_url if self.asset else None,
            "error": self.last_error.message if self.last_error else None,
        }
