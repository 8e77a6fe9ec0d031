"""Files picked in a form and their uploaded counterparts."""
import base64
from dataclasses import dataclass
from typing import Optional


@dataclass
class LocalFile:
    """A file the user picked; held in memory only while the form is open."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def media(self) -> str:
        """Top-level MIME type, e.g. "image" or "video"."""
        return self.content_type.split("/", 1)[0].lower()

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


@dataclass
class UploadedAsset:
    local_file: LocalFile
    preview_data_url: str  # display only, never submitted
    remote_url: Optional[str] = None
