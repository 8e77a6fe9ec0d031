"""Error taxonomy for admin screens: validation, API, fetch, upload, mutation."""
from typing import Any, List, Optional, Tuple


class SoundCaveError(Exception):
    """Base error; title and message are what the user gets to see."""

    title = "Request Failed"

    def __init__(self, message: str, *, title: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title


class ValidationError(SoundCaveError):
    """Form input rejected before any network call."""

    title = "Invalid Input"

    def __init__(self, message: str, *, field: Optional[str] = None, title: Optional[str] = None) -> None:
        super().__init__(message, title=title)
        self.field = field


class ApiError(SoundCaveError):
    """Backend call failed: transport error, HTTP error status or success=false."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        title: Optional[str] = None,
    ) -> None:
        super().__init__(message, title=title)
        self.status_code = status_code


class AuthenticationError(ApiError):
    """Backend answered 401; the stored session has been cleared."""

    title = "Session Expired"


class FetchError(SoundCaveError):
    title = "Failed to Load Data"


class UploadError(SoundCaveError):
    title = "Failed to Upload File"


class MutationError(SoundCaveError):
    title = "Failed to Save Changes"


class PartialBatchError(MutationError):
    """Some operations of a batch succeeded, others failed. Nothing is rolled back."""

    title = "Some Changes Failed"

    def __init__(
        self,
        message: str,
        *,
        created: List[Any],
        failed: List[Tuple[Any, SoundCaveError]],
        title: Optional[str] = None,
    ) -> None:
        super().__init__(message, title=title)
        self.created = created
        self.failed = failed


def extract_message(body: Any, default: str) -> str:
    """Pick the backend's error text: ``message``, then ``error.message``, then default."""
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
        error = body.get("error")
        if isinstance(error, dict):
            nested = error.get("message")
            if isinstance(nested, str) and nested:
                return nested
    return default
