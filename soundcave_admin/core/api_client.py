"""Async client for the SoundCave REST backend (httpx); bearer auth on every request."""
import logging
from typing import Any, Dict, Optional

import httpx
import pydantic

from soundcave_admin.config import HTTP_TIMEOUT_SEC, SOUNDCAVE_API_URL
from soundcave_admin.core.credentials import CredentialProvider
from soundcave_admin.core.errors import ApiError, AuthenticationError, extract_message
from soundcave_admin.models.envelope import Envelope

logger = logging.getLogger(__name__)


class SoundCaveClient:
    """Thin wrapper over httpx.AsyncClient that speaks the {success, data, ...} envelope.

    Every call returns a parsed Envelope with success=True or raises ApiError.
    The token is asked from the credential provider per request, never cached.
    A 401 clears the stored session and raises AuthenticationError.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        base_url: str = SOUNDCAVE_API_URL,
        *,
        timeout: float = HTTP_TIMEOUT_SEC,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._credentials = credentials
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Accept": "application/json"},
        )
        logger.info("SoundCave client for %s (timeout=%.1fs)", base_url, timeout)

    @property
    def credentials(self) -> CredentialProvider:
        return self._credentials

    def _auth_headers(self) -> Dict[str, str]:
        token = self._credentials.get_token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        files: Any = None,
        data: Optional[Dict[str, Any]] = None,
        default_error: str = "Request failed. Please try again.",
    ) -> Envelope:
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                files=files,
                data=data,
                headers=self._auth_headers(),
            )
        except httpx.HTTPError as e:
            logger.warning("%s %s: %s", method, path, e)
            raise ApiError(default_error) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code == 401:
            logger.info("%s %s: 401, clearing stored session", method, path)
            self._credentials.clear()
            raise AuthenticationError(
                extract_message(body, "Session expired. Please log in again."),
                status_code=401,
            )
        if response.is_error:
            logger.warning("%s %s: HTTP %d", method, path, response.status_code)
            raise ApiError(extract_message(body, default_error), status_code=response.status_code)
        if not isinstance(body, dict):
            raise ApiError(default_error, status_code=response.status_code)

        try:
            envelope = Envelope.model_validate(body)
        except pydantic.ValidationError as e:
            logger.warning("%s %s: malformed envelope: %s", method, path, e)
            raise ApiError(default_error, status_code=response.status_code) from e
        if not envelope.success:
            raise ApiError(extract_message(body, default_error), status_code=response.status_code)
        return envelope

    async def get(self, path: str, *, params: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Envelope:
        return await self.request("GET", path, params=params, **kwargs)

    async def post(self, path: str, json: Any = None, **kwargs: Any) -> Envelope:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json: Any = None, **kwargs: Any) -> Envelope:
        return await self.request("PUT", path, json=json, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Envelope:
        return await self.request("DELETE", path, **kwargs)

    async def upload(
        self,
        path: str,
        filename: str,
        content: bytes,
        content_type: str,
        *,
        folder: Optional[str] = None,
        default_error: str = "Failed to upload file. Please try again.",
    ) -> Envelope:
        """POST multipart/form-data with ``file`` and optional ``folder``."""
        return await self.request(
            "POST",
            path,
            files={"file": (filename, content, content_type)},
            data={"folder": folder} if folder else None,
            default_error=default_error,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "SoundCaveClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
