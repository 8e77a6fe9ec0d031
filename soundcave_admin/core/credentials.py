"""Auth token access: persisted session file, re-read on every request."""
import json
import logging
from pathlib import Path
from typing import Optional, Protocol

from soundcave_admin.config import SESSION_PATH, TOKEN_KEY, USER_KEY

logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    def get_token(self) -> Optional[str]: ...

    def get_user(self) -> Optional[dict]: ...

    def set_token(self, token: str, user: Optional[dict] = None) -> None: ...

    def clear(self) -> None: ...


class FileCredentialStore:
    """Session persisted as JSON ({soundcave_token, soundcave_user}) on disk.

    Nothing is cached in memory; every get_token() reads the file again so a
    logout or token swap from elsewhere is seen by the next request.
    """

    def __init__(self, path: Path = SESSION_PATH) -> None:
        self._path = path

    def _load(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Session file unreadable (%s): %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2))

    def get_token(self) -> Optional[str]:
        token = self._load().get(TOKEN_KEY)
        return token or None

    def get_user(self) -> Optional[dict]:
        return self._load().get(USER_KEY)

    def set_token(self, token: str, user: Optional[dict] = None) -> None:
        data = self._load()
        data[TOKEN_KEY] = token
        if user is not None:
            data[USER_KEY] = user
        self._save(data)

    def clear(self) -> None:
        """Remove token and user (logout, or backend answered 401)."""
        data = self._load()
        if not data:
            return
        data.pop(TOKEN_KEY, None)
        data.pop(USER_KEY, None)
        self._save(data)


class StaticCredentialProvider:
    """In-memory token, for scripts and tests."""

    def __init__(self, token: Optional[str] = None, user: Optional[dict] = None) -> None:
        self._token = token
        self._user = user

    def get_token(self) -> Optional[str]:
        return self._token

    def get_user(self) -> Optional[dict]:
        return self._user

    def set_token(self, token: str, user: Optional[dict] = None) -> None:
        self._token = token
        if user is not None:
            self._user = user

    def clear(self) -> None:
        self._token = None
        self._user = None
