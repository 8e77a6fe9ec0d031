"""Shared application state (injected into routes)."""
import logging
from typing import Dict, Optional

from soundcave_admin.config import SEARCH_DEBOUNCE_SEC
from soundcave_admin.core.api_client import SoundCaveClient
from soundcave_admin.core.credentials import CredentialProvider, FileCredentialStore
from soundcave_admin.core.entities import EntityDescriptor
from soundcave_admin.core.screens import EntityScreen, SongPickerScreen

logger = logging.getLogger(__name__)


class AppState:
    """Backend client, session store and the screens currently open in the UI.

    Screens live until the UI closes them; nothing is shared between screens.
    """

    def __init__(
        self,
        credentials: Optional[CredentialProvider] = None,
        client: Optional[SoundCaveClient] = None,
        debounce_sec: float = SEARCH_DEBOUNCE_SEC,
    ) -> None:
        self.credentials = credentials or FileCredentialStore()
        self._client = client
        self.debounce_sec = debounce_sec
        self._screens: Dict[str, EntityScreen] = {}
        self._pickers: Dict[str, SongPickerScreen] = {}

    @property
    def client(self) -> SoundCaveClient:
        if self._client is None:
            self._client = SoundCaveClient(self.credentials)
        return self._client

    def open_screen(self, descriptor: EntityDescriptor) -> EntityScreen:
        screen = EntityScreen(self.client, descriptor, debounce_sec=self.debounce_sec)
        self._screens[screen.id] = screen
        logger.info("Opened %s screen %s", descriptor.name, screen.id)
        return screen

    def get_screen(self, screen_id: str) -> Optional[EntityScreen]:
        return self._screens.get(screen_id)

    def close_screen(self, screen_id: str) -> bool:
        screen = self._screens.pop(screen_id, None)
        if screen is None:
            return False
        screen.close()
        return True

    def open_picker(self, playlist_id: int) -> SongPickerScreen:
        picker = SongPickerScreen(self.client, playlist_id, debounce_sec=self.debounce_sec)
        self._pickers[picker.id] = picker
        logger.info("Opened song picker %s for playlist %s", picker.id, playlist_id)
        return picker

    def get_picker(self, picker_id: str) -> Optional[SongPickerScreen]:
        return self._pickers.get(picker_id)

    def close_picker(self, picker_id: str) -> bool:
        picker = self._pickers.pop(picker_id, None)
        if picker is None:
            return False
        picker.close()
        return True

    async def aclose(self) -> None:
        for screen_id in list(self._screens):
            self.close_screen(screen_id)
        for picker_id in list(self._pickers):
            self.close_picker(picker_id)
        if self._client is not None:
            await self._client.aclose()
            self._client = None


_state = AppState()


def get_state() -> AppState:
    return _state
