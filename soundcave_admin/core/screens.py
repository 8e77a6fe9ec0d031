"""Screen state: an entity list with its forms, and the playlist song picker."""
import logging
import uuid
from typing import Any, Dict, List, Optional, Union

from soundcave_admin.config import PAGE_SIZE, SEARCH_DEBOUNCE_SEC
from soundcave_admin.core.api_client import SoundCaveClient
from soundcave_admin.core.crud_form import CrudForm
from soundcave_admin.core.entities import EntityDescriptor, get_descriptor
from soundcave_admin.core.errors import ApiError, FetchError, MutationError
from soundcave_admin.core.list_controller import ListController
from soundcave_admin.core.list_fetcher import RemoteListFetcher
from soundcave_admin.core.notifications import Notifier
from soundcave_admin.core.reconciler import AssociationReconciler, CommitResult
from soundcave_admin.models.query import PagedResult, SortDirection

logger = logging.getLogger(__name__)


async def _load_options(client: SoundCaveClient, collections: List[str]) -> Dict[str, List[dict]]:
    """Option lists for selects; a collection that fails to load is logged and left empty."""
    options: Dict[str, List[dict]] = {}
    for collection in collections:
        try:
            options[collection] = await RemoteListFetcher(client, collection).fetch_options()
        except ApiError as e:
            logger.warning("Could not load %s options: %s", collection, e.message)
            options[collection] = []
    return options


class EntityScreen:
    """List page of one entity plus its add/edit modals."""

    def __init__(
        self,
        client: SoundCaveClient,
        descriptor: EntityDescriptor,
        *,
        debounce_sec: float = SEARCH_DEBOUNCE_SEC,
    ) -> None:
        self.id = uuid.uuid4().hex
        self._client = client
        self.descriptor = descriptor
        self.notifier = Notifier()
        self.list: ListController[dict] = ListController(
            RemoteListFetcher(
                client,
                descriptor.collection,
                search_param=descriptor.search_param,
                label=descriptor.label.lower(),
            ),
            self.notifier,
            page_size=descriptor.page_size,
            debounce_sec=debounce_sec,
            sort_key=descriptor.default_sort,
        )
        self.forms: Dict[str, CrudForm] = {}
        self.options: Dict[str, List[dict]] = {}

    async def open(self) -> None:
        """Fetch on mount: first page and the option lists the filters need."""
        await self.list.refresh()
        collections = sorted({f.options_from for f in self.descriptor.filters if f.options_from})
        self.options = await _load_options(self._client, collections)

    def set_search(self, term: str) -> None:
        self.list.set_search_term(term)

    async def set_filter(self, key: str, raw: Any) -> Optional[PagedResult[dict]]:
        value = self.descriptor.filter(key).cast(raw)
        return await self.list.set_filter(key, value)

    async def set_sort(
        self, key: str, direction: Union[SortDirection, str] = SortDirection.DESC
    ) -> Optional[PagedResult[dict]]:
        self.descriptor.check_sort(key)
        return await self.list.set_sort(key, direction)

    async def set_page(self, page: int) -> Optional[PagedResult[dict]]:
        return await self.list.set_page(page)

    async def load_record(self, record_id: Any) -> Optional[dict]:
        """Detail fetch for an edit modal or a detail page."""
        label = self.descriptor.item_label
        try:
            envelope = await self._client.get(
                self.descriptor.item_path(record_id),
                default_error=f"Failed to load {label.lower()}.",
            )
        except ApiError as e:
            self.notifier.error_from(FetchError(e.message, title=f"Failed to Load {label}"))
            return None
        return envelope.data if isinstance(envelope.data, dict) else None

    def open_form(self, record: Optional[dict] = None) -> str:
        form_id = uuid.uuid4().hex
        self.forms[form_id] = CrudForm(self._client, self.descriptor, self.notifier, record=record)
        return form_id

    def get_form(self, form_id: str) -> Optional[CrudForm]:
        return self.forms.get(form_id)

    def close_form(self, form_id: str) -> None:
        form = self.forms.pop(form_id, None)
        if form is not None:
            form.close()

    async def submit_form(self, form_id: str) -> Optional[dict]:
        """Submit; on success the modal closes and the list is refetched."""
        form = self.forms[form_id]
        saved = await form.submit()
        if saved is not None:
            self.forms.pop(form_id, None)
            await self.list.refresh()
        return saved

    async def delete(self, record_id: Any) -> bool:
        label = self.descriptor.item_label
        try:
            await self._client.delete(
                self.descriptor.item_path(record_id),
                default_error=f"Failed to delete {label.lower()}. Please try again.",
            )
        except ApiError as e:
            self.notifier.error_from(MutationError(e.message, title=f"Failed to Delete {label}"))
            return False
        self.notifier.warning(f"{label} Deleted", f"{label} #{record_id} has been removed.")
        result = await self.list.refresh()
        # deleting the last row of the last page: step back a page
        if result is not None and not result.items and result.page > 1:
            await self.list.set_page(result.page - 1)
        return True

    def close(self) -> None:
        self.list.close()
        for form in self.forms.values():
            form.close()
        self.forms.clear()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "entity": self.descriptor.name,
            "list": self.list.to_dict(),
            "forms": {fid: form.to_dict() for fid, form in self.forms.items()},
            "options": self.options,
        }


class SongPickerScreen:
    """The "add songs to playlist" page: candidate songs + playlist membership."""

    def __init__(
        self,
        client: SoundCaveClient,
        playlist_id: int,
        *,
        debounce_sec: float = SEARCH_DEBOUNCE_SEC,
    ) -> None:
        self.id = uuid.uuid4().hex
        self._client = client
        self.playlist_id = playlist_id
        self.notifier = Notifier()
        self.playlist: Optional[dict] = None
        # candidate songs: filters and sort keys of the music list screen
        self.descriptor = get_descriptor("musics")
        self.reconciler = AssociationReconciler(client, playlist_id, self.notifier)
        self.songs: ListController[dict] = ListController(
            RemoteListFetcher(client, "musics", label="musics"),
            self.notifier,
            page_size=PAGE_SIZE,
            debounce_sec=debounce_sec,
        )
        self.options: Dict[str, List[dict]] = {}

    async def open(self) -> None:
        try:
            envelope = await self._client.get(
                f"/api/playlists/{self.playlist_id}", default_error="Failed to load playlist."
            )
            self.playlist = envelope.data if isinstance(envelope.data, dict) else None
        except ApiError as e:
            self.notifier.error_from(FetchError(e.message, title="Failed to Load Playlist"))
        await self.reload_associations()
        await self.songs.refresh()
        self.options = await _load_options(self._client, ["artists", "genres"])

    async def reload_associations(self) -> None:
        try:
            await self.reconciler.load()
        except FetchError as e:
            self.notifier.error_from(e)

    @property
    def visible_ids(self) -> List[int]:
        return [row["id"] for row in self.songs.rows if "id" in row]

    def toggle(self, music_id: int) -> bool:
        return self.reconciler.toggle(music_id)

    def select_visible(self) -> None:
        self.reconciler.select_all_visible(self.visible_ids)

    def deselect_visible(self) -> None:
        self.reconciler.deselect_all_visible(self.visible_ids)

    def set_search(self, term: str) -> None:
        self.songs.set_search_term(term)

    async def set_filter(self, key: str, raw: Any) -> Optional[PagedResult[dict]]:
        value = self.descriptor.filter(key).cast(raw)
        return await self.songs.set_filter(key, value)

    async def set_sort(
        self, key: str, direction: Union[SortDirection, str] = SortDirection.DESC
    ) -> Optional[PagedResult[dict]]:
        self.descriptor.check_sort(key)
        return await self.songs.set_sort(key, direction)

    async def set_page(self, page: int) -> Optional[PagedResult[dict]]:
        return await self.songs.set_page(page)

    async def commit(self) -> CommitResult:
        result = await self.reconciler.commit()
        if result.created:
            await self.songs.refresh()
        return result

    async def remove(self, association_id: int) -> bool:
        removed = await self.reconciler.remove(association_id)
        if removed:
            await self.songs.refresh()
        return removed

    async def reorder(self, association_id: int, position: int) -> bool:
        return await self.reconciler.reorder(association_id, position)

    def close(self) -> None:
        self.songs.close()

    def to_dict(self) -> dict:
        selection = self.reconciler.selection
        rows = [
            {
                **row,
                "in_playlist": selection.is_existing(row.get("id")),
                "selected": selection.is_selected(row.get("id")),
            }
            for row in self.songs.rows
        ]
        songs = self.songs.to_dict()
        if songs["result"] is not None:
            songs["result"]["items"] = rows
        return {
            "id": self.id,
            "playlist": self.playlist,
            "songs": songs,
            "membership": self.reconciler.to_dict(),
            "options": self.options,
        }
