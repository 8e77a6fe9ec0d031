"""Playlist <-> song membership: selection tracking and the calls that apply it."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from soundcave_admin.core.api_client import SoundCaveClient
from soundcave_admin.core.errors import (
    ApiError,
    FetchError,
    MutationError,
    PartialBatchError,
    SoundCaveError,
    ValidationError,
)
from soundcave_admin.core.notifications import Notifier
from soundcave_admin.models.association import Association, SelectionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssociationLink:
    """Names of a join resource on the backend."""
    collection: str = "playlist-songs"
    parent: str = "playlist"
    parent_key: str = "playlist_id"
    child_key: str = "music_id"
    child_embed: str = "music"


PLAYLIST_SONGS = AssociationLink()


@dataclass
class PlannedAssociation:
    child_id: int
    position: int


@dataclass
class CommitResult:
    created: List[PlannedAssociation] = field(default_factory=list)
    failed: List[Tuple[PlannedAssociation, SoundCaveError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def parse_association(item: dict, link: AssociationLink) -> Association:
    return Association(
        id=int(item["id"]),
        parent_id=int(item[link.parent_key]),
        child_id=int(item[link.child_key]),
        position=int(item.get("position") or 0),
        created_at=item.get("created_at") or "",
        child=item.get(link.child_embed),
    )


class AssociationReconciler:
    """Tracks which children a parent already has and which the user picked to add.

    Children already in the parent are never toggled and never re-created.
    commit() computes positions before sending anything, so the order the
    creates complete in cannot change the resulting order. After a commit the
    association list is always reloaded from the backend.
    """

    def __init__(
        self,
        client: SoundCaveClient,
        parent_id: int,
        notifier: Notifier,
        link: AssociationLink = PLAYLIST_SONGS,
    ) -> None:
        self._client = client
        self.parent_id = parent_id
        self.link = link
        self._notifier = notifier
        self.associations: List[Association] = []
        self.selection = SelectionState()
        self.committing = False
        self.loaded = False

    @property
    def path(self) -> str:
        return f"/api/{self.link.collection}"

    async def load(self) -> List[Association]:
        """Reload the parent's associations from the backend (raises FetchError)."""
        try:
            envelope = await self._client.get(
                f"{self.path}/{self.link.parent}/{self.parent_id}",
                default_error="Failed to load playlist songs.",
            )
        except ApiError as e:
            self.loaded = False
            raise FetchError(e.message, title="Failed to Load Playlist Songs") from e
        rows = envelope.data if isinstance(envelope.data, list) else []
        associations = []
        for item in rows:
            try:
                associations.append(parse_association(item, self.link))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed %s row: %s", self.link.collection, e)
        self._set_associations(associations)
        self.loaded = True
        return associations

    def _set_associations(self, associations: List[Association]) -> None:
        self.associations = sorted(associations, key=lambda a: (a.position, a.id))
        existing = frozenset(a.child_id for a in self.associations)
        pending = {cid: None for cid in self.selection.pending_child_ids if cid not in existing}
        self.selection = SelectionState(existing_child_ids=existing, pending_child_ids=pending)

    def toggle(self, child_id: int) -> bool:
        """Flip a child in the pending set; no-op for children already in the parent.

        Returns whether the child is now selected.
        """
        if self.selection.is_existing(child_id):
            return True
        pending = self.selection.pending_child_ids
        if child_id in pending:
            del pending[child_id]
            return False
        pending[child_id] = None
        return True

    def select_all_visible(self, visible_ids: Iterable[int]) -> None:
        for child_id in visible_ids:
            if not self.selection.is_existing(child_id):
                self.selection.pending_child_ids.setdefault(child_id, None)

    def deselect_all_visible(self, visible_ids: Iterable[int]) -> None:
        for child_id in visible_ids:
            self.selection.pending_child_ids.pop(child_id, None)

    def max_position(self) -> int:
        """Highest position in use, -1 for an empty parent."""
        return max((a.position for a in self.associations), default=-1)

    def plan(self) -> List[PlannedAssociation]:
        """Creates needed for the pending set, positions appended after the last one."""
        to_add = [cid for cid in self.selection.pending() if cid not in self.selection.existing_child_ids]
        start = self.max_position() + 1
        return [PlannedAssociation(child_id=cid, position=start + i) for i, cid in enumerate(to_add)]

    async def _create(self, planned: PlannedAssociation) -> PlannedAssociation:
        try:
            await self._client.post(
                self.path,
                {
                    self.link.parent_key: self.parent_id,
                    self.link.child_key: planned.child_id,
                    "position": planned.position,
                },
                default_error="Failed to add song to playlist.",
            )
        except ApiError as e:
            raise MutationError(e.message) from e
        return planned

    async def commit(self) -> CommitResult:
        """Create all pending associations concurrently, then reload.

        Refused while a commit is in flight or before the playlist songs loaded.
        """
        if self.committing:
            self._notifier.warning("Already Adding Songs", "Wait until the current add has finished.")
            return CommitResult()
        if not self.loaded:
            self._notifier.error(
                "Playlist Songs Not Loaded",
                "Reload the playlist songs before adding more.",
            )
            return CommitResult()
        plan = self.plan()
        if not plan:
            self._notifier.warning("Nothing to Add", "Select at least one song that is not in the playlist yet.")
            return CommitResult()

        self.committing = True
        try:
            outcomes = await asyncio.gather(*(self._create(p) for p in plan), return_exceptions=True)
            result = CommitResult()
            for planned, outcome in zip(plan, outcomes):
                if isinstance(outcome, SoundCaveError):
                    result.failed.append((planned, outcome))
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    result.created.append(planned)
                    self.selection.pending_child_ids.pop(planned.child_id, None)

            try:
                await self.load()
            except FetchError as e:
                self._notifier.error_from(e)
        finally:
            self.committing = False

        if result.failed:
            error = PartialBatchError(
                f"{len(result.created)} of {len(plan)} songs added; "
                f"{len(result.failed)} failed: {result.failed[0][1].message}",
                created=result.created,
                failed=result.failed,
            )
            self._notifier.error_from(error)
        else:
            self._notifier.success("Songs Added", f"{len(result.created)} songs added to the playlist")
        return result

    async def remove(self, association_id: int) -> bool:
        """Delete one association; local list changes only once the backend confirms."""
        try:
            await self._client.delete(
                f"{self.path}/{association_id}",
                default_error="Failed to remove song from playlist.",
            )
        except ApiError as e:
            self._notifier.error_from(MutationError(e.message, title="Failed to Remove Song"))
            return False
        self._set_associations([a for a in self.associations if a.id != association_id])
        self._notifier.success("Song Removed", "Song removed from the playlist")
        return True

    async def reorder(self, association_id: int, new_position: int) -> bool:
        """Set one association's position. Neighbours are not shifted, so positions may repeat."""
        if new_position < 0:
            raise ValidationError("Position cannot be negative", field="position")
        try:
            await self._client.put(
                f"{self.path}/{association_id}",
                {"position": new_position},
                default_error="Failed to update song position.",
            )
        except ApiError as e:
            self._notifier.error_from(MutationError(e.message, title="Failed to Update Position"))
            return False
        self._notifier.success("Position Updated", "Song position updated")
        try:
            await self.load()
        except FetchError as e:
            self._notifier.error_from(e)
        return True

    def to_dict(self) -> dict:
        return {
            "parent_id": self.parent_id,
            "associations": [a.to_dict() for a in self.associations],
            "existing_child_ids": sorted(self.selection.existing_child_ids),
            "pending_child_ids": self.selection.pending(),
            "planned": [{"child_id": p.child_id, "position": p.position} for p in self.plan()],
            "committing": self.committing,
            "loaded": self.loaded,
        }
