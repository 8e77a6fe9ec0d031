"""Tests for playlist membership: selection, batch add, remove, reorder."""
import asyncio
import json

import httpx
import pytest

from soundcave_admin.core.errors import FetchError, ValidationError
from soundcave_admin.core.reconciler import AssociationReconciler

PLAYLIST_ID = 7


@pytest.fixture
def reconciler(client, notifier) -> AssociationReconciler:
    return AssociationReconciler(client, PLAYLIST_ID, notifier)


@pytest.fixture
def playlist_with_two_songs(backend):
    backend.add("playlist-songs", id=1, playlist_id=PLAYLIST_ID, music_id=10, position=0)
    backend.add("playlist-songs", id=2, playlist_id=PLAYLIST_ID, music_id=11, position=1)
    backend.add("playlist-songs", id=3, playlist_id=99, music_id=12, position=0)
    return backend


def _posted(backend) -> list:
    return [json.loads(r.content) for r in backend.sent("POST")]


class TestSelection:
    """Test pending selection rules."""

    async def test_load_marks_existing(self, reconciler, playlist_with_two_songs) -> None:
        associations = await reconciler.load()

        assert [a.child_id for a in associations] == [10, 11]
        assert reconciler.selection.existing_child_ids == frozenset({10, 11})
        assert playlist_with_two_songs.paths() == [f"/api/playlist-songs/playlist/{PLAYLIST_ID}"]

    async def test_existing_songs_cannot_be_toggled(self, reconciler, playlist_with_two_songs) -> None:
        await reconciler.load()

        assert reconciler.toggle(10) is True
        assert reconciler.selection.pending() == []

    async def test_toggle_twice_restores_selection(self, reconciler, playlist_with_two_songs) -> None:
        await reconciler.load()

        assert reconciler.toggle(12) is True
        assert reconciler.toggle(12) is False
        assert reconciler.selection.pending() == []

    async def test_select_all_visible_skips_existing(self, reconciler, playlist_with_two_songs) -> None:
        await reconciler.load()
        reconciler.toggle(14)
        reconciler.select_all_visible([10, 11, 12, 13, 14])

        assert reconciler.selection.pending() == [14, 12, 13]

        reconciler.deselect_all_visible([12, 13])
        assert reconciler.selection.pending() == [14]

    async def test_plan_appends_after_last_position(self, reconciler, playlist_with_two_songs) -> None:
        await reconciler.load()
        reconciler.toggle(12)
        reconciler.toggle(13)

        plan = reconciler.plan()

        assert [(p.child_id, p.position) for p in plan] == [(12, 2), (13, 3)]

    async def test_empty_playlist_starts_at_zero(self, reconciler, backend) -> None:
        await reconciler.load()
        reconciler.toggle(5)

        assert reconciler.max_position() == -1
        assert [(p.child_id, p.position) for p in reconciler.plan()] == [(5, 0)]


class TestCommit:
    """Test the batch add."""

    async def test_adds_with_precomputed_positions(
        self, reconciler, playlist_with_two_songs, notifier
    ) -> None:
        backend = playlist_with_two_songs
        await reconciler.load()
        reconciler.toggle(12)
        reconciler.toggle(13)

        result = await reconciler.commit()

        assert result.ok
        assert sorted(_posted(backend), key=lambda b: b["position"]) == [
            {"playlist_id": PLAYLIST_ID, "music_id": 12, "position": 2},
            {"playlist_id": PLAYLIST_ID, "music_id": 13, "position": 3},
        ]
        assert reconciler.selection.existing_child_ids == frozenset({10, 11, 12, 13})
        assert reconciler.selection.pending() == []
        assert [a.rank for a in reconciler.associations] == [1, 2, 3, 4]
        assert backend.paths("GET")[-1] == f"/api/playlist-songs/playlist/{PLAYLIST_ID}"
        assert notifier.drain()[-1].title == "Songs Added"

    async def test_completion_order_does_not_change_positions(self, make_client, backend, notifier) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST" and json.loads(request.content)["music_id"] == 20:
                await asyncio.sleep(0.02)
            return backend.handler(request)

        reconciler = AssociationReconciler(make_client(handler), PLAYLIST_ID, notifier)
        await reconciler.load()
        for music_id in (20, 21, 22):
            reconciler.toggle(music_id)

        await reconciler.commit()

        by_song = {a.child_id: a.position for a in reconciler.associations}
        assert by_song == {20: 0, 21: 1, 22: 2}

    async def test_partial_failure(self, reconciler, playlist_with_two_songs, notifier) -> None:
        backend = playlist_with_two_songs
        backend.reject(
            lambda method, path, body: method == "POST" and body.get("music_id") == 13,
            message="Song not found",
        )
        await reconciler.load()
        reconciler.toggle(12)
        reconciler.toggle(13)

        result = await reconciler.commit()

        assert not result.ok
        assert [p.child_id for p in result.created] == [12]
        assert [(p.child_id, e.message) for p, e in result.failed] == [(13, "Song not found")]
        assert reconciler.selection.existing_child_ids == frozenset({10, 11, 12})
        assert reconciler.selection.pending() == [13]
        notice = notifier.drain()[-1]
        assert notice.title == "Some Changes Failed"
        assert "1 of 2 songs added" in notice.message

    async def test_nothing_selected(self, reconciler, playlist_with_two_songs, notifier) -> None:
        await reconciler.load()
        result = await reconciler.commit()

        assert result.created == [] and result.failed == []
        assert playlist_with_two_songs.sent("POST") == []
        assert notifier.drain()[-1].level == "warning"

    async def test_second_commit_while_first_in_flight(self, make_client, backend, notifier) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                await asyncio.sleep(0.02)
            return backend.handler(request)

        reconciler = AssociationReconciler(make_client(handler), PLAYLIST_ID, notifier)
        await reconciler.load()
        reconciler.toggle(12)

        first, second = await asyncio.gather(reconciler.commit(), reconciler.commit())

        assert [p.child_id for p in first.created] == [12]
        assert second.created == [] and second.failed == []
        assert backend.paths("POST") == ["/api/playlist-songs"]
        assert "Already Adding Songs" in [n.title for n in notifier.drain()]

    async def test_commit_before_load_refused(self, reconciler, playlist_with_two_songs, notifier) -> None:
        reconciler.toggle(12)

        result = await reconciler.commit()

        assert result.created == [] and result.failed == []
        assert playlist_with_two_songs.sent() == []
        assert notifier.drain()[-1].title == "Playlist Songs Not Loaded"

    async def test_failed_load_blocks_commit(self, reconciler, playlist_with_two_songs, notifier) -> None:
        await reconciler.load()
        reconciler.toggle(12)
        playlist_with_two_songs.reject(lambda method, path, body: method == "GET")

        with pytest.raises(FetchError):
            await reconciler.load()
        assert reconciler.loaded is False

        await reconciler.commit()

        assert playlist_with_two_songs.sent("POST") == []
        assert reconciler.selection.pending() == [12]


class TestRemoveAndReorder:
    """Test single-association edits."""

    async def test_remove(self, reconciler, playlist_with_two_songs) -> None:
        await reconciler.load()

        assert await reconciler.remove(1) is True

        assert playlist_with_two_songs.paths("DELETE") == ["/api/playlist-songs/1"]
        assert [a.id for a in reconciler.associations] == [2]
        assert not reconciler.selection.is_existing(10)

    async def test_remove_failure_keeps_list(self, reconciler, playlist_with_two_songs, notifier) -> None:
        playlist_with_two_songs.reject(lambda method, path, body: method == "DELETE", 403, "Forbidden")
        await reconciler.load()

        assert await reconciler.remove(1) is False

        assert [a.id for a in reconciler.associations] == [1, 2]
        assert notifier.drain()[-1].title == "Failed to Remove Song"

    async def test_reorder_does_not_shift_neighbours(self, reconciler, playlist_with_two_songs) -> None:
        await reconciler.load()

        assert await reconciler.reorder(2, 0) is True

        sent = playlist_with_two_songs.sent("PUT")
        assert [r.url.path for r in sent] == ["/api/playlist-songs/2"]
        assert json.loads(sent[0].content) == {"position": 0}
        assert sorted((a.id, a.position) for a in reconciler.associations) == [(1, 0), (2, 0)]

    async def test_negative_position_rejected(self, reconciler, playlist_with_two_songs) -> None:
        await reconciler.load()

        with pytest.raises(ValidationError):
            await reconciler.reorder(1, -1)
        assert playlist_with_two_songs.sent("PUT") == []
