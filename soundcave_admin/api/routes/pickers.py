"""Add-songs-to-playlist screen: candidate list, selection, commit, remove, reorder."""
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from soundcave_admin.api.state import AppState, get_state
from soundcave_admin.core.screens import SongPickerScreen
from soundcave_admin.models.query import SortDirection

router = APIRouter()


class OpenPickerBody(BaseModel):
    playlist_id: int


class ToggleBody(BaseModel):
    music_id: int


class SearchBody(BaseModel):
    term: str = ""
    wait: bool = False


class FilterBody(BaseModel):
    key: str
    value: Optional[Any] = None


class SortBody(BaseModel):
    sort_by: str
    order: SortDirection = SortDirection.DESC


class PageBody(BaseModel):
    page: int


class PositionBody(BaseModel):
    position: int


def _picker_response(picker: SongPickerScreen, **extra) -> dict:
    data = picker.to_dict()
    data.update(extra)
    data["notices"] = [n.to_dict() for n in picker.notifier.drain()]
    return data


def _get_picker(state: AppState, picker_id: str) -> SongPickerScreen:
    picker = state.get_picker(picker_id)
    if picker is None:
        raise HTTPException(status_code=404, detail="Song picker not found")
    return picker


@router.post("")
async def open_picker(body: OpenPickerBody, state: AppState = Depends(get_state)):
    """Open the picker: playlist, its songs, first page of candidates."""
    picker = state.open_picker(body.playlist_id)
    await picker.open()
    return _picker_response(picker)


@router.get("/{picker_id}")
async def get_picker(picker_id: str, state: AppState = Depends(get_state)):
    return _picker_response(_get_picker(state, picker_id))


@router.delete("/{picker_id}", status_code=204)
async def close_picker(picker_id: str, state: AppState = Depends(get_state)):
    if not state.close_picker(picker_id):
        raise HTTPException(status_code=404, detail="Song picker not found")


@router.post("/{picker_id}/reload")
async def reload_songs(picker_id: str, state: AppState = Depends(get_state)):
    """Reload the songs already in the playlist; adding stays refused until this succeeds."""
    picker = _get_picker(state, picker_id)
    await picker.reload_associations()
    return _picker_response(picker)


@router.post("/{picker_id}/toggle")
async def toggle(picker_id: str, body: ToggleBody, state: AppState = Depends(get_state)):
    picker = _get_picker(state, picker_id)
    selected = picker.toggle(body.music_id)
    return _picker_response(picker, selected=selected)


@router.post("/{picker_id}/select-visible")
async def select_visible(picker_id: str, state: AppState = Depends(get_state)):
    picker = _get_picker(state, picker_id)
    picker.select_visible()
    return _picker_response(picker)


@router.post("/{picker_id}/deselect-visible")
async def deselect_visible(picker_id: str, state: AppState = Depends(get_state)):
    picker = _get_picker(state, picker_id)
    picker.deselect_visible()
    return _picker_response(picker)


@router.post("/{picker_id}/commit")
async def commit(picker_id: str, state: AppState = Depends(get_state)):
    """Add every selected song; positions follow the selection order."""
    picker = _get_picker(state, picker_id)
    result = await picker.commit()
    created: List[dict] = [{"music_id": p.child_id, "position": p.position} for p in result.created]
    failed: List[dict] = [
        {"music_id": p.child_id, "position": p.position, "message": e.message} for p, e in result.failed
    ]
    return _picker_response(picker, created=created, failed=failed)


@router.delete("/{picker_id}/associations/{association_id}")
async def remove_song(picker_id: str, association_id: int, state: AppState = Depends(get_state)):
    picker = _get_picker(state, picker_id)
    removed = await picker.remove(association_id)
    return _picker_response(picker, ok=removed)


@router.put("/{picker_id}/associations/{association_id}")
async def move_song(
    picker_id: str,
    association_id: int,
    body: PositionBody,
    state: AppState = Depends(get_state),
):
    picker = _get_picker(state, picker_id)
    moved = await picker.reorder(association_id, body.position)
    return _picker_response(picker, ok=moved)


@router.post("/{picker_id}/search")
async def search(picker_id: str, body: SearchBody, state: AppState = Depends(get_state)):
    picker = _get_picker(state, picker_id)
    picker.set_search(body.term)
    if body.wait:
        await picker.songs.settle()
    return _picker_response(picker)


@router.post("/{picker_id}/filters")
async def set_filter(picker_id: str, body: FilterBody, state: AppState = Depends(get_state)):
    picker = _get_picker(state, picker_id)
    await picker.set_filter(body.key, body.value)
    return _picker_response(picker)


@router.post("/{picker_id}/sort")
async def set_sort(picker_id: str, body: SortBody, state: AppState = Depends(get_state)):
    picker = _get_picker(state, picker_id)
    await picker.set_sort(body.sort_by, body.order)
    return _picker_response(picker)


@router.post("/{picker_id}/page")
async def set_page(picker_id: str, body: PageBody, state: AppState = Depends(get_state)):
    picker = _get_picker(state, picker_id)
    await picker.set_page(body.page)
    return _picker_response(picker)
