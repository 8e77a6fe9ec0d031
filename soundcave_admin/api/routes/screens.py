"""Entity list screens: query changes, record deletion, add/edit forms and uploads."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from soundcave_admin.api.state import AppState, get_state
from soundcave_admin.core.crud_form import CrudForm
from soundcave_admin.core.entities import ENTITIES
from soundcave_admin.core.screens import EntityScreen
from soundcave_admin.models.asset import LocalFile
from soundcave_admin.models.query import SortDirection

router = APIRouter()


class OpenScreenBody(BaseModel):
    entity: str


class SearchBody(BaseModel):
    term: str = ""
    wait: bool = False  # block until the debounced fetch has run


class FilterBody(BaseModel):
    key: str
    value: Optional[Any] = None


class SortBody(BaseModel):
    sort_by: str
    order: SortDirection = SortDirection.DESC


class PageBody(BaseModel):
    page: int


class OpenFormBody(BaseModel):
    record_id: Optional[int] = None


class FormValuesBody(BaseModel):
    values: Dict[str, Any]


def _screen_response(screen: EntityScreen) -> dict:
    data = screen.to_dict()
    data["notices"] = [n.to_dict() for n in screen.notifier.drain()]
    return data


def _form_response(screen: EntityScreen, form_id: str, form: CrudForm) -> dict:
    data = form.to_dict()
    data["id"] = form_id
    data["notices"] = [n.to_dict() for n in screen.notifier.drain()]
    return data


def _get_screen(state: AppState, screen_id: str) -> EntityScreen:
    screen = state.get_screen(screen_id)
    if screen is None:
        raise HTTPException(status_code=404, detail="Screen not found")
    return screen


def _get_form(screen: EntityScreen, form_id: str) -> CrudForm:
    form = screen.get_form(form_id)
    if form is None:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


@router.post("")
async def open_screen(body: OpenScreenBody, state: AppState = Depends(get_state)):
    """Open a list screen and fetch its first page."""
    descriptor = ENTITIES.get(body.entity)
    if descriptor is None:
        raise HTTPException(status_code=404, detail="Entity not found")
    screen = state.open_screen(descriptor)
    await screen.open()
    return _screen_response(screen)


@router.get("/{screen_id}")
async def get_screen(screen_id: str, state: AppState = Depends(get_state)):
    return _screen_response(_get_screen(state, screen_id))


@router.delete("/{screen_id}", status_code=204)
async def close_screen(screen_id: str, state: AppState = Depends(get_state)):
    if not state.close_screen(screen_id):
        raise HTTPException(status_code=404, detail="Screen not found")


@router.post("/{screen_id}/search")
async def search(screen_id: str, body: SearchBody, state: AppState = Depends(get_state)):
    """Type into the search box. The fetch happens after the debounce delay."""
    screen = _get_screen(state, screen_id)
    screen.set_search(body.term)
    if body.wait:
        await screen.list.settle()
    return _screen_response(screen)


@router.post("/{screen_id}/filters")
async def set_filter(screen_id: str, body: FilterBody, state: AppState = Depends(get_state)):
    screen = _get_screen(state, screen_id)
    await screen.set_filter(body.key, body.value)
    return _screen_response(screen)


@router.post("/{screen_id}/sort")
async def set_sort(screen_id: str, body: SortBody, state: AppState = Depends(get_state)):
    screen = _get_screen(state, screen_id)
    await screen.set_sort(body.sort_by, body.order)
    return _screen_response(screen)


@router.post("/{screen_id}/page")
async def set_page(screen_id: str, body: PageBody, state: AppState = Depends(get_state)):
    screen = _get_screen(state, screen_id)
    await screen.set_page(body.page)
    return _screen_response(screen)


@router.post("/{screen_id}/refresh")
async def refresh(screen_id: str, state: AppState = Depends(get_state)):
    screen = _get_screen(state, screen_id)
    await screen.list.refresh()
    return _screen_response(screen)


@router.get("/{screen_id}/records/{record_id}")
async def get_record(screen_id: str, record_id: int, state: AppState = Depends(get_state)):
    """Detail view of one record."""
    screen = _get_screen(state, screen_id)
    record = await screen.load_record(record_id)
    return {"record": record, "notices": [n.to_dict() for n in screen.notifier.drain()]}


@router.delete("/{screen_id}/records/{record_id}")
async def delete_record(screen_id: str, record_id: int, state: AppState = Depends(get_state)):
    screen = _get_screen(state, screen_id)
    await screen.delete(record_id)
    return _screen_response(screen)


@router.post("/{screen_id}/forms")
async def open_form(screen_id: str, body: OpenFormBody, state: AppState = Depends(get_state)):
    """Open the add modal, or the edit modal when record_id is given."""
    screen = _get_screen(state, screen_id)
    record = None
    if body.record_id is not None:
        record = await screen.load_record(body.record_id)
        if record is None:
            return _screen_response(screen)
    form_id = screen.open_form(record)
    return _form_response(screen, form_id, screen.forms[form_id])


@router.get("/{screen_id}/forms/{form_id}")
async def get_form(screen_id: str, form_id: str, state: AppState = Depends(get_state)):
    screen = _get_screen(state, screen_id)
    return _form_response(screen, form_id, _get_form(screen, form_id))


@router.patch("/{screen_id}/forms/{form_id}")
async def update_form(
    screen_id: str,
    form_id: str,
    body: FormValuesBody,
    state: AppState = Depends(get_state),
):
    screen = _get_screen(state, screen_id)
    form = _get_form(screen, form_id)
    form.set_values(body.values)
    return _form_response(screen, form_id, form)


@router.delete("/{screen_id}/forms/{form_id}", status_code=204)
async def close_form(screen_id: str, form_id: str, state: AppState = Depends(get_state)):
    screen = _get_screen(state, screen_id)
    _get_form(screen, form_id)
    screen.close_form(form_id)


@router.post("/{screen_id}/forms/{form_id}/uploads/{field}")
async def upload_file(
    screen_id: str,
    form_id: str,
    field: str,
    file: UploadFile = File(...),
    wait: bool = False,
    state: AppState = Depends(get_state),
):
    """Pick a file for an upload field. The upload starts at once; submit stays disabled until it ends."""
    screen = _get_screen(state, screen_id)
    form = _get_form(screen, form_id)
    content = await file.read()
    local_file = LocalFile(
        filename=file.filename or "upload",
        content=content,
        content_type=file.content_type or "application/octet-stream",
    )
    form.select_file(field, local_file)
    if wait:
        await form.settle()
    return _form_response(screen, form_id, form)


@router.post("/{screen_id}/forms/{form_id}/submit")
async def submit_form(screen_id: str, form_id: str, state: AppState = Depends(get_state)):
    """Create or update. On success the form closes and the list is refetched."""
    screen = _get_screen(state, screen_id)
    form = _get_form(screen, form_id)
    saved = await screen.submit_form(form_id)
    data = _form_response(screen, form_id, form)
    data["list"] = screen.list.to_dict() if saved is not None else None
    return data
