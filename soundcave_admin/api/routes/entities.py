"""Entity descriptors the UI builds its tables, filters and forms from."""
from fastapi import APIRouter, HTTPException

from soundcave_admin.core.entities import ENTITIES

router = APIRouter()


@router.get("")
def list_entities():
    return [d.to_dict() for d in ENTITIES.values()]


@router.get("/{name}")
def get_entity(name: str):
    descriptor = ENTITIES.get(name)
    if descriptor is None:
        raise HTTPException(status_code=404, detail="Entity not found")
    return descriptor.to_dict()
