"""Core: backend client, list controller, uploads, forms, playlist membership."""
from soundcave_admin.core.api_client import SoundCaveClient
from soundcave_admin.core.list_controller import ListController
from soundcave_admin.core.list_fetcher import RemoteListFetcher
from soundcave_admin.core.reconciler import AssociationReconciler
from soundcave_admin.core.screens import EntityScreen, SongPickerScreen
from soundcave_admin.core.upload import UploadField

__all__ = [
    "AssociationReconciler",
    "EntityScreen",
    "ListController",
    "RemoteListFetcher",
    "SongPickerScreen",
    "SoundCaveClient",
    "UploadField",
]
