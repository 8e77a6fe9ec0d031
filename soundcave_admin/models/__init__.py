"""Data models for list queries, uploads, associations and the wire envelope."""
from soundcave_admin.models.asset import LocalFile, UploadedAsset
from soundcave_admin.models.association import Association, SelectionState
from soundcave_admin.models.envelope import Envelope, PaginationInfo
from soundcave_admin.models.query import PagedResult, Query, SortDirection

__all__ = [
    "Association",
    "Envelope",
    "LocalFile",
    "PagedResult",
    "PaginationInfo",
    "Query",
    "SelectionState",
    "SortDirection",
    "UploadedAsset",
]
