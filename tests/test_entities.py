"""Tests for entity descriptors."""
import pytest

from soundcave_admin.core.entities import ENTITIES, FieldSpec, FilterSpec, get_descriptor
from soundcave_admin.core.errors import ValidationError


class TestDescriptors:
    """Test the descriptor registry."""

    def test_all_admin_screens_registered(self) -> None:
        assert set(ENTITIES) == {
            "albums",
            "artists",
            "musics",
            "music-videos",
            "playlists",
            "podcasts",
            "news",
            "genres",
            "cavelists",
            "subscriptions",
            "notifications",
            "about-apps",
        }

    def test_unknown_entity(self) -> None:
        with pytest.raises(ValidationError):
            get_descriptor("lyrics")

    def test_genres_search_with_q(self) -> None:
        assert get_descriptor("genres").search_param == "q"
        assert get_descriptor("albums").search_param == "search"

    def test_filter_and_sort_lookup(self) -> None:
        descriptor = get_descriptor("albums")
        assert descriptor.filter("artist_id").cast("1") == 1
        with pytest.raises(ValidationError, match="filtered"):
            descriptor.filter("album_id")
        descriptor.check_sort("release_year")
        with pytest.raises(ValidationError, match="sorted") as exc_info:
            descriptor.check_sort("plays")
        assert exc_info.value.field == "sort_by"

    def test_paths(self) -> None:
        descriptor = get_descriptor("music-videos")
        assert descriptor.path == "/api/music-videos"
        assert descriptor.item_path(3) == "/api/music-videos/3"
        assert descriptor.item_label == "Music Video"

    def test_upload_fields(self) -> None:
        uploads = {f.name: f.upload for f in get_descriptor("podcasts").upload_fields}
        assert uploads["video_url"].endpoint == "/api/podcasts/upload"
        assert uploads["video_url"].folder == "podcast-videos"
        assert uploads["video_url"].required
        assert uploads["thumbnail"].endpoint == "/api/images/upload"

    def test_to_dict(self) -> None:
        data = get_descriptor("albums").to_dict()
        assert data["name"] == "albums"
        assert {"key": "artist_id", "kind": "int", "choices": [], "options_from": "artists"} in data["filters"]
        cover = next(f for f in data["fields"] if f["name"] == "cover_image")
        assert cover["kind"] == "upload" and cover["media"] == "image"


class TestSpecs:
    """Test field and filter specs."""

    def test_upload_kind_needs_spec(self) -> None:
        with pytest.raises(ValueError):
            FieldSpec("cover_image", kind="upload")

    def test_unknown_kind(self) -> None:
        with pytest.raises(ValueError):
            FieldSpec("title", kind="markdown")

    def test_filter_cast(self) -> None:
        assert FilterSpec("artist_id", kind="int").cast("4") == 4
        assert FilterSpec("is_public", kind="bool").cast("false") is False
        assert FilterSpec("genre").cast("All") is None
        assert FilterSpec("genre").cast("") is None
        with pytest.raises(ValidationError):
            FilterSpec("artist_id", kind="int").cast("four")
        with pytest.raises(ValidationError):
            FilterSpec("status", choices=("draft", "publish")).cast("archived")
