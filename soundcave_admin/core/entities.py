"""Entity descriptors: one declarative config per admin screen, one engine for all."""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from soundcave_admin.config import PAGE_SIZE
from soundcave_admin.core.errors import ValidationError
from soundcave_admin.core.upload import UploadSpec

IMAGE_UPLOAD = "/api/images/upload"

FIELD_KINDS = ("text", "int", "float", "bool", "date", "choice", "list", "upload")

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def parse_bool(raw: Any, *, field: Optional[str] = None) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValidationError(f"{field or 'Value'} must be true or false", field=field)


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: str = "text"
    required: bool = False
    choices: Tuple[str, ...] = ()
    upload: Optional[UploadSpec] = None
    label: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind not in FIELD_KINDS:
            raise ValueError(f"Unknown field kind for {self.name}: {self.kind}")
        if (self.kind == "upload") != (self.upload is not None):
            raise ValueError(f"{self.name}: upload fields need an UploadSpec and vice versa")

    @property
    def display(self) -> str:
        return self.label or self.name.replace("_", " ").capitalize()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "label": self.display,
            "kind": self.kind,
            "required": self.required or bool(self.upload and self.upload.required),
            "choices": list(self.choices),
            "media": self.upload.media if self.upload else None,
        }


@dataclass(frozen=True)
class FilterSpec:
    """A categorical filter; key is also the query parameter name."""
    key: str
    kind: str = "text"  # "text" | "int" | "bool"
    choices: Tuple[str, ...] = ()
    options_from: Optional[str] = None  # collection providing {id, name} options

    def cast(self, raw: Any) -> Any:
        """Wire value for a filter; None for "all"/empty."""
        if raw is None or (isinstance(raw, str) and raw.strip().lower() in ("", "all")):
            return None
        if self.kind == "int":
            try:
                return int(raw)
            except (TypeError, ValueError):
                raise ValidationError(f"{self.key} must be a number", field=self.key)
        if self.kind == "bool":
            return parse_bool(raw, field=self.key)
        if self.choices and raw not in self.choices:
            raise ValidationError(f"Unknown {self.key}: {raw}", field=self.key)
        return raw

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "kind": self.kind,
            "choices": list(self.choices),
            "options_from": self.options_from,
        }


@dataclass(frozen=True)
class EntityDescriptor:
    name: str
    label: str
    collection: str
    fields: Tuple[FieldSpec, ...]
    filters: Tuple[FilterSpec, ...] = ()
    search_param: str = "search"
    sortable: Tuple[str, ...] = ("created_at",)
    default_sort: str = "created_at"
    title_field: str = "title"
    page_size: int = PAGE_SIZE
    singular: str = ""

    @property
    def item_label(self) -> str:
        return self.singular or self.label

    @property
    def path(self) -> str:
        return f"/api/{self.collection}"

    def item_path(self, record_id: Any) -> str:
        return f"{self.path}/{record_id}"

    def field(self, name: str) -> FieldSpec:
        for f in self.fields:
            if f.name == name:
                return f
        raise ValidationError(f"{self.label} has no field '{name}'", field=name)

    def filter(self, key: str) -> FilterSpec:
        for f in self.filters:
            if f.key == key:
                return f
        raise ValidationError(f"{self.label} cannot be filtered by '{key}'", field=key)

    def check_sort(self, key: str) -> None:
        if key not in self.sortable:
            raise ValidationError(f"{self.label} cannot be sorted by '{key}'", field="sort_by")

    @property
    def upload_fields(self) -> Tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.upload is not None)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "label": self.label,
            "collection": self.collection,
            "fields": [f.to_dict() for f in self.fields],
            "filters": [f.to_dict() for f in self.filters],
            "sortable": list(self.sortable),
            "default_sort": self.default_sort,
            "title_field": self.title_field,
            "page_size": self.page_size,
        }


def _image(folder: str) -> UploadSpec:
    return UploadSpec(endpoint=IMAGE_UPLOAD, folder=folder, media="image")


GENRE_FILTER = FilterSpec("genre")
ARTIST_FILTER = FilterSpec("artist_id", kind="int", options_from="artists")

ALBUM_TYPES = ("Single", "EP", "Album", "Compilation", "Live Album", "Remix Album")
PODCAST_CATEGORIES = (
    "Technology",
    "Business",
    "Music Business",
    "Production",
    "Interview",
    "Reviews",
    "Education",
    "News & Updates",
    "Live Sessions",
)
AUDIO_QUALITIES = ("Standard (128kbps)", "High (256kbps)", "Lossless (320kbps)")
NOTIFICATION_TYPES = ("info", "success", "warning", "error")

_DESCRIPTORS = (
    EntityDescriptor(
        name="albums",
        label="Albums",
        singular="Album",
        collection="albums",
        fields=(
            FieldSpec("title", required=True),
            FieldSpec("artist_id", kind="int", required=True, label="Artist"),
            FieldSpec("genre"),
            FieldSpec("type", kind="choice", choices=ALBUM_TYPES),
            FieldSpec("release_year", kind="int"),
            FieldSpec("track_count", kind="int"),
            FieldSpec("duration"),
            FieldSpec("description"),
            FieldSpec("cover_image", kind="upload", upload=_image("albums")),
        ),
        filters=(ARTIST_FILTER, GENRE_FILTER),
        sortable=("created_at", "title", "release_year"),
    ),
    EntityDescriptor(
        name="artists",
        label="Artists",
        singular="Artist",
        collection="artists",
        fields=(
            FieldSpec("name", required=True),
            FieldSpec("genre"),
            FieldSpec("country"),
            FieldSpec("email"),
            FieldSpec("phone"),
            FieldSpec("website"),
            FieldSpec("bio"),
            FieldSpec("instagram"),
            FieldSpec("twitter"),
            FieldSpec("facebook"),
            FieldSpec("youtube"),
            FieldSpec("image", kind="upload", upload=_image("artists")),
            FieldSpec("cover_image", kind="upload", upload=_image("artists/covers")),
        ),
        filters=(GENRE_FILTER,),
        sortable=("created_at", "name"),
        title_field="name",
    ),
    EntityDescriptor(
        name="musics",
        label="Music",
        collection="musics",
        fields=(
            FieldSpec("title", required=True),
            FieldSpec("artist_id", kind="int", required=True, label="Artist"),
            FieldSpec("album_id", kind="int", label="Album"),
            FieldSpec("genre", required=True),
            FieldSpec("duration"),
            FieldSpec("release_date", kind="date"),
            FieldSpec("description"),
            FieldSpec("lyrics"),
            FieldSpec(
                "audio_file_url",
                kind="upload",
                label="Audio file",
                upload=UploadSpec(
                    endpoint="/api/musics/upload", folder="musics/audio", media="audio", required=True
                ),
            ),
            FieldSpec("cover_image_url", kind="upload", label="Cover image", upload=_image("musics/covers")),
        ),
        filters=(GENRE_FILTER, ARTIST_FILTER),
        sortable=("created_at", "title", "release_date"),
    ),
    EntityDescriptor(
        name="music-videos",
        label="Music Videos",
        singular="Music Video",
        collection="music-videos",
        fields=(
            FieldSpec("title", required=True),
            FieldSpec("artist_id", kind="int", required=True, label="Artist"),
            FieldSpec("genre"),
            FieldSpec("duration"),
            FieldSpec("release_date", kind="date"),
            FieldSpec("description"),
            FieldSpec(
                "video_url",
                kind="upload",
                label="Video",
                upload=UploadSpec(
                    endpoint="/api/music-videos/upload", folder="music-videos", media="video", required=True
                ),
            ),
            FieldSpec("thumbnail", kind="upload", upload=_image("music-videos/thumbnails")),
        ),
        filters=(ARTIST_FILTER, GENRE_FILTER),
        sortable=("created_at", "title", "release_date"),
    ),
    EntityDescriptor(
        name="playlists",
        label="Playlists",
        singular="Playlist",
        collection="playlists",
        fields=(
            FieldSpec("name", required=True),
            FieldSpec("description"),
            FieldSpec("is_public", kind="bool"),
            FieldSpec("cover_image", kind="upload", upload=_image("playlists")),
        ),
        filters=(FilterSpec("is_public", kind="bool"),),
        sortable=("created_at", "name"),
        title_field="name",
    ),
    EntityDescriptor(
        name="podcasts",
        label="Podcasts",
        singular="Podcast",
        collection="podcasts",
        fields=(
            FieldSpec("title", required=True),
            FieldSpec("host", required=True),
            FieldSpec("category", kind="choice", required=True, choices=PODCAST_CATEGORIES),
            FieldSpec("duration", required=True),
            FieldSpec("release_date", kind="date", required=True),
            FieldSpec("description"),
            FieldSpec("episode_number", kind="int"),
            FieldSpec("season", kind="int"),
            FieldSpec(
                "video_url",
                kind="upload",
                label="Video",
                upload=UploadSpec(
                    endpoint="/api/podcasts/upload", folder="podcast-videos", media="video", required=True
                ),
            ),
            FieldSpec("thumbnail", kind="upload", upload=_image("podcasts/thumbnails")),
        ),
        filters=(FilterSpec("category", choices=PODCAST_CATEGORIES),),
        sortable=("created_at", "title", "release_date"),
    ),
    EntityDescriptor(
        name="news",
        label="News",
        collection="news",
        fields=(
            FieldSpec("title", required=True),
            FieldSpec("content", required=True),
            FieldSpec("summary"),
            FieldSpec("author", required=True),
            FieldSpec("category", required=True),
            FieldSpec("image_url", kind="upload", label="Image", upload=_image("news")),
            FieldSpec("published_at", kind="date"),
            FieldSpec("is_published", kind="bool"),
            FieldSpec("tags", kind="list"),
        ),
        filters=(FilterSpec("category"), FilterSpec("author"), FilterSpec("is_published", kind="bool")),
        sortable=("created_at", "title", "published_at"),
    ),
    EntityDescriptor(
        name="genres",
        label="Genres",
        singular="Genre",
        collection="genres",
        fields=(
            FieldSpec("name", required=True),
            FieldSpec("description"),
        ),
        search_param="q",
        sortable=("created_at", "name"),
        title_field="name",
    ),
    EntityDescriptor(
        name="cavelists",
        label="Cavelists",
        singular="Cavelist",
        collection="cavelists",
        fields=(
            FieldSpec("title", required=True),
            FieldSpec("description"),
            FieldSpec(
                "video_url",
                kind="upload",
                label="Video",
                upload=UploadSpec(
                    endpoint="/api/cavelists/upload", folder="cavelists", media="video", required=True
                ),
            ),
            FieldSpec("is_promotion", kind="bool"),
            FieldSpec("expiry_promotion", kind="date"),
            FieldSpec("artist_id", kind="int", label="Artist"),
            FieldSpec("artist_name"),
            FieldSpec("status", kind="choice", choices=("draft", "publish")),
            FieldSpec("published_at", kind="date"),
        ),
        filters=(FilterSpec("status", choices=("draft", "publish")),),
        sortable=("created_at", "title", "published_at"),
    ),
    EntityDescriptor(
        name="subscriptions",
        label="Subscriptions",
        singular="Subscription",
        collection="subscriptions",
        fields=(
            FieldSpec("name", required=True),
            FieldSpec("price", kind="float", required=True),
            FieldSpec("duration", required=True),
            FieldSpec("features", kind="list"),
            FieldSpec("max_downloads", kind="int"),
            FieldSpec("max_playlists", kind="int"),
            FieldSpec("audio_quality", kind="choice", choices=AUDIO_QUALITIES),
            FieldSpec("ads_enabled", kind="bool"),
            FieldSpec("offline_mode", kind="bool"),
            FieldSpec("is_popular", kind="bool"),
            FieldSpec("description"),
        ),
        sortable=("created_at", "name", "price"),
        title_field="name",
    ),
    EntityDescriptor(
        name="notifications",
        label="Notifications",
        singular="Notification",
        collection="notifications",
        fields=(
            FieldSpec("title", required=True),
            FieldSpec("message", required=True),
            FieldSpec("type", kind="choice", required=True, choices=NOTIFICATION_TYPES),
            FieldSpec("is_read", kind="bool"),
        ),
        filters=(FilterSpec("type", choices=NOTIFICATION_TYPES), FilterSpec("is_read", kind="bool")),
    ),
    EntityDescriptor(
        name="about-apps",
        label="About App",
        collection="about-apps",
        fields=(
            FieldSpec("app_name", required=True),
            FieldSpec("tagline"),
            FieldSpec("description"),
            FieldSpec("version", required=True),
            FieldSpec("launch_date", kind="date"),
            FieldSpec("email"),
            FieldSpec("phone"),
            FieldSpec("address"),
            FieldSpec("facebook"),
            FieldSpec("instagram"),
            FieldSpec("twitter"),
            FieldSpec("youtube"),
            FieldSpec("linkedin"),
            FieldSpec("play_store_url"),
            FieldSpec("app_store_url"),
            FieldSpec("privacy_policy_url"),
            FieldSpec("terms_of_service_url"),
            FieldSpec("support_url"),
            FieldSpec("features", kind="list"),
        ),
        title_field="app_name",
    ),
)

ENTITIES: Dict[str, EntityDescriptor] = {d.name: d for d in _DESCRIPTORS}


def get_descriptor(name: str) -> EntityDescriptor:
    try:
        return ENTITIES[name]
    except KeyError:
        raise ValidationError(f"Unknown entity: {name}", field="entity")
