from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

NOT_FOUND_DESCRIPTION = "not found"


class MediaType(str, Enum):
    """Catalog content type used for metadata lookups."""

    MOVIE = "movie"
    SERIES = "series"


class BehaviorHints(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    default_video_id: str | None = Field(default=None, alias="defaultVideoId")
    has_scheduled_videos: bool = Field(default=False, alias="hasScheduledVideos")


class Metadata(BaseModel):
    """Metadata bag from the catalog.

    Only the fields the library relies on are declared; anything else the
    catalog returns (cast, genres, trailers, ...) is kept as extra fields.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    type: MediaType = MediaType.MOVIE
    description: str = NOT_FOUND_DESCRIPTION
    poster: str = ""
    background: str = ""
    logo: str = ""
    imdb_id: str | None = None
    cast: list[str] = Field(default_factory=list)
    behavior_hints: BehaviorHints = Field(default_factory=BehaviorHints, alias="behaviorHints")

    @classmethod
    def placeholder(cls, title: str) -> "Metadata":
        """Metadata shown for titles the catalog doesn't know."""
        return cls(name=title)


class MovieMeta(Metadata):
    """Movie Cache entry: catalog metadata bound to a library file."""

    id: str
    file_path: str = Field(alias="filePath")
    season: int | None = None
    episode: int | None = None


class IdentifyResult(BaseModel):
    """Best-effort identification outcome.

    ``error`` carries the reason a lookup degraded; the other fields are
    always usable.
    """

    catalog_id: str | None = None
    meta: Metadata
    media_type: MediaType = MediaType.MOVIE
    error: str | None = None

    @property
    def identified(self) -> bool:
        return self.catalog_id is not None


class SubtitleRecord(BaseModel):
    """A caption file available for a title."""

    id: str
    lang: str = "en"
    url: str


class AcquisitionStatus(str, Enum):
    """Progress of caption acquisition for a title."""

    NOT_STARTED = "not_started"
    ARCHIVE_TRIED = "archive_tried"
    TRANSCRIBED = "transcribed"
    DONE = "done"
    FAILED = "failed"


class CaptionLine(BaseModel):
    """Raw timestamped caption unit; times in milliseconds."""

    start: int
    end: int
    text: str


class Segment(CaptionLine):
    """Display-ready caption unit produced by the segmentation pass."""

    id: int


class ArchiveSubtitle(BaseModel):
    """One subtitle entry from a subdl.com search page."""

    model_config = ConfigDict(extra="ignore")

    release_name: str = ""
    name: str = ""
    lang: str = ""
    url: str
    season: int | None = None
    episode: int | None = None


class ArchiveSearchResponse(BaseModel):
    """A subdl.com search page."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    status: bool = False
    subtitles: list[ArchiveSubtitle] = Field(default_factory=list)
    total_pages: int = Field(default=1, alias="totalPages")
    current_page: int = Field(default=1, alias="currentPage")
