# core/models.py
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class MediaType(str, Enum):
    MOVIE = "Movie"
    EPISODE = "Episode"
    AUDIO = "Audio"
    VIDEO = "Video"
    PHOTO = "Photo"
    UNKNOWN = "Unknown"


class ServiceType(str, Enum):
    JELLYFIN = "jellyfin"
    PLEX = "plex"


class DisplayFormat(str, Enum):
    NATURAL = "natural"   # Season 1 Episode 2
    SHORT = "short"       # S01E02
    MINIMAL = "minimal"   # 1x02


class ActivityKind(IntEnum):
    # Discord activity type codes
    LISTENING = 2
    WATCHING = 3


INSTANCE_FLAG = 1 << 0


@dataclass(frozen=True)
class MediaData:
    title: str
    type: MediaType
    is_paused: bool
    progress: Optional[int] = None
    duration: Optional[int] = None  # ms
    position: Optional[int] = None  # ms
    image_url: Optional[str] = None
    year: Optional[int] = None
    studio: Optional[str] = None

    # Episode
    series: Optional[str] = None
    season: Optional[int] = None
    episode: Optional[int] = None

    # Audio
    artist: Optional[str] = None
    album_artist: Optional[str] = None
    album_title: Optional[str] = None

    # Photo
    photographer: Optional[str] = None


@dataclass(frozen=True)
class ActivityAssets:
    large_image: str
    large_text: str
    small_image: str
    small_text: str


@dataclass(frozen=True)
class ActivityTimestamps:
    start: int  # epoch ms
    end: int    # epoch ms


@dataclass(frozen=True)
class OutboundActivity:
    application_id: str
    name: str
    details: str
    state: str
    type: ActivityKind
    assets: Optional[ActivityAssets] = None
    timestamps: Optional[ActivityTimestamps] = None
    flags: int = INSTANCE_FLAG
