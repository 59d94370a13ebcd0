# core/formatting.py
from typing import Optional

from .config import Settings
from .models import DisplayFormat, MediaData, MediaType, ServiceType


STATE_SEPARATOR = " • "
MAX_FIELD = 128  # Discord limit for details/state/text fields

_SERVER_NAMES = {
    ServiceType.JELLYFIN: "Jellyfin",
    ServiceType.PLEX: "Plex",
}


def format_episode_number(season: Optional[int], episode: Optional[int], fmt: DisplayFormat) -> str:
    if not season or not episode:
        return ""

    if fmt == DisplayFormat.SHORT:
        return f"S{season:02d}E{episode:02d}"
    if fmt == DisplayFormat.MINIMAL:
        return f"{season}x{episode:02d}"
    return f"Season {season} Episode {episode}"


def get_server_name(settings: Settings) -> str:
    if settings.server_name:
        return settings.server_name
    return _SERVER_NAMES.get(settings.server_type, "Plex")


def build_details(media: MediaData, settings: Settings) -> str:
    if media.type == MediaType.EPISODE:
        label = format_episode_number(media.season, media.episode, settings.episode_format)
        return f"{media.series or ''} - {label}"

    if media.type == MediaType.AUDIO:
        album = f" - {media.album_title}" if media.album_title else ""
        return f"{media.artist or ''}{album}"

    if media.type == MediaType.MOVIE:
        return media.title + (f" ({media.year})" if media.year else "")

    if media.type == MediaType.PHOTO:
        owner = f"{media.photographer}'s " if media.photographer else ""
        return f"Viewing {owner}photo"

    return media.title


def build_state(media: MediaData) -> str:
    parts = []

    if media.type == MediaType.EPISODE:
        parts.insert(0, media.title)

    if media.type == MediaType.AUDIO and media.album_title:
        parts.insert(0, f"from {media.album_title}")

    return STATE_SEPARATOR.join(parts) or "Watching"


def truncate(text: Optional[str], limit: int = MAX_FIELD) -> str:
    text = text or ""
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"
