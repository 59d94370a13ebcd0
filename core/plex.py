# core/plex.py
from typing import Optional

import requests

from .config import Settings
from .debug import Logger
from .errors import ParseError
from .fetch import get_json, percent
from .models import MediaData, MediaType


logger = Logger("MediaStatus")

_TYPES = {
    "movie": MediaType.MOVIE,
    "episode": MediaType.EPISODE,
    "track": MediaType.AUDIO,
    "photo": MediaType.PHOTO,
    "clip": MediaType.VIDEO,
}


def get_media_type(value) -> MediaType:
    return _TYPES.get(str(value or "").lower(), MediaType.UNKNOWN)


def map_plex_container(data, settings: Settings) -> Optional[MediaData]:
    try:
        metadata = data["MediaContainer"].get("Metadata") or []
        if not metadata:
            return None
        session = metadata[0]

        media_type = get_media_type(session.get("type"))
        duration = session.get("duration")
        view_offset = session.get("viewOffset")
        thumb = session.get("thumb")
        player = session.get("Player") or {}

        base = dict(
            title=session["title"],
            type=media_type,
            is_paused=player.get("state") != "playing",
            progress=percent(view_offset, duration),
            duration=duration,
            position=view_offset,
            image_url=f"{settings.server_url}{thumb}?X-Plex-Token={settings.api_key}" if thumb else None,
            year=session.get("year"),
            studio=session.get("studio"),
        )

        if media_type == MediaType.EPISODE:
            base.update(
                series=session.get("grandparentTitle"),
                season=session.get("parentIndex"),
                episode=session.get("index"),
            )
        elif media_type == MediaType.AUDIO:
            base.update(
                artist=session.get("originalTitle") or session.get("grandparentTitle"),
                album_artist=session.get("grandparentTitle"),
                album_title=session.get("parentTitle"),
            )
        elif media_type == MediaType.PHOTO:
            base.update(photographer=session.get("originalTitle") or None)
    except (KeyError, TypeError, ValueError, OverflowError, IndexError, AttributeError) as e:
        raise ParseError(f"unexpected container shape: {e!r}") from e

    return MediaData(**base)


def fetch_plex_data(settings: Settings, http: Optional[requests.Session] = None) -> Optional[MediaData]:
    if not settings.is_complete:
        return None

    try:
        data = get_json(
            f"{settings.server_url}/status/sessions",
            headers={
                "X-Plex-Token": settings.api_key,
                "Accept": "application/json",
            },
            timeout=settings.request_timeout,
            http=http,
        )
        return map_plex_container(data, settings)
    except Exception as e:
        logger.error("Failed to fetch Plex data:", e)
        return None
