# core/jellyfin.py
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
    "audio": MediaType.AUDIO,
    "video": MediaType.VIDEO,
    "photo": MediaType.PHOTO,
}


def get_media_type(value) -> MediaType:
    return _TYPES.get(str(value or "").lower(), MediaType.UNKNOWN)


def ticks_to_ms(ticks: int) -> int:
    # Jellyfin ticks are 100ns units
    return int(ticks) // 10_000


def map_jellyfin_sessions(sessions, settings: Settings) -> Optional[MediaData]:
    if not isinstance(sessions, list):
        raise ParseError("expected a list of sessions")

    playing = next(
        (s for s in sessions if isinstance(s, dict) and s.get("NowPlayingItem")),
        None,
    )
    if not playing:
        return None

    item = playing["NowPlayingItem"]
    play_state = playing.get("PlayState") or {}

    try:
        title = item["Name"]
        media_type = get_media_type(item.get("Type"))
        run_ticks = item.get("RunTimeTicks")
        pos_ticks = play_state.get("PositionTicks")

        image_url = None
        if (item.get("ImageTags") or {}).get("Primary"):
            image_url = (
                f"{settings.server_url}/Items/{item['Id']}/Images/Primary"
                f"?api_key={settings.api_key}"
            )

        base = dict(
            title=title,
            type=media_type,
            is_paused=bool(play_state.get("IsPaused", False)),
            progress=percent(pos_ticks, run_ticks),
            duration=ticks_to_ms(run_ticks) if run_ticks else None,
            position=ticks_to_ms(pos_ticks) if pos_ticks else None,
            image_url=image_url,
            year=item.get("ProductionYear"),
        )

        if media_type == MediaType.EPISODE:
            base.update(
                series=item.get("SeriesName"),
                season=item.get("ParentIndexNumber"),
                episode=item.get("IndexNumber"),
            )
        elif media_type == MediaType.AUDIO:
            artists = item.get("Artists") or []
            base.update(
                artist=artists[0] if artists else None,
                album_artist=item.get("AlbumArtist"),
                album_title=item.get("Album"),
            )
    except (KeyError, TypeError, ValueError, OverflowError, AttributeError) as e:
        raise ParseError(f"unexpected session shape: {e!r}") from e

    return MediaData(**base)


def fetch_jellyfin_data(settings: Settings, http: Optional[requests.Session] = None) -> Optional[MediaData]:
    if not settings.is_complete:
        return None

    try:
        sessions = get_json(
            f"{settings.server_url}/Sessions",
            headers={"X-Emby-Token": settings.api_key},
            timeout=settings.request_timeout,
            http=http,
        )
        return map_jellyfin_sessions(sessions, settings)
    except Exception as e:
        logger.error("Failed to fetch Jellyfin data:", e)
        return None
