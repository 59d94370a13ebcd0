#core/discord_rpc.py
import threading
import time
import urllib.parse
from functools import lru_cache
from typing import Dict, List, Optional

from pypresence import Presence
from pypresence.types import ActivityType

from .errors import AssetResolutionError, SinkError
from .formatting import truncate
from .models import INSTANCE_FLAG, ActivityKind, OutboundActivity


# APP ID
APP_CLIENT_ID = "1333493119525720082"

# Scopes our updates so they never clobber other presences
SOCKET_ID = "MediaStatus"

_ACTIVITY_TYPES = {
    ActivityKind.LISTENING: ActivityType.LISTENING,
    ActivityKind.WATCHING: ActivityType.WATCHING,
}


def connect_to_discord(client_id: str = APP_CLIENT_ID) -> Presence:
    rpc = Presence(client_id)
    rpc.connect()

    # Give Discord time to send READY payload
    time.sleep(0.3)

    try:
        user = getattr(rpc, "user", None) or {}
        name = user.get("username", "Unknown")
        disc = user.get("discriminator", "")
        display = f"{name}#{disc}" if disc and disc != "0" else name

        print(f"[RPC] Connected as {display}")
    except Exception:
        print("[RPC] Connected")

    return rpc


@lru_cache(maxsize=256)
def resolve_asset(application_id: str, url: str) -> str:
    """
    Map an image URL to the asset key Discord should render. RPC accepts
    absolute http(s) URLs directly as image keys, so the URL is the id.
    """
    if not application_id:
        raise AssetResolutionError("missing application id")

    parsed = urllib.parse.urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise AssetResolutionError(f"not an http(s) image url: {url!r}")
    return url


def activity_payload(activity: OutboundActivity) -> dict:
    """Keyword arguments for Presence.update()."""
    payload = {
        "details": truncate(activity.details),
        "state": truncate(activity.state),
        "activity_type": _ACTIVITY_TYPES.get(activity.type, ActivityType.WATCHING),
        "instance": bool(activity.flags & INSTANCE_FLAG),
    }

    if activity.assets:
        payload["large_image"] = activity.assets.large_image
        payload["large_text"] = truncate(activity.assets.large_text)
        payload["small_image"] = activity.assets.small_image
        payload["small_text"] = truncate(activity.assets.small_text)

    # Discord RPC timestamps in epoch seconds
    if activity.timestamps:
        payload["start"] = activity.timestamps.start // 1000
        payload["end"] = activity.timestamps.end // 1000

    return payload


class DiscordSink:
    """
    Presence sink on top of a pypresence connection. Calls are serialized
    since overlapping polls may publish from different worker threads.
    """

    def __init__(self, rpc: Presence, application_id: str = APP_CLIENT_ID):
        self._rpc = rpc
        self._application_id = application_id
        self._lock = threading.Lock()
        self._published: Dict[str, OutboundActivity] = {}

    def emit(self, activity: Optional[OutboundActivity], channel_id: str = SOCKET_ID) -> None:
        with self._lock:
            try:
                if activity is None:
                    self._rpc.clear()
                    self._published.pop(channel_id, None)
                else:
                    self._rpc.update(**activity_payload(activity))
                    self._published[channel_id] = activity
            except Exception as e:
                raise SinkError(f"Discord RPC call failed: {e}") from e

    def list_current_activities(self) -> List[dict]:
        # RPC can't see other applications' activities, only what we published.
        with self._lock:
            return [
                {"application_id": a.application_id, "name": a.name}
                for a in self._published.values()
            ]

    def close(self) -> None:
        with self._lock:
            try:
                self._rpc.close()
            except Exception:
                pass
