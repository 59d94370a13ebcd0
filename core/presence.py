# core/presence.py
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Optional

from .config import Settings
from .debug import Logger
from .discord_rpc import APP_CLIENT_ID, SOCKET_ID, resolve_asset
from .formatting import build_details, build_state, get_server_name
from .jellyfin import fetch_jellyfin_data
from .models import (
    INSTANCE_FLAG,
    ActivityAssets,
    ActivityKind,
    ActivityTimestamps,
    MediaData,
    MediaType,
    OutboundActivity,
    ServiceType,
)
from .plex import fetch_plex_data


Fetcher = Callable[[Settings], Optional[MediaData]]

DEFAULT_FETCHERS: Dict[ServiceType, Fetcher] = {
    ServiceType.JELLYFIN: fetch_jellyfin_data,
    ServiceType.PLEX: fetch_plex_data,
}


class PresenceController:
    """
    Polls the configured media server and mirrors the active session to the
    sink. One poll runs per tick on a worker pool; ticks may overlap and an
    in-flight poll is never cancelled. `start()` must be paired with exactly
    one `stop()`.
    """

    def __init__(
        self,
        settings: Settings,
        sink,
        resolve_asset: Callable[[str, str], str] = resolve_asset,
        logger: Optional[Logger] = None,
        clock: Callable[[], float] = time.time,
        fetchers: Optional[Dict[ServiceType, Fetcher]] = None,
        application_id: str = APP_CLIENT_ID,
        channel_id: str = SOCKET_ID,
        max_workers: int = 4,
    ):
        self._settings = settings
        self._sink = sink
        self._resolve_asset = resolve_asset
        self._logger = logger or Logger("MediaStatus")
        self._clock = clock
        self._fetchers = fetchers or DEFAULT_FETCHERS
        self._application_id = application_id
        self._channel_id = channel_id
        self._max_workers = max_workers

        self._lock = threading.Lock()
        self._stopped = False
        self._stop_event: Optional[threading.Event] = None
        self._timer: Optional[threading.Thread] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @settings.setter
    def settings(self, value: Settings) -> None:
        # Picked up by the next tick
        self._settings = value

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    # ==================================================
    # LIFECYCLE
    # ==================================================

    def start(self) -> None:
        if self._timer is not None:
            self._logger.debug("start() called while already running; ignored")
            return

        with self._lock:
            self._stopped = False

        self._stop_event = threading.Event()
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="media-status-poll"
        )
        self._executor.submit(self.poll)

        self._timer = threading.Thread(
            target=self._run_timer,
            args=(self._stop_event, self._executor),
            name="media-status-timer",
            daemon=True,
        )
        self._timer.start()

    def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._executor is not None:
            # In-flight polls keep running; their output is dropped below.
            self._executor.shutdown(wait=False)

        with self._lock:
            self._stopped = True

        self._timer = None
        self._stop_event = None
        self._executor = None
        self.clear_presence()

    def _run_timer(self, stop_event: threading.Event, executor: ThreadPoolExecutor) -> None:
        while not stop_event.wait(self._settings.update_interval):
            try:
                executor.submit(self.poll)
            except RuntimeError:
                # executor already shut down by stop()
                return

    # ==================================================
    # PRESENCE
    # ==================================================

    def clear_presence(self) -> None:
        try:
            self._sink.emit(None, self._channel_id)
        except Exception as e:
            self._logger.error("Failed to clear presence:", e)

    def _deliver(self, activity: Optional[OutboundActivity]) -> None:
        with self._lock:
            if self._stopped:
                return
            self._sink.emit(activity, self._channel_id)

    def _other_activity_running(self) -> bool:
        activities = self._sink.list_current_activities() or []
        return any(a.get("application_id") != self._application_id for a in activities)

    def build_activity(self) -> Optional[OutboundActivity]:
        """
        Fetch and render one activity. Returns None when presence should be
        cleared (nothing playing, paused and hidden, or another activity).
        """
        settings = self._settings
        fetch = self._fetchers.get(settings.server_type)
        media = fetch(settings) if fetch else None

        if not media or (media.is_paused and settings.hide_when_paused):
            return None

        if settings.hide_when_other_activity and self._other_activity_running():
            return None

        timestamps = None
        if settings.show_timestamps and media.duration:
            now = int(self._clock() * 1000)
            position = media.position or 0
            timestamps = ActivityTimestamps(
                start=now - position,
                end=now + (media.duration - position),
            )

        assets = None
        if media.image_url:
            large_image = self._resolve_asset(self._application_id, media.image_url)
            small_image = self._resolve_asset(
                self._application_id, f"{settings.server_url}/web/favicon.png"
            )
            assets = ActivityAssets(
                large_image=large_image,
                large_text=media.title,
                small_image=small_image,
                small_text=get_server_name(settings),
            )

        kind = ActivityKind.LISTENING if media.type == MediaType.AUDIO else ActivityKind.WATCHING

        return OutboundActivity(
            application_id=self._application_id,
            name=media.title,
            details=build_details(media, settings),
            state=build_state(media),
            type=kind,
            assets=assets,
            timestamps=timestamps,
            flags=INSTANCE_FLAG,
        )

    def poll(self) -> Optional[OutboundActivity]:
        """One tick. Never raises; any failure ends with presence cleared."""
        try:
            activity = self.build_activity()
            self._deliver(activity)
            return activity
        except Exception as e:
            self._logger.error("Failed to update presence:", e)

        try:
            self._deliver(None)
        except Exception as e:
            self._logger.error("Failed to clear presence:", e)
        return None
