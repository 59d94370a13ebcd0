# ui/worker.py
from typing import Optional

from PySide6.QtCore import QThread, Signal

from core.config import Settings
from core.debug import debug_log
from core.discord_rpc import SOCKET_ID, DiscordSink, connect_to_discord
from core.formatting import get_server_name
from core.models import ActivityKind, OutboundActivity
from core.presence import PresenceController


def activity_to_dict(activity: Optional[OutboundActivity]) -> dict:
    if activity is None:
        return {}

    d = {
        "name": activity.name,
        "details": activity.details,
        "state": activity.state,
        "listening": activity.type == ActivityKind.LISTENING,
        "image_url": "",
        "server": "",
        "start": 0,
        "end": 0,
    }
    if activity.assets:
        d["image_url"] = activity.assets.large_image
        d["server"] = activity.assets.small_text
    if activity.timestamps:
        d["start"] = activity.timestamps.start
        d["end"] = activity.timestamps.end
    return d


class _ObservedSink:
    """Forwards to the Discord sink and mirrors every emission to the UI."""

    def __init__(self, sink: DiscordSink, on_emit):
        self._sink = sink
        self._on_emit = on_emit

    def emit(self, activity, channel_id=SOCKET_ID):
        self._sink.emit(activity, channel_id)
        self._on_emit(activity_to_dict(activity))

    def list_current_activities(self):
        return self._sink.list_current_activities()


class PresenceWorker(QThread):
    status = Signal(str)
    account = Signal(dict)     # {"name": str, "server": str}
    presence = Signal(dict)    # activity_to_dict() output, {} when cleared

    def __init__(self, settings: Settings, parent=None):
        super().__init__(parent)
        self.settings = settings
        self._running = True
        self._sink = None
        self._controller = None

    def stop(self):
        self._running = False

    def _emit_account(self, rpc):
        try:
            user = getattr(rpc, "user", None) or {}
            name = user.get("username") or "Connected"
        except Exception:
            name = "Connected"
        self.account.emit({"name": name, "server": get_server_name(self.settings)})

    def run(self):
        # 1) Connect to Discord
        try:
            self.status.emit("Connecting to Discord…")
            rpc = connect_to_discord()
            self.status.emit("Discord connected ✅")
            self._emit_account(rpc)
        except Exception as e:
            self.status.emit(f"Discord connect failed: {e}")
            debug_log(f"Discord connect failed: {e}")
            return

        if not self.settings.is_complete:
            self.status.emit("Set server_url and api_key in config.json")

        # 2) Poll until stopped
        self._sink = DiscordSink(rpc)
        self._controller = PresenceController(
            self.settings,
            _ObservedSink(self._sink, self.presence.emit),
        )
        self._controller.start()
        self.status.emit(f"Watching {get_server_name(self.settings)} every {self.settings.update_interval}s")

        while self._running:
            self.msleep(250)

        self._controller.stop()
        self._sink.close()
        self.status.emit("Stopped")
