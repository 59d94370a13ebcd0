import pytest
from pypresence.types import ActivityType

from core.config import Settings
from core.discord_rpc import APP_CLIENT_ID, SOCKET_ID, DiscordSink, activity_payload, resolve_asset
from core.errors import AssetResolutionError, SinkError
from core.models import ActivityAssets, ActivityKind, ActivityTimestamps, MediaData, MediaType, OutboundActivity
from core.presence import PresenceController


def _activity(**overrides) -> OutboundActivity:
    values = dict(
        application_id=APP_CLIENT_ID,
        name="Heat",
        details="Heat (1995)",
        state="Watching",
        type=ActivityKind.WATCHING,
    )
    values.update(overrides)
    return OutboundActivity(**values)


class FakeRpc:
    def __init__(self, fail=False):
        self.fail = fail
        self.updates = []
        self.clears = 0

    def update(self, **kwargs):
        if self.fail:
            raise RuntimeError("pipe closed")
        self.updates.append(kwargs)

    def clear(self):
        if self.fail:
            raise RuntimeError("pipe closed")
        self.clears += 1

    def close(self):
        pass


def test_resolve_asset_accepts_http_urls() -> None:
    url = "https://jf.example.com/Items/1/Images/Primary?api_key=k"
    assert resolve_asset(APP_CLIENT_ID, url) == url


@pytest.mark.parametrize("url", ["", "ftp://host/a.png", "/library/thumb", "https://"])
def test_resolve_asset_rejects_non_http(url) -> None:
    with pytest.raises(AssetResolutionError):
        resolve_asset(APP_CLIENT_ID, url)


def test_payload_minimal() -> None:
    payload = activity_payload(_activity())
    assert payload == {
        "details": "Heat (1995)",
        "state": "Watching",
        "activity_type": ActivityType.WATCHING,
        "instance": True,
    }


def test_payload_with_assets_and_timestamps() -> None:
    activity = _activity(
        type=ActivityKind.LISTENING,
        details="y" * 300,
        assets=ActivityAssets("https://a/large.png", "Heat", "https://a/favicon.png", "Jellyfin"),
        timestamps=ActivityTimestamps(start=1_700_000_000_500, end=1_700_000_060_900),
    )
    payload = activity_payload(activity)

    assert payload["activity_type"] == ActivityType.LISTENING
    assert len(payload["details"]) == 128
    assert payload["large_image"] == "https://a/large.png"
    assert payload["small_text"] == "Jellyfin"
    assert payload["start"] == 1_700_000_000
    assert payload["end"] == 1_700_000_060


def test_sink_tracks_published_activity() -> None:
    rpc = FakeRpc()
    sink = DiscordSink(rpc)

    sink.emit(_activity(), SOCKET_ID)
    assert len(rpc.updates) == 1
    assert sink.list_current_activities() == [{"application_id": APP_CLIENT_ID, "name": "Heat"}]

    sink.emit(None, SOCKET_ID)
    assert rpc.clears == 1
    assert sink.list_current_activities() == []


def test_sink_wraps_rpc_failures() -> None:
    sink = DiscordSink(FakeRpc(fail=True))
    with pytest.raises(SinkError):
        sink.emit(_activity())
    with pytest.raises(SinkError):
        sink.emit(None)


def test_other_activity_flag_cannot_trigger_over_rpc() -> None:
    rpc = FakeRpc()
    sink = DiscordSink(rpc)
    settings = Settings(server_url="http://jf.local", api_key="k", hide_when_other_activity=True)
    media = MediaData(title="Heat", type=MediaType.MOVIE, is_paused=False)
    controller = PresenceController(
        settings, sink, fetchers={settings.server_type: lambda s: media}
    )

    assert controller.poll() is not None
    assert controller.poll() is not None
    assert len(rpc.updates) == 2
    assert rpc.clears == 0
