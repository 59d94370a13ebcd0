import requests

from core.config import Settings
from core.jellyfin import fetch_jellyfin_data, get_media_type, map_jellyfin_sessions, ticks_to_ms
from core.models import MediaType


SETTINGS = Settings(server_url="http://jf.local:8096", api_key="abc123")


def _session(item: dict, **play_state) -> dict:
    state = {"PositionTicks": 0, "IsPaused": False}
    state.update(play_state)
    return {"Id": "s1", "NowPlayingItem": item, "PlayState": state}


def test_ticks_to_ms_is_integer_division() -> None:
    assert ticks_to_ms(50_000_000) == 5_000
    assert ticks_to_ms(19_999) == 1


def test_media_type_mapping_is_case_insensitive() -> None:
    assert get_media_type("Movie") == MediaType.MOVIE
    assert get_media_type("EPISODE") == MediaType.EPISODE
    assert get_media_type("audio") == MediaType.AUDIO
    assert get_media_type("Video") == MediaType.VIDEO
    assert get_media_type("Photo") == MediaType.PHOTO
    assert get_media_type("MusicVideo") == MediaType.UNKNOWN
    assert get_media_type(None) == MediaType.UNKNOWN


def test_first_session_with_now_playing_item_wins() -> None:
    sessions = [
        {"Id": "idle"},
        _session({"Id": "m1", "Name": "First", "Type": "Movie"}),
        _session({"Id": "m2", "Name": "Second", "Type": "Movie"}),
    ]
    media = map_jellyfin_sessions(sessions, SETTINGS)
    assert media.title == "First"


def test_no_active_session_returns_none() -> None:
    assert map_jellyfin_sessions([{"Id": "idle"}, {"NowPlayingItem": None}], SETTINGS) is None
    assert map_jellyfin_sessions([], SETTINGS) is None


def test_episode_mapping() -> None:
    item = {
        "Id": "ep42",
        "Name": "Pilot",
        "Type": "Episode",
        "RunTimeTicks": 36_000_000_000,
        "SeriesName": "Lost",
        "ParentIndexNumber": 1,
        "IndexNumber": 2,
        "ProductionYear": 2004,
        "ImageTags": {"Primary": "tag"},
    }
    media = map_jellyfin_sessions([_session(item, PositionTicks=9_000_000_000, IsPaused=True)], SETTINGS)

    assert media.type == MediaType.EPISODE
    assert media.is_paused is True
    assert media.duration == 3_600_000
    assert media.position == 900_000
    assert media.progress == 25
    assert media.series == "Lost"
    assert media.season == 1
    assert media.episode == 2
    assert media.year == 2004
    assert media.image_url == "http://jf.local:8096/Items/ep42/Images/Primary?api_key=abc123"
    assert media.artist is None


def test_audio_mapping_uses_first_artist() -> None:
    item = {
        "Id": "a1",
        "Name": "Come Together",
        "Type": "Audio",
        "RunTimeTicks": 2_600_000_000,
        "Artists": ["The Beatles", "Someone Else"],
        "AlbumArtist": "The Beatles",
        "Album": "Abbey Road",
    }
    media = map_jellyfin_sessions([_session(item)], SETTINGS)

    assert media.type == MediaType.AUDIO
    assert media.artist == "The Beatles"
    assert media.album_artist == "The Beatles"
    assert media.album_title == "Abbey Road"
    assert media.image_url is None
    assert media.series is None


def test_progress_absent_without_runtime() -> None:
    item = {"Id": "v1", "Name": "Live", "Type": "TvChannel", "RunTimeTicks": 0}
    media = map_jellyfin_sessions([_session(item, PositionTicks=123)], SETTINGS)

    assert media.type == MediaType.UNKNOWN
    assert media.progress is None
    assert media.duration is None


def test_progress_is_clamped_when_position_exceeds_duration() -> None:
    item = {"Id": "v1", "Name": "Clip", "Type": "Video", "RunTimeTicks": 10_000_000}
    media = map_jellyfin_sessions([_session(item, PositionTicks=30_000_000)], SETTINGS)

    assert media.progress == 100
    assert media.position > media.duration


def test_fetch_sends_token_header(make_session) -> None:
    http = make_session([_session({"Id": "m1", "Name": "Heat", "Type": "Movie"})])

    media = fetch_jellyfin_data(SETTINGS, http=http)

    assert media.title == "Heat"
    call = http.calls[0]
    assert call["url"] == "http://jf.local:8096/Sessions"
    assert call["headers"] == {"X-Emby-Token": "abc123"}
    assert call["timeout"] == SETTINGS.request_timeout


def test_fetch_returns_none_when_unconfigured(make_session) -> None:
    http = make_session([])
    assert fetch_jellyfin_data(Settings(server_url="http://jf.local"), http=http) is None
    assert fetch_jellyfin_data(Settings(api_key="abc"), http=http) is None
    assert http.calls == []


def test_fetch_http_error_returns_none(make_session) -> None:
    assert fetch_jellyfin_data(SETTINGS, http=make_session([], status_code=401)) is None


def test_fetch_transport_error_returns_none(make_session) -> None:
    http = make_session(exc=requests.ConnectionError("refused"))
    assert fetch_jellyfin_data(SETTINGS, http=http) is None


def test_fetch_malformed_body_returns_none(make_session, invalid_json) -> None:
    assert fetch_jellyfin_data(SETTINGS, http=make_session(invalid_json)) is None
    assert fetch_jellyfin_data(SETTINGS, http=make_session({"unexpected": True})) is None
    assert fetch_jellyfin_data(SETTINGS, http=make_session([{"NowPlayingItem": {"Type": "Movie"}}])) is None


def test_non_finite_ticks_return_none(make_session) -> None:
    infinite = _session({"Id": "m1", "Name": "Heat", "Type": "Movie", "RunTimeTicks": 10_000_000},
                        PositionTicks=float("inf"))
    not_a_number = _session({"Id": "m1", "Name": "Heat", "Type": "Movie", "RunTimeTicks": float("nan")})

    assert fetch_jellyfin_data(SETTINGS, http=make_session([infinite])) is None
    assert fetch_jellyfin_data(SETTINGS, http=make_session([not_a_number])) is None


def test_unexpected_error_inside_fetch_returns_none(make_session) -> None:
    http = make_session(exc=RuntimeError("adapter bug"))
    assert fetch_jellyfin_data(SETTINGS, http=http) is None
