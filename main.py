#main.py
import argparse
import sys
import time

from core.config import load_settings, with_interval
from core.discord_rpc import DiscordSink, connect_to_discord
from core.errors import ConfigError
from core.formatting import get_server_name
from core.presence import PresenceController


class _PrintSink:
    """Dry-run sink for --once: prints instead of talking to Discord."""

    def emit(self, activity, channel_id):
        if activity is None:
            print(f"[{channel_id}] clear")
        else:
            print(f"[{channel_id}] {activity.details} | {activity.state}")

    def list_current_activities(self):
        return []


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Show your Jellyfin/Plex media activity as Discord Rich Presence"
    )
    parser.add_argument("--config", help="path to config.json")
    parser.add_argument("--interval", type=int, help="poll interval in seconds (snapped to 5, 10, 15, 30 or 60)")
    parser.add_argument(
        "--once",
        action="store_true",
        help="poll once and print the activity without connecting to Discord",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        print(f"[Config] {e}")
        return 1

    if args.interval:
        settings = with_interval(settings, args.interval)

    if not settings.is_complete:
        print("[Config] server_url and api_key are required.")
        return 1

    if args.once:
        activity = PresenceController(settings, _PrintSink()).poll()
        return 0 if activity else 2

    rpc = connect_to_discord()
    sink = DiscordSink(rpc)
    controller = PresenceController(settings, sink)

    print(f"[Media] Watching {get_server_name(settings)}… (Ctrl+C to stop)")
    controller.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        controller.stop()
        sink.close()
        print("[RPC] Cleared")

    return 0


if __name__ == "__main__":
    sys.exit(main())
