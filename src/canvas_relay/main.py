"""
Entry point for Canvas Relay.

Boot sequence:
1. Load and validate configuration
2. Load watermark state
3. Start the health server
4. Log in to Discord and resolve the target channel
5. Optionally replay the latest announcements
6. Poll on a fixed interval until stopped

Usage:
    canvas-relay              # normal polling
    canvas-relay --replay 3   # post latest 3 now (ignores state), then poll
    canvas-relay --once       # run a single poll cycle and exit
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from canvas_relay.canvas import CanvasSession
from canvas_relay.config import Settings, get_settings, setup_logging
from canvas_relay.db import StateStore
from canvas_relay.errors import ChannelResolutionError, ConfigError, TransportError
from canvas_relay.health import start_health_server
from canvas_relay.notify import DiscordNotifier
from canvas_relay.relay import DeliveryLoop
from canvas_relay.scheduler import Ticker
from canvas_relay.scrapers import AnnouncementFetcher

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="canvas-relay",
        description="Relay new Canvas course announcements to a Discord channel.",
    )
    parser.add_argument(
        "--replay",
        type=int,
        default=None,
        metavar="N",
        help="post the latest N announcements (at least 1) at startup without touching state",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="run a single poll cycle and exit",
    )
    return parser.parse_args(argv)


def build_loop(
    settings: Settings,
    store: StateStore,
    notifier: DiscordNotifier,
) -> DeliveryLoop:
    """Wire the delivery loop from settings."""
    fetcher = AnnouncementFetcher(CanvasSession(settings))
    return DeliveryLoop(
        fetcher,
        notifier,
        store,
        split_long_messages=settings.split_long_messages,
    )


def connect_discord(notifier: DiscordNotifier) -> bool:
    """
    Log in and resolve the channel. Both must succeed before polling.

    Returns:
        bool: True if the notifier is ready to send
    """
    try:
        notifier.login()
        notifier.resolve_channel()
    except ChannelResolutionError as e:
        logger.error(f"Failed to fetch DISCORD_CHANNEL_ID: {e}")
        return False
    except TransportError as e:
        logger.error(f"Discord login failed: {e}")
        return False
    return True


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for Canvas Relay.

    Returns:
        int: Exit code (0 for success, 1 for failure)
    """
    args = parse_args(argv)

    try:
        # Validate configuration early
        settings = get_settings()
    except ConfigError as e:
        print(f"Configuration error:\n{e}", file=sys.stderr)
        print("Please check your environment variables.", file=sys.stderr)
        return 1

    setup_logging(settings.log_level)
    logger.debug(f"Loaded configuration for {settings.canvas_base}")

    store = StateStore(settings.state_path, settings.start_iso)
    if not store.is_durable:
        logger.info("STATE_PATH not set, state is kept in memory only")

    # Listening before the Discord handshake; skipped for single runs
    server = None if args.once else start_health_server(store, settings.port)

    notifier = DiscordNotifier(settings=settings)
    loop = None
    try:
        if not connect_discord(notifier):
            return 1

        loop = build_loop(settings, store, notifier)
        if args.replay is not None:
            try:
                loop.replay(args.replay)
            except TransportError as e:
                logger.error(f"[replay] failed: {e}")

        if args.once:
            return 0 if loop.poll_once() else 1

        ticker = Ticker(settings.poll_interval, loop.poll_once)

        def handle_signal(signum, frame):
            logger.info(f"Received signal {signum}, stopping after the current cycle")
            ticker.stop()

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

        ticker.run()
        return 0
    finally:
        if server is not None:
            server.shutdown()
        notifier.close()
        if loop is not None:
            loop.fetcher.session.close()
            loop.log_summary()


if __name__ == "__main__":
    sys.exit(main())
