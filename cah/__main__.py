import argparse
import asyncio
import logging

from .config import PLACEHOLDER_NAME, ClientConfig
from .console import run_console


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cards Against Humanity console client")
    parser.add_argument("--url", default="ws://127.0.0.1:9876/", help="WebSocket URL of the game host")
    parser.add_argument("--name", default=PLACEHOLDER_NAME, help="Player name (prompted for if omitted)")
    parser.add_argument(
        "--hand-size",
        type=int,
        default=None,
        help="Requested hand size, sent with every card request",
    )
    parser.add_argument(
        "--legacy-fallthrough",
        action="store_true",
        help="Dispatch one message to every later handler it can be decoded as",
    )
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ClientConfig:
    return ClientConfig(
        url=args.url,
        player_name=args.name,
        legacy_fallthrough=args.legacy_fallthrough,
        hand_size=args.hand_size,
        log_level=args.log_level,
    )


def main(argv=None) -> None:
    config = build_config(parse_args(argv))
    logging.basicConfig(level=config.logging_level)
    try:
        asyncio.run(run_console(config))
    except KeyboardInterrupt:
        print("\nSession closed")


if __name__ == "__main__":
    main()
