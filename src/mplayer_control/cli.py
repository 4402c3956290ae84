"""
mplayer-control CLI - play a file through mplayer in slave mode

Example program for the MPlayer API: opens a file, reports what it knows
about it and waits for playback to finish.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from mplayer_control.core.config import Config, load_config, write_default_config
from mplayer_control.core.exceptions import PlayerError
from mplayer_control.core.output import setup_from_config
from mplayer_control.domain.playback import MPlayer, check_mplayer_available
from mplayer_control.domain.playback.player import format_time


async def play_file(config: Config, file_name: str, volume: Optional[int] = None) -> int:
    """Play one file to the end.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    mplayer = MPlayer(config.player)
    try:
        item = await mplayer.open_file(file_name)
        print(f"Playing: {item.file_name}")

        if volume is None:
            volume = config.player.volume
        if volume is not None:
            actual = await item.set_volume(volume)
            print(f"Volume: {actual:.0f}")

        metadata = await item.get_metadata()
        if metadata.title or metadata.artist:
            print(f"  {metadata.artist or 'Unknown'} - {metadata.title or 'Unknown'}")
        if metadata.album:
            year = f" ({metadata.year})" if metadata.year else ""
            print(f"  {metadata.album}{year}")

        length = await item.get_length()
        print(f"Length: {format_time(length)}")

        await item.listen()
        print("Finished")
        return 0

    except PlayerError as e:
        logger.error(f"Playback failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    finally:
        try:
            await mplayer.shutdown()
        except PlayerError as e:
            logger.warning(f"Shutdown failed: {e}")


def run_check(config: Config) -> int:
    """Report whether the configured mplayer binary can be run."""
    binary = config.player.binary
    if check_mplayer_available(binary):
        print(f"mplayer available: {binary}")
        return 0
    print(f"mplayer not found: {binary}", file=sys.stderr)
    return 1


def main() -> None:
    """Main entry point for the mplayer-control command."""
    parser = argparse.ArgumentParser(
        description="mplayer-control - drive mplayer in slave mode",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.toml (default: ./config.toml or ~/.config/mplayer-control)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log protocol traffic to stderr",
    )

    subparsers = parser.add_subparsers(dest="subcommand", required=True)

    play_parser = subparsers.add_parser("play", help="Play a file until it ends")
    play_parser.add_argument("file", help="File or URL to play")
    play_parser.add_argument(
        "--volume", type=int, help="Volume to set after opening (0-100)"
    )

    subparsers.add_parser("check", help="Check that mplayer can be run")
    subparsers.add_parser("init-config", help="Write a default config.toml")

    args = parser.parse_args()

    if args.subcommand == "init-config":
        path = write_default_config(args.config)
        print(f"Config file: {path}")
        sys.exit(0)

    try:
        config = load_config(args.config)
    except (ValueError, OSError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    if args.verbose:
        config.logging.level = "DEBUG"
        config.logging.console_output = True
    setup_from_config(config.logging)

    if args.subcommand == "check":
        sys.exit(run_check(config))

    elif args.subcommand == "play":
        try:
            sys.exit(asyncio.run(play_file(config, args.file, args.volume)))
        except KeyboardInterrupt:
            sys.exit(130)


if __name__ == "__main__":
    main()
