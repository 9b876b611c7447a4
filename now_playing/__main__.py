"""
CLI entrypoint: python -m now_playing [--output PATH]

Environment variables (a .env file is loaded if present):
    SPOTIFY_CLIENT_ID, SPOTIFY_REFRESH_TOKEN, SPOTIFY_CLIENT_SECRET (optional)
"""
import argparse
import logging
import os

from dotenv import load_dotenv

from now_playing.payload import DEFAULT_OUTPUT_PATH, refresh
from now_playing.spotify import SpotifyClient


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(
        description="Refresh the Spotify now-playing JSON file.",
        epilog="Environment variables: SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, SPOTIFY_REFRESH_TOKEN",
    )
    parser.add_argument(
        "--output",
        default=os.environ.get("NOW_PLAYING_OUTPUT", DEFAULT_OUTPUT_PATH),
        metavar="PATH",
        help=f"JSON file to write (default: {DEFAULT_OUTPUT_PATH})",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())

    client = SpotifyClient(
        client_id=os.environ.get("SPOTIFY_CLIENT_ID", ""),
        client_secret=os.environ.get("SPOTIFY_CLIENT_SECRET", ""),
        refresh_token=os.environ.get("SPOTIFY_REFRESH_TOKEN", ""),
    )
    refresh(client, args.output)


if __name__ == "__main__":
    main()
