"""
Now-playing payload: what gets written to data/spotify-now-playing.json.

    {
      "updatedAt": "2026-10-18T12:00:00+00:00",
      "isPlaying": true,
      "source": "currently-playing" | "recently-played" | "none" | "error",
      "track": {"name", "artists", "album", "imageUrl", "spotifyUrl"} | null,
      "error": "..."          # only when source == "error"
    }

The file lives in a git repo and is refreshed on a schedule, so it is only
rewritten when something other than updatedAt changed.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from now_playing.spotify import SpotifyClient

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = "data/spotify-now-playing.json"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_track(item: dict | None) -> dict | None:
    if not item:
        return None
    album = item.get("album") or {}
    images = album.get("images") or []
    artists = item.get("artists")
    return {
        "name": item.get("name"),
        "artists": [a.get("name") for a in artists] if isinstance(artists, list) else [],
        "album": album.get("name"),
        "imageUrl": images[0].get("url") if images else None,
        "spotifyUrl": (item.get("external_urls") or {}).get("spotify"),
    }


def get_listening_payload(client: SpotifyClient, updated_at: str | None = None) -> dict:
    token = client.get_access_token()
    updated_at = updated_at or _now_iso()

    current = client.currently_playing(token)
    if current and current.get("item"):
        return {
            "updatedAt": updated_at,
            "isPlaying": bool(current.get("is_playing")),
            "source": "currently-playing",
            "track": to_track(current["item"]),
        }

    recent = client.recently_played(token)
    items = (recent or {}).get("items") or []
    if items and items[0].get("track"):
        return {
            "updatedAt": updated_at,
            "isPlaying": False,
            "source": "recently-played",
            "track": to_track(items[0]["track"]),
        }

    return {"updatedAt": updated_at, "isPlaying": False, "source": "none", "track": None}


def error_payload(error: Exception, existing: dict | None) -> dict:
    """Keep showing the last known track when the refresh itself fails."""
    return {
        "updatedAt": _now_iso(),
        "isPlaying": False,
        "source": "error",
        "track": existing.get("track") if isinstance(existing, dict) else None,
        "error": str(error) or "Unknown error",
    }


def _comparable(payload):
    if not isinstance(payload, dict):
        return payload
    return {k: v for k, v in payload.items() if k != "updatedAt"}


def has_meaningful_change(previous, current) -> bool:
    return _comparable(previous) != _comparable(current)


def read_existing(path: Path) -> dict | None:
    try:
        existing = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    return existing if isinstance(existing, dict) else None


def write_payload(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def refresh(client: SpotifyClient, output_path: str = DEFAULT_OUTPUT_PATH) -> bool:
    """
    Fetch the current listening state and write it if it changed.

    Any failure while talking to Spotify is recorded in the file as an
    "error" payload rather than raised, so a scheduled job never crashes on
    a transient API problem.

    Returns:
        bool - True if the file was written
    """
    path = Path(output_path)
    existing = read_existing(path)
    try:
        payload = get_listening_payload(client)
    except Exception as e:
        logger.warning("Now-playing refresh failed: %s", e)
        payload = error_payload(e, existing)

    if existing is not None and not has_meaningful_change(existing, payload):
        logger.info("No meaningful change; leaving %s untouched", path)
        return False

    write_payload(path, payload)
    logger.info("Wrote %s (source=%s)", path, payload["source"])
    return True
