"""
Minimal Spotify Web API client for the now-playing refresh job.

Only two things are needed: trade the long-lived refresh token for an access
token, then GET two player endpoints with it.

Token refresh
--------------
Apps registered with a client secret authenticate with HTTP Basic auth. Apps
that were authorized through PKCE have no secret and send client_id in the
form body instead. When a secret is configured we try Basic first and fall
back to the PKCE form only if Spotify answers invalid_grant; a refresh token
minted through PKCE is rejected with that error under Basic auth.
"""
import base64
import json
import urllib.error
import urllib.parse
import urllib.request

TOKEN_URL = "https://accounts.spotify.com/api/token"
API_BASE = "https://api.spotify.com/v1"


class SpotifyError(Exception):
    pass


def sanitize_secret(value: str | None) -> str:
    """Trim whitespace and one pair of surrounding quotes (common in CI secrets)."""
    if not value:
        return ""
    value = value.strip()
    if value[:1] in ("'", '"'):
        value = value[1:]
    if value[-1:] in ("'", '"'):
        value = value[:-1]
    return value


def _required(name: str, value: str) -> None:
    if not value:
        raise SpotifyError(f"Missing required env var: {name}")


class SpotifyClient:
    def __init__(
        self,
        client_id: str,
        refresh_token: str,
        client_secret: str = "",
        timeout: int = 10,
    ):
        self._client_id = sanitize_secret(client_id)
        self._client_secret = sanitize_secret(client_secret)
        self._refresh_token = sanitize_secret(refresh_token)
        self._timeout = timeout

    def _request_token(self, form: dict, headers: dict) -> str:
        req = urllib.request.Request(
            TOKEN_URL,
            data=urllib.parse.urlencode(form).encode(),
            headers={"Content-Type": "application/x-www-form-urlencoded", **headers},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                data = json.loads(resp.read())
        except urllib.error.HTTPError as e:
            raise SpotifyError(f"Token request failed: {e.code}{_error_detail(e)}") from e

        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token:
            raise SpotifyError("Token response did not include access_token")
        return access_token

    def get_access_token(self) -> str:
        _required("SPOTIFY_CLIENT_ID", self._client_id)
        _required("SPOTIFY_REFRESH_TOKEN", self._refresh_token)

        form = {"grant_type": "refresh_token", "refresh_token": self._refresh_token}

        if self._client_secret:
            basic = base64.b64encode(f"{self._client_id}:{self._client_secret}".encode()).decode()
            try:
                return self._request_token(form, {"Authorization": f"Basic {basic}"})
            except SpotifyError as e:
                if "invalid_grant" not in str(e):
                    raise

        return self._request_token({**form, "client_id": self._client_id}, {})

    def fetch_json(self, path: str, access_token: str) -> dict | None:
        """GET an API path. 204 No Content (nothing playing) returns None."""
        req = urllib.request.Request(
            f"{API_BASE}{path}",
            headers={"Authorization": f"Bearer {access_token}"},
            method="GET",
        )
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                if resp.status == 204:
                    return None
                body = resp.read()
        except urllib.error.HTTPError as e:
            raise SpotifyError(f"Spotify API request failed: {e.code}") from e
        return json.loads(body) if body else None

    def currently_playing(self, access_token: str) -> dict | None:
        return self.fetch_json("/me/player/currently-playing", access_token)

    def recently_played(self, access_token: str) -> dict | None:
        return self.fetch_json("/me/player/recently-played?limit=1", access_token)


def _error_detail(error: urllib.error.HTTPError) -> str:
    """Format Spotify's {"error", "error_description"} body as " (err - desc)"."""
    try:
        body = json.loads(error.read())
    except (ValueError, OSError):
        return ""
    if not isinstance(body, dict):
        return ""
    parts = [str(body[k]) for k in ("error", "error_description") if body.get(k)]
    return f" ({' - '.join(parts)})" if parts else ""
