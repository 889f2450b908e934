import httpx
from pydantic import ValidationError
from typing import Optional, List, Dict, Any
from models import ChartAlbum


# Sizes Last.fm reports for album artwork, smallest first
IMAGE_SIZES = ["small", "medium", "large", "extralarge", "mega"]


class LastFMError(Exception):
    """Network, HTTP or API-level failure talking to Last.fm"""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class LastFMClient:
    """Client for the Last.fm 2.0 REST API"""

    def __init__(self, api_key: str, timeout: int = 10, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = "https://ws.audioscrobbler.com/2.0/"
        self.api_key = api_key
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()

    async def _request(self, method: str, **params: Any) -> Dict[str, Any]:
        """Perform a single API call; no retries"""
        query = {
            "method": method,
            "api_key": self.api_key,
            "format": "json",
        }
        query.update(params)

        try:
            response = await self.client.get(self.base_url, params=query)
        except httpx.RequestError as e:
            raise LastFMError(f"Network error calling {method}: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            if response.is_error:
                raise LastFMError(f"HTTP {response.status_code} from {method}") from e
            raise LastFMError(f"Invalid JSON from {method}") from e

        # Last.fm reports API errors in the body, sometimes with a 200 status
        if isinstance(data, dict) and "error" in data:
            raise LastFMError(
                f"Last.fm error {data['error']} from {method}: {data.get('message', 'unknown')}",
                code=data["error"],
            )
        if response.is_error:
            raise LastFMError(f"HTTP {response.status_code} from {method}")
        if not isinstance(data, dict):
            raise LastFMError(f"Unexpected payload from {method}")

        return data

    async def get_weekly_album_chart(self, user: str, start: int, end: int) -> List[ChartAlbum]:
        """Get the albums a user listened to between two epoch timestamps, in rank order"""
        data = await self._request(
            "user.getweeklyalbumchart",
            user=user,
            **{"from": start, "to": end},
        )
        chart = data.get("weeklyalbumchart") or {}
        if not isinstance(chart, dict):
            raise LastFMError("Unexpected weeklyalbumchart in user.getweeklyalbumchart")
        raw_albums = chart.get("album") or []
        # A single-album chart comes back as an object, not a list
        if isinstance(raw_albums, dict):
            raw_albums = [raw_albums]
        if not isinstance(raw_albums, list):
            raise LastFMError("Unexpected album list in user.getweeklyalbumchart")

        albums = []
        for raw_album in raw_albums:
            album = self.normalize_chart_album(raw_album)
            if album:
                albums.append(album)
        return albums

    async def get_album_image(self, artist: str, name: str) -> str:
        """Get the URL of the largest cover image of an album, empty if it has none"""
        data = await self._request(
            "album.getinfo",
            artist=artist,
            album=name,
            autocorrect=0,
        )
        return self.pick_image_url(data.get("album") or {})

    def normalize_chart_album(self, raw_album: Dict[str, Any]) -> Optional[ChartAlbum]:
        """Normalize one weeklyalbumchart entry to a ChartAlbum, None if it has no artist or name"""
        if not isinstance(raw_album, dict):
            raise LastFMError(f"Unexpected chart row: {raw_album!r}")
        artist = raw_album.get("artist", "")
        # Artist is usually {"#text": name, "mbid": ...}
        if isinstance(artist, dict):
            artist = artist.get("#text") or artist.get("name", "")
        name = raw_album.get("name", "")
        if not artist or not name:
            return None

        rank = 0
        attr = raw_album.get("@attr")
        if isinstance(attr, dict):
            try:
                rank = int(attr.get("rank", 0))
            except (TypeError, ValueError):
                pass

        try:
            return ChartAlbum(artist=artist, name=name, rank=rank)
        except ValidationError as e:
            raise LastFMError(f"Unexpected chart row: {raw_album!r}") from e

    def pick_image_url(self, raw_album: Dict[str, Any]) -> str:
        """Largest non-empty image in an album.getinfo payload"""
        if not isinstance(raw_album, dict):
            raise LastFMError(f"Unexpected album in album.getinfo: {raw_album!r}")
        images = raw_album.get("image") or []
        if not isinstance(images, list):
            raise LastFMError(f"Unexpected image list in album.getinfo: {images!r}")

        best_url = ""
        best_size = -2
        for image in images:
            if not isinstance(image, dict):
                raise LastFMError(f"Unexpected image in album.getinfo: {image!r}")
            url = image.get("#text", "")
            if not url or not isinstance(url, str):
                continue
            size = image.get("size", "")
            # Unknown sizes lose to every known one
            rank = IMAGE_SIZES.index(size) if size in IMAGE_SIZES else -1
            if rank >= best_size:
                best_url = url
                best_size = rank
        return best_url
