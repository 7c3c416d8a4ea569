"""
Provider strategies.

Each supported platform is one :class:`ProviderStrategy` subclass that knows how
to recognise its own track URLs, look a track up by id, search by title and
artist, and build the links the share page shows. The resolver never branches on
provider names; it picks a strategy from the table by the identifier's tag.

The Apple pathway uses the public iTunes Search API: ``/lookup?id=`` for the
primary lookup and ``/search?term=&entity=song`` for enrichment. Neither
requires authentication. Spotify's oEmbed endpoint is unauthenticated, while
its Web API (``/v1/tracks`` and ``/v1/search``) needs a client-credentials
bearer token. YouTube metadata comes from oEmbed; searching uses the YouTube
Data API's ``search.list`` and therefore needs ``YOUTUBE_API_KEY``.

All network access goes through :class:`http_fetcher.HttpFetcher` and every
call returns a :class:`models.Result`, so a failing provider degrades to "no
contribution" instead of raising.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qs, quote, urlparse

from loguru import logger

from config import Settings
from errors import CredentialMissingError, HttpStatusError, ResponseFormatError, UpstreamUnavailableError
from http_fetcher import HttpFetcher
from models import Provider, Result, TrackMatch, build_query
from token_cache import ClientCredentialTokenCache


def _split_url(url: str):
    url = (url or "").strip()
    if url and "://" not in url:
        url = f"https://{url}"
    return urlparse(url)


def _as_dict(value: Any, source: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ResponseFormatError(source, f"expected an object, got {type(value).__name__}")
    return value


def _as_list(value: Any, source: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ResponseFormatError(source, f"expected a list, got {type(value).__name__}")
    return value


def _as_text(value: Any, source: str) -> Optional[str]:
    """A non-empty string, ``None`` when absent. Anything else is malformed."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ResponseFormatError(source, f"expected a string, got {type(value).__name__}")
    return value.strip() or None


class ProviderStrategy(ABC):
    """Everything the resolver needs to know about one platform."""

    tag: Provider
    link_name: str
    display_name: str

    def __init__(self, fetcher: HttpFetcher) -> None:
        self.fetcher = fetcher

    @abstractmethod
    def parse(self, url: str) -> Optional[str]:
        """Return the provider track id if ``url`` is one of our track URLs."""

    @abstractmethod
    def canonical_url(self, track_id: str) -> str:
        """Direct link built from the track id alone."""

    @abstractmethod
    def search_url(self, query: str) -> str:
        """Keyword search page for ``query``."""

    @abstractmethod
    def primary_lookup(self, track_id: str) -> Result[TrackMatch]:
        ...

    @abstractmethod
    def search(self, title: Optional[str], artist: Optional[str]) -> Result[TrackMatch]:
        ...

    def _get(self, url: str, **kwargs: Any) -> Result[Any]:
        try:
            return Result.success(self.fetcher.fetch(url, **kwargs))
        except UpstreamUnavailableError as exc:
            logger.warning(f"[{self.tag.value}] request failed: {exc}")
            return Result.failure("upstream unavailable", exc)

    def _parse(self, resp: Result[Any], parser: Callable[[Any], Result[TrackMatch]]) -> Result[TrackMatch]:
        """Run ``parser`` over a successful response; a payload of the wrong shape degrades."""
        if not resp.ok:
            return resp
        try:
            return parser(resp.value)
        except ResponseFormatError as exc:
            logger.warning(f"[{self.tag.value}] {exc}")
            return Result.failure("malformed payload", exc)


class SpotifyProvider(ProviderStrategy):
    tag = Provider.SPOTIFY
    link_name = "spotify"
    display_name = "Spotify"

    TOKEN_URL = "https://accounts.spotify.com/api/token"
    SEARCH_URL = "https://api.spotify.com/v1/search"
    TRACK_URL = "https://api.spotify.com/v1/tracks/{id}"
    OEMBED_URL = "https://open.spotify.com/oembed"

    TRACK_PATH = re.compile(r"^/(?:intl-[A-Za-z-]+/)?(?:embed/)?track/([A-Za-z0-9]+)")
    TRACK_URI = re.compile(r"^spotify:track:([A-Za-z0-9]+)$")

    def __init__(self, fetcher: HttpFetcher, token_cache: ClientCredentialTokenCache) -> None:
        super().__init__(fetcher)
        self.token_cache = token_cache

    def parse(self, url: str) -> Optional[str]:
        match = self.TRACK_URI.match((url or "").strip())
        if match:
            return match.group(1)
        parsed = _split_url(url)
        host = parsed.netloc.lower()
        if not (host == "spotify.com" or host.endswith(".spotify.com")):
            return None
        match = self.TRACK_PATH.match(parsed.path)
        return match.group(1) if match else None

    def canonical_url(self, track_id: str) -> str:
        return f"https://open.spotify.com/track/{track_id}"

    def search_url(self, query: str) -> str:
        return f"https://open.spotify.com/search/{quote(query, safe='')}"

    def primary_lookup(self, track_id: str) -> Result[TrackMatch]:
        url = self.canonical_url(track_id)
        oembed = self._parse(
            self._get(self.OEMBED_URL, params={"url": url}),
            lambda data: Result.success(self._oembed_match(url, data)),
        )
        match = oembed.value if oembed.ok else TrackMatch(url=url)

        # oEmbed rarely names the artist; the Web API does when we have a token.
        if not match.artist:
            api = self._get_track(track_id)
            if api.ok:
                match = TrackMatch(
                    url=url,
                    title=match.title or api.value.title,
                    artist=api.value.artist,
                    artwork_url=match.artwork_url or api.value.artwork_url,
                )

        if not (match.title or match.artist):
            degraded = oembed.degraded
            return Result.failure(
                degraded.reason if degraded else "malformed payload",
                degraded.error if degraded else None,
            )
        return Result.success(match)

    def search(self, title: Optional[str], artist: Optional[str]) -> Result[TrackMatch]:
        query = build_query(title, artist)
        if not query:
            return Result.failure("no query text")
        params = {"q": query, "type": "track", "limit": 1}
        logger.debug(f"[spotify.query] params={params}")
        return self._parse(self._authorized_get(self.SEARCH_URL, params=params), self._first_track)

    def _first_track(self, data: Any) -> Result[TrackMatch]:
        tracks = _as_dict(_as_dict(data, self.SEARCH_URL).get("tracks") or {}, self.SEARCH_URL)
        items = _as_list(tracks.get("items"), self.SEARCH_URL)
        if not items:
            return Result.failure("no results")
        return Result.success(self._to_match(items[0], self.SEARCH_URL))

    def _get_track(self, track_id: str) -> Result[TrackMatch]:
        url = self.TRACK_URL.format(id=track_id)
        return self._parse(self._authorized_get(url), lambda data: Result.success(self._to_match(data, url)))

    def _oembed_match(self, url: str, data: Any) -> TrackMatch:
        data = _as_dict(data, self.OEMBED_URL)
        return TrackMatch(
            url=url,
            title=_as_text(data.get("title"), self.OEMBED_URL),
            artist=_as_text(data.get("author_name"), self.OEMBED_URL),
            artwork_url=_as_text(data.get("thumbnail_url"), self.OEMBED_URL),
        )

    def _authorized_get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Result[Any]:
        if not self.token_cache.configured:
            return Result.failure(
                "credentials missing",
                CredentialMissingError("Spotify", "SPOTIFY_CLIENT_ID/SPOTIFY_CLIENT_SECRET"),
            )
        token = self.token_cache.get_token()
        if not token:
            return Result.failure("no access token")
        try:
            data = self.fetcher.fetch(url, headers={"Authorization": f"Bearer {token}"}, params=params)
        except HttpStatusError as exc:
            if exc.status_code == 401:
                logger.info("[spotify] token rejected, invalidating cached token")
                self.token_cache.invalidate()
            logger.warning(f"[spotify] request failed: {exc}")
            return Result.failure("upstream unavailable", exc)
        except UpstreamUnavailableError as exc:
            logger.warning(f"[spotify] request failed: {exc}")
            return Result.failure("upstream unavailable", exc)
        return Result.success(data)

    def _to_match(self, track: Any, source: str) -> TrackMatch:
        track = _as_dict(track, source)
        artists = [_as_text(_as_dict(a, source).get("name"), source) for a in _as_list(track.get("artists"), source)]
        album = _as_dict(track.get("album") or {}, source)
        images = _as_list(album.get("images"), source)
        url = _as_text(_as_dict(track.get("external_urls") or {}, source).get("spotify"), source)
        track_id = _as_text(track.get("id"), source)
        if not url and track_id:
            url = self.canonical_url(track_id)
        return TrackMatch(
            url=url,
            title=_as_text(track.get("name"), source),
            artist=", ".join(a for a in artists if a) or None,
            artwork_url=_as_text(_as_dict(images[0], source).get("url"), source) if images else None,
        )


class AppleMusicProvider(ProviderStrategy):
    tag = Provider.APPLE
    link_name = "apple_music"
    display_name = "Apple Music"

    SEARCH_URL = "https://itunes.apple.com/search"
    LOOKUP_URL = "https://itunes.apple.com/lookup"
    HOSTS = ("music.apple.com", "itunes.apple.com", "geo.music.apple.com")

    def __init__(self, fetcher: HttpFetcher, country: str = "us") -> None:
        super().__init__(fetcher)
        self.country = country.lower()

    def parse(self, url: str) -> Optional[str]:
        """Extract the Apple Music track ID from the URL.

        Apple Music URLs may look like:
        https://music.apple.com/us/album/album-name/albumId?i=songId
        https://music.apple.com/us/song/song-name/songId
        The ``i`` query parameter wins; otherwise the last numeric path segment
        of an album or song URL is used.
        """
        parsed = _split_url(url)
        if parsed.netloc.lower() not in self.HOSTS:
            return None
        parts = [p for p in parsed.path.split("/") if p]
        if "album" not in parts and "song" not in parts:
            return None
        qs = parse_qs(parsed.query)
        if "i" in qs and qs["i"][0].isdigit():
            return qs["i"][0]
        last = parts[-1]
        if last.startswith("id"):
            last = last[2:]
        return last if last.isdigit() else None

    def canonical_url(self, track_id: str) -> str:
        return f"https://music.apple.com/{self.country}/song/{track_id}"

    def search_url(self, query: str) -> str:
        return f"https://music.apple.com/search?term={quote(query, safe='')}"

    def primary_lookup(self, track_id: str) -> Result[TrackMatch]:
        resp = self._get(self.LOOKUP_URL, params={"id": track_id})
        return self._parse(resp, lambda data: self._first_result(data, self.LOOKUP_URL))

    def search(self, title: Optional[str], artist: Optional[str]) -> Result[TrackMatch]:
        query = build_query(title, artist)
        if not query:
            return Result.failure("no query text")
        params = {"term": query, "media": "music", "entity": "song", "limit": 1, "country": self.country}
        logger.debug(f"[itunes.query] params={params}")
        resp = self._get(self.SEARCH_URL, params=params)
        return self._parse(resp, lambda data: self._first_result(data, self.SEARCH_URL))

    def _first_result(self, data: Any, source: str) -> Result[TrackMatch]:
        results = _as_list(_as_dict(data, source).get("results"), source)
        if not results:
            return Result.failure("no results")
        track = _as_dict(results[0], source)
        artwork = _as_text(track.get("artworkUrl100"), source)
        if artwork:
            artwork = artwork.replace("100x100bb", "400x400bb")
        return Result.success(
            TrackMatch(
                url=_as_text(track.get("trackViewUrl"), source),
                title=_as_text(track.get("trackName"), source),
                artist=_as_text(track.get("artistName"), source),
                artwork_url=artwork,
            )
        )


class YouTubeMusicProvider(ProviderStrategy):
    tag = Provider.YOUTUBE
    link_name = "youtube_music"
    display_name = "YouTube Music"

    SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
    OEMBED_URL = "https://www.youtube.com/oembed"
    WATCH_HOSTS = ("music.youtube.com", "www.youtube.com", "youtube.com", "m.youtube.com")
    VIDEO_ID = re.compile(r"^[A-Za-z0-9_-]+$")

    def __init__(self, fetcher: HttpFetcher, api_key: Optional[str]) -> None:
        super().__init__(fetcher)
        self.api_key = api_key

    def parse(self, url: str) -> Optional[str]:
        """Handles youtube.com/watch?v=ID, music.youtube.com/watch?v=ID and youtu.be/ID."""
        parsed = _split_url(url)
        host = parsed.netloc.lower()
        video_id = None
        if host in self.WATCH_HOSTS and parsed.path.rstrip("/") == "/watch":
            video_id = (parse_qs(parsed.query).get("v") or [None])[0]
        elif host == "youtu.be":
            parts = [p for p in parsed.path.split("/") if p]
            video_id = parts[0] if parts else None
        if video_id and self.VIDEO_ID.match(video_id):
            return video_id
        return None

    def canonical_url(self, track_id: str) -> str:
        return f"https://music.youtube.com/watch?v={track_id}"

    def search_url(self, query: str) -> str:
        return f"https://music.youtube.com/search?q={quote(query, safe='')}"

    def primary_lookup(self, track_id: str) -> Result[TrackMatch]:
        resp = self._get(
            self.OEMBED_URL,
            params={"url": f"https://www.youtube.com/watch?v={track_id}", "format": "json"},
        )
        return self._parse(resp, lambda data: self._oembed_match(track_id, data))

    def _oembed_match(self, track_id: str, data: Any) -> Result[TrackMatch]:
        data = _as_dict(data, self.OEMBED_URL)
        title = _as_text(data.get("title"), self.OEMBED_URL)
        if not title:
            raise ResponseFormatError(self.OEMBED_URL, "missing title")
        return Result.success(
            TrackMatch(
                url=self.canonical_url(track_id),
                title=title,
                artist=_as_text(data.get("author_name"), self.OEMBED_URL),
                artwork_url=_as_text(data.get("thumbnail_url"), self.OEMBED_URL),
            )
        )

    def search(self, title: Optional[str], artist: Optional[str]) -> Result[TrackMatch]:
        if not self.api_key:
            return Result.failure("credentials missing", CredentialMissingError("YouTube", "YOUTUBE_API_KEY"))
        query = build_query(title, artist)
        if not query:
            return Result.failure("no query text")
        params = {
            "key": self.api_key,
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": 1,
            "videoCategoryId": "10",
        }
        return self._parse(self._get(self.SEARCH_URL, params=params), self._first_video)

    def _first_video(self, data: Any) -> Result[TrackMatch]:
        source = self.SEARCH_URL
        for item in _as_list(_as_dict(data, source).get("items"), source):
            item = _as_dict(item, source)
            video_id = _as_text(_as_dict(item.get("id") or {}, source).get("videoId"), source)
            if not video_id:
                continue
            snippet = _as_dict(item.get("snippet") or {}, source)
            thumbnails = _as_dict(snippet.get("thumbnails") or {}, source)
            artwork = None
            for size in ("high", "medium", "default"):
                artwork = _as_text(_as_dict(thumbnails.get(size) or {}, source).get("url"), source)
                if artwork:
                    break
            return Result.success(TrackMatch(url=self.canonical_url(video_id), artwork_url=artwork))
        return Result.failure("no results")


def build_providers(settings: Settings, fetcher: HttpFetcher) -> List[ProviderStrategy]:
    """The provider table in presentation order."""
    token_cache = ClientCredentialTokenCache(
        SpotifyProvider.TOKEN_URL,
        settings.spotify_client_id,
        settings.spotify_client_secret,
        fetcher,
    )
    return [
        SpotifyProvider(fetcher, token_cache),
        AppleMusicProvider(fetcher),
        YouTubeMusicProvider(fetcher, settings.youtube_api_key),
    ]
