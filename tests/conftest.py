"""Pytest fixtures shared by the test modules.

No test talks to the network: providers get a :class:`FakeFetcher` whose
responses are scripted per URL prefix. A URL without a scripted response
behaves like an unreachable host.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from errors import UpstreamUnavailableError
from providers import AppleMusicProvider, SpotifyProvider, YouTubeMusicProvider
from resolver import TrackResolver
from share_registry import ShareRegistry
from token_cache import ClientCredentialTokenCache

NOW_MS = 1_700_000_000_000


@dataclass
class Call:
    url: str
    method: str
    headers: Optional[Dict[str, str]]
    body: Any
    params: Optional[Dict[str, Any]]
    auth: Optional[Tuple[str, str]] = None


class FakeFetcher:
    """Stands in for :class:`http_fetcher.HttpFetcher`."""

    def __init__(self) -> None:
        self.routes: List[Tuple[str, Any]] = []
        self.calls: List[Call] = []

    def add(self, prefix: str, response: Any) -> None:
        """Script ``response`` for URLs starting with ``prefix``.

        ``response`` may be a JSON value, an exception instance to raise, or a
        callable receiving the :class:`Call`. Later routes win.
        """
        self.routes.insert(0, (prefix, response))

    def fetch(self, url, method="GET", headers=None, body=None, params=None, auth=None):
        call = Call(url, method, headers, body, params, auth)
        self.calls.append(call)
        for prefix, response in self.routes:
            if url.startswith(prefix):
                if isinstance(response, BaseException):
                    raise response
                if callable(response):
                    return response(call)
                return response
        raise UpstreamUnavailableError(f"Request to {url} failed: unreachable", url)

    def calls_to(self, prefix: str) -> List[Call]:
        return [c for c in self.calls if c.url.startswith(prefix)]


class FrozenClock:
    def __init__(self, now_ms: int = NOW_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


def spotify_track(track_id: str, name: str, artist: str, image: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": track_id,
        "name": name,
        "artists": [{"name": artist}],
        "album": {"images": [{"url": image}] if image else []},
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
    }


def itunes_track(track_id: int, name: str, artist: str) -> Dict[str, Any]:
    return {
        "trackId": track_id,
        "trackName": name,
        "artistName": artist,
        "artworkUrl100": f"https://is1-ssl.mzstatic.com/image/{track_id}/100x100bb.jpg",
        "trackViewUrl": f"https://music.apple.com/us/album/x/1?i={track_id}",
    }


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def token_cache(fetcher, clock) -> ClientCredentialTokenCache:
    return ClientCredentialTokenCache(SpotifyProvider.TOKEN_URL, "client-id", "client-secret", fetcher, clock=clock)


@pytest.fixture
def spotify_token(fetcher) -> Callable[[], None]:
    def _grant(expires_in: int = 3600, token: str = "tok-1") -> None:
        fetcher.add(SpotifyProvider.TOKEN_URL, {"access_token": token, "expires_in": expires_in})

    return _grant


@pytest.fixture
def spotify(fetcher, token_cache) -> SpotifyProvider:
    return SpotifyProvider(fetcher, token_cache)


@pytest.fixture
def apple(fetcher) -> AppleMusicProvider:
    return AppleMusicProvider(fetcher)


@pytest.fixture
def youtube(fetcher) -> YouTubeMusicProvider:
    return YouTubeMusicProvider(fetcher, "yt-key")


@pytest.fixture
def providers(spotify, apple, youtube):
    return [spotify, apple, youtube]


@pytest.fixture
def registry() -> ShareRegistry:
    return ShareRegistry()


@pytest.fixture
def resolver(providers, registry) -> TrackResolver:
    return TrackResolver(providers, registry, "https://trackshare.test")
