"""Data model for resolved tracks, provider links and provider call results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

UNKNOWN_TITLE = "Unknown Track"
UNKNOWN_ARTIST = "Unknown Artist"

T = TypeVar("T")


class Provider(str, Enum):
    SPOTIFY = "spotify"
    APPLE = "apple"
    YOUTUBE = "youtube"


@dataclass(frozen=True)
class TrackIdentifier:
    provider: Provider
    provider_track_id: str

    @property
    def canonical_key(self) -> str:
        return f"{self.provider.value}:{self.provider_track_id}"


@dataclass(frozen=True)
class TrackMatch:
    """Normalized track data returned by a provider lookup or search."""

    url: Optional[str] = None
    title: Optional[str] = None
    artist: Optional[str] = None
    artwork_url: Optional[str] = None


@dataclass(frozen=True)
class ProviderLink:
    name: str
    display_name: str
    deep_link: Optional[str]
    is_available: bool
    fallback_search_link: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "deepLink": self.deep_link,
            "isAvailable": self.is_available,
            "fallbackSearchLink": self.fallback_search_link,
        }


@dataclass(frozen=True)
class ResolvedTrack:
    canonical_key: str
    title: str
    artist: str
    artwork_url: Optional[str]
    providers: Tuple[ProviderLink, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.canonical_key,
            "canonicalKey": self.canonical_key,
            "title": self.title,
            "artist": self.artist,
            "artwork": self.artwork_url,
            "providers": [link.to_dict() for link in self.providers],
        }


@dataclass(frozen=True)
class CachedToken:
    value: str
    expires_at_epoch_ms: int

    def is_valid(self, now_ms: int) -> bool:
        return now_ms < self.expires_at_epoch_ms


@dataclass(frozen=True)
class ShortUrlEntry:
    short_id: str
    canonical_key: str


@dataclass(frozen=True)
class Degraded:
    """Why a provider call contributed nothing."""

    reason: str
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a best-effort provider call.

    Exactly one of ``value`` and ``degraded`` is set. A search that ran fine but
    found nothing is reported as degraded with reason ``"no results"``.
    """

    value: Optional[T] = None
    degraded: Optional[Degraded] = None

    @property
    def ok(self) -> bool:
        return self.degraded is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str, error: Optional[BaseException] = None) -> "Result[T]":
        return cls(degraded=Degraded(reason, error))


def is_known_title(title: Optional[str]) -> bool:
    return bool(title) and title != UNKNOWN_TITLE


def is_known_artist(artist: Optional[str]) -> bool:
    return bool(artist) and artist != UNKNOWN_ARTIST


def build_query(title: Optional[str], artist: Optional[str]) -> str:
    """Keyword query from the title and artist, ignoring placeholder values."""
    parts = []
    if is_known_title(title):
        parts.append(title.strip())
    if is_known_artist(artist):
        parts.append(artist.strip())
    return " ".join(p for p in parts if p).strip()
