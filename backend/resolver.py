"""
Track resolution service.

:class:`TrackResolver` ties the pipeline together: parse the pasted URL, run
the source provider's primary lookup, search the other providers, build the
link list and register a short share id. It owns the resolved-track cache and
the share registry; nothing else writes to them.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Iterable, MutableMapping, Optional

from loguru import logger

from enricher import CrossProviderEnricher, EnrichmentState
from errors import RegistryMissError, UnsupportedLinkError
from links import build_provider_links
from models import Provider, ResolvedTrack, TrackIdentifier
from providers import ProviderStrategy
from share_registry import ShareRegistry
from track_parser import parse_track_url


@dataclass(frozen=True)
class SharedTrack:
    """A resolved track together with the short URL issued for this request."""

    track: ResolvedTrack
    short_id: str
    short_url: str
    source_url: str

    def to_dict(self) -> Dict[str, object]:
        data = self.track.to_dict()
        data["shortUrl"] = self.short_url
        data["sourceUrl"] = self.source_url
        return data


class TrackResolver:
    def __init__(
        self,
        providers: Iterable[ProviderStrategy],
        registry: ShareRegistry,
        public_base_url: str,
        track_cache: Optional[MutableMapping[str, ResolvedTrack]] = None,
    ) -> None:
        self.providers = list(providers)
        self._by_tag: Dict[Provider, ProviderStrategy] = {p.tag: p for p in self.providers}
        self.enricher = CrossProviderEnricher(self.providers)
        self.registry = registry
        self.public_base_url = public_base_url.rstrip("/")
        self._tracks = track_cache if track_cache is not None else {}
        self._lock = threading.Lock()
        self._inflight: Dict[str, threading.Lock] = {}

    def parse(self, url: str) -> TrackIdentifier:
        identifier = parse_track_url(url, self.providers)
        if identifier is None:
            raise UnsupportedLinkError(url)
        return identifier

    def resolve(self, url: str) -> SharedTrack:
        """Resolve ``url`` and issue a new short URL for it.

        Raises :class:`UnsupportedLinkError` when the link is not a supported
        track URL. Provider failures never propagate from here.
        """
        identifier = self.parse(url)
        track = self.get_or_resolve(identifier)
        entry = self.registry.register(track.canonical_key)
        return SharedTrack(
            track=track,
            short_id=entry.short_id,
            short_url=f"{self.public_base_url}/t/{entry.short_id}",
            source_url=url,
        )

    def get_or_resolve(self, identifier: TrackIdentifier) -> ResolvedTrack:
        key = identifier.canonical_key
        with self._lock:
            cached = self._tracks.get(key)
            if cached is not None:
                logger.debug(f"[resolve] cache hit {key}")
                return cached
            key_lock = self._inflight.setdefault(key, threading.Lock())

        # Concurrent first-time resolutions of one key wait here and reuse the result.
        with key_lock:
            with self._lock:
                cached = self._tracks.get(key)
            if cached is not None:
                return cached
            try:
                track = self._resolve_uncached(identifier)
                with self._lock:
                    self._tracks[key] = track
            finally:
                with self._lock:
                    self._inflight.pop(key, None)
        return track

    def cached_track(self, canonical_key: str) -> Optional[ResolvedTrack]:
        with self._lock:
            return self._tracks.get(canonical_key)

    def get_shared_track(self, short_id: str) -> ResolvedTrack:
        """Look up the track behind a short id or raise :class:`RegistryMissError`."""
        key = self.registry.resolve(short_id)
        if key is None:
            raise RegistryMissError(short_id)
        track = self.cached_track(key)
        if track is None:
            raise RegistryMissError(short_id)
        return track

    def _resolve_uncached(self, identifier: TrackIdentifier) -> ResolvedTrack:
        provider = self._by_tag[identifier.provider]
        track_id = identifier.provider_track_id
        logger.info(f"[resolve] resolving {identifier.canonical_key}")

        state = EnrichmentState()
        primary = provider.primary_lookup(track_id)
        direct = None
        if primary.ok:
            state.absorb(primary.value)
            direct = primary.value.url
        else:
            logger.warning(
                f"[resolve] primary lookup for {identifier.canonical_key} degraded: {primary.degraded.reason}"
            )
        # The identifier alone is enough for a direct link to the source track.
        state.direct_links[provider.tag] = direct or provider.canonical_url(track_id)

        self.enricher.enrich(state)
        links = build_provider_links(self.providers, state.direct_links, state.title, state.artist)
        return ResolvedTrack(
            canonical_key=identifier.canonical_key,
            title=state.title,
            artist=state.artist,
            artwork_url=state.artwork_url,
            providers=tuple(links),
        )
