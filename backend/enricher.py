"""Fill in links and metadata from the providers the track did not come from."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from loguru import logger

from models import (
    UNKNOWN_ARTIST,
    UNKNOWN_TITLE,
    Provider,
    TrackMatch,
    build_query,
    is_known_artist,
    is_known_title,
)
from providers import ProviderStrategy


@dataclass
class EnrichmentState:
    """Best metadata known so far for one resolution."""

    title: str = UNKNOWN_TITLE
    artist: str = UNKNOWN_ARTIST
    artwork_url: Optional[str] = None
    direct_links: Dict[Provider, str] = field(default_factory=dict)

    def absorb(self, match: TrackMatch) -> None:
        """Take values from ``match`` only where nothing is known yet."""
        if not self.artwork_url and match.artwork_url:
            self.artwork_url = match.artwork_url
        if not is_known_title(self.title) and match.title:
            self.title = match.title
        if not is_known_artist(self.artist) and match.artist:
            self.artist = match.artist


class CrossProviderEnricher:
    def __init__(self, providers: Iterable[ProviderStrategy]) -> None:
        self.providers = list(providers)

    def enrich(self, state: EnrichmentState) -> EnrichmentState:
        """Search every provider that has no confirmed link yet.

        Each provider gets the first hit for ``"{title} {artist}"``. Providers
        that are unconfigured, fail or find nothing are skipped.
        """
        for provider in self.providers:
            if provider.tag in state.direct_links:
                continue
            if not build_query(state.title, state.artist):
                logger.debug(f"[enrich] no query text, skipping {provider.tag.value}")
                continue

            result = provider.search(
                state.title if is_known_title(state.title) else None,
                state.artist if is_known_artist(state.artist) else None,
            )
            if not result.ok:
                logger.info(f"[enrich] {provider.tag.value} contributed nothing: {result.degraded.reason}")
                continue

            match = result.value
            if match.url:
                state.direct_links[provider.tag] = match.url
            state.absorb(match)
            logger.debug(f"[enrich] {provider.tag.value} -> {match.url}")
        return state
