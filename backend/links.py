"""Build the per-provider link list shown for a resolved track."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from models import Provider, ProviderLink, build_query
from providers import ProviderStrategy


def build_provider_links(
    providers: Iterable[ProviderStrategy],
    direct_links: Dict[Provider, str],
    title: Optional[str],
    artist: Optional[str],
) -> List[ProviderLink]:
    """One :class:`ProviderLink` per provider that has something to offer.

    A provider with a resolved direct link is available and still gets a search
    link as a secondary action. A provider without one falls back to a keyword
    search, and is left out when there is no query text to search for.
    """
    query = build_query(title, artist)
    links: List[ProviderLink] = []
    for provider in providers:
        direct = direct_links.get(provider.tag)
        fallback = provider.search_url(query) if query else None
        if not direct and not fallback:
            continue
        links.append(
            ProviderLink(
                name=provider.link_name,
                display_name=provider.display_name,
                deep_link=direct or None,
                is_available=bool(direct),
                fallback_search_link=fallback,
            )
        )
    return links
