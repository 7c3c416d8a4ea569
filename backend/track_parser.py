"""Turn a pasted link into a provider-qualified track identifier."""

from __future__ import annotations

from typing import Iterable, Optional

from models import TrackIdentifier
from providers import ProviderStrategy


def parse_track_url(url: str, providers: Iterable[ProviderStrategy]) -> Optional[TrackIdentifier]:
    """Return the identifier for the first provider whose matcher accepts ``url``.

    ``None`` means the link is not a supported track URL; callers turn that into
    a 400 response rather than treating it as an error.
    """
    if not url or not url.strip():
        return None
    for provider in providers:
        track_id = provider.parse(url)
        if track_id:
            return TrackIdentifier(provider.tag, track_id)
    return None
