"""Tests for building the provider link list."""

from links import build_provider_links
from models import Provider


def test_direct_link_is_available_with_search_fallback(providers):
    links = build_provider_links(
        providers, {Provider.SPOTIFY: "https://open.spotify.com/track/abc123"}, "Song", "Artist"
    )

    spotify = links[0]
    assert spotify.name == "spotify"
    assert spotify.display_name == "Spotify"
    assert spotify.is_available
    assert spotify.deep_link == "https://open.spotify.com/track/abc123"
    assert spotify.fallback_search_link == "https://open.spotify.com/search/Song%20Artist"


def test_missing_direct_link_falls_back_to_search(providers):
    links = build_provider_links(providers, {}, "Song", "Artist")

    assert [link.name for link in links] == ["spotify", "apple_music", "youtube_music"]
    assert all(not link.is_available and link.deep_link is None for link in links)
    assert links[1].fallback_search_link == "https://music.apple.com/search?term=Song%20Artist"
    assert links[2].fallback_search_link == "https://music.youtube.com/search?q=Song%20Artist"


def test_provider_without_link_or_query_is_omitted(providers):
    links = build_provider_links(
        providers, {Provider.YOUTUBE: "https://music.youtube.com/watch?v=x"}, "Unknown Track", "Unknown Artist"
    )

    assert len(links) == 1
    assert links[0].name == "youtube_music"
    assert links[0].fallback_search_link is None


def test_available_links_always_have_a_deep_link(providers):
    cases = [
        ({}, None, None),
        ({}, "Song", None),
        ({Provider.APPLE: "https://music.apple.com/us/song/1"}, None, "Artist"),
        ({p.tag: p.canonical_url("1") for p in providers}, "Song", "Artist"),
    ]
    for direct, title, artist in cases:
        for link in build_provider_links(providers, direct, title, artist):
            assert not (link.is_available and link.deep_link is None)
            assert link.deep_link or link.fallback_search_link


def test_to_dict_uses_camel_case(providers):
    link = build_provider_links(providers, {}, "Song", None)[0]
    assert link.to_dict() == {
        "name": "spotify",
        "displayName": "Spotify",
        "deepLink": None,
        "isAvailable": False,
        "fallbackSearchLink": "https://open.spotify.com/search/Song",
    }
