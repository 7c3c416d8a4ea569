"""Tests for short id registration."""

import pytest

from share_registry import SHORT_ID_ALPHABET, ShareRegistry


def test_register_and_resolve():
    registry = ShareRegistry(id_length=6)
    entry = registry.register("spotify:abc123")

    assert len(entry.short_id) == 6
    assert set(entry.short_id) <= set(SHORT_ID_ALPHABET)
    assert entry.canonical_key == "spotify:abc123"
    assert registry.resolve(entry.short_id) == "spotify:abc123"


def test_each_registration_gets_a_new_id():
    registry = ShareRegistry()
    first = registry.register("spotify:abc123")
    second = registry.register("spotify:abc123")

    assert first.short_id != second.short_id
    assert registry.resolve(first.short_id) == registry.resolve(second.short_id) == "spotify:abc123"
    assert len(registry) == 2


def test_unknown_id_resolves_to_none():
    assert ShareRegistry().resolve("nope") is None


def test_collision_draws_a_new_id():
    ids = iter(["aaaa", "aaaa", "bbbb"])
    registry = ShareRegistry(id_factory=lambda length: next(ids))

    registry.register("spotify:one")
    entry = registry.register("apple:two")

    assert entry.short_id == "bbbb"
    assert registry.resolve("aaaa") == "spotify:one"


def test_gives_up_after_repeated_collisions():
    registry = ShareRegistry(store={"same": "spotify:one"}, id_factory=lambda length: "same")
    with pytest.raises(RuntimeError):
        registry.register("apple:two")
    assert registry.resolve("same") == "spotify:one"
