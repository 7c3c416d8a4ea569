"""Short share ids for resolved tracks."""

from __future__ import annotations

import secrets
import string
import threading
from typing import Callable, MutableMapping, Optional

from loguru import logger

from models import ShortUrlEntry

SHORT_ID_ALPHABET = string.ascii_letters + string.digits
MAX_ATTEMPTS = 8


def random_short_id(length: int) -> str:
    return "".join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(length))


class ShareRegistry:
    """Maps short ids to canonical track keys.

    Every :meth:`register` call creates a new id, even for a key that is
    already registered. Entries are never removed. A freshly generated id that
    is already taken is discarded and another one is drawn.
    """

    def __init__(
        self,
        store: Optional[MutableMapping[str, str]] = None,
        id_length: int = 8,
        id_factory: Callable[[int], str] = random_short_id,
    ) -> None:
        self._store = store if store is not None else {}
        self.id_length = id_length
        self.id_factory = id_factory
        self._lock = threading.Lock()

    def register(self, canonical_key: str) -> ShortUrlEntry:
        with self._lock:
            for _ in range(MAX_ATTEMPTS):
                short_id = self.id_factory(self.id_length)
                if short_id not in self._store:
                    self._store[short_id] = canonical_key
                    logger.debug(f"[share] {short_id} -> {canonical_key}")
                    return ShortUrlEntry(short_id, canonical_key)
                logger.warning(f"[share] short id collision on {short_id}, retrying")
        raise RuntimeError(f"Could not allocate a unique short id after {MAX_ATTEMPTS} attempts")

    def resolve(self, short_id: str) -> Optional[str]:
        with self._lock:
            return self._store.get(short_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
