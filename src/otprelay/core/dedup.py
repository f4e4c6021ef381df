"""Deduplication of panel messages that were already processed."""

from __future__ import annotations

import hashlib
from typing import Dict, Iterator

FINGERPRINT_LENGTH = 32


def message_fingerprint(text: str) -> str:
    """Return a fixed-length key for ``text``; identical text gives identical keys."""

    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


class SeenMessages:
    """Insertion-ordered set of fingerprints with a two-threshold size cap.

    Once more than ``max_size`` fingerprints are held, only the ``trim_to``
    most recently inserted ones are kept. Membership checks do not refresh
    an entry's position.
    """

    def __init__(self, max_size: int = 1000, trim_to: int = 500) -> None:
        if trim_to <= 0 or trim_to >= max_size:
            raise ValueError("trim_to must be positive and smaller than max_size")
        self.max_size = max_size
        self.trim_to = trim_to
        self._items: Dict[str, None] = {}

    def has(self, fingerprint: str) -> bool:
        return fingerprint in self._items

    def add(self, fingerprint: str) -> bool:
        """Record ``fingerprint``; returns False if it was already present."""
        if fingerprint in self._items:
            return False
        self._items[fingerprint] = None
        if len(self._items) > self.max_size:
            self._trim()
        return True

    def _trim(self) -> None:
        recent = list(self._items)[-self.trim_to:]
        self._items = dict.fromkeys(recent)

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)
