"""
TTL-bounded cache of session cookies harvested from exchange homepages.

Exchanges hand out bot-defense cookies on the first homepage visit and expect
them on every later request to the same host. The cache is an explicit object
owned by whoever builds the retriever, so tests get a fresh one each time.
"""

import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class SessionEntry:
    """Cookies for one host and when they were harvested."""

    cookies: dict[str, str]
    stored_at: float


@dataclass
class SessionCache:
    """
    Per-host cookie cache with a fixed time-to-live.

    Check TTL, refresh if expired, store: there is no locking because a refresh
    only ever happens at the start of a fetch.
    """

    ttl_seconds: float = 600.0
    clock: Callable[[], float] = time.monotonic
    _entries: dict[str, SessionEntry] = field(default_factory=dict)

    def is_fresh(self, host: str) -> bool:
        """True if cookies for ``host`` exist and are younger than the TTL."""
        entry = self._entries.get(host)
        if entry is None:
            return False
        return (self.clock() - entry.stored_at) < self.ttl_seconds

    def get(self, host: str) -> dict[str, str] | None:
        """Return cookies for ``host``, or None if missing or expired."""
        if not self.is_fresh(host):
            return None
        return dict(self._entries[host].cookies)

    def store(self, host: str, cookies: dict[str, str]) -> None:
        self._entries[host] = SessionEntry(cookies=dict(cookies), stored_at=self.clock())
