"""Exclusive access to the shared drive base.

A cooperative single-owner lock. While a caller holds it, commands from any
other caller are refused, so a formation lock (anti-defense) or other
protected operation cannot be preempted by an unrelated control source.
"""

import logging
import threading
from typing import Hashable, Optional


class ExclusiveAccessGovernor:
    """Single-owner lock over one shared resource.

    Tokens are opaque caller identities (usually strings). A caller without
    a token (None) is unrestricted while nobody holds the lock.
    """

    def __init__(self, resource_name: str = "driveBase"):
        self.resource_name = resource_name
        self._owner: Optional[Hashable] = None
        self._lock = threading.Lock()

    @property
    def owner(self) -> Optional[Hashable]:
        """Current holder, or None if unheld."""
        return self._owner

    @property
    def is_held(self) -> bool:
        return self._owner is not None

    def acquire(self, token: Hashable) -> bool:
        """Claim exclusive access.

        Returns:
            True if the resource was unheld or already held by token. False
            if another token holds it (that owner's lock is never overridden)
            or if token is None, since an anonymous caller cannot own it.
        """
        if token is None:
            logging.debug(f"{self.resource_name}: anonymous caller cannot take exclusive access")
            return False

        with self._lock:
            if self._owner is None:
                self._owner = token
                logging.debug(f"{self.resource_name}: exclusive access acquired by {token!r}")
                return True
            if self._owner == token:
                return True
            logging.debug(
                f"{self.resource_name}: {token!r} denied, held by {self._owner!r}"
            )
            return False

    def release(self, token: Hashable) -> bool:
        """Give up exclusive access.

        Returns:
            True if token was the holder and the lock is now free. A
            non-matching token is a no-op returning False.
        """
        with self._lock:
            if self._owner is None or self._owner != token:
                return False
            self._owner = None
            logging.debug(f"{self.resource_name}: exclusive access released by {token!r}")
            return True

    def has_access(self, token: Optional[Hashable]) -> bool:
        """Whether token may issue commands right now."""
        with self._lock:
            return self._owner is None or self._owner == token
