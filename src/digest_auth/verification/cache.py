"""
Credential caches placed in front of a credential store

The verifier never trusts the cache blindly: a digest mismatch against a
cached credential triggers one refresh from the store.
"""

import logging
import threading
from typing import Dict, Optional

from .types import Credential

logger = logging.getLogger(__name__)


class NullCredentialCache:
    """Cache that never stores anything; every lookup goes to the store"""
    
    def get(self, username: str) -> Optional[Credential]:
        return None
    
    def put(self, username: str, credential: Credential) -> None:
        pass


class InMemoryCredentialCache:
    """
    Thread-safe in-process cache keyed by username.
    
    Concurrent writers for the same username race benignly: the last
    writer wins, and a stale entry only costs one refresh lookup.
    """
    
    def __init__(self, max_entries: Optional[int] = None):
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._entries: Dict[str, Credential] = {}
        self._lock = threading.Lock()
    
    def get(self, username: str) -> Optional[Credential]:
        with self._lock:
            return self._entries.get(username)
    
    def put(self, username: str, credential: Credential) -> None:
        with self._lock:
            if username not in self._entries and self.max_entries is not None \
                    and len(self._entries) >= self.max_entries:
                # Evict the oldest insertion
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.debug(f"Evicted cached credential for user: {oldest}")
            self._entries[username] = credential
    
    def remove(self, username: str) -> None:
        with self._lock:
            self._entries.pop(username, None)
    
    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
