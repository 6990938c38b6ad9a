import threading
from typing import Dict, Optional
from stretchpy.kernel.caching.logic import CacheEntry
from stretchpy.kernel.image.buffer import PixelBuffer


class PipelineCache:
    """
    Holds the most recent output of every pipeline stage for one source.

    Lookups are lock-free; stores go through a single lock. Last writer wins,
    an entry being a pure function of its hash.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, stage: str, config_hash: str) -> Optional[PixelBuffer]:
        if not self.enabled:
            return None
        entry = self._entries.get(stage)
        if entry is not None and entry.config_hash == config_hash:
            return entry.data
        return None

    def store(self, stage: str, config_hash: str, data: PixelBuffer) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._entries[stage] = CacheEntry(config_hash, data)

    def entry(self, stage: str) -> Optional[CacheEntry]:
        return self._entries.get(stage)

    def clear(self) -> None:
        """Invalidates all cache entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
