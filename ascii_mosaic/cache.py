#!/usr/bin/env python3
# ascii_mosaic/cache.py
"""
Character holder cache keyed by (rendering params, subset).

Features:
- Lazy build on first request per key, retained until cleared.
- Thread-safe: lookup-or-build runs under one lock, so concurrent requests
  for the same key build exactly once.
- Failed builds are not cached.
- Built holders are immutable and safe to share between render calls.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from ascii_mosaic.glyphs import RenderGlyph, RenderingParams
from ascii_mosaic.holders import CharacterHolder, HolderKey, holder_key

__all__ = ["HolderCache"]

log = logging.getLogger(__name__)


# -------------------------
# HolderCache
# -------------------------

class HolderCache:
    """
    Process-local holder store owned by a ConversionService.
    Thread-safe. Safe for multi-reader use.
    """

    def __init__(self, render_glyph: RenderGlyph):
        self.render_glyph = render_glyph
        self._holders: Dict[HolderKey, CharacterHolder] = {}
        self._lock = threading.Lock()
        self.builds = 0

    # -------------
    # Lookup
    # -------------

    def peek(self, params: RenderingParams, subset: Optional[str] = None) -> Optional[CharacterHolder]:
        """Return the cached holder or None, never builds."""
        with self._lock:
            return self._holders.get(holder_key(params, subset))

    def get(self, params: RenderingParams, subset: Optional[str] = None) -> CharacterHolder:
        """
        Return the holder for (params, subset), building it on first use.
        Build errors propagate and leave the cache unchanged.
        """
        key = holder_key(params, subset)
        with self._lock:
            holder = self._holders.get(key)
            if holder is not None:
                log.debug("Holder cache hit: %s subset=%r", params, subset)
                return holder

            log.debug("Holder cache miss: %s subset=%r", params, subset)
            holder = CharacterHolder.build(params, self.render_glyph, subset)
            self._holders[key] = holder
            self.builds += 1
            return holder

    # -------------
    # Lifecycle
    # -------------

    def discard(self, params: RenderingParams, subset: Optional[str] = None) -> bool:
        """Drop one holder. Returns True if it was cached."""
        with self._lock:
            return self._holders.pop(holder_key(params, subset), None) is not None

    def clear(self) -> None:
        with self._lock:
            self._holders.clear()

    def holders(self) -> List[CharacterHolder]:
        with self._lock:
            return list(self._holders.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._holders)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._holders
