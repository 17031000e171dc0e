"""
Memory utilities: reusable scratch buffers and process memory reporting.
"""

import os
import logging
from typing import Dict

import numpy as np
import psutil

logger = logging.getLogger(__name__)

# Global process instance to avoid creating multiple Process objects
_process_instance = None


def _get_process():
    """Get singleton process instance."""
    global _process_instance
    if _process_instance is None:
        _process_instance = psutil.Process(os.getpid())
    return _process_instance


def get_memory_info() -> Dict:
    """
    Get current memory usage information.

    Returns:
        Dictionary with memory statistics
    """
    process = _get_process()
    rss = process.memory_info().rss
    return {
        'cpu': {
            'used_gb': rss / (1024 ** 3),
            'percent': process.memory_percent(),
            'available_gb': psutil.virtual_memory().available / (1024 ** 3)
        }
    }


def log_memory_usage(prefix: str = ""):
    """
    Log current memory usage.

    Args:
        prefix: Prefix for log message
    """
    cpu_info = get_memory_info()['cpu']
    logger.info(f"{prefix}CPU Memory: {cpu_info['used_gb']:.2f}GB ({cpu_info['percent']:.1f}%)")


class ScratchArena:
    """
    Per-handle scratch storage reused across digests.

    Buffers only ever grow: a request larger than the current high-water
    mark reallocates, anything smaller reuses (and clears) the existing
    allocation. Arrays handed out are views into the arena and are only
    valid until the next request, so callers copy what they keep.
    """

    def __init__(self):
        self._adjacency = np.zeros((0, 0), dtype=np.int8)
        self._spectrum = np.zeros(0, dtype=np.float64)
        self.grow_count = 0

    def adjacency(self, size: int) -> np.ndarray:
        """Return a zeroed ``size`` x ``size`` int8 matrix."""
        if size > self._adjacency.shape[0]:
            self._adjacency = np.zeros((size, size), dtype=np.int8)
            self.grow_count += 1
            logger.debug(f"Adjacency scratch grown to {size}x{size}")
        view = self._adjacency[:size, :size]
        view.fill(0)
        return view

    def spectrum(self, size: int) -> np.ndarray:
        """Return a zeroed float64 vector of length ``size``."""
        if size > self._spectrum.shape[0]:
            self._spectrum = np.zeros(size, dtype=np.float64)
            self.grow_count += 1
        view = self._spectrum[:size]
        view.fill(0.0)
        return view

    @property
    def high_water_mark(self) -> int:
        """Largest adjacency dimension allocated so far."""
        return self._adjacency.shape[0]

    def memory_bytes(self) -> int:
        return self._adjacency.nbytes + self._spectrum.nbytes

    def release(self):
        """Drop all buffers."""
        self._adjacency = np.zeros((0, 0), dtype=np.int8)
        self._spectrum = np.zeros(0, dtype=np.float64)
