"""Bounded, time-ordered sample buffer."""

from __future__ import annotations

from collections import deque
from datetime import datetime
from itertools import islice
from typing import Deque, Iterator, Optional

from models.telemetry import Sample

DEFAULT_CAPACITY = 3600


class RollingWindow:
    """FIFO buffer of samples; appending past capacity drops the oldest."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("Window capacity must be positive.")
        self.capacity = capacity
        self._samples: Deque[Sample] = deque(maxlen=capacity)

    def append(self, sample: Sample) -> None:
        self._samples.append(sample)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._samples)

    def latest(self, count: int) -> Iterator[Sample]:
        """Yield up to ``count`` samples, newest first."""
        return islice(reversed(self._samples), max(count, 0))

    def since(self, cutoff: datetime) -> Iterator[Sample]:
        return (sample for sample in self._samples if sample.timestamp >= cutoff)

    def first_since(self, cutoff: datetime) -> Optional[Sample]:
        """Oldest sample stamped at or after ``cutoff``."""
        return next(self.since(cutoff), None)
