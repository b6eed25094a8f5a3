from collections import deque
from typing import Iterable, Iterator
import numpy as np
from cardioscope.config import WINDOW_SIZE


class SampleBuffer:
    """Sliding window over the most recent samples.

    Once the window is full, appending discards the same number of samples
    from the front.
    """

    def __init__(self, capacity: int = WINDOW_SIZE):
        if capacity <= 0:
            raise ValueError(f"Buffer capacity must be positive, got {capacity}.")
        self._samples: deque[float] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen

    def append(self, sample: float):
        self._samples.append(sample)

    def extend(self, samples: Iterable[float]):
        self._samples.extend(samples)

    def clear(self):
        self._samples.clear()

    def values(self) -> np.ndarray:
        return np.fromiter(self._samples, dtype=np.float64, count=len(self._samples))

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[float]:
        return iter(self._samples)
