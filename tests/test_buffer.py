import numpy as np
import pytest

from cardioscope.buffer import SampleBuffer
from cardioscope.config import WINDOW_SIZE


def test_default_capacity_is_three_seconds_at_200_hz():
    assert SampleBuffer().capacity == WINDOW_SIZE == 600


def test_never_exceeds_capacity():
    buffer = SampleBuffer(5)
    for i in range(23):
        buffer.append(float(i))
        assert len(buffer) <= 5
    buffer.extend(range(100))
    assert len(buffer) == 5


def test_evicts_oldest_first():
    buffer = SampleBuffer(4)
    buffer.extend([1.0, 2.0, 3.0])
    buffer.extend([4.0, 5.0])
    assert list(buffer) == [2.0, 3.0, 4.0, 5.0]
    buffer.append(6.0)
    np.testing.assert_array_equal(buffer.values(), [3.0, 4.0, 5.0, 6.0])


def test_clear():
    buffer = SampleBuffer(4)
    buffer.extend([1.0, 2.0])
    buffer.clear()
    assert len(buffer) == 0
    assert buffer.values().size == 0


@pytest.mark.parametrize("capacity", [0, -1])
def test_rejects_non_positive_capacity(capacity):
    with pytest.raises(ValueError):
        SampleBuffer(capacity)
