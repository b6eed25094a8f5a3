"""Shared fixtures for CardioScope tests."""

import os
import random

import numpy as np
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication  # noqa: E402

from cardioscope.alerts import AlertManager  # noqa: E402
from cardioscope.scheduler import PlaybackScheduler  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """QObjects and QTimers need an application instance, not a running loop."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


class FakeTimers:
    """Stands in for QTimer.singleShot; time only moves via `advance`."""

    def __init__(self):
        self.now = 0
        self.pending: list[tuple[int, int, object]] = []
        self._order = 0

    def __call__(self, msec, callback):
        self._order += 1
        self.pending.append((self.now + msec, self._order, callback))

    def advance(self, msec):
        self.now += msec
        due = sorted(t for t in self.pending if t[0] <= self.now)
        self.pending = [t for t in self.pending if t[0] > self.now]
        for _, _, callback in due:
            callback()


@pytest.fixture
def timers():
    return FakeTimers()


@pytest.fixture
def alerts(timers):
    return AlertManager(schedule=timers)


@pytest.fixture
def scheduler(alerts, timers):
    return PlaybackScheduler(alerts, rng=random.Random(7), schedule=timers)


def synthetic_ecg(spacings, lead_in=50, tail=50, amplitude=1.0):
    """Flat baseline with one single-sample R-peak per spacing boundary.

    The first peak sits at `lead_in`, each following one `spacing` samples
    after the previous.
    """
    positions = [lead_in]
    for spacing in spacings:
        positions.append(positions[-1] + spacing)
    samples = np.zeros(positions[-1] + tail)
    samples[positions] = amplitude
    return samples, positions


def regular_ecg(spacing, beats=10):
    return synthetic_ecg([spacing] * (beats - 1))
