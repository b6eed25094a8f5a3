import logging
import random
from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, Optional
import numpy as np
from PySide6.QtCore import QObject, Signal, QTimer
from cardioscope.alerts import AlertManager, Severity
from cardioscope.analysis import AnalysisResult
from cardioscope.buffer import SampleBuffer
from cardioscope.events import EventSource, NullSource, InjectedEvent
from cardioscope.utils import NamedSignal
from cardioscope.config import (
    WINDOW_SIZE,
    TICK_INTERVAL,
    SAMPLES_PER_TICK,
    JITTER_INTERVAL,
    EVENT_INTERVAL,
    EVENT_DWELL,
    LOADED_CONFIDENCE,
    COMPLETED_CONFIDENCE,
)

logger = logging.getLogger(__name__)

ANALYSIS_COMPLETE = "Analysis Complete"
STREAM_ENDED = "Signal Stream Ended"


class PlaybackStatus(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass
class PlaybackState:
    cursor: int = 0
    progress: float = 0.0  # percent
    status: PlaybackStatus = PlaybackStatus.IDLE
    window: SampleBuffer = field(default_factory=lambda: SampleBuffer(WINDOW_SIZE))

    @property
    def playing(self) -> bool:
        return self.status == PlaybackStatus.PLAYING


@dataclass
class Readout:
    """Values currently on display, as opposed to the cached analysis."""

    heart_rate: float = 0.0
    rhythm: str = "System Paused"
    risk: int = 0
    confidence: float = 0.0
    explanation: str = "System in standby. Please upload ECG data to begin."


class PlaybackScheduler(QObject):
    """Feed a recording to the sample window at a fixed virtual rate.

    Every tick consumes SAMPLES_PER_TICK samples regardless of how much wall
    time passed since the last tick. `tick` is connected to a QTimer while
    playing but can be driven by any host.
    """

    window_update = Signal(NamedSignal)
    progress_update = Signal(NamedSignal)
    readout_update = Signal(NamedSignal)
    status_update = Signal(NamedSignal)
    completed = Signal()

    def __init__(
        self,
        alerts: AlertManager,
        event_source: Optional[EventSource] = None,
        rng: Optional[random.Random] = None,
        schedule: Callable[[int, Callable[[], None]], None] = QTimer.singleShot,
    ):
        super().__init__()
        self.alerts = alerts
        self.event_source: EventSource = (
            event_source if event_source is not None else NullSource()
        )
        self.rng = rng if rng is not None else random.Random()
        self._schedule = schedule

        self.state = PlaybackState()
        self.readout = Readout()
        self.samples: Optional[np.ndarray] = None
        self.analysis: Optional[AnalysisResult] = None
        # Bumped whenever playback restarts from scratch; delayed callbacks
        # from an earlier session must not touch the current one.
        self._session: int = 0
        # Session whose event revert came due while paused.
        self._revert_pending: Optional[int] = None

        self.timer = QTimer()
        self.timer.setInterval(TICK_INTERVAL)
        self.timer.timeout.connect(self.tick)

    @property
    def loaded(self) -> bool:
        return self.samples is not None

    def load(self, samples: np.ndarray, analysis: AnalysisResult):
        self.timer.stop()
        self._session += 1
        self.samples = samples
        self.analysis = analysis
        self.state.cursor = 0
        self.state.progress = 0.0
        self.state.window.clear()
        self.readout = Readout(
            heart_rate=analysis.heart_rate,
            rhythm=analysis.rhythm,
            risk=analysis.risk,
            confidence=LOADED_CONFIDENCE,
            explanation=analysis.explanation,
        )
        self._set_status(PlaybackStatus.IDLE)
        self._emit_window()
        self._emit_progress()
        self._emit_readout()

    def play(self) -> bool:
        if not self.loaded:
            return False
        if self.state.status == PlaybackStatus.COMPLETED:
            return self.replay()
        if self.state.playing:
            return True
        self._set_status(PlaybackStatus.PLAYING)
        self.timer.start()
        if self._revert_pending == self._session:
            self._settle_readout()
        self._revert_pending = None
        return True

    def pause(self):
        if not self.state.playing:
            return
        self.timer.stop()
        self._set_status(PlaybackStatus.PAUSED)

    def replay(self) -> bool:
        if not self.loaded:
            return False
        self._rewind()
        self._set_status(PlaybackStatus.PLAYING)
        self.timer.start()
        return True

    def reset(self):
        self.timer.stop()
        self._rewind()
        self._set_status(PlaybackStatus.IDLE)

    def tick(self):
        # A tick that was already queued when playback stopped must not
        # resurrect progress.
        if not self.state.playing:
            return
        if not self.loaded:
            return
        if self.state.cursor >= len(self.samples):
            self._complete()
            return

        batch = self.samples[self.state.cursor : self.state.cursor + SAMPLES_PER_TICK]
        self.state.window.extend(batch)
        self.state.cursor += len(batch)
        self.state.progress = min(100.0, self.state.cursor / len(self.samples) * 100)
        self._emit_window()
        self._emit_progress()

        if self.analysis.heart_rate > 0 and self.state.cursor % JITTER_INTERVAL == 0:
            self.readout.heart_rate = self.analysis.heart_rate + (self.rng.random() - 0.5) * 2
            self._emit_readout()

        if self.state.cursor % EVENT_INTERVAL == 0:
            event = self.event_source.inject_event()
            if event is not None:
                self._apply_event(event)

        if not self.state.playing:
            self.timer.stop()

    def _complete(self):
        self.timer.stop()
        self.state.progress = 100.0
        self._set_status(PlaybackStatus.COMPLETED)
        self.readout = Readout(
            heart_rate=self.analysis.heart_rate,
            rhythm=ANALYSIS_COMPLETE,
            risk=self.analysis.risk,
            confidence=COMPLETED_CONFIDENCE,
            explanation=(
                "File processing complete. Final Classification: "
                f"{self.analysis.rhythm}. {self.analysis.explanation}"
            ),
        )
        self._emit_progress()
        self._emit_readout()
        self.alerts.trigger(STREAM_ENDED, Severity.INFO)
        logger.info("Finished playback of %d samples.", len(self.samples))
        self.completed.emit()

    def _apply_event(self, event: InjectedEvent):
        logger.info("Injected event: %s", event.label)
        self.readout.rhythm = event.label
        self.readout.risk = event.risk
        self.readout.explanation = event.explanation
        self._emit_readout()
        if event.alert_message:
            self.alerts.trigger(event.alert_message, event.severity)
        session = self._session
        self._schedule(EVENT_DWELL, lambda: self._revert_event(session))

    def _revert_event(self, session: int):
        if session != self._session:
            return
        if self.state.status == PlaybackStatus.PAUSED:
            self._revert_pending = session
            return
        if not self.state.playing:
            return
        self._settle_readout()

    def _settle_readout(self):
        self.readout.heart_rate = self.analysis.heart_rate
        self.readout.rhythm = self.analysis.rhythm
        self.readout.risk = self.analysis.risk
        self.readout.explanation = self.analysis.explanation
        self._emit_readout()

    def _rewind(self):
        self._session += 1
        self.state.cursor = 0
        self.state.progress = 0.0
        self.state.window.clear()
        self._emit_window()
        self._emit_progress()
        if self.analysis is not None:
            self._settle_readout()

    def _set_status(self, status: PlaybackStatus):
        if status == self.state.status:
            return
        self.state.status = status
        self.status_update.emit(NamedSignal("PlaybackStatus", status))

    def _emit_window(self):
        self.window_update.emit(NamedSignal("EcgWindow", self.state.window.values()))

    def _emit_progress(self):
        self.progress_update.emit(NamedSignal("Progress", self.state.progress))

    def _emit_readout(self):
        self.readout_update.emit(NamedSignal("Readout", self.readout))
