import logging
from pathlib import Path
from typing import NamedTuple, Optional, Union
import numpy as np
from PySide6.QtCore import QObject, Signal, Slot
from cardioscope.alerts import AlertManager, Severity
from cardioscope.analysis import AnalysisResult, analyze, alert_severity
from cardioscope.events import EventSource
from cardioscope.scheduler import PlaybackScheduler, PlaybackStatus
from cardioscope.utils import NamedSignal, valid_source, parse_samples, read_samples
from cardioscope.config import INFERENCE_MODELS, DEFAULT_INFERENCE_MODEL

logger = logging.getLogger(__name__)

INVALID_SOURCE = "Invalid Source: Upload MIT or PhysioNet CSV"
UPLOAD_REQUIRED = "Upload CSV Required"
NO_REPORT_DATA = "No Data to Report"
UNREADABLE_FILE = "Unable to Read File"


class ReportSnapshot(NamedTuple):
    heart_rate: float
    risk: int
    rhythm: str
    confidence: float
    explanation: str
    model_id: str


class Model(QObject):
    """One monitoring session: at most one recording, its analysis and its
    playback."""

    recording_update = Signal(NamedSignal)
    inference_model_update = Signal(NamedSignal)

    def __init__(
        self,
        alerts: Optional[AlertManager] = None,
        scheduler: Optional[PlaybackScheduler] = None,
        event_source: Optional[EventSource] = None,
    ):
        super().__init__()
        self.alerts = alerts if alerts is not None else AlertManager()
        self.scheduler = (
            scheduler
            if scheduler is not None
            else PlaybackScheduler(self.alerts, event_source)
        )
        self.file_name: Optional[str] = None
        self.analysis: Optional[AnalysisResult] = None
        self.inference_model: str = DEFAULT_INFERENCE_MODEL

    @property
    def loaded(self) -> bool:
        return self.file_name is not None

    @Slot(str)
    def load_file(self, path: Union[str, Path]) -> bool:
        file_name = Path(path).name
        if not valid_source(file_name):
            self.alerts.trigger(INVALID_SOURCE, Severity.CRITICAL)
            return False
        try:
            samples = read_samples(path)
        except OSError as e:
            logger.error("Couldn't read %s: %s", path, e)
            self.alerts.trigger(UNREADABLE_FILE, Severity.CRITICAL)
            return False
        return self._load(file_name, samples)

    def load_text(self, file_name: str, text: str) -> bool:
        if not valid_source(file_name):
            self.alerts.trigger(INVALID_SOURCE, Severity.CRITICAL)
            return False
        return self._load(file_name, parse_samples(text))

    def _load(self, file_name: str, samples: np.ndarray) -> bool:
        logger.info("Loaded %d samples from %s.", len(samples), file_name)
        self.file_name = file_name
        self.analysis = analyze(samples)
        self.scheduler.load(samples, self.analysis)
        self.recording_update.emit(NamedSignal("Recording", file_name))
        if self.analysis.alert:
            self.alerts.trigger(self.analysis.alert, alert_severity(self.analysis))
        self.scheduler.play()
        return True

    @Slot()
    def toggle_play(self):
        if not self.loaded:
            self.alerts.trigger(UPLOAD_REQUIRED, Severity.CRITICAL)
            return
        if self.scheduler.state.status == PlaybackStatus.COMPLETED:
            self.scheduler.replay()
        elif self.scheduler.state.playing:
            self.scheduler.pause()
        else:
            self.scheduler.play()

    @Slot(str)
    def select_inference_model(self, model_id: str):
        if model_id not in INFERENCE_MODELS:
            raise ValueError(f"Unknown inference model: {model_id}.")
        self.inference_model = model_id
        self.inference_model_update.emit(NamedSignal("InferenceModel", model_id))

    def interval_estimates(self) -> Optional[dict[str, int]]:
        if not self.loaded:
            return None
        return dict(INFERENCE_MODELS[self.inference_model])

    def status_text(self) -> str:
        if not self.loaded:
            return "System Paused"
        status = self.scheduler.state.status
        if status == PlaybackStatus.PLAYING:
            return "Live Processing"
        if status == PlaybackStatus.COMPLETED:
            return "Analysis Complete"
        return "Paused"

    def report_snapshot(self) -> Optional[ReportSnapshot]:
        """Called between ticks, so the readout is never half-updated."""
        if not self.loaded:
            self.alerts.trigger(NO_REPORT_DATA, Severity.WARNING)
            return None
        readout = self.scheduler.readout
        return ReportSnapshot(
            heart_rate=readout.heart_rate,
            risk=readout.risk,
            rhythm=readout.rhythm,
            confidence=readout.confidence,
            explanation=readout.explanation,
            model_id=self.inference_model,
        )
