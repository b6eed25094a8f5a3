"""R-peak detection, R-R interval statistics and rhythm classification.

Everything in this module is a pure function of the sample sequence. The
classification is a deterministic heuristic, not a validated diagnosis.
"""
import logging
from typing import Callable, NamedTuple, Optional, Sequence, Union
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from cardioscope.alerts import Severity
from cardioscope.config import (
    SAMPLE_RATE,
    FLAT_SIGNAL_RANGE,
    PEAK_THRESHOLD_FRACTION,
    PEAK_HALF_WIDTH,
    REFRACTORY_DISTANCE,
    SDNN_THRESHOLD,
    MAX_PLAUSIBLE_BPM,
    TACHYCARDIA_BPM,
    BRADYCARDIA_BPM,
    CRITICAL_RISK,
)

logger = logging.getLogger(__name__)

NORMAL_SINUS = "Normal Sinus"
NOISE = "Noise / Artifact"
TACHYCARDIA = "Sinus Tachycardia"
BRADYCARDIA = "Sinus Bradycardia"
IRREGULAR = "Arrhythmia / Irregular"
ASYSTOLE = "Asystole / No Signal"
SIGNAL_ERROR = "Signal Error"


class AnalysisResult(NamedTuple):
    heart_rate: float  # BPM, 0 if undetermined
    rhythm: str
    risk: int  # [0, 100]
    explanation: str
    alert: Optional[str] = None


ASYSTOLE_RESULT = AnalysisResult(
    0.0,
    ASYSTOLE,
    100,
    "No cardiac electrical activity detected (Isoelectric line).",
    "Asystole Warning",
)
SIGNAL_ERROR_RESULT = AnalysisResult(
    0.0,
    SIGNAL_ERROR,
    0,
    "Unable to detect distinct R-peaks. Signal may be too noisy or disconnected.",
    "Check Electrodes",
)


class Rule(NamedTuple):
    """Matches on (bpm, sdnn) and builds the complete result for a match."""

    name: str
    applies: Callable[[float, float], bool]
    build: Callable[[float], AnalysisResult]


# Evaluated top to bottom, the last matching rule wins.
RULES: tuple[Rule, ...] = (
    Rule(
        "normal",
        lambda bpm, sdnn: True,
        lambda bpm: AnalysisResult(
            bpm,
            NORMAL_SINUS,
            15,
            "Regular R-R intervals. Heart rate within normal range.",
        ),
    ),
    Rule(
        "noise",
        lambda bpm, sdnn: bpm > MAX_PLAUSIBLE_BPM,
        lambda bpm: AnalysisResult(
            bpm,
            NOISE,
            0,
            f"Detected rate > {MAX_PLAUSIBLE_BPM:.0f} BPM. Likely motion artifact or electrode noise.",
            "High Noise Level",
        ),
    ),
    Rule(
        "tachycardia",
        lambda bpm, sdnn: TACHYCARDIA_BPM < bpm <= MAX_PLAUSIBLE_BPM,
        lambda bpm: AnalysisResult(
            bpm,
            TACHYCARDIA,
            65,
            f"Heart rate elevated ({round(bpm)} BPM). R-R intervals consistent but shortened.",
            "Tachycardia Detected",
        ),
    ),
    Rule(
        "bradycardia",
        lambda bpm, sdnn: bpm < BRADYCARDIA_BPM,
        lambda bpm: AnalysisResult(
            bpm,
            BRADYCARDIA,
            45,
            f"Heart rate depressed ({round(bpm)} BPM). R-R intervals prolonged.",
            "Bradycardia Detected",
        ),
    ),
)


def irregular_rule(sdnn_threshold: float) -> Rule:
    return Rule(
        "irregular",
        lambda bpm, sdnn: sdnn > sdnn_threshold and bpm <= MAX_PLAUSIBLE_BPM,
        lambda bpm: AnalysisResult(
            bpm,
            IRREGULAR,
            85,
            "High variability in R-R intervals detected (Possible AFib or Ectopy).",
            "Irregular Rhythm",
        ),
    )


def detect_peaks(
    samples: Union[Sequence[float], np.ndarray],
    threshold: float,
    half_width: int = PEAK_HALF_WIDTH,
    refractory: int = REFRACTORY_DISTANCE,
) -> list[int]:
    """Return indices of R-peaks in `samples`.

    A sample at index i in [half_width, len - half_width) is a candidate if
    it exceeds `threshold` and is strictly greater than every other sample
    within `half_width` on either side (a plateau yields no candidate).
    Candidates are then accepted in scan order if they are more than
    `refractory` samples after the last accepted peak.
    """
    data = np.asarray(samples, dtype=np.float64)
    window = 2 * half_width + 1
    if data.size < window:
        return []
    windows = sliding_window_view(data, window)
    centers = windows[:, half_width]
    neighbors = np.maximum(
        windows[:, :half_width].max(axis=1), windows[:, half_width + 1 :].max(axis=1)
    )
    is_candidate = (centers > threshold) & (centers > neighbors)
    candidates = np.flatnonzero(is_candidate) + half_width

    peaks: list[int] = []
    last_peak = -refractory - 1
    for i in candidates:
        if i - last_peak > refractory:
            peaks.append(int(i))
            last_peak = i

    return peaks


def rr_intervals(peaks: Sequence[int], sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """R-R intervals in msec between consecutive peaks."""
    return np.diff(np.asarray(peaks, dtype=np.float64)) / sample_rate * 1000


def classify(bpm: float, sdnn: float, sdnn_threshold: float = SDNN_THRESHOLD) -> AnalysisResult:
    result = None
    for rule in (*RULES, irregular_rule(sdnn_threshold)):
        if rule.applies(bpm, sdnn):
            result = rule.build(bpm)

    return result


def analyze(
    samples: Union[Sequence[float], np.ndarray],
    sample_rate: int = SAMPLE_RATE,
    *,
    refractory: int = REFRACTORY_DISTANCE,
    sdnn_threshold: float = SDNN_THRESHOLD,
) -> AnalysisResult:
    """Classify a complete recording.

    Total over finite sequences: flat (or empty) input maps to asystole, too
    few R-peaks map to a signal error, everything else to a rhythm class.
    """
    data = np.asarray(samples, dtype=np.float64)
    if data.size == 0:
        return ASYSTOLE_RESULT
    lowest, highest = float(data.min()), float(data.max())
    signal_range = highest - lowest
    if signal_range < FLAT_SIGNAL_RANGE:
        return ASYSTOLE_RESULT

    threshold = lowest + PEAK_THRESHOLD_FRACTION * signal_range
    peaks = detect_peaks(data, threshold, refractory=refractory)
    if len(peaks) < 2:
        logger.info("Found %d R-peak(s) in %d samples.", len(peaks), data.size)
        return SIGNAL_ERROR_RESULT

    intervals = rr_intervals(peaks, sample_rate)
    mean_interval = float(intervals.mean())
    bpm = 60_000 / mean_interval
    sdnn = float(intervals.std())  # population, ddof=0
    logger.info(
        "Found %d R-peaks: %.1f BPM, SDNN %.1f msec.", len(peaks), bpm, sdnn
    )

    return classify(bpm, sdnn, sdnn_threshold)


def alert_severity(result: AnalysisResult) -> Severity:
    if result.risk > CRITICAL_RISK:
        return Severity.CRITICAL
    return Severity.WARNING


RHYTHM_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("warning", ("Tachycardia", "Bradycardia", "Warning", "Irregular", "Bigeminy", "Ectopy")),
    ("critical", ("Critical", "Fibrillation", "Review", "Infarction", "V-Tach")),
    ("info", ("Standby", "Upload", "Signal", "Paused")),
    ("complete", ("Complete",)),
    ("muted", ("Noise", "Error", "Artifact")),
)


def rhythm_category(rhythm: str) -> str:
    """Display category of a rhythm label, first match wins."""
    for category, keywords in RHYTHM_CATEGORIES:
        if any(k in rhythm for k in keywords):
            return category
    return "normal"


def risk_band(risk: float) -> str:
    if risk == 0:
        return "none"
    if risk < 40:
        return "normal"
    if risk < CRITICAL_RISK:
        return "warning"
    return "critical"
