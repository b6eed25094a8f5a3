from typing import Final
from math import ceil


SAMPLE_RATE: Final[int] = 200  # Hz
WINDOW_SECONDS: Final[int] = 3
WINDOW_SIZE: Final[int] = SAMPLE_RATE * WINDOW_SECONDS  # samples

TICK_RATE: Final[int] = 60  # Hz
TICK_INTERVAL: Final[int] = ceil(1000 / TICK_RATE)  # msec
# 4 * 60 Hz is slightly faster than SAMPLE_RATE, which keeps the trace
# at about real-time cardiac speed.
SAMPLES_PER_TICK: Final[int] = 4
JITTER_INTERVAL: Final[int] = 20  # samples
EVENT_INTERVAL: Final[int] = 300  # samples
EVENT_DWELL: Final[int] = 4000  # msec

ALERT_TTL: Final[int] = 3000  # msec
MAX_ALERTS: Final[int] = 3

FLAT_SIGNAL_RANGE: Final[float] = 0.05
PEAK_THRESHOLD_FRACTION: Final[float] = 0.75
PEAK_HALF_WIDTH: Final[int] = 10  # samples
# Tunable, not physiological law.
REFRACTORY_DISTANCE: Final[int] = 40  # samples
SDNN_THRESHOLD: Final[float] = 100.0  # msec

MAX_PLAUSIBLE_BPM: Final[float] = 180.0
TACHYCARDIA_BPM: Final[float] = 100.0
BRADYCARDIA_BPM: Final[float] = 60.0
CRITICAL_RISK: Final[int] = 70

LOADED_CONFIDENCE: Final[float] = 99.5
COMPLETED_CONFIDENCE: Final[float] = 100.0

ACCEPTED_SOURCES: Final[tuple[str, ...]] = ("mit", "physionet")

# Nominal interval read-outs (msec) shown for each inference model.
INFERENCE_MODELS: Final[dict[str, dict[str, int]]] = {
    "mit-bih": {"qt": 420, "pr": 160, "qrs": 90},
    "ptb": {"qt": 460, "pr": 160, "qrs": 110},
    "physionet": {"qt": 420, "pr": 160, "qrs": 90},
}
DEFAULT_INFERENCE_MODEL: Final[str] = "mit-bih"
