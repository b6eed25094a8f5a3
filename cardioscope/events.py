"""Sources of transient rhythm events injected during playback.

The scheduler only relies on `inject_event`, so the randomized demo source
can be swapped for a real-time model without touching playback.
"""
import random
from typing import NamedTuple, Optional, Protocol
from cardioscope.alerts import Severity


class InjectedEvent(NamedTuple):
    label: str
    risk: int
    explanation: str
    alert_message: Optional[str]
    severity: Severity


class EventSource(Protocol):
    def inject_event(self) -> Optional[InjectedEvent]:
        ...


class NullSource:
    def inject_event(self) -> Optional[InjectedEvent]:
        return None


class RandomDemoSource:
    """Occasionally reports one of a few canned anomalies.

    For demonstration only, the events don't relate to the signal.
    """

    # Draws above EVENT_THRESHOLD raise an event, above CRITICAL_THRESHOLD a critical one.
    EVENT_THRESHOLD = 0.6
    CRITICAL_THRESHOLD = 0.92

    ANOMALIES = (
        InjectedEvent(
            "Ventricular Ectopy",
            65,
            "Real-time analysis detected isolated PVC.",
            "PVC Detected",
            Severity.WARNING,
        ),
        InjectedEvent(
            "Signal Artifact",
            20,
            "Motion artifact detected in signal stream.",
            "Signal Noise",
            Severity.INFO,
        ),
        InjectedEvent(
            "T-Wave Alternans",
            55,
            "Beat-to-beat variation in repolarization.",
            "Repolarization Risk",
            Severity.WARNING,
        ),
    )
    CRITICAL_EVENT = InjectedEvent(
        "Non-Sustained V-Tach",
        88,
        "CRITICAL: Run of 3+ ventricular beats > 100bpm detected.",
        "V-Tach Warning",
        Severity.CRITICAL,
    )

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random()

    def inject_event(self) -> Optional[InjectedEvent]:
        draw = self.rng.random()
        if draw <= self.EVENT_THRESHOLD:
            return None
        if draw > self.CRITICAL_THRESHOLD:
            return self.CRITICAL_EVENT
        return self.rng.choice(self.ANOMALIES)
