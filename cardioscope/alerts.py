import logging
from enum import Enum
from itertools import count
from datetime import datetime
from dataclasses import dataclass, field
from typing import Callable, Optional
from PySide6.QtCore import QObject, Signal, QTimer
from cardioscope.utils import NamedSignal
from cardioscope.config import ALERT_TTL, MAX_ALERTS

logger = logging.getLogger(__name__)


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Alert:
    id: int
    message: str
    severity: Severity
    created_at: datetime = field(default_factory=datetime.now)


class AlertManager(QObject):
    """Set of self-expiring notifications.

    At most `capacity` alerts are active (the oldest is dropped first) and no
    two active alerts share a message. Every alert expires `ttl` msec after
    it was raised. Expiry matches by message, so re-triggering a message
    that is still active doesn't extend its lifetime.
    """

    alerts_update = Signal(NamedSignal)

    def __init__(
        self,
        ttl: int = ALERT_TTL,
        capacity: int = MAX_ALERTS,
        schedule: Callable[[int, Callable[[], None]], None] = QTimer.singleShot,
    ):
        super().__init__()
        self.ttl = ttl
        self.capacity = capacity
        self._schedule = schedule
        self._ids = count(1)
        self._alerts: list[Alert] = []

    @property
    def active(self) -> tuple[Alert, ...]:
        return tuple(self._alerts)

    def trigger(
        self, message: str, severity: Severity = Severity.CRITICAL
    ) -> Optional[Alert]:
        if message in self:
            return None
        alert = Alert(next(self._ids), message, Severity(severity))
        self._alerts.append(alert)
        # Once over capacity, drop from the front.
        del self._alerts[: -self.capacity]
        logger.info("Alert (%s): %s", alert.severity.value, message)
        self._schedule(self.ttl, lambda: self.expire(message))
        self._emit()

        return alert

    def expire(self, message: str):
        remaining = [a for a in self._alerts if a.message != message]
        if len(remaining) == len(self._alerts):
            return
        self._alerts = remaining
        self._emit()

    def _emit(self):
        self.alerts_update.emit(NamedSignal("Alerts", self.active))

    def __contains__(self, message: str) -> bool:
        return any(a.message == message for a in self._alerts)

    def __len__(self) -> int:
        return len(self._alerts)
