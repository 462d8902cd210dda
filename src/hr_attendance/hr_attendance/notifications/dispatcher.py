from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .model import Alert
from .sink import NotificationSink

logger = logging.getLogger(__name__)


class AlertDispatcher:
    """Delivers alerts to every sink after the owning transaction commits.

    Each (alert, sink) delivery is isolated: a failing sink is logged and
    the remaining deliveries still run.
    """

    def __init__(self, sinks: Sequence[NotificationSink] = ()):
        self._sinks = list(sinks)

    def dispatch(self, alerts: Iterable[Alert]) -> int:
        delivered = 0
        for alert in alerts:
            for sink in self._sinks:
                try:
                    sink.alert(alert)
                    delivered += 1
                except Exception:
                    logger.exception(
                        "Failed to deliver %s alert for employee %s via %s",
                        alert.alert_type.value, alert.employee_id, type(sink).__name__,
                    )
        return delivered
