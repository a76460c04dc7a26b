"""
Storage Alert Evaluation

Alerts are computed on demand, never stored:
- Usage: with a capacity limit, >= 85% raises one "danger" alert, otherwise
  >= 70% raises one "warning" alert
- Growth: if a snapshot from exactly 30 days ago exists and the bucket is
  not empty, (current - prior) / current above 0.5 raises an
  "abnormal_growth" warning. The ratio is taken over the current total.

An unavailable store yields no alerts.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

from vehicle_storage.metrics import storage_alerts_active
from vehicle_storage.storage.gateway import Available, StoreResult
from vehicle_storage.storage.usage import UsageStats

logger = logging.getLogger(__name__)

USAGE_WARNING_RATIO = 0.70
USAGE_DANGER_RATIO = 0.85
ABNORMAL_GROWTH_RATIO = 0.5
GROWTH_WINDOW_DAYS = 30

SEVERITIES = ("info", "warning", "danger")


@dataclass(frozen=True)
class Alert:
    type: str
    severity: str  # info | warning | danger
    message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class AlertEvaluator:
    """Threshold checks over current usage and snapshot history"""

    def __init__(
        self,
        warning_ratio: float = USAGE_WARNING_RATIO,
        danger_ratio: float = USAGE_DANGER_RATIO,
        growth_ratio: float = ABNORMAL_GROWTH_RATIO,
    ):
        self.warning_ratio = warning_ratio
        self.danger_ratio = danger_ratio
        self.growth_ratio = growth_ratio

    def evaluate(
        self,
        stats: StoreResult[UsageStats],
        prior_total_bytes: Optional[int] = None,
        capacity_bytes: Optional[int] = None,
    ) -> List[Alert]:
        """
        Args:
            stats: Current usage, possibly Unavailable
            prior_total_bytes: Total from the snapshot 30 days ago, if any
            capacity_bytes: Configured limit, None when unknown

        Returns:
            At most one usage alert plus at most one growth alert
        """
        if not isinstance(stats, Available):
            logger.warning("Storage unavailable, skipping alert evaluation")
            self._publish([])
            return []

        current = stats.value.total_bytes
        alerts: List[Alert] = []

        usage_alert = self.usage_alert(current, capacity_bytes)
        if usage_alert is not None:
            alerts.append(usage_alert)

        growth_alert = self.growth_alert(current, prior_total_bytes)
        if growth_alert is not None:
            alerts.append(growth_alert)

        self._publish(alerts)
        return alerts

    def usage_alert(self, used_bytes: int, capacity_bytes: Optional[int]) -> Optional[Alert]:
        if not capacity_bytes or capacity_bytes <= 0:
            return None

        ratio = used_bytes / capacity_bytes
        percent = round(ratio * 100)
        if ratio >= self.danger_ratio:
            return Alert(
                type="usage_high",
                severity="danger",
                message=f"Usage above {self.danger_ratio:.0%} ({percent}%). Free up space or raise the limit.",
            )
        if ratio >= self.warning_ratio:
            return Alert(
                type="usage_warning",
                severity="warning",
                message=f"Usage above {self.warning_ratio:.0%} ({percent}%). Consider cleaning zombie files.",
            )
        return None

    def growth_alert(self, current_bytes: int, prior_bytes: Optional[int]) -> Optional[Alert]:
        if prior_bytes is None or current_bytes <= 0:
            return None

        growth = (current_bytes - prior_bytes) / current_bytes
        if growth > self.growth_ratio:
            return Alert(
                type="abnormal_growth",
                severity="warning",
                message=f"Abnormal growth over the last {GROWTH_WINDOW_DAYS} days (+{round(growth * 100)}%).",
            )
        return None

    def _publish(self, alerts: List[Alert]) -> None:
        for severity in SEVERITIES:
            storage_alerts_active.labels(severity=severity).set(
                sum(1 for alert in alerts if alert.severity == severity)
            )
