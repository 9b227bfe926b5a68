# metrics_logger.py
# Description: Structured sync metrics emitted as loguru records at a custom METRIC level
#
# Imports
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union
#
# Third-party Imports
from loguru import logger
#
# Local Imports
#
############################################################################################################
#
# Functions:

LabelValue = Union[str, int, float, bool]
LabelDict = Dict[str, LabelValue]

METRIC_LEVEL = "METRIC"

try:
    logger.level(METRIC_LEVEL)
except ValueError:
    logger.level(METRIC_LEVEL, no=25, color="<blue>")


def _log_metric(metric_name: str, metric_type: str, value: Any, labels: Optional[LabelDict] = None) -> None:
    """Binds the metric fields onto the record so a sink can filter on `extra["event"]`."""
    logger.bind(
        event=metric_name,
        type=metric_type,
        value=value,
        labels=labels or {},
        timestamp=datetime.now(timezone.utc).isoformat(),
    ).log(METRIC_LEVEL, f"{metric_type.capitalize()} '{metric_name}': {value}")


class SyncMetrics:
    """Counters and timings for refreshes and deletes, sharing a set of base labels."""

    REFRESH_TOTAL = "sync_refresh_total"
    REFRESH_DURATION = "sync_refresh_duration_seconds"
    REFRESH_DROPPED = "sync_refresh_dropped_total"
    DELETE_TOTAL = "sync_delete_total"

    def __init__(self, base_labels: Optional[LabelDict] = None):
        self._base_labels = dict(base_labels or {})

    def _labels(self, **labels: LabelValue) -> LabelDict:
        return {**self._base_labels, **labels}

    def record_refresh(self, target: str, outcome: str, duration_seconds: float) -> None:
        _log_metric(self.REFRESH_TOTAL, "counter", 1, self._labels(target=target, outcome=outcome))
        _log_metric(self.REFRESH_DURATION, "histogram", duration_seconds, self._labels(target=target))

    def record_dropped_refresh(self, target: str, reason: str) -> None:
        # One refresh per target at a time; overlapping triggers are counted, not queued.
        _log_metric(self.REFRESH_DROPPED, "counter", 1, self._labels(target=target, reason=reason))

    def record_delete(self, entity_type: str, outcome: str) -> None:
        _log_metric(self.DELETE_TOTAL, "counter", 1, self._labels(entity_type=entity_type, outcome=outcome))


sync_metrics = SyncMetrics({"component": "sync"})

#
# End of metrics_logger.py
############################################################################################################
