# campaigner_tui/Metrics/__init__.py
from .metrics_logger import METRIC_LEVEL, SyncMetrics, sync_metrics

__all__ = ["METRIC_LEVEL", "SyncMetrics", "sync_metrics"]
