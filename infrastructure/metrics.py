"""In-memory counters exposed in Prometheus text format at /metrics."""

from typing import Dict


COUNTER_HELP: Dict[str, str] = {
    "orders_created_total": "Total number of orders created",
    "order_validation_failures_total": "Total number of rejected order creation requests",
    "order_status_transitions_total": "Total number of applied order status transitions",
    "invalid_transitions_total": "Total number of rejected order status transitions",
}


class MetricsCollector:
    def __init__(self):
        self._counters: Dict[str, int] = {name: 0 for name in COUNTER_HELP}

    def increment(self, metric_name: str, value: int = 1) -> None:
        """Increment a known counter; unknown names are ignored."""
        if metric_name in self._counters:
            self._counters[metric_name] += value

    def get(self, metric_name: str) -> int:
        return self._counters.get(metric_name, 0)

    def get_prometheus_text(self) -> str:
        lines = []
        for name, help_text in COUNTER_HELP.items():
            lines.append(f"# HELP {name} {help_text}")
            lines.append(f"# TYPE {name} counter")
            lines.append(f"{name} {self._counters[name]}")
            lines.append("")
        return "\n".join(lines)


# Global metrics instance
metrics = MetricsCollector()
