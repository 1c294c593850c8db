"""
Structured logging and in-process metrics.

structlog is routed through stdlib logging so uvicorn, LangChain and our own
records share one stream and one renderer. Modules log through
``structlog.get_logger(__name__)`` with key/value fields; anything bound with
``structlog.contextvars`` (service, session id) is merged into every record.
"""

from typing import Dict, Any, Iterator, Optional
from contextlib import contextmanager
import logging
import sys
import time
import structlog

from assurance_agent import __version__

# Client libraries that log every HTTP call at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "langfuse")


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    service_name: str = "assurance-agent",
    environment: str = "development"
) -> None:
    """Setup structured logging configuration"""

    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=environment,
        version=__version__
    )


class WorkflowLogger:
    """Event-style records for intent routing, session changes and budgets"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def log_intent_route(
        self,
        session_id: str,
        intent: str,
        next_node: str,
        events_retrieved: int,
        docs_retrieved: int
    ):
        """Which branch a turn takes once retrieval is done"""

        self.logger.info(
            "intent_route",
            session_id=session_id,
            intent=intent,
            next_node=next_node,
            events_retrieved=events_retrieved,
            docs_retrieved=docs_retrieved
        )

    def log_session_change(self, session_id: str, change: str, **details: Any):
        """Session lifecycle and event uploads, e.g. created, deleted, events_uploaded"""

        self.logger.info("session_change", session_id=session_id, change=change, **details)

    def log_budget_usage(
        self,
        session_id: Optional[str],
        intent: str,
        allocated: Dict[str, int],
        used: Dict[str, int],
        total_budget: int
    ):
        """Nominal slices next to the tokens a turn actually consumed"""

        self.logger.info(
            "budget_usage",
            session_id=session_id,
            intent=intent,
            allocated=allocated,
            used=used,
            total_budget=total_budget
        )


workflow_logger = WorkflowLogger("assurance_agent.workflow")


class MetricsCollector:
    """Latencies, counters and gauges kept in process memory

    Values are lost on restart; the summary is served by GET /api/metrics.
    """

    def __init__(self):
        self.latencies: Dict[str, Dict[str, float]] = {}
        self.counters: Dict[str, int] = {}
        self.gauges: Dict[str, float] = {}

    def record_latency(self, operation: str, duration_ms: float, tags: Optional[Dict[str, str]] = None):
        stats = self.latencies.setdefault(
            operation,
            {"count": 0, "sum": 0.0, "min": float("inf"), "max": 0.0}
        )
        stats["count"] += 1
        stats["sum"] += duration_ms
        stats["min"] = min(stats["min"], duration_ms)
        stats["max"] = max(stats["max"], duration_ms)

        workflow_logger.logger.debug(
            "metric",
            metric_type="latency",
            operation=operation,
            duration_ms=round(duration_ms, 2),
            tags=tags or {}
        )

    @contextmanager
    def timed(self, operation: str, tags: Optional[Dict[str, str]] = None) -> Iterator[None]:
        """Record the wall time of a block, whether or not it raises"""

        start = time.perf_counter()
        try:
            yield
        finally:
            self.record_latency(operation, (time.perf_counter() - start) * 1000, tags)

    def increment_counter(self, name: str, value: int = 1, tags: Optional[Dict[str, str]] = None):
        self.counters[name] = self.counters.get(name, 0) + value

        workflow_logger.logger.debug(
            "metric",
            metric_type="counter",
            name=name,
            value=value,
            tags=tags or {}
        )

    def set_gauge(self, name: str, value: float):
        self.gauges[name] = value

    def get_counter(self, name: str) -> int:
        return self.counters.get(name, 0)

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Flat summary: ``latency.<operation>`` stats, then counters and gauges"""

        summary: Dict[str, Any] = {}
        for operation, stats in self.latencies.items():
            summary[f"latency.{operation}"] = {
                "count": stats["count"],
                "avg": round(stats["sum"] / stats["count"], 2),
                "min": round(stats["min"], 2),
                "max": round(stats["max"], 2)
            }
        summary.update(self.counters)
        summary.update(self.gauges)
        return summary

    def reset(self):
        self.latencies.clear()
        self.counters.clear()
        self.gauges.clear()


# Global metrics collector
metrics = MetricsCollector()
