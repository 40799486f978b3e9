"""
Prometheus Metrics Registry

Provides Prometheus-compatible metrics for:
- Reconciliation outcomes (created / matched)
- Handler instantiation per handler type
- Devices skipped by the dispatcher, by reason
- Accessory cache size
- Directory login attempts

The registry is served by start_metrics_server() on METRICS_PORT.
"""
import logging
from prometheus_client import (
    Counter, Gauge, Info,
    CollectorRegistry, start_http_server
)

logger = logging.getLogger(__name__)

# Custom registry to avoid conflicts with the default registry
REGISTRY = CollectorRegistry()

bridge_info = Info(
    'arlo_bridge',
    'Bridge information',
    registry=REGISTRY
)

# ============================================================================
# Reconciliation Metrics
# ============================================================================

reconciliations_total = Counter(
    'arlo_bridge_reconciliations_total',
    'Total device reconciliations',
    ['outcome'],
    registry=REGISTRY
)

cached_accessories = Gauge(
    'arlo_bridge_cached_accessories',
    'Number of accessory records held in the session cache',
    registry=REGISTRY
)

# ============================================================================
# Dispatch Metrics
# ============================================================================

handlers_created_total = Counter(
    'arlo_bridge_handlers_created_total',
    'Total accessory handlers instantiated',
    ['handler'],
    registry=REGISTRY
)

devices_skipped_total = Counter(
    'arlo_bridge_devices_skipped_total',
    'Total devices that received no handler',
    ['reason'],
    registry=REGISTRY
)

# ============================================================================
# Directory Metrics
# ============================================================================

directory_logins_total = Counter(
    'arlo_bridge_directory_logins_total',
    'Directory login attempts',
    ['status'],
    registry=REGISTRY
)


def init_bridge_info(version: str) -> None:
    """Initialize bridge info metric."""
    bridge_info.info({'version': version})


def record_reconciliation(outcome: str) -> None:
    """Record a reconciliation outcome ("created" or "matched")."""
    reconciliations_total.labels(outcome=outcome).inc()


def update_cached_accessories(count: int) -> None:
    """Update the cached accessory gauge."""
    cached_accessories.set(count)


def record_handler_created(handler: str) -> None:
    """Record a handler instantiation."""
    handlers_created_total.labels(handler=handler).inc()


def record_device_skipped(reason: str) -> None:
    """Record a device that received no handler."""
    devices_skipped_total.labels(reason=reason).inc()


def record_directory_login(status: str) -> None:
    """Record a directory login attempt ("success", "failure" or "timeout")."""
    directory_logins_total.labels(status=status).inc()


def start_metrics_server(port: int) -> None:
    """Serve REGISTRY over HTTP at /metrics from a daemon thread."""
    start_http_server(port, registry=REGISTRY)
    logger.info(f"Metrics available on port {port}", extra={"port": port})
