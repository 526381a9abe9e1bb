"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total item reservation attempts',
    ['status']  # success, conflict, error
)

reservation_latency = Histogram(
    'reservation_latency_seconds',
    'Conflict-checked reservation latency, including time spent waiting on the item lock',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Allocation metrics
allocation_transitions = Counter(
    'allocation_transitions_total',
    'Allocation status transitions',
    ['target', 'result']  # target status; applied, rejected
)

# Event request metrics
event_request_decisions = Counter(
    'event_request_decisions_total',
    'Event request decisions',
    ['decision']  # Approved, Denied
)

# Database metrics
db_operations = Counter(
    'db_operations_total',
    'Total database operations',
    ['operation']  # commit, rollback, retry
)

db_retries = Counter(
    'db_retry_attempts_total',
    'Transactions retried after a transient store error'
)

# Audit metrics
audit_failures = Counter(
    'audit_write_failures_total',
    'Audit records that could not be written'
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation_attempt(status: str):
    """Record reservation attempt. Status: success, conflict, error"""
    reservation_attempts.labels(status=status).inc()


def record_allocation_transition(target: str, applied: bool):
    result = "applied" if applied else "rejected"
    allocation_transitions.labels(target=target, result=result).inc()


def record_decision(decision: str):
    event_request_decisions.labels(decision=decision).inc()


def record_db_operation(operation: str):
    """Record database operation. Operation: commit, rollback, retry"""
    db_operations.labels(operation=operation).inc()
