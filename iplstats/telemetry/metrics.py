"""
Prometheus metrics for ingestion and API health.

Labels are restricted to low-cardinality values: ingestion category,
record outcome, failure kind, API resource and status code. Never label
with team/player/match identifiers; use logs for those.
"""

import logging

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

# =============================================================================
# INGESTION METRICS
# =============================================================================

ingest_records_total = Counter(
    "ingest_records_total",
    "Fixture records processed by the ingestion pipeline",
    ["category", "outcome"],  # outcome: created, existing, updated, skipped
)

ingest_fixture_failures_total = Counter(
    "ingest_fixture_failures_total",
    "Fixture files that could not be read",
    ["kind"],  # missing, malformed
)

ingest_run_seconds = Histogram(
    "ingest_run_seconds",
    "Wall time of a full ingestion run",
    buckets=[0.5, 1, 2.5, 5, 10, 30, 60, 120, 300],
)

# =============================================================================
# API METRICS
# =============================================================================

api_errors_total = Counter(
    "api_errors_total",
    "API requests answered with an error status",
    ["resource", "status"],  # resource: teams, players, matches, stats, dashboard
)


def record_ingest_result(category: str, outcome: str) -> None:
    try:
        ingest_records_total.labels(category=category, outcome=outcome).inc()
    except Exception as e:
        logger.debug(f"Failed to record ingest metric: {e}")


def record_fixture_failure(kind: str) -> None:
    try:
        ingest_fixture_failures_total.labels(kind=kind).inc()
    except Exception as e:
        logger.debug(f"Failed to record fixture failure metric: {e}")


def record_ingest_duration(seconds: float) -> None:
    try:
        ingest_run_seconds.observe(seconds)
    except Exception as e:
        logger.debug(f"Failed to record ingest duration: {e}")


def record_api_error(resource: str, status: int) -> None:
    try:
        api_errors_total.labels(resource=resource, status=str(status)).inc()
    except Exception as e:
        logger.debug(f"Failed to record API error metric: {e}")


def get_metrics_text() -> tuple[str, str]:
    """
    Generate Prometheus metrics text output.

    Returns:
        Tuple of (content, content_type)
    """
    return generate_latest(REGISTRY).decode("utf-8"), CONTENT_TYPE_LATEST
