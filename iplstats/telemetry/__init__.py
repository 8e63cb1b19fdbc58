"""
Telemetry: Prometheus counters for ingestion/API outcomes and optional Sentry.
"""

from iplstats.telemetry.metrics import (
    api_errors_total,
    get_metrics_text,
    ingest_fixture_failures_total,
    ingest_records_total,
    record_api_error,
    record_fixture_failure,
    record_ingest_duration,
    record_ingest_result,
)
from iplstats.telemetry.sentry import init_sentry, is_sentry_enabled

__all__ = [
    "api_errors_total",
    "get_metrics_text",
    "ingest_fixture_failures_total",
    "ingest_records_total",
    "init_sentry",
    "is_sentry_enabled",
    "record_api_error",
    "record_fixture_failure",
    "record_ingest_duration",
    "record_ingest_result",
]
