"""Prometheus counters and Sentry scrubbing."""

from prometheus_client import REGISTRY

from iplstats.telemetry import init_sentry, is_sentry_enabled, record_api_error, record_ingest_result
from iplstats.telemetry.sentry import scrub_sensitive_data


def sample(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetrics:
    def test_ingest_result_counter(self):
        before = sample("ingest_records_total", category="teams", outcome="skipped")
        record_ingest_result("teams", "skipped")

        assert sample("ingest_records_total", category="teams", outcome="skipped") == before + 1

    def test_api_error_counter(self):
        before = sample("api_errors_total", resource="matches", status="404")
        record_api_error("matches", 404)

        assert sample("api_errors_total", resource="matches", status="404") == before + 1


class TestSentry:
    def test_disabled_without_dsn(self, monkeypatch):
        monkeypatch.delenv("SENTRY_DSN", raising=False)

        assert init_sentry() is False
        assert is_sentry_enabled() is False

    def test_scrubs_headers_and_body(self):
        event = {
            "request": {
                "headers": {"Authorization": "Bearer x", "Accept": "application/json"},
                "data": {"q": "secret"},
            }
        }
        scrubbed = scrub_sensitive_data(event, {})

        assert scrubbed["request"]["headers"]["Authorization"] == "[REDACTED]"
        assert scrubbed["request"]["headers"]["Accept"] == "application/json"
        assert scrubbed["request"]["data"] == "[SCRUBBED]"
