"""IPL 2022 statistics platform: fixture ingestion, REST API and dashboard."""

__version__ = "1.0.0"
