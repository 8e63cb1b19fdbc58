"""ETL module: fixture files -> relational store."""

from iplstats.etl.fixtures import FixtureRead, FixtureSet, ReadFailure, ReadFailureKind
from iplstats.etl.pipeline import IngestionPipeline, run_ingestion
from iplstats.etl.report import CategoryReport, IngestionReport, RecordResult, RecordStatus

__all__ = [
    "CategoryReport",
    "FixtureRead",
    "FixtureSet",
    "IngestionPipeline",
    "IngestionReport",
    "ReadFailure",
    "ReadFailureKind",
    "RecordResult",
    "RecordStatus",
    "run_ingestion",
]
