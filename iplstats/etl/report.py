"""Per-record outcomes and batch reports for an ingestion run."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class RecordStatus(str, Enum):
    CREATED = "created"
    EXISTING = "existing"
    UPDATED = "updated"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RecordResult:
    """Outcome of ingesting one fixture record."""

    status: RecordStatus
    key: Optional[str] = None
    reason: Optional[str] = None
    entity_id: Optional[int] = None

    @property
    def skipped(self) -> bool:
        return self.status is RecordStatus.SKIPPED

    @classmethod
    def stored(cls, key, entity_id: int, created: bool) -> "RecordResult":
        status = RecordStatus.CREATED if created else RecordStatus.EXISTING
        return cls(status=status, key=str(key), entity_id=entity_id)

    @classmethod
    def updated(cls, key, entity_id: int) -> "RecordResult":
        return cls(status=RecordStatus.UPDATED, key=str(key), entity_id=entity_id)

    @classmethod
    def skip(cls, key, reason: str) -> "RecordResult":
        return cls(status=RecordStatus.SKIPPED, key=None if key is None else str(key), reason=reason)


@dataclass
class CategoryReport:
    """Counts for one ingestion category (teams, players, ...)."""

    category: str
    created: int = 0
    existing: int = 0
    updated: int = 0
    skipped: int = 0
    source_error: Optional[str] = None
    skipped_records: list[RecordResult] = field(default_factory=list)

    def add(self, result: RecordResult) -> None:
        if result.status is RecordStatus.CREATED:
            self.created += 1
        elif result.status is RecordStatus.EXISTING:
            self.existing += 1
        elif result.status is RecordStatus.UPDATED:
            self.updated += 1
        else:
            self.skipped += 1
            self.skipped_records.append(result)

    @property
    def processed(self) -> int:
        return self.created + self.existing + self.updated + self.skipped

    def as_dict(self) -> dict:
        return {
            "created": self.created,
            "existing": self.existing,
            "updated": self.updated,
            "skipped": self.skipped,
            "source_error": self.source_error,
            "skipped_reasons": [
                {"key": r.key, "reason": r.reason} for r in self.skipped_records
            ],
        }

    def summary(self) -> str:
        text = (
            f"{self.category}: created={self.created} existing={self.existing} "
            f"updated={self.updated} skipped={self.skipped}"
        )
        if self.source_error:
            text += f" source_error={self.source_error!r}"
        return text


@dataclass
class IngestionReport:
    """Report of a full ingestion run, categories in processing order."""

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    dry_run: bool = False
    categories: dict[str, CategoryReport] = field(default_factory=dict)

    def category(self, name: str) -> CategoryReport:
        if name not in self.categories:
            self.categories[name] = CategoryReport(category=name)
        return self.categories[name]

    def total(self, status: RecordStatus) -> int:
        return sum(getattr(c, status.value) for c in self.categories.values())

    def as_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "dry_run": self.dry_run,
            "categories": {name: c.as_dict() for name, c in self.categories.items()},
        }
