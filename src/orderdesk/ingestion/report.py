"""Ingestion report — what happened to every row of a batch."""

from dataclasses import asdict, dataclass, field
from enum import Enum


class IngestionStatus(Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    VALIDATION_FAILED = "validation_failed"
    DUPLICATES_FOUND = "duplicates_found"
    FAILED = "failed"


@dataclass(frozen=True)
class RowResult:
    row_number: int
    external_order_number: str | None = None
    order_id: str | None = None
    reason: str | None = None
    original_data: dict = field(default_factory=dict)


@dataclass
class IngestionReport:
    total: int = 0
    status: IngestionStatus = IngestionStatus.SUCCESS
    created: list[RowResult] = field(default_factory=list)
    skipped: list[RowResult] = field(default_factory=list)
    duplicates: list[RowResult] = field(default_factory=list)
    insufficient_stock: list[RowResult] = field(default_factory=list)

    @property
    def committed(self) -> bool:
        return bool(self.created)

    def counts(self) -> dict[str, int]:
        return {
            "total": self.total,
            "created": len(self.created),
            "skipped": len(self.skipped),
            "duplicates": len(self.duplicates),
            "insufficient_stock": len(self.insufficient_stock),
        }

    def settle(self) -> "IngestionReport":
        """Derive the final status once every candidate row was attempted."""
        rejected = self.skipped or self.duplicates or self.insufficient_stock
        if not self.created:
            self.status = IngestionStatus.FAILED
        elif rejected:
            self.status = IngestionStatus.PARTIAL_SUCCESS
        else:
            self.status = IngestionStatus.SUCCESS
        return self

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            **self.counts(),
            "created_rows": [asdict(r) for r in self.created],
            "skipped_rows": [asdict(r) for r in self.skipped],
            "duplicate_rows": [asdict(r) for r in self.duplicates],
            "insufficient_stock_rows": [asdict(r) for r in self.insufficient_stock],
        }
