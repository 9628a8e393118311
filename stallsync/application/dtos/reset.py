"""DTOs for bulk collection deletion."""

from dataclasses import dataclass, field


@dataclass
class CollectionResetOutcome:
    collection: str
    documents_deleted: int = 0
    batches_committed: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ResetReport:
    outcomes: list[CollectionResetOutcome] = field(default_factory=list)

    @property
    def successes(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def errors(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    @property
    def documents_deleted(self) -> int:
        return sum(o.documents_deleted for o in self.outcomes)
