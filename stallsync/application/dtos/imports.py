"""DTOs for CSV and mailbox imports."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ImportReport:
    data_type: str
    rows_processed: int = 0
    records_written: int = 0
    errors: list[str] = field(default_factory=list)

    def add_error(self, row_number: int, message: str) -> None:
        self.errors.append(f"Row {row_number}: {message}")


@dataclass(frozen=True)
class MailMessageSummary:
    id: str
    thread_id: str | None
    subject: str
    sender: str
    received_at: datetime | None
    snippet: str


@dataclass(frozen=True)
class SheetExportResult:
    spreadsheet_id: str
    sheet_name: str
    rows_written: int
    created: bool

    @property
    def url(self) -> str:
        return f"https://docs.google.com/spreadsheets/d/{self.spreadsheet_id}"
