"""Import and export API schemas (CSV, Google Sheets, mailbox)."""

from datetime import datetime

from pydantic import Field

from stallsync.domain.enums import ExportDataType, ImportDataType
from stallsync.schemas.common import CamelModel


class CsvImportRequest(CamelModel):
    data_type: ImportDataType
    csv_data: str = Field(..., min_length=1)


class SheetImportRequest(CamelModel):
    data_type: ImportDataType
    spreadsheet_id: str = Field(..., min_length=1)
    sheet_name: str = Field(default="Sheet1", min_length=1)


class SheetExportRequest(CamelModel):
    """Export into spreadsheet_id, or into a new spreadsheet when it is omitted."""

    data_type: ExportDataType
    spreadsheet_id: str | None = None
    sheet_name: str = Field(default="Sheet1", min_length=1)
    site_id: str | None = None
    stall: str | None = None


class SheetExportResponse(CamelModel):
    spreadsheet_id: str
    sheet_name: str
    url: str
    rows_written: int
    created: bool


class ImportReportResponse(CamelModel):
    message: str
    data_type: str
    rows_processed: int
    records_written: int
    errors: list[str]


class MailMessageResponse(CamelModel):
    id: str
    thread_id: str | None = None
    subject: str
    sender: str
    received_at: datetime | None = None
    snippet: str


class HungerboxEmailsResponse(CamelModel):
    query: str
    count: int
    messages: list[MailMessageResponse]
