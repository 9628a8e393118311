"""Google Sheets access for stock and sales import/export."""

from __future__ import annotations

import asyncio
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from stallsync.application.dtos.oauth import GoogleTokens
from stallsync.domain.exceptions import ResourceNotFoundException, ValidationException
from stallsync.infrastructure.exceptions import UpstreamServiceException
from stallsync.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_SERVICE = "Google Sheets API"


class SheetsClient:
    """Reads and writes whole sheets (tabs) of a spreadsheet with the user's tokens."""

    def __init__(self, tokens: GoogleTokens, client_id: str, client_secret: str) -> None:
        self._credentials = Credentials(
            token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_uri="https://oauth2.googleapis.com/token",
            client_id=client_id,
            client_secret=client_secret,
        )
        self._service: Any = None

    async def _get_service(self) -> Any:
        if self._service is None:
            self._service = await asyncio.to_thread(
                build, "sheets", "v4", credentials=self._credentials, cache_discovery=False
            )
        return self._service

    async def _execute(self, request: Any, spreadsheet_id: str | None = None) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(request.execute)
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            if status == 401:
                raise ValidationException("Google account must be reconnected", "google") from e
            if status in (403, 404) and spreadsheet_id:
                raise ResourceNotFoundException("spreadsheet", spreadsheet_id) from e
            logger.error("Sheets API request failed: status=%s", status)
            raise UpstreamServiceException(
                _SERVICE, "Google Sheets request failed", status_code=status
            ) from e

    async def read_values(self, spreadsheet_id: str, sheet_name: str) -> list[list[Any]]:
        """Every non-empty row of the sheet, header first."""
        service = await self._get_service()
        result = await self._execute(
            service.spreadsheets().values().get(spreadsheetId=spreadsheet_id, range=f"{sheet_name}!A:Z"),
            spreadsheet_id,
        )
        return result.get("values", [])

    async def create_spreadsheet(self, title: str, sheet_name: str) -> str:
        """Create a spreadsheet with one sheet named sheet_name; returns its id."""
        service = await self._get_service()
        body = {"properties": {"title": title}, "sheets": [{"properties": {"title": sheet_name}}]}
        created = await self._execute(
            service.spreadsheets().create(body=body, fields="spreadsheetId")
        )
        logger.info("Created spreadsheet %s", created["spreadsheetId"])
        return created["spreadsheetId"]

    async def write_values(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        values: list[list[Any]],
        clear: bool = True,
    ) -> None:
        """Replace the sheet's contents with values, starting at A1."""
        service = await self._get_service()
        sheet_values = service.spreadsheets().values()
        if clear:
            await self._execute(
                sheet_values.clear(spreadsheetId=spreadsheet_id, range=sheet_name, body={}),
                spreadsheet_id,
            )
        await self._execute(
            sheet_values.update(
                spreadsheetId=spreadsheet_id,
                range=f"{sheet_name}!A1",
                valueInputOption="USER_ENTERED",
                body={"values": values},
            ),
            spreadsheet_id,
        )
        logger.info("Wrote %d rows to spreadsheet %s", len(values), spreadsheet_id)
