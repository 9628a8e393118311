"""Read-only Gmail access for the Hungerbox sales import."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from stallsync.application.dtos.imports import MailMessageSummary
from stallsync.application.dtos.oauth import GoogleTokens
from stallsync.infrastructure.exceptions import (
    UpstreamPermissionException,
    UpstreamServiceException,
)
from stallsync.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_SERVICE = "Gmail API"
_HEADERS = ["Subject", "From", "Date"]


class GmailClient:
    """Lists messages matching a Gmail search query."""

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
                build, "gmail", "v1", credentials=self._credentials, cache_discovery=False
            )
        return self._service

    async def _execute(self, request: Any) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(request.execute)
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            if status in (401, 403):
                raise UpstreamPermissionException(_SERVICE, str(status)) from e
            logger.error("Gmail API request failed: status=%s", status)
            raise UpstreamServiceException(
                _SERVICE, "Gmail request failed", status_code=status
            ) from e

    async def list_messages(self, query: str, limit: int = 50) -> list[MailMessageSummary]:
        service = await self._get_service()
        listing = await self._execute(
            service.users().messages().list(userId="me", q=query, maxResults=limit)
        )
        summaries: list[MailMessageSummary] = []
        for ref in listing.get("messages", [])[:limit]:
            msg = await self._execute(
                service.users().messages().get(
                    userId="me", id=ref["id"], format="metadata", metadataHeaders=_HEADERS
                )
            )
            summaries.append(_parse_message(msg))
        logger.info("Listed %d Gmail messages for query %r", len(summaries), query)
        return summaries


def _parse_message(msg: dict[str, Any]) -> MailMessageSummary:
    headers = {h["name"]: h["value"] for h in (msg.get("payload") or {}).get("headers", [])}
    internal = msg.get("internalDate")
    received = (
        datetime.fromtimestamp(int(internal) / 1000, tz=UTC) if internal else None
    )
    return MailMessageSummary(
        id=msg.get("id", ""),
        thread_id=msg.get("threadId"),
        subject=headers.get("Subject", ""),
        sender=headers.get("From", ""),
        received_at=received,
        snippet=msg.get("snippet", ""),
    )
