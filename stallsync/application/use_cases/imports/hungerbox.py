"""List Hungerbox sales emails from the caller's connected Gmail account."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from stallsync.application.dtos.imports import MailMessageSummary

if TYPE_CHECKING:
    from stallsync.application.interfaces.services import MailReaderFactory
    from stallsync.application.services.google_oauth_service import GoogleOAuthService

logger = logging.getLogger(__name__)


class ListHungerboxEmailsUseCase:
    """Reads the mailbox with the stored (refreshed when needed) Google tokens."""

    def __init__(
        self,
        oauth: GoogleOAuthService,
        mail_reader_factory: MailReaderFactory,
        query: str,
    ) -> None:
        self._oauth = oauth
        self._mail_reader_factory = mail_reader_factory
        self._query = query

    @property
    def query(self) -> str:
        return self._query

    async def execute(self, uid: str, limit: int = 50) -> list[MailMessageSummary]:
        tokens = await self._oauth.get_valid_tokens(uid)
        reader = self._mail_reader_factory(tokens)
        messages = await reader.list_messages(self._query, limit=limit)
        logger.info("Found %d Hungerbox emails for user %s", len(messages), uid)
        return messages
